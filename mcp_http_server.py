#!/usr/bin/env python3
"""HTTP transport for the MCP server (FastAPI + uvicorn).

Serves the same MCPServer dispatcher as stdio mode, one JSON-RPC message per
POST. Started with `python mcp_stdio_server.py --http`.
"""

import logging
from typing import Any, Dict

from fastapi import Body, FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

import mcp_settings
from mcp_registry import PROMPT, TOOL

logger = logging.getLogger(__name__)


def create_app(mcp_server) -> FastAPI:
    """Build the FastAPI app around an MCPServer instance."""
    app = FastAPI(title=mcp_settings.SERVER_NAME, version=mcp_settings.SERVER_VERSION)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    async def _handle(message: Any):
        response = await mcp_server.handle_message(message)
        if response is None:
            # Notification: nothing to send back
            return Response(status_code=202)
        return response

    @app.post("/mcp")
    async def handle_mcp_endpoint(message: Any = Body(...)):
        """Handle one MCP message on the /mcp endpoint."""
        return await _handle(message)

    @app.post("/message")
    async def handle_mcp_message(message: Any = Body(...)):
        return await _handle(message)

    @app.get("/health")
    async def health_check() -> Dict[str, Any]:
        return {
            "status": "healthy",
            "server": mcp_settings.SERVER_NAME,
            "version": mcp_settings.SERVER_VERSION,
            "transport": "HTTP",
            "prompts_count": len(mcp_server.registry.list(PROMPT)),
            "tools_count": len(mcp_server.registry.list(TOOL)),
        }

    return app


def run_http(mcp_server, port: int) -> None:
    app = create_app(mcp_server)
    logger.info(f"{mcp_settings.SERVER_NAME} starting in HTTP mode on port {port}")
    uvicorn.run(
        app,
        host="0.0.0.0",
        port=port,
        log_level=mcp_settings.LOG_LEVEL.lower(),
        log_config=None,
    )
    logger.info("HTTP server stopped")
