#!/usr/bin/env python3
"""
House Rules MCP Server

A Model Context Protocol (MCP) server that exposes reusable prompts and small
developer tools to AI assistants like Claude Desktop. It speaks JSON-RPC 2.0,
one message per line, over stdio, and can also be served over HTTP.

Capabilities:
- house_rules (prompt): reusable assistant operating rules, parameterized by mode
- git_context (tool): branch, recent commits and latest diffstat of a git repo

In stdio mode stdout is reserved for protocol frames. Logging, startup notices
and anything a handler prints go to stderr.

Usage:
- Stdio mode: python mcp_stdio_server.py
- HTTP mode: python mcp_stdio_server.py --http [--port 8080]
"""

# Standard libraries
import sys
import json
import math
import asyncio
import logging
from typing import Any, Dict, List, Optional, TextIO

import mcp_settings
from mcp_errors import (
    INTERNAL_ERROR,
    PARSE_ERROR,
    ConfigurationError,
    InvalidRequest,
    MCPError,
    MethodNotFound,
)
from mcp_registry import PROMPT, TOOL, CapabilityRegistry
from mcp_tools import build_registry
from mcp_validation import validate

logger = logging.getLogger(__name__)

# ============================================================================
# FRAMES
# ============================================================================


def result_frame(message_id: Any, result: Dict[str, Any]) -> Dict[str, Any]:
    return {"jsonrpc": "2.0", "id": message_id, "result": result}


def error_frame(message_id: Any, code: int, message: str, data: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": message_id, "error": error}


def _finite_float(text: str) -> float:
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"Out of range float value: {text}")
    return value


def _reject_constant(name: str) -> Any:
    raise ValueError(f"Non-standard JSON constant: {name}")


def parse_frame(line: str) -> Any:
    """Strict JSON: no NaN/Infinity, no floats that overflow to inf."""
    return json.loads(line, parse_float=_finite_float, parse_constant=_reject_constant)


def dump_frame(frame: Dict[str, Any]) -> str:
    return json.dumps(frame, allow_nan=False)


# ============================================================================
# MCP SERVER CLASS
# ============================================================================


class MCPServer:
    def __init__(self, registry: Optional[CapabilityRegistry] = None):
        self.registry = registry if registry is not None else build_registry()

    async def handle_message(self, message: Any) -> Optional[Dict[str, Any]]:
        """Handle one MCP protocol message - used by both stdio and HTTP modes.

        Returns the response frame, or None for notifications.
        """
        if not isinstance(message, dict):
            error = InvalidRequest("Invalid request: expected a JSON object").to_error()
            return error_frame(None, error["code"], error["message"], error["data"])

        method = message.get("method")
        message_id = message.get("id")
        # An explicit "id": null is still a request
        is_notification = "id" not in message

        logger.info(f"Handling method: {method} (id: {message_id})")

        try:
            if not isinstance(method, str):
                raise InvalidRequest("Invalid request: missing method")

            # Notifications (no id) never get a response
            if is_notification:
                logger.info(f"Notification received for {method}, not sending response")
                return None

            params = message.get("params") or {}
            if not isinstance(params, dict):
                raise InvalidRequest("Invalid request: params must be an object")

            result = await self._dispatch(method, params)
            return result_frame(message_id, result)

        except MCPError as e:
            logger.warning(f"{method} failed: {e.kind}: {e.message}")
            if is_notification:
                return None
            error = e.to_error()
            return error_frame(message_id, error["code"], error["message"], error["data"])
        except Exception as e:
            logger.exception(f"Error handling message: {e}")
            if is_notification:
                return None
            return error_frame(message_id, INTERNAL_ERROR, f"Internal error: {e}")

    async def _dispatch(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        if method == "initialize":
            return {
                "protocolVersion": params.get("protocolVersion") or mcp_settings.PROTOCOL_VERSION,
                "capabilities": {"prompts": {}, "tools": {}},
                "serverInfo": {
                    "name": mcp_settings.SERVER_NAME,
                    "version": mcp_settings.SERVER_VERSION,
                },
            }

        elif method == "ping":
            return {}

        elif method == "prompts/list":
            return {"prompts": [d.to_prompt_listing() for d in self.registry.list(PROMPT)]}

        elif method == "prompts/get":
            capability = self.registry.resolve(PROMPT, params.get("name"))
            args = validate(capability.declaration.arguments, params.get("arguments"))
            return capability.handler(args)

        elif method == "tools/list":
            return {"tools": [d.to_tool_listing() for d in self.registry.list(TOOL)]}

        elif method == "tools/call":
            capability = self.registry.resolve(TOOL, params.get("name"))
            args = validate(capability.declaration.arguments, params.get("arguments"))
            logger.info(f"Calling tool: {capability.declaration.name} with args: {args}")
            content = await capability.handler(args)
            return {"content": content, "isError": False}

        raise MethodNotFound(f"Unknown method: {method}")

    async def process_line(self, line: str) -> Optional[str]:
        """Turn one inbound line into the serialized response, if any."""
        try:
            message = parse_frame(line)
        except (ValueError, RecursionError) as e:
            # JSONDecodeError is a ValueError; deeply nested input raises RecursionError
            logger.error(f"Invalid JSON received: {line[:100]!r} - {e}")
            return dump_frame(error_frame(None, PARSE_ERROR, f"Parse error: {e}"))

        response = await self.handle_message(message)
        if response is None:
            return None
        try:
            return dump_frame(response)
        except (TypeError, ValueError) as e:
            logger.error(f"Response is not serializable: {e}")
            return dump_frame(
                error_frame(response.get("id"), INTERNAL_ERROR, f"Internal error: {e}")
            )

    async def serve_stdio(self, stdin: TextIO, stdout: TextIO) -> None:
        """Read requests line by line and answer each one in order."""
        loop = asyncio.get_running_loop()
        while True:
            line = await loop.run_in_executor(None, stdin.readline)
            if not line:
                break

            # Strip whitespace and skip empty lines
            line = line.strip()
            if not line:
                continue

            try:
                output = await self.process_line(line)
            except Exception as e:
                # One bad frame must not end the session
                logger.exception(f"Error processing message: {e}")
                output = dump_frame(error_frame(None, INTERNAL_ERROR, f"Internal error: {e}"))

            # Only send response if not None (not a notification)
            if output is not None:
                stdout.write(output + "\n")
                stdout.flush()


# ============================================================================
# MAIN APPLICATION
# ============================================================================


def configure_logging() -> None:
    # Logging goes to stderr so it never mixes with protocol frames
    level = getattr(logging, mcp_settings.LOG_LEVEL, logging.INFO)
    logging.basicConfig(level=level, stream=sys.stderr)


def _option(argv: List[str], name: str) -> Optional[str]:
    if name in argv:
        index = argv.index(name)
        if index + 1 < len(argv):
            return argv[index + 1]
    return None


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    configure_logging()

    try:
        mcp_server = MCPServer()
    except ConfigurationError as e:
        logger.error(f"Fatal error: invalid capability configuration: {e}")
        return 1
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        return 1

    if "--http" in argv:
        from mcp_http_server import run_http

        port_option = _option(argv, "--port")
        try:
            port = int(port_option) if port_option is not None else mcp_settings.PORT
        except ValueError:
            logger.error(f"Fatal error: invalid port {port_option!r}")
            return 1
        try:
            run_http(mcp_server, port)
        except Exception as e:
            logger.error(f"Fatal error: {e}")
            return 1
        return 0

    logger.info(f"{mcp_settings.SERVER_NAME} running on stdio")
    # Frames go to the real stdout; anything else that prints lands on stderr
    protocol_stdout = sys.stdout
    sys.stdout = sys.stderr
    try:
        asyncio.run(mcp_server.serve_stdio(sys.stdin, protocol_stdout))
    except KeyboardInterrupt:
        logger.info("MCP Server shutting down...")
    except Exception as e:
        logger.error(f"Fatal error: {e}")
        return 1
    finally:
        sys.stdout = protocol_stdout
    return 0


if __name__ == "__main__":
    sys.exit(main())
