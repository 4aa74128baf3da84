#!/usr/bin/env python3
"""Error types shared by the registry, validator, process runner and dispatcher.

Anything deriving from MCPError is turned into a JSON-RPC error frame at the
dispatcher boundary. ConfigurationError is a startup failure and never reaches
a client.
"""

from typing import Any, Dict, List, Optional

# JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Validation failure kinds
MISSING_FIELD = "MissingField"
TYPE_MISMATCH = "TypeMismatch"


class ConfigurationError(Exception):
    """Raised while building the registry; fatal at startup."""


class MCPError(Exception):
    code = INTERNAL_ERROR
    kind = "InternalError"

    def __init__(self, message: str, data: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.data = data or {}

    def to_error(self) -> Dict[str, Any]:
        """Render as the `error` member of a JSON-RPC response."""
        data = {"kind": self.kind}
        data.update(self.data)
        return {"code": self.code, "message": self.message, "data": data}


class InvalidRequest(MCPError):
    code = INVALID_REQUEST
    kind = "InvalidRequest"


class MethodNotFound(MCPError):
    code = METHOD_NOT_FOUND
    kind = "MethodNotFound"


class NotFound(MCPError):
    """Unknown capability name for the requested kind."""

    code = INVALID_PARAMS
    kind = "NotFound"

    def __init__(self, capability_kind: str, name: Any):
        super().__init__(
            f"Unknown {capability_kind}: {name}",
            {"capability": capability_kind, "name": name},
        )
        self.capability_kind = capability_kind
        self.name = name


class ValidationError(MCPError):
    code = INVALID_PARAMS

    def __init__(self, kind: str, field: Optional[str], message: str):
        super().__init__(message, {"field": field})
        # Instance attribute shadows the class-level kind.
        self.kind = kind
        self.field = field


class LaunchFailure(MCPError):
    """An external command could not run, timed out, or exited unexpectedly."""

    kind = "LaunchFailure"

    def __init__(
        self,
        command: List[str],
        message: str,
        exit_code: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(
            message,
            {"command": command, "exitCode": exit_code, "stderr": stderr},
        )
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
