#!/usr/bin/env python3
"""Runtime configuration, read from the environment (and a local .env file)."""

import os
import logging

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

load_dotenv()

# ============================================================================
# HELPERS
# ============================================================================

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off", ""}


def _env_float(name: str, default: float) -> float:
    """Read a float, falling back to the default on garbage."""
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"{name}: invalid value ({raw!r}), using {default}")
        return default
    if value < 0:
        logger.warning(f"{name}: negative value ({raw!r}), using {default}")
        return default
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning(f"{name}: invalid value ({raw!r}), using {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    logger.warning(f"{name}: invalid value ({raw!r}), using {default}")
    return default


# ============================================================================
# CONFIGURATION & CONSTANTS
# ============================================================================

SERVER_NAME = os.environ.get("MCP_SERVER_NAME", "mcp-house-rules")
SERVER_VERSION = os.environ.get("MCP_SERVER_VERSION", "0.1.0")
PROTOCOL_VERSION = os.environ.get("MCP_PROTOCOL_VERSION", "2024-11-05")

# External commands
GIT_EXECUTABLE = os.environ.get("MCP_GIT_EXECUTABLE", "git")
PROCESS_TIMEOUT = _env_float("MCP_PROCESS_TIMEOUT", 10.0)  # seconds, 0 disables

# When set, a work-tree check that cannot even start is a hard error instead of
# "not a repository".
STRICT_REPO_CHECK = _env_bool("MCP_STRICT_REPO_CHECK", False)

LOG_LEVEL = os.environ.get("MCP_LOG_LEVEL", "INFO").upper()

# HTTP mode
PORT = _env_int("PORT", 8080)
