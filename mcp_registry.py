#!/usr/bin/env python3
"""Capability registry: prompt and tool declarations bound to their handlers."""

import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple

from mcp_errors import ConfigurationError, NotFound

logger = logging.getLogger(__name__)

PROMPT = "prompt"
TOOL = "tool"
KINDS = (PROMPT, TOOL)

ARGUMENT_TYPES = ("string", "integer", "number", "boolean")


@dataclass(frozen=True)
class Argument:
    """One field of a capability's argument schema."""

    name: str
    type: str = "string"
    required: bool = False
    default: Any = None
    description: str = ""
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    min_length: Optional[int] = None

    def to_property(self) -> Dict[str, Any]:
        prop: Dict[str, Any] = {"type": self.type}
        if self.description:
            prop["description"] = self.description
        if self.default is not None:
            prop["default"] = self.default
        if self.minimum is not None:
            prop["minimum"] = self.minimum
        if self.maximum is not None:
            prop["maximum"] = self.maximum
        if self.min_length is not None:
            prop["minLength"] = self.min_length
        return prop


@dataclass(frozen=True)
class Declaration:
    kind: str
    name: str
    description: str
    arguments: Tuple[Argument, ...] = field(default_factory=tuple)

    def to_prompt_listing(self) -> Dict[str, Any]:
        """prompts/list entry."""
        return {
            "name": self.name,
            "description": self.description,
            "arguments": [
                {
                    "name": arg.name,
                    "description": arg.description,
                    "required": arg.required,
                }
                for arg in self.arguments
            ],
        }

    def to_tool_listing(self) -> Dict[str, Any]:
        """tools/list entry, with a JSON-Schema style inputSchema."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": {
                "type": "object",
                "properties": {arg.name: arg.to_property() for arg in self.arguments},
                "required": [arg.name for arg in self.arguments if arg.required],
            },
        }


@dataclass(frozen=True)
class Capability:
    declaration: Declaration
    handler: Callable[..., Any]


class CapabilityRegistry:
    """Ordered (kind, name) -> handler mapping, filled once at startup."""

    def __init__(self):
        self._capabilities: Dict[str, Dict[str, Capability]] = {kind: {} for kind in KINDS}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def declare(self, kind: str, declaration: Declaration, handler: Callable[..., Any]) -> None:
        if self._frozen:
            raise ConfigurationError(
                f"Registry is frozen, cannot declare {kind} {declaration.name!r}"
            )
        if kind not in KINDS:
            raise ConfigurationError(f"Unknown capability kind: {kind!r}")
        if declaration.kind != kind:
            raise ConfigurationError(
                f"{declaration.name!r} is declared as {declaration.kind!r}, registered as {kind!r}"
            )
        if declaration.name in self._capabilities[kind]:
            raise ConfigurationError(f"Duplicate {kind} name: {declaration.name!r}")

        # Prompts are pure synchronous builders, tools are awaited.
        is_async = inspect.iscoroutinefunction(handler)
        if kind == PROMPT and (is_async or not callable(handler)):
            raise ConfigurationError(
                f"Prompt handler for {declaration.name!r} must be a synchronous callable"
            )
        if kind == TOOL and not is_async:
            raise ConfigurationError(
                f"Tool handler for {declaration.name!r} must be an async function"
            )

        seen = set()
        for arg in declaration.arguments:
            if arg.name in seen:
                raise ConfigurationError(
                    f"Duplicate argument {arg.name!r} in {kind} {declaration.name!r}"
                )
            if arg.type not in ARGUMENT_TYPES:
                raise ConfigurationError(
                    f"Argument {arg.name!r} of {declaration.name!r} has unsupported type {arg.type!r}"
                )
            seen.add(arg.name)

        self._capabilities[kind][declaration.name] = Capability(declaration, handler)
        logger.debug(f"Registered {kind}: {declaration.name}")

    def list(self, kind: str) -> List[Declaration]:
        """Declarations of one kind, in registration order."""
        if kind not in KINDS:
            raise ConfigurationError(f"Unknown capability kind: {kind!r}")
        return [cap.declaration for cap in self._capabilities[kind].values()]

    def resolve(self, kind: str, name: Any) -> Capability:
        capability = self._capabilities.get(kind, {}).get(name) if isinstance(name, str) else None
        if capability is None:
            raise NotFound(kind, name)
        return capability

    def freeze(self) -> "CapabilityRegistry":
        self._frozen = True
        return self
