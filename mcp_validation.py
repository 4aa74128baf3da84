#!/usr/bin/env python3
"""Generic argument validation driven by declared argument schemas."""

import re
from typing import Any, Dict, Mapping, Optional, Sequence

from mcp_errors import MISSING_FIELD, TYPE_MISMATCH, ValidationError
from mcp_registry import Argument

_INTEGER_STRING = re.compile(r"^[+-]?\d+$")


def _coerce_integer(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(TYPE_MISMATCH, name, f"{name} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    # Some clients send numbers as strings
    if isinstance(value, str) and _INTEGER_STRING.match(value.strip()):
        return int(value.strip())
    raise ValidationError(TYPE_MISMATCH, name, f"{name} must be an integer")


def _coerce_number(name: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationError(TYPE_MISMATCH, name, f"{name} must be a number")
    return value


def _check_bounds(spec: Argument, value: Any) -> None:
    if spec.minimum is not None and value < spec.minimum:
        raise ValidationError(
            TYPE_MISMATCH, spec.name, f"{spec.name} must be >= {spec.minimum}"
        )
    if spec.maximum is not None and value > spec.maximum:
        raise ValidationError(
            TYPE_MISMATCH, spec.name, f"{spec.name} must be <= {spec.maximum}"
        )


def validate_field(spec: Argument, value: Any) -> Any:
    """Check and coerce one present value against its argument spec."""
    name = spec.name

    if spec.type == "string":
        if not isinstance(value, str):
            raise ValidationError(TYPE_MISMATCH, name, f"{name} must be a string")
        if spec.min_length is not None and len(value) < spec.min_length:
            raise ValidationError(
                TYPE_MISMATCH,
                name,
                f"{name} must be at least {spec.min_length} character(s)",
            )
        return value

    if spec.type == "integer":
        value = _coerce_integer(name, value)
        _check_bounds(spec, value)
        return value

    if spec.type == "number":
        value = _coerce_number(name, value)
        _check_bounds(spec, value)
        return value

    if spec.type == "boolean":
        if not isinstance(value, bool):
            raise ValidationError(TYPE_MISMATCH, name, f"{name} must be a boolean")
        return value

    raise ValidationError(TYPE_MISMATCH, name, f"{name} has unsupported type {spec.type!r}")


def validate(
    arguments_schema: Sequence[Argument],
    raw_arguments: Optional[Mapping[str, Any]],
) -> Dict[str, Any]:
    """Validate raw request arguments against an ordered argument schema.

    Fields are checked in schema order and the first failure is raised as a
    ValidationError. Absent optional fields get their declared default; keys
    the schema does not mention are dropped.
    """
    if raw_arguments is None:
        raw_arguments = {}
    if not isinstance(raw_arguments, Mapping):
        raise ValidationError(TYPE_MISMATCH, None, "arguments must be an object")

    validated: Dict[str, Any] = {}
    for spec in arguments_schema:
        value = raw_arguments.get(spec.name)
        if value is None:
            if spec.required:
                raise ValidationError(
                    MISSING_FIELD, spec.name, f"Missing required argument: {spec.name}"
                )
            validated[spec.name] = spec.default
            continue
        validated[spec.name] = validate_field(spec, value)
    return validated
