"""
Input Validators - Validation for request input at the system boundary.

Parse at the boundary: validate and type-check all external input
before it reaches the orchestrator. Never pass raw dicts or unvalidated
strings through multiple layers.
"""

import json
import logging
import re

logger = logging.getLogger(__name__)

# Model ids look like "gpt-4", "claude", "x-ai/grok-4", "gemini-2.0-flash:free"
MODEL_ID_PATTERN = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9._:/-]{0,127}$")


class ValidationError(ValueError):
    """Raised when input validation fails. Contains a user-friendly message."""

    pass


def validate_not_empty(value: str, field_name: str = "input") -> str:
    """Validate that a string is not empty or whitespace-only."""
    if not value or not value.strip():
        raise ValidationError(f"{field_name} cannot be empty")
    return value.strip()


def validate_length(
    value: str,
    field_name: str = "input",
    min_length: int = 0,
    max_length: int = 100_000,
) -> str:
    """Validate string length is within bounds."""
    if len(value) < min_length:
        raise ValidationError(f"{field_name} must be at least {min_length} characters")
    if len(value) > max_length:
        raise ValidationError(f"{field_name} must be at most {max_length} characters")
    return value


def validate_identifier(value: str, field_name: str = "identifier") -> str:
    """Validate that a string is a safe model identifier."""
    if not MODEL_ID_PATTERN.match(value or ""):
        raise ValidationError(
            f"{field_name} must start with a letter or digit and contain only "
            f"letters, numbers, '.', '_', ':', '/' and '-' (got {value!r})"
        )
    return value


def validate_list_size(
    items: list,
    field_name: str = "list",
    max_items: int = 100,
) -> list:
    """Validate that a list does not exceed a maximum number of items."""
    if len(items) > max_items:
        raise ValidationError(
            f"{field_name} cannot have more than {max_items} items (got {len(items)})"
        )
    return items


def validate_dict_size(
    data: dict,
    field_name: str = "data",
    max_size_bytes: int = 1_000_000,
) -> dict:
    """Validate that a serialized dict does not exceed a maximum byte size."""
    serialized = json.dumps(data, default=str)
    if len(serialized) > max_size_bytes:
        raise ValidationError(
            f"{field_name} exceeds maximum size of {max_size_bytes} bytes"
        )
    return data
