"""Pydantic models for API request/response contracts."""
from .requests import RunRequest
from .responses import (
    ErrorResponse,
    HealthResponse,
    ModelInfo,
    RunResponse,
    StackEntry,
)
