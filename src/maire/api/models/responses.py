"""
Pydantic response models -- what the API returns.
"""

from pydantic import BaseModel, Field


# =============================================================================
# RUN
# =============================================================================


class StackEntry(BaseModel):
    """One display layer: who answered at which step, and what they said."""

    model: str
    response: str


class RunResponse(BaseModel):
    """Envelope returned for every run, degraded or not."""

    final_response: str
    header_stack: list[StackEntry] = Field(default_factory=list)
    topology: str = ""
    ledger: str = ""
    duration_seconds: float = 0.0


# =============================================================================
# MODELS
# =============================================================================


class ModelInfo(BaseModel):
    """A selectable model."""

    id: str
    name: str


# =============================================================================
# HEALTH
# =============================================================================


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    version: str = "0.1.0"
    models_registered: int = 0
    providers_configured: list[str] = Field(default_factory=list)
    runs_completed: int = 0
    runs_failed: int = 0
    uptime_seconds: float = 0.0


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: str = ""
    status_code: int = 500
