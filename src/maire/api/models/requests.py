"""
Pydantic request models -- the API contract for clients.

  POST /maire/run -> RunRequest
"""

from pydantic import BaseModel, Field


class RunRequest(BaseModel):
    """Run one prompt through a topology of models."""

    original_prompt: str = Field(..., description="The user's prompt")
    topology: str = Field(
        "standard-chain",
        description="standard-chain, double-helix, star-topology, or n-helix",
    )
    models: list[str] = Field(
        default_factory=list, description="Ordered model ids (order drives the path)"
    )
    api_keys: dict[str, str] = Field(
        default_factory=dict,
        description="Per-request credentials, model id -> key. Never stored.",
    )
