"""
Model listing -- which model ids the client can pick.

  GET /maire/models  -- [{id, name}]

Derived from the registry plus which provider keys the server has. With no
keys configured every model is listed as a stub.
"""

from fastapi import APIRouter, Request

from ...llm.registry import ModelRegistry
from ..models.responses import ModelInfo

router = APIRouter()


@router.get("/maire/models", response_model=list[ModelInfo])
async def list_models(request: Request) -> list[ModelInfo]:
    """Available models for the picker."""
    registry: ModelRegistry = request.app.state.registry
    configured = set(request.app.state.provider_keys)
    return [
        ModelInfo(id=model_id, name=name)
        for model_id, name in registry.available(configured)
    ]
