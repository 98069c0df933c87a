"""
Run API -- execute one prompt through a model topology.

  POST /maire/run  -- Run and return {final_response, header_stack}

Security:
  - Prompt is size-limited (MAX_PROMPT_SIZE)
  - Model ids are validated as safe identifiers, list size capped
  - api_keys live only for the request; they are never logged or cached

Unknown topologies and empty model lists are NOT rejected here: the
orchestrator answers them with an explanatory envelope.
"""

import logging

from fastapi import APIRouter, HTTPException, Request

from ...orchestration.orchestrator import OrchestrationRequest, Orchestrator
from ...security import (
    ValidationError,
    validate_dict_size,
    validate_identifier,
    validate_length,
    validate_list_size,
    validate_not_empty,
)
from ..models.requests import RunRequest
from ..models.responses import ErrorResponse, RunResponse, StackEntry

logger = logging.getLogger(__name__)
router = APIRouter()

MAX_PROMPT_SIZE = 100_000
MAX_MODELS = 16
MAX_API_KEYS_BYTES = 64_000


def _validate(run_request: RunRequest) -> None:
    validate_not_empty(run_request.original_prompt, "original_prompt")
    validate_length(run_request.original_prompt, "original_prompt", max_length=MAX_PROMPT_SIZE)
    validate_list_size(run_request.models, "models", max_items=MAX_MODELS)
    for model_id in run_request.models:
        validate_identifier(model_id, "model id")
    validate_dict_size(run_request.api_keys, "api_keys", max_size_bytes=MAX_API_KEYS_BYTES)


@router.post(
    "/maire/run",
    response_model=RunResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def run_topology(run_request: RunRequest, request: Request) -> RunResponse:
    """
    Run the prompt through the selected topology.

    Always answers with the envelope; steps whose backend failed carry
    sentinel text instead of failing the request.
    """
    orchestrator: Orchestrator = request.app.state.orchestrator
    metrics = request.app.state.metrics

    try:
        _validate(run_request)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))

    try:
        result = await orchestrator.run(
            OrchestrationRequest(
                original_prompt=run_request.original_prompt,
                topology=run_request.topology,
                models=list(run_request.models),
                api_keys=dict(run_request.api_keys),
            )
        )
    except Exception as e:
        metrics["runs_failed"] += 1
        logger.error(f"[RunAPI] {run_request.topology} run failed: {e}", exc_info=True)
        raise HTTPException(
            status_code=500, detail="Internal error processing run. Check server logs."
        )

    metrics["runs_completed"] += 1
    return RunResponse(
        final_response=result.final_response,
        header_stack=[
            StackEntry(model=layer.label, response=layer.response)
            for layer in result.stack
        ],
        topology=result.topology,
        ledger=result.ledger.render() if result.ledger is not None else "",
        duration_seconds=round(result.duration_seconds, 3),
    )
