"""
ModelInvoker -- the one door every chain step goes through to reach a model.

Contract: invoke(model_id, prompt, credentials) -> str, and it NEVER raises.

  - Resolves model_id through the ModelRegistry to a backend + remote model
  - Picks the credential: the request's key for that model id, else the
    server's key for that backend
  - Falls back to the local stub when there is no registry entry or no key
  - Bounds every call with a timeout
  - Converts transport errors, bad payloads, and empty answers into
    sentinel text ("[gpt-4 unavailable: APITimeoutError]")

No retries. A sentinel is recorded and chained like any other answer; the
client sees degraded text, not an error. Callers that need to tell the two
apart use is_sentinel().

Security: keys are never logged and never stored on the invoker. They arrive
in a per-request Credentials object.
"""

import asyncio
import logging
import re
import time
from dataclasses import dataclass, field

from ..config import DEFAULT_INVOKE_TIMEOUT, DEFAULT_MAX_PROMPT_LENGTH
from ..security.prompt_guard import sanitize_for_prompt
from .backends import Backend, StubBackend, default_backends
from .registry import STUB_BACKEND, ModelRegistry, ModelSpec

logger = logging.getLogger(__name__)

SENTINEL_PATTERN = re.compile(
    r"^\[[^\]\s]+ (unavailable: [A-Za-z_]+|returned an empty response)\]$"
)


def failure_sentinel(model_id: str, reason: str) -> str:
    return f"[{model_id} unavailable: {reason}]"


def empty_sentinel(model_id: str) -> str:
    return f"[{model_id} returned an empty response]"


def is_sentinel(text: str) -> bool:
    """True for the placeholder text produced when a model call degraded."""
    return bool(SENTINEL_PATTERN.match(text or ""))


@dataclass(frozen=True)
class Credentials:
    """
    Per-request credential scope. Passed explicitly into every invocation.

    request_keys: model id -> key, as sent by the client (api_keys)
    provider_keys: backend name -> key, server-side defaults from the environment
    """

    request_keys: dict[str, str] = field(default_factory=dict)
    provider_keys: dict[str, str] = field(default_factory=dict)

    def for_model(self, spec: ModelSpec) -> str | None:
        key = self.request_keys.get(spec.model_id) or self.provider_keys.get(spec.backend)
        return key.strip() if key and key.strip() else None

    def __repr__(self) -> str:
        return (
            f"Credentials(request_keys={sorted(self.request_keys)}, "
            f"provider_keys={sorted(self.provider_keys)})"
        )


class ModelInvoker:
    """
    Registry-driven model caller.

    Usage:
        invoker = ModelInvoker()
        creds = Credentials(request_keys={"claude": "sk-ant-..."})
        text = await invoker.invoke("claude", prompt, creds)
    """

    def __init__(
        self,
        registry: ModelRegistry | None = None,
        backends: dict[str, Backend] | None = None,
        timeout: float = DEFAULT_INVOKE_TIMEOUT,
        max_prompt_length: int = DEFAULT_MAX_PROMPT_LENGTH,
    ):
        self._registry = registry or ModelRegistry()
        self._backends = backends if backends is not None else default_backends()
        self._stub = self._backends.get(STUB_BACKEND) or StubBackend()
        self._timeout = timeout
        self._max_prompt_length = max_prompt_length

    @property
    def registry(self) -> ModelRegistry:
        return self._registry

    def _route(self, model_id: str, credentials: Credentials) -> tuple[Backend, str, str]:
        """(backend, remote model, key) -- stub when anything is missing."""
        spec = self._registry.resolve(model_id)
        if spec is None:
            logger.info(f"[LLM] '{model_id}' not in registry -- using stub")
            return self._stub, model_id, ""
        if spec.backend == STUB_BACKEND:
            return self._stub, model_id, ""

        backend = self._backends.get(spec.backend)
        if backend is None:
            logger.warning(f"[LLM] No adapter for backend '{spec.backend}' -- using stub")
            return self._stub, model_id, ""

        key = credentials.for_model(spec)
        if key is None:
            logger.info(f"[LLM] No credential for '{model_id}' ({spec.backend}) -- using stub")
            return self._stub, model_id, ""
        return backend, spec.remote_model, key

    async def invoke(self, model_id: str, prompt: str, credentials: Credentials) -> str:
        """Call the model behind model_id. Always returns text, never raises."""
        prompt = sanitize_for_prompt(prompt, max_length=self._max_prompt_length)
        backend, remote_model, key = self._route(model_id, credentials)

        start = time.time()
        try:
            text = await asyncio.wait_for(
                backend.complete(remote_model, prompt, key, self._timeout),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"[LLM] {model_id} timed out after {self._timeout:.0f}s")
            return failure_sentinel(model_id, "timeout")
        except Exception as e:
            logger.error(f"[LLM] {model_id} via {backend.name} failed: {type(e).__name__}")
            return failure_sentinel(model_id, type(e).__name__)

        latency_ms = (time.time() - start) * 1000
        if text is not None and not isinstance(text, str):
            logger.error(
                f"[LLM] {model_id} via {backend.name} returned {type(text).__name__}, not text"
            )
            return failure_sentinel(model_id, "BackendResponseError")
        if not text or not text.strip():
            logger.warning(f"[LLM] {model_id} returned no content ({latency_ms:.0f}ms)")
            return empty_sentinel(model_id)

        logger.debug(
            f"[LLM] {model_id} via {backend.name}: {len(text)} chars ({latency_ms:.0f}ms)"
        )
        return text
