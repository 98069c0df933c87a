"""
Backend adapters -- one class per upstream API family.

Each backend turns (remote model, prompt, api key) into response text and
RAISES on any failure. Converting failures into sentinel text is the
ModelInvoker's job, so adapters stay small and testable.

  OpenRouterBackend   -- OpenAI-compatible chat completions (openai SDK, OpenRouter base URL)
  AnthropicBackend    -- Claude Messages API (anthropic SDK)
  GoogleBackend       -- Gemini generateContent REST (httpx)
  HuggingFaceBackend  -- HF Inference API text generation (httpx)
  StubBackend         -- Deterministic offline answer, no network

Clients are created per call with the caller's key. SDK clients hold the key
they were built with, so sharing one across requests would leak credentials
between callers.
"""

import hashlib
import logging
from typing import Protocol, runtime_checkable

import anthropic
import httpx
import openai

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"
GEMINI_URL_TEMPLATE = (
    "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
)
HF_INFERENCE_URL_TEMPLATE = "https://api-inference.huggingface.co/models/{model}"

DEFAULT_MAX_TOKENS = 2048
DEFAULT_TEMPERATURE = 0.5
MAX_RESPONSE_BYTES = 5_000_000


class BackendResponseError(RuntimeError):
    """Upstream answered, but not with anything we can use."""


@runtime_checkable
class Backend(Protocol):
    """Interface every backend adapter implements."""

    name: str

    async def complete(
        self, remote_model: str, prompt: str, api_key: str, timeout: float
    ) -> str: ...


class OpenRouterBackend:
    """OpenAI-compatible chat completions routed through OpenRouter."""

    name = "openrouter"

    def __init__(self, base_url: str = OPENROUTER_BASE_URL, max_tokens: int = DEFAULT_MAX_TOKENS):
        self._base_url = base_url
        self._max_tokens = max_tokens

    async def complete(
        self, remote_model: str, prompt: str, api_key: str, timeout: float
    ) -> str:
        async with openai.AsyncOpenAI(
            api_key=api_key, base_url=self._base_url, timeout=timeout, max_retries=0
        ) as client:
            response = await client.chat.completions.create(
                model=remote_model,
                messages=[{"role": "user", "content": prompt}],
                temperature=DEFAULT_TEMPERATURE,
                max_tokens=self._max_tokens,
            )
        if not response.choices:
            raise BackendResponseError("no choices in completion")
        return response.choices[0].message.content or ""


class AnthropicBackend:
    """Anthropic Claude via the Messages API."""

    name = "anthropic"

    def __init__(self, max_tokens: int = DEFAULT_MAX_TOKENS):
        self._max_tokens = max_tokens

    async def complete(
        self, remote_model: str, prompt: str, api_key: str, timeout: float
    ) -> str:
        async with anthropic.AsyncAnthropic(
            api_key=api_key, timeout=timeout, max_retries=0
        ) as client:
            response = await client.messages.create(
                model=remote_model,
                max_tokens=self._max_tokens,
                temperature=DEFAULT_TEMPERATURE,
                messages=[{"role": "user", "content": prompt}],
            )
        return "".join(
            block.text for block in response.content if getattr(block, "type", "") == "text"
        )


async def _post_json(url: str, payload: dict, headers: dict, timeout: float) -> object:
    """POST JSON with a size cap; raises httpx errors on non-2xx."""
    async with httpx.AsyncClient(timeout=timeout) as client:
        response = await client.post(url, json=payload, headers=headers)
        response.raise_for_status()
        if len(response.content) > MAX_RESPONSE_BYTES:
            raise BackendResponseError(
                f"response exceeds {MAX_RESPONSE_BYTES} byte limit"
            )
        return response.json()


class GoogleBackend:
    """Google Gemini generateContent over REST."""

    name = "google"

    async def complete(
        self, remote_model: str, prompt: str, api_key: str, timeout: float
    ) -> str:
        data = await _post_json(
            GEMINI_URL_TEMPLATE.format(model=remote_model),
            payload={
                "contents": [{"role": "user", "parts": [{"text": prompt}]}],
                "generationConfig": {
                    "temperature": DEFAULT_TEMPERATURE,
                    "maxOutputTokens": DEFAULT_MAX_TOKENS,
                },
            },
            headers={"Content-Type": "application/json", "x-goog-api-key": api_key},
            timeout=timeout,
        )
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise BackendResponseError(f"unexpected Gemini payload: {type(e).__name__}") from e
        return "".join(p.get("text", "") for p in parts if isinstance(p, dict))


class HuggingFaceBackend:
    """Hugging Face Inference API text generation."""

    name = "huggingface"

    async def complete(
        self, remote_model: str, prompt: str, api_key: str, timeout: float
    ) -> str:
        data = await _post_json(
            HF_INFERENCE_URL_TEMPLATE.format(model=remote_model),
            payload={
                "inputs": prompt,
                "parameters": {
                    "max_new_tokens": DEFAULT_MAX_TOKENS,
                    "temperature": DEFAULT_TEMPERATURE,
                    "return_full_text": False,
                },
            },
            headers={
                "Content-Type": "application/json",
                "Authorization": f"Bearer {api_key}",
            },
            timeout=timeout,
        )
        if isinstance(data, list) and data and isinstance(data[0], dict):
            text = data[0].get("generated_text", "")
            if not isinstance(text, str):
                raise BackendResponseError("generated_text is not a string")
            return text
        if isinstance(data, dict) and "error" in data:
            raise BackendResponseError(f"inference error: {str(data['error'])[:200]}")
        raise BackendResponseError("unexpected inference payload")


class StubBackend:
    """Offline stand-in used when a model has no credential or no registry entry."""

    name = "stub"

    def answer(self, model_id: str, prompt: str) -> str:
        ref = hashlib.sha256(prompt.encode("utf-8")).hexdigest()[:8]
        return (
            f"Stub({model_id}): received a {len(prompt)}-char prompt (ref:{ref}). "
            f"Configure an API key for '{model_id}' to get a real answer."
        )

    async def complete(
        self, remote_model: str, prompt: str, api_key: str, timeout: float
    ) -> str:
        return self.answer(remote_model, prompt)


def default_backends() -> dict[str, Backend]:
    """Backend name -> adapter instance for every built-in family."""
    backends: list[Backend] = [
        OpenRouterBackend(),
        AnthropicBackend(),
        GoogleBackend(),
        HuggingFaceBackend(),
        StubBackend(),
    ]
    return {b.name: b for b in backends}
