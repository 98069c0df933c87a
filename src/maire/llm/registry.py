"""
Model registry -- maps the model ids clients send to a backend + remote model.

Clients only ever see short ids ("gpt-4", "claude", "gemini"). The registry
decides which backend family serves each id and which upstream model name
that backend should request. New backends are added by registering specs
against a new backend name, not by branching on id strings.

Ids that contain a "/" and are not registered are treated as raw OpenRouter
model slugs ("meta-llama/llama-3.3-70b-instruct"), since OpenRouter is the
catch-all gateway.
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

STUB_BACKEND = "stub"


@dataclass(frozen=True)
class ModelSpec:
    """How one client-facing model id is served."""

    model_id: str
    backend: str  # "openrouter", "anthropic", "google", "huggingface", "stub"
    remote_model: str
    display_name: str


DEFAULT_MODELS = [
    ModelSpec("gpt-4", "openrouter", "openai/gpt-4o", "GPT-4o"),
    ModelSpec("grok", "openrouter", "x-ai/grok-4", "Grok 4"),
    ModelSpec("llama", "openrouter", "meta-llama/llama-3.3-70b-instruct", "Llama 3.3 70B"),
    ModelSpec("claude", "anthropic", "claude-sonnet-4-20250514", "Claude Sonnet 4"),
    ModelSpec("gemini", "google", "gemini-2.0-flash", "Gemini 2.0 Flash"),
    ModelSpec("zephyr", "huggingface", "HuggingFaceH4/zephyr-7b-beta", "Zephyr 7B"),
    ModelSpec("mistral", "huggingface", "mistralai/Mistral-7B-Instruct-v0.3", "Mistral 7B"),
    ModelSpec("local", STUB_BACKEND, "stub", "Local Stub"),
]


class ModelRegistry:
    """
    Lookup table from model id to ModelSpec.

    Usage:
        registry = ModelRegistry()                 # default catalogue
        spec = registry.resolve("claude")          # ModelSpec(..., backend="anthropic")
        registry.register(ModelSpec("o3", "openrouter", "openai/o3", "o3"))
    """

    def __init__(self, specs: list[ModelSpec] | None = None):
        self._specs: dict[str, ModelSpec] = {}
        for spec in DEFAULT_MODELS if specs is None else specs:
            self.register(spec)

    def register(self, spec: ModelSpec) -> None:
        if spec.model_id in self._specs:
            logger.info(f"[Registry] Replacing model '{spec.model_id}'")
        self._specs[spec.model_id] = spec

    def get(self, model_id: str) -> ModelSpec | None:
        return self._specs.get(model_id)

    def resolve(self, model_id: str) -> ModelSpec | None:
        """Registered spec, an OpenRouter pass-through for slugs, or None."""
        spec = self._specs.get(model_id)
        if spec is not None:
            return spec
        if "/" in model_id:
            return ModelSpec(model_id, "openrouter", model_id, model_id)
        return None

    def all(self) -> list[ModelSpec]:
        return list(self._specs.values())

    def available(self, configured_backends: set[str]) -> list[tuple[str, str]]:
        """
        (id, display name) pairs for the model picker.

        Models whose backend has a configured credential are listed as-is.
        When nothing is configured every model is listed with a "(Stub)"
        suffix, since each call will fall back to the local stub.
        """
        live = [
            s for s in self._specs.values()
            if s.backend in configured_backends or s.backend == STUB_BACKEND
        ]
        if any(s.backend != STUB_BACKEND for s in live):
            return [(s.model_id, s.display_name) for s in live]
        return [
            (s.model_id, s.display_name if s.backend == STUB_BACKEND else f"{s.display_name} (Stub)")
            for s in self._specs.values()
        ]

    @property
    def count(self) -> int:
        return len(self._specs)
