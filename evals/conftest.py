"""Eval test fixtures -- scripted invokers, credentials, stub-only invoker."""

import asyncio

import pytest

from maire.llm.invoker import Credentials, ModelInvoker
from maire.llm.registry import ModelRegistry


class ScriptedInvoker:
    """
    Invoker stand-in that records every call and answers deterministically.

    Answers are "<model_id> answer <n>" where n counts calls to that model,
    unless a responder callable is supplied. An optional delay per model
    lets tests force interleaving between concurrent chains.
    """

    def __init__(self, responder=None, delays: dict[str, float] | None = None):
        self.calls: list[tuple[str, str, Credentials]] = []
        self._counts: dict[str, int] = {}
        self._responder = responder
        self._delays = delays or {}

    async def invoke(self, model_id: str, prompt: str, credentials: Credentials) -> str:
        self.calls.append((model_id, prompt, credentials))
        self._counts[model_id] = self._counts.get(model_id, 0) + 1
        delay = self._delays.get(model_id, 0.0)
        if delay:
            await asyncio.sleep(delay)
        if self._responder is not None:
            return self._responder(model_id, prompt)
        return f"{model_id} answer {self._counts[model_id]}"

    def prompts_for(self, model_id: str) -> list[str]:
        return [p for m, p, _ in self.calls if m == model_id]


@pytest.fixture
def scripted_invoker():
    """Deterministic recording invoker, no network."""
    return ScriptedInvoker()


@pytest.fixture
def stub_invoker():
    """The real ModelInvoker with the default registry; no keys means every call stubs."""
    return ModelInvoker(registry=ModelRegistry(), timeout=5.0)


@pytest.fixture
def no_credentials():
    return Credentials()


@pytest.fixture
def make_invoker():
    """Factory for ScriptedInvoker with a custom responder or per-model delays."""
    return ScriptedInvoker
