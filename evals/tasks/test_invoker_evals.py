"""
Model Invoker Evals -- routing, credentials, and failure-to-sentinel.

Backends are replaced with in-memory fakes; nothing touches the network.
"""

import asyncio

import pytest

from maire.llm import backends as backends_module
from maire.llm.backends import BackendResponseError, GoogleBackend, HuggingFaceBackend, StubBackend
from maire.llm.invoker import Credentials, ModelInvoker, is_sentinel
from maire.llm.registry import ModelRegistry, ModelSpec


class FakeBackend:
    """Records (remote_model, prompt, api_key) and returns canned text or raises."""

    def __init__(self, name="openrouter", text="real answer", error=None, delay=0.0):
        self.name = name
        self.text = text
        self.error = error
        self.delay = delay
        self.calls = []

    async def complete(self, remote_model, prompt, api_key, timeout):
        self.calls.append((remote_model, prompt, api_key))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.text


def _invoker(backend: FakeBackend, timeout: float = 5.0) -> ModelInvoker:
    return ModelInvoker(
        registry=ModelRegistry(),
        backends={backend.name: backend, "stub": StubBackend()},
        timeout=timeout,
    )


class TestRouting:
    """Eval: Does each id reach the right backend with the right key?"""

    @pytest.mark.asyncio
    async def test_key_reaches_backend_with_remote_model(self):
        backend = FakeBackend()
        invoker = _invoker(backend)
        text = await invoker.invoke("gpt-4", "hi", Credentials(request_keys={"gpt-4": "sk-1"}))

        assert text == "real answer"
        assert backend.calls == [("openai/gpt-4o", "hi", "sk-1")]

    @pytest.mark.asyncio
    async def test_no_key_falls_back_to_stub(self, no_credentials):
        backend = FakeBackend()
        text = await _invoker(backend).invoke("gpt-4", "hi", no_credentials)

        assert text.startswith("Stub(gpt-4)")
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_blank_key_treated_as_missing(self):
        backend = FakeBackend()
        text = await _invoker(backend).invoke(
            "gpt-4", "hi", Credentials(request_keys={"gpt-4": "   "})
        )
        assert text.startswith("Stub(")
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_unregistered_id_uses_stub(self):
        backend = FakeBackend()
        text = await _invoker(backend).invoke(
            "gpt-44", "hi", Credentials(provider_keys={"openrouter": "sk"})
        )
        assert text.startswith("Stub(gpt-44)")
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_slug_passes_through_to_openrouter(self):
        backend = FakeBackend()
        await _invoker(backend).invoke(
            "mistralai/mixtral-8x7b", "hi", Credentials(provider_keys={"openrouter": "sk-or"})
        )
        assert backend.calls[0][0] == "mistralai/mixtral-8x7b"
        assert backend.calls[0][2] == "sk-or"

    @pytest.mark.asyncio
    async def test_request_key_overrides_provider_key(self):
        backend = FakeBackend()
        credentials = Credentials(
            request_keys={"grok": "client-key"}, provider_keys={"openrouter": "server-key"}
        )
        await _invoker(backend).invoke("grok", "hi", credentials)
        assert backend.calls[0][2] == "client-key"

    @pytest.mark.asyncio
    async def test_provider_key_used_when_request_has_none(self):
        backend = FakeBackend()
        await _invoker(backend).invoke(
            "llama", "hi", Credentials(provider_keys={"openrouter": "server-key"})
        )
        assert backend.calls[0][2] == "server-key"

    @pytest.mark.asyncio
    async def test_missing_adapter_uses_stub(self):
        invoker = ModelInvoker(registry=ModelRegistry(), backends={"stub": StubBackend()})
        text = await invoker.invoke(
            "claude", "hi", Credentials(request_keys={"claude": "sk-ant"})
        )
        assert text.startswith("Stub(claude)")


class TestFailures:
    """Eval: Every failure mode becomes sentinel text, never an exception."""

    @pytest.mark.asyncio
    async def test_exception_becomes_sentinel(self):
        backend = FakeBackend(error=ConnectionError("refused"))
        text = await _invoker(backend).invoke(
            "gpt-4", "hi", Credentials(request_keys={"gpt-4": "sk"})
        )
        assert text == "[gpt-4 unavailable: ConnectionError]"
        assert is_sentinel(text)

    @pytest.mark.asyncio
    async def test_timeout_becomes_sentinel(self):
        backend = FakeBackend(delay=1.0)
        text = await _invoker(backend, timeout=0.05).invoke(
            "gpt-4", "hi", Credentials(request_keys={"gpt-4": "sk"})
        )
        assert text == "[gpt-4 unavailable: timeout]"

    @pytest.mark.asyncio
    async def test_empty_answer_becomes_sentinel(self):
        backend = FakeBackend(text="  \n ")
        text = await _invoker(backend).invoke(
            "gpt-4", "hi", Credentials(request_keys={"gpt-4": "sk"})
        )
        assert text == "[gpt-4 returned an empty response]"
        assert is_sentinel(text)

    @pytest.mark.asyncio
    async def test_non_text_answer_becomes_sentinel(self):
        backend = FakeBackend(text=["not", "a", "string"])
        text = await _invoker(backend).invoke(
            "gpt-4", "hi", Credentials(request_keys={"gpt-4": "sk"})
        )
        assert text == "[gpt-4 unavailable: BackendResponseError]"

    @pytest.mark.asyncio
    async def test_malformed_huggingface_payload_becomes_sentinel(self, monkeypatch):
        async def fake_post(url, payload, headers, timeout):
            return [{"generated_text": ["not", "a", "string"]}]

        monkeypatch.setattr(backends_module, "_post_json", fake_post)
        invoker = ModelInvoker(registry=ModelRegistry(), timeout=5.0)
        text = await invoker.invoke(
            "zephyr", "hi", Credentials(request_keys={"zephyr": "hf_x"})
        )
        assert text == "[zephyr unavailable: BackendResponseError]"

    @pytest.mark.asyncio
    async def test_error_text_never_contains_key(self):
        backend = FakeBackend(error=RuntimeError("bad key sk-secret-123"))
        text = await _invoker(backend).invoke(
            "gpt-4", "hi", Credentials(request_keys={"gpt-4": "sk-secret-123"})
        )
        assert "sk-secret" not in text

    def test_is_sentinel_rejects_normal_text(self):
        assert not is_sentinel("The sky is blue because of Rayleigh scattering.")
        assert not is_sentinel("[citation needed] the sky is blue")
        assert not is_sentinel("")


class TestCredentials:
    def test_repr_hides_values(self):
        credentials = Credentials(
            request_keys={"claude": "sk-ant-secret"}, provider_keys={"openrouter": "sk-or-secret"}
        )
        text = repr(credentials)
        assert "secret" not in text
        assert "claude" in text and "openrouter" in text


class TestRegistry:
    """Eval: What does the model picker list?"""

    def test_nothing_configured_lists_stubs(self):
        available = dict(ModelRegistry().available(set()))
        assert available["gpt-4"] == "GPT-4o (Stub)"
        assert available["local"] == "Local Stub"

    def test_configured_backend_lists_its_models(self):
        available = dict(ModelRegistry().available({"anthropic"}))
        assert "claude" in available
        assert "gpt-4" not in available
        assert "local" in available

    def test_register_adds_model(self):
        registry = ModelRegistry(specs=[])
        registry.register(ModelSpec("o3", "openrouter", "openai/o3", "o3"))
        assert registry.count == 1
        assert registry.resolve("o3").remote_model == "openai/o3"

    def test_resolve_unknown_plain_id(self):
        assert ModelRegistry().resolve("nonexistent") is None


class TestRestBackends:
    """Eval: Payload parsing for the REST backends."""

    @pytest.mark.asyncio
    async def test_gemini_parts_joined(self, monkeypatch):
        seen = {}

        async def fake_post(url, payload, headers, timeout):
            seen["url"], seen["headers"] = url, headers
            return {"candidates": [{"content": {"parts": [{"text": "Hello "}, {"text": "there"}]}}]}

        monkeypatch.setattr(backends_module, "_post_json", fake_post)
        text = await GoogleBackend().complete("gemini-2.0-flash", "hi", "g-key", 5.0)

        assert text == "Hello there"
        assert "gemini-2.0-flash:generateContent" in seen["url"]
        assert seen["headers"]["x-goog-api-key"] == "g-key"
        assert "g-key" not in seen["url"]

    @pytest.mark.asyncio
    async def test_gemini_blocked_payload_raises(self, monkeypatch):
        async def fake_post(url, payload, headers, timeout):
            return {"promptFeedback": {"blockReason": "SAFETY"}}

        monkeypatch.setattr(backends_module, "_post_json", fake_post)
        with pytest.raises(BackendResponseError):
            await GoogleBackend().complete("gemini-2.0-flash", "hi", "g-key", 5.0)

    @pytest.mark.asyncio
    async def test_huggingface_generated_text(self, monkeypatch):
        async def fake_post(url, payload, headers, timeout):
            assert headers["Authorization"] == "Bearer hf-key"
            return [{"generated_text": "zephyr says hi"}]

        monkeypatch.setattr(backends_module, "_post_json", fake_post)
        text = await HuggingFaceBackend().complete("HuggingFaceH4/zephyr-7b-beta", "hi", "hf-key", 5.0)
        assert text == "zephyr says hi"

    @pytest.mark.asyncio
    async def test_huggingface_non_string_text_raises(self, monkeypatch):
        async def fake_post(url, payload, headers, timeout):
            return [{"generated_text": {"nested": "dict"}}]

        monkeypatch.setattr(backends_module, "_post_json", fake_post)
        with pytest.raises(BackendResponseError, match="not a string"):
            await HuggingFaceBackend().complete("m", "hi", "hf-key", 5.0)

    @pytest.mark.asyncio
    async def test_huggingface_error_payload_raises(self, monkeypatch):
        async def fake_post(url, payload, headers, timeout):
            return {"error": "Model is currently loading"}

        monkeypatch.setattr(backends_module, "_post_json", fake_post)
        with pytest.raises(BackendResponseError, match="loading"):
            await HuggingFaceBackend().complete("m", "hi", "hf-key", 5.0)

    @pytest.mark.asyncio
    async def test_stub_is_deterministic(self):
        stub = StubBackend()
        first = await stub.complete("m1", "same prompt", "", 1.0)
        second = await stub.complete("m1", "same prompt", "", 1.0)
        assert first == second
        assert first.startswith("Stub(m1)")
