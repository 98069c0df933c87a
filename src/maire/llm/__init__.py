"""
Model invocation -- registry-routed, credential-scoped, never raises.

Backends: OpenRouter (OpenAI-compatible), Anthropic, Google Gemini,
Hugging Face Inference, and a local stub.

Usage:
    from .llm import ModelInvoker, Credentials

    invoker = ModelInvoker()
    text = await invoker.invoke("gpt-4", prompt, Credentials(request_keys=api_keys))
"""

from .backends import Backend, BackendResponseError, StubBackend, default_backends
from .invoker import Credentials, ModelInvoker, is_sentinel
from .registry import ModelRegistry, ModelSpec
