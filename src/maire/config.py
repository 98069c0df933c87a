"""
Runtime configuration -- environment-driven, loaded once at the entrypoint.

Environment:
  MAIRE_SYNTHESIS_MODEL   Model id used for fan-in synthesis (default: first model)
  MAIRE_STAR_STEPS        Steps per star arm (default: max(3, model count))
  MAIRE_INVOKE_TIMEOUT    Seconds before a model call counts as failed (default: 120)
  MAIRE_LOG_LEVEL         Logging level for CLI/server (default: INFO)
  CORS_ORIGINS            Comma-separated allowed origins

Provider credentials (server-side defaults; a request's api_keys win):
  OPENROUTER_API_KEY, ANTHROPIC_API_KEY, GOOGLE_API_KEY, HF_API_TOKEN

Nothing here holds per-request secrets. Request credentials travel in a
Credentials object (see llm/invoker.py).
"""

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

DEFAULT_INVOKE_TIMEOUT = 120.0
DEFAULT_MAX_PROMPT_LENGTH = 200_000

PROVIDER_KEY_ENV = {
    "openrouter": "OPENROUTER_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
    "google": "GOOGLE_API_KEY",
    "huggingface": "HF_API_TOKEN",
}

DEFAULT_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8000",
]


def _env_int(name: str, minimum: int = 1) -> int | None:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        logger.warning(f"[Config] {name}={raw!r} is not an integer -- ignored")
        return None
    if value < minimum:
        logger.warning(f"[Config] {name}={value} is below {minimum} -- ignored")
        return None
    return value


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning(f"[Config] {name}={raw!r} is not a number -- using {default}")
        return default
    if value <= 0:
        logger.warning(f"[Config] {name}={value} must be positive -- using {default}")
        return default
    return value


@dataclass
class OrchestratorConfig:
    """Knobs for topology execution."""

    synthesis_model: str | None = None  # None = first model in the request
    star_steps: int | None = None  # None = max(3, model count)
    invoke_timeout: float = DEFAULT_INVOKE_TIMEOUT
    max_prompt_length: int = DEFAULT_MAX_PROMPT_LENGTH

    @classmethod
    def from_env(cls) -> "OrchestratorConfig":
        return cls(
            synthesis_model=os.environ.get("MAIRE_SYNTHESIS_MODEL") or None,
            star_steps=_env_int("MAIRE_STAR_STEPS"),
            invoke_timeout=_env_float("MAIRE_INVOKE_TIMEOUT", DEFAULT_INVOKE_TIMEOUT),
        )


def provider_keys_from_env() -> dict[str, str]:
    """Provider name -> key, for every provider with a key set."""
    keys = {}
    for provider, env_var in PROVIDER_KEY_ENV.items():
        value = os.environ.get(env_var, "").strip()
        if value:
            keys[provider] = value
    return keys


def cors_origins() -> list[str]:
    """Load CORS origins from environment or use safe defaults."""
    origins_env = os.environ.get("CORS_ORIGINS", "")
    if origins_env.strip():
        return [o.strip() for o in origins_env.split(",") if o.strip()]
    return DEFAULT_CORS_ORIGINS


def configure_logging(level: str | None = None) -> None:
    """Root logging setup for the CLI and server entrypoints."""
    load_dotenv()
    level_name = (level or os.environ.get("MAIRE_LOG_LEVEL", "INFO")).upper()
    logging.basicConfig(
        level=getattr(logging, level_name, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
