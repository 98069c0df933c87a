"""HTTP surface -- FastAPI gateway around the orchestrator."""
from .gateway import create_app
