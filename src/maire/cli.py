"""
maire CLI - Run topologies from the terminal or start the API server.

Commands:
    maire run "prompt" -t double-helix -m gpt-4 -m claude   Run one prompt
    maire models                                             List selectable models
    maire serve --port 8000                                  Start the HTTP API
    maire version                                            Show version
"""

import asyncio
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import __version__
from .config import OrchestratorConfig, configure_logging, provider_keys_from_env
from .llm.invoker import ModelInvoker, is_sentinel
from .llm.registry import ModelRegistry
from .orchestration.orchestrator import OrchestrationRequest, Orchestrator
from .orchestration.topology import Topology

app = typer.Typer(help="Multi-model reasoning over chain, helix, and star topologies")
console = Console()

DEFAULT_MODELS = ["grok", "claude", "gpt-4"]


def _parse_keys(pairs: List[str]) -> dict[str, str]:
    """--key model=KEY pairs -> {model: KEY}."""
    keys = {}
    for pair in pairs:
        model_id, sep, key = pair.partition("=")
        if not sep or not model_id or not key:
            console.print("[red]Bad --key value (expected model=KEY)[/red]")
            raise typer.Exit(1)
        keys[model_id.strip()] = key.strip()
    return keys


# =============================================================================
# RUN
# =============================================================================


@app.command()
def run(
    prompt: str = typer.Argument(None, help="Prompt to run (asked interactively if omitted)"),
    topology: str = typer.Option(
        Topology.STANDARD_CHAIN.value, "--topology", "-t",
        help=f"One of: {', '.join(Topology.names())}",
    ),
    model: Optional[List[str]] = typer.Option(
        None, "--model", "-m", help="Model id, repeat in path order"
    ),
    key: Optional[List[str]] = typer.Option(
        None, "--key", "-k", help="Per-run credential as model=KEY"
    ),
    show_bodies: bool = typer.Option(False, "--show-bodies", help="Print full bodies by ledger ref"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Logging level"),
):
    """Run a prompt through a topology and print the stack and ledger."""
    configure_logging(log_level)

    if not prompt:
        prompt = typer.prompt("Enter your prompt").strip()
    models = model or DEFAULT_MODELS
    api_keys = _parse_keys(key or [])

    orchestrator = _build_orchestrator()
    result = asyncio.run(
        orchestrator.run(
            OrchestrationRequest(
                original_prompt=prompt,
                topology=topology,
                models=models,
                api_keys=api_keys,
            )
        )
    )

    table = Table(title=f"Header Stack ({result.topology or topology})")
    table.add_column("#", style="dim")
    table.add_column("Layer", style="bold")
    table.add_column("Response")
    for i, layer in enumerate(result.stack, start=1):
        style = "yellow" if is_sentinel(layer.response) else ""
        table.add_row(str(i), Text(layer.label), Text(layer.response, style=style))
    if result.stack:
        console.print(table)

    console.print(Panel(Text(result.final_response), title="Final Response", border_style="green"))

    if result.ledger is not None:
        console.print("\n[bold blue]--- IMMUTABLE LEDGER ---[/bold blue]")
        console.print(result.ledger.render(), markup=False, highlight=False)

    if show_bodies and result.ledger is not None and result.bodies is not None:
        console.print("[bold blue]--- BODY STORE ---[/bold blue]")
        for entry in result.ledger.entries:
            console.print(f"[bold]{entry.model_id}[/bold] ({entry.content_hash}):")
            console.print(result.bodies.get(entry.content_hash) or "", markup=False)
            console.print("---")

    if result.degraded_steps:
        console.print(
            f"\n[yellow]{result.degraded_steps} step(s) degraded to placeholder text.[/yellow]"
        )


def _build_orchestrator() -> Orchestrator:
    config = OrchestratorConfig.from_env()
    return Orchestrator(
        invoker=ModelInvoker(
            timeout=config.invoke_timeout,
            max_prompt_length=config.max_prompt_length,
        ),
        config=config,
        provider_keys=provider_keys_from_env(),
    )


# =============================================================================
# MODELS
# =============================================================================


@app.command()
def models():
    """List the models a run can use."""
    configure_logging("WARNING")
    registry = ModelRegistry()
    configured = set(provider_keys_from_env())

    table = Table(title="Models")
    table.add_column("Id", style="bold")
    table.add_column("Name")
    table.add_column("Backend")
    for model_id, name in registry.available(configured):
        spec = registry.get(model_id)
        table.add_row(model_id, name, spec.backend if spec else "")
    console.print(table)

    if not configured:
        console.print("[yellow]No provider keys configured -- every call uses the local stub.[/yellow]")


# =============================================================================
# SERVE
# =============================================================================


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind"),
    port: int = typer.Option(8000, help="Port to listen on"),
    log_level: str = typer.Option("INFO", "--log-level", help="Logging level"),
):
    """Start the HTTP API."""
    import uvicorn

    configure_logging(log_level)
    console.print(f"[bold blue]maire serve[/bold blue] on http://{host}:{port}")
    uvicorn.run(
        "maire.api.gateway:create_app",
        factory=True,
        host=host,
        port=port,
        log_level=log_level.lower(),
    )


# =============================================================================
# VERSION
# =============================================================================


@app.command()
def version():
    """Show maire version."""
    console.print(f"maire v{__version__}")


if __name__ == "__main__":
    app()
