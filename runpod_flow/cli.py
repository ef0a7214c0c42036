# runpod_flow/cli.py
"""
CLI interface for runpod-flow.

Thin presentation layer over JobExecutor and ModelCatalog. Job results go
to stdout as JSON (pipeable); logs and errors go to stderr.
"""

import asyncio
import json
from enum import Enum
from typing import Any

import typer
from pydantic import ValidationError

from runpod_flow.catalog.categorizer import categorize as categorize_model
from runpod_flow.catalog.categorizer import default_input
from runpod_flow.config.loader import load_config
from runpod_flow.config.schema import RunpodFlowConfig
from runpod_flow.errors import ClassifiedError
from runpod_flow.factory import MissingApiKeyError, create_catalog, create_client, create_executor
from runpod_flow.logging_config import configure_logging
from runpod_flow.models.catalog import ModelCategory
from runpod_flow.models.jobs import JobRequest, JobResult, Operation

app = typer.Typer(
    name="runpod-flow",
    help="Run RunPod serverless AI jobs: sync, async, wait-for-result and status.",
    no_args_is_help=True,
)


class Mode(str, Enum):
    """How `run` executes a job."""

    sync = "sync"
    async_ = "async"
    wait = "wait"


_MODE_OPERATIONS = {
    Mode.sync: Operation.SYNC,
    Mode.async_: Operation.ASYNC_NO_WAIT,
    Mode.wait: Operation.ASYNC_WAIT,
}


def _run(coro):
    """Run async function from sync CLI context."""
    return asyncio.run(coro)


def _load() -> RunpodFlowConfig:
    """Load config and configure stderr logging from it."""
    try:
        config = load_config()
    except (ValidationError, OSError) as e:
        typer.echo(f"Error: invalid configuration: {e}", err=True)
        raise typer.Exit(2)
    configure_logging(config.output.verbosity)
    return config


def _parse_input(raw: str | None) -> Any:
    if raw is None:
        return None
    try:
        return json.loads(raw)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"--input is not valid JSON: {e}")


def _build_request(**fields) -> JobRequest:
    try:
        return JobRequest(**fields)
    except ValidationError as e:
        typer.echo(f"Error: invalid request: {e}", err=True)
        raise typer.Exit(2)


def _execute(config: RunpodFlowConfig, request: JobRequest) -> JobResult:
    """Execute one request with a short-lived client."""

    async def _go() -> JobResult:
        async with create_client(config) as client:
            return await create_executor(client).execute(request)

    try:
        return _run(_go())
    except MissingApiKeyError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)
    except ClassifiedError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _print_result(result: JobResult) -> None:
    typer.echo(json.dumps(result.to_wire(), indent=2))


@app.command()
def run(
    model_id: str = typer.Argument(..., help="RunPod endpoint/model id (e.g. flux-dev)"),
    input: str = typer.Option(None, "--input", "-i", help="Job input as JSON (default: template for the model)"),
    mode: Mode = typer.Option(Mode.sync, "--mode", "-m", help="sync, async (no wait) or wait (submit and poll)"),
    poll_interval: int = typer.Option(None, "--poll-interval", help="Poll interval in ms (wait mode)"),
    timeout: int = typer.Option(None, "--timeout", help="Wait budget in ms (wait mode)"),
):
    """Run a job and print the result as JSON."""
    config = _load()
    request = _build_request(
        model_id=model_id,
        operation=_MODE_OPERATIONS[mode],
        input=_parse_input(input),
        poll_interval_ms=poll_interval or config.polling.poll_interval_ms,
        timeout_ms=timeout or config.polling.timeout_ms,
    )
    _print_result(_execute(config, request))


@app.command()
def status(
    model_id: str = typer.Argument(..., help="RunPod endpoint/model id"),
    job_id: str = typer.Argument(..., help="Job ID to check"),
):
    """Check the status of a submitted job."""
    config = _load()
    request = _build_request(
        model_id=model_id, operation=Operation.STATUS_CHECK, job_id=job_id
    )
    _print_result(_execute(config, request))


@app.command()
def models(
    category: ModelCategory = typer.Option(None, "--category", "-c", help="Only show one category"),
    refresh: bool = typer.Option(False, "--refresh", help="Bypass the cached catalog and query the registry"),
):
    """List available models (falls back to a built-in list if discovery fails)."""
    from rich.console import Console
    from rich.table import Table

    config = _load()

    async def _list():
        async with create_client(config) as client:
            catalog = create_catalog(config, client)
            if refresh:
                catalog.invalidate()
            return await catalog.get_models()

    try:
        snapshot = _run(_list())
    except MissingApiKeyError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(2)

    table = Table(title=f"Models ({snapshot.source.value})")
    table.add_column("ID")
    table.add_column("Name")
    table.add_column("Category")
    for model in snapshot.models:
        if category is not None and model.category is not category:
            continue
        table.add_row(model.id, model.display_name, model.category.value)

    Console().print(table)


@app.command()
def categorize(model_id: str = typer.Argument(..., help="Model id to classify")):
    """Show a model's category and its default input template."""
    category = categorize_model(model_id)
    typer.echo(f"Category: {category.value}")
    typer.echo(json.dumps(default_input(model_id), indent=2))


if __name__ == "__main__":
    app()
