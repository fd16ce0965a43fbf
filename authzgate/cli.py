"""Command line interface for evaluating access requests."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
import yaml
from pydantic import ValidationError

from authzgate.config import load_config
from authzgate.contracts import AccessRequest, build_selector
from authzgate.enforce import build_enforcer
from authzgate.errors import AuthzError, InvalidRequest
from authzgate.payload import parse_batch
from authzgate.persistence import get_repository, load_document, read_document

app = typer.Typer(help="CLI for authzgate access decisions")


@app.callback()
def main() -> None:
    """authzgate CLI entry point."""
    config = load_config()
    logging.basicConfig(level=config.logging.level)


def _fail(exc: AuthzError) -> None:
    typer.secho(f"{type(exc).__name__}: {exc}", fg=typer.colors.RED)
    raise typer.Exit(code=2 if isinstance(exc, InvalidRequest) else 1)


@app.command("enforce")
def enforce(
    values: List[str] = typer.Argument(..., help="Request fields, e.g. alice data1 read"),
    enforcer_id: Optional[str] = typer.Option(None, help="Named evaluator id"),
    permission_id: Optional[str] = typer.Option(None, help="Permission id (owner/name)"),
    model_id: Optional[str] = typer.Option(None, help="Policy model id (owner/name)"),
    resource_id: Optional[str] = typer.Option(None, help="Resource id"),
) -> None:
    """
    Decide a single access request.

    Prints a JSON list with one decision per permission group.

    Example:
        authzgate enforce alice data1 read --model-id built-in/rbac
        # Output: [true, false]
    """
    try:
        selector = build_selector(enforcer_id, permission_id, model_id, resource_id)
        enforcer = build_enforcer()
        result = asyncio.run(enforcer.enforce(selector, AccessRequest.of(*values)))
    except AuthzError as exc:
        _fail(exc)
        return
    typer.echo(json.dumps(result))


@app.command("batch-enforce")
def batch_enforce(
    requests_file: Path,
    enforcer_id: Optional[str] = typer.Option(None, help="Named evaluator id"),
    permission_id: Optional[str] = typer.Option(None, help="Permission id (owner/name)"),
    model_id: Optional[str] = typer.Option(None, help="Policy model id (owner/name)"),
    resource_id: Optional[str] = typer.Option(None, help="Resource id"),
) -> None:
    """
    Decide every request in a JSON file.

    The file holds a list of requests such as [["alice", "data1", "read"]].
    Prints a JSON matrix with one row per permission group.
    """
    if not requests_file.exists():
        typer.secho("Specified file does not exist", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    try:
        requests = parse_batch(requests_file.read_text())
        selector = build_selector(enforcer_id, permission_id, model_id, resource_id)
        enforcer = build_enforcer()
        result = asyncio.run(enforcer.batch_enforce(selector, requests))
    except AuthzError as exc:
        _fail(exc)
        return
    typer.echo(json.dumps(result))


@app.command("load")
def load(document_path: Path) -> None:
    """Load models, permissions, rules and evaluators from a YAML file."""
    if not document_path.exists():
        typer.secho("Specified file does not exist", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    try:
        document = read_document(document_path)
    except (yaml.YAMLError, ValidationError) as exc:
        typer.secho(f"Invalid policy document: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2)
    try:
        asyncio.run(load_document(get_repository(), document))
    except AuthzError as exc:
        _fail(exc)
        return
    typer.echo(
        f"Loaded {len(document.models)} model(s), {len(document.permissions)} "
        f"permission(s), {len(document.rules)} rule(s), "
        f"{len(document.enforcers)} evaluator(s)"
    )


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    app()
