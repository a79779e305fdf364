"""CLI entry point: modsync.

Subcommands:
    modsync sync connection.json             # One reconciliation run
    modsync get-repo connection.json NAME    # Resolve a single repo
    modsync versions connection.json MODULE  # List versions via the proxies
"""

from __future__ import annotations

import asyncio
import json
import time
from pathlib import Path

import click

from modsync.core.logging import setup_logging
from modsync.engines.go_modules_source.models import SourceResult
from modsync.engines.go_modules_source.runner import SyncRunner
from modsync.engines.go_modules_source.source import GoModulesSource
from modsync.schemas.connection import ExternalService, SourceConfigError


def _load_service(config_file: str, service_id: int) -> ExternalService:
    return ExternalService(id=service_id, config=Path(config_file).read_text())


def _build_source(config_file: str, service_id: int) -> GoModulesSource:
    try:
        return GoModulesSource.from_external_service(_load_service(config_file, service_id))
    except SourceConfigError as e:
        raise click.ClickException(str(e)) from e


def _deadline(timeout: float | None) -> float | None:
    return time.monotonic() + timeout if timeout else None


@click.group()
def main() -> None:
    """modsync: sync Go module proxies into repository records."""
    setup_logging()


@main.command("sync")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--service-id", default=1, show_default=True, help="External service id for URNs")
@click.option("--no-db", is_flag=True, help="Skip the dependency store (configured deps only)")
@click.option("--json", "as_json", is_flag=True, help="Print one JSON object per result")
@click.option("--timeout", type=float, default=None, help="Deadline for the whole run, in seconds")
def sync(config_file: str, service_id: int, no_db: bool, as_json: bool, timeout: float | None) -> None:
    """Run one reconciliation and print every repo and error."""
    source = _build_source(config_file, service_id)

    def _print(result: SourceResult) -> None:
        if as_json:
            if result.err is not None:
                click.echo(json.dumps({"error": str(result.err)}))
            else:
                click.echo(json.dumps({"repo": result.repo.name, "uri": result.repo.uri}))
        elif result.err is not None:
            click.echo(f"error: {result.err}", err=True)
        else:
            click.echo(result.repo.name)

    async def _run() -> int:
        engine = None
        if not no_db:
            from modsync.core.database import create_engine, create_session_factory
            from modsync.dao.dependency_repo_dao import DatabaseDependenciesStore

            engine = create_engine()
            source.set_store(DatabaseDependenciesStore(create_session_factory(engine)))
        try:
            summary = await SyncRunner([source], on_result=_print).run(deadline=_deadline(timeout))
        finally:
            await source.client.close()
            if engine is not None:
                await engine.dispose()
        return len(summary.errors)

    errors = asyncio.run(_run())
    if errors:
        raise SystemExit(1)


@main.command("get-repo")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("name")
@click.option("--service-id", default=1, show_default=True, help="External service id for URNs")
def get_repo(config_file: str, name: str, service_id: int) -> None:
    """Resolve NAME (go/<module> or <module>) to a repo record."""
    source = _build_source(config_file, service_id)

    async def _run():
        try:
            return await source.get_repo(name)
        finally:
            await source.client.close()

    try:
        repo = asyncio.run(_run())
    except Exception as e:
        raise click.ClickException(str(e)) from e
    click.echo(json.dumps({"name": repo.name, "uri": repo.uri, "private": repo.private}))


@main.command("versions")
@click.argument("config_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("module")
def versions(config_file: str, module: str) -> None:
    """List the versions of MODULE known to the proxies."""
    source = _build_source(config_file, 1)

    async def _run() -> list[str]:
        try:
            return [v.version for v in await source.client.list_versions(module)]
        finally:
            await source.client.close()

    try:
        listed = asyncio.run(_run())
    except Exception as e:
        raise click.ClickException(str(e)) from e
    for v in listed:
        click.echo(v)
