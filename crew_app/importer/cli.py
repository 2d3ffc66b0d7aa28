"""
``flask importer`` commands: run crew roster imports, manage the worker and
prune stored uploads.
"""

from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import click
from celery import Celery
from celery.exceptions import TimeoutError as CeleryTimeoutError
from flask import Flask
from flask.cli import ScriptInfo

from crew_app.importer.adapters import CSVAdapterError
from crew_app.importer.celery_app import DEFAULT_QUEUE_NAME, get_celery_app
from crew_app.importer.errors import PreflightError
from crew_app.importer.pipeline import BatchReport
from crew_app.importer.runner import run_csv_batch
from crew_app.importer.utils import cleanup_upload, resolve_upload_directory
from crew_app.utils.importer import get_importer_record_kinds, is_importer_enabled

RUN_CSV_TASK = "importer.crew.run_csv"
HEALTHCHECK_TASK = "importer.healthcheck"


def _load_app(ctx: click.Context) -> Flask:
    return ctx.ensure_object(ScriptInfo).load_app()


@click.group(name="importer", invoke_without_command=True)
@click.pass_context
def importer_cli(ctx):
    """
    Crew roster import commands.

    Without a subcommand, prints the record kinds this app serves.
    """
    app = _load_app(ctx)
    if not is_importer_enabled(app):
        raise click.ClickException("Importer is disabled (IMPORTER_ENABLED=false); set it to true to use these commands.")
    if ctx.invoked_subcommand is None:
        _echo_kinds(get_importer_record_kinds(app))


def get_disabled_importer_group() -> click.Group:
    """Placeholder ``importer`` group registered while the feature flag is off."""

    @click.group(name="importer", invoke_without_command=True)
    def disabled_group():
        raise click.ClickException("Importer commands are unavailable because IMPORTER_ENABLED=false.")

    return disabled_group


def _echo_kinds(kinds) -> None:
    if not kinds:
        click.echo("No importer record kinds enabled.")
        return
    click.echo("Enabled importer record kinds:")
    for kind in kinds:
        click.echo(f"  - {kind}")


def _require_celery(app: Flask) -> Celery:
    celery_app = get_celery_app(app)
    if celery_app is None:
        raise click.ClickException("No Celery app is attached to the importer; check IMPORTER_ENABLED.")
    return celery_app


def _format_summary(report: BatchReport, csv_path: Path) -> str:
    summary = report.summary
    lines = [
        f"Crew {report.kind} import from {csv_path.name} finished.",
        f"  total              : {summary.total}",
        f"  ok                 : {summary.ok}",
        f"  failed             : {summary.failed}",
        f"  validation_errors  : {summary.validation_errors}",
        f"  skipped_duplicates : {summary.skipped_duplicates}",
        f"  base_account_id    : {summary.base_account_id_used}",
    ]
    problems = [outcome for outcome in report.outcomes if not outcome.ok]
    if problems:
        lines.append("  issues:")
        for outcome in problems:
            detail = outcome.as_dict()
            message = detail.get("error") or detail.get("skippedReason")
            lines.append(f"    line {outcome.line_number}: {message}")
    return "\n".join(lines)


@importer_cli.command("kinds")
@click.pass_context
def importer_kinds(ctx):
    """List the record kinds the importer serves."""
    _echo_kinds(get_importer_record_kinds(_load_app(ctx)))


@importer_cli.command("run")
@click.option("--kind", required=True, help="Record kind to import (customer, employee, staff).")
@click.option(
    "--file",
    "file_path",
    required=True,
    type=click.Path(path_type=Path, exists=True, dir_okay=False),
    help="Path to the CSV upload.",
)
@click.option(
    "--inline/--queue",
    default=True,
    help="Run inline within the CLI process (default) or queue via Celery.",
)
@click.option(
    "--summary-json",
    is_flag=True,
    help="Emit the machine-readable batch report after completion (inline runs only).",
)
@click.pass_context
def importer_run(ctx, kind: str, file_path: Path, inline: bool, summary_json: bool):
    """Import a crew roster CSV for the given record kind."""
    app = _load_app(ctx)
    normalized_kind = kind.strip().lower()
    enabled_kinds = get_importer_record_kinds(app)
    if normalized_kind not in enabled_kinds:
        raise click.ClickException(
            f"Record kind '{kind}' is not enabled. Enabled kinds: {', '.join(enabled_kinds) or 'none'}."
        )
    if summary_json and not inline:
        raise click.ClickException("--summary-json is only available for --inline runs.")

    csv_path = file_path.resolve()

    if not inline:
        try:
            async_result = _require_celery(app).send_task(
                RUN_CSV_TASK,
                kwargs={"kind": normalized_kind, "file_path": str(csv_path), "keep_file": True},
            )
        except click.ClickException:
            raise
        except Exception as exc:  # pragma: no cover - broker failures
            raise click.ClickException(f"Failed to enqueue crew import: {exc}") from exc

        app.logger.info(
            "Crew import queued via CLI",
            extra={"importer_task_id": async_result.id, "importer_kind": normalized_kind},
        )
        click.echo(json.dumps({"status": "queued", "task_id": async_result.id, "kind": normalized_kind}))
        return

    try:
        report = run_csv_batch(app, normalized_kind, csv_path)
    except PreflightError as exc:
        raise click.ClickException(f"Import aborted ({exc.status_code}): {exc.message}") from exc
    except CSVAdapterError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo(_format_summary(report, csv_path))
    if summary_json:
        click.echo(json.dumps(report.as_dict(), indent=2, sort_keys=True, default=str))


@importer_cli.group(name="worker")
@click.pass_context
def worker_group(ctx):
    """Run or probe the Celery worker that executes queued imports."""
    app = _load_app(ctx)
    if not app.config.get("IMPORTER_WORKER_ENABLED") and not app.extensions.get("importer", {}).get("worker_enabled"):
        click.echo("Note: IMPORTER_WORKER_ENABLED is off; health endpoints will report the worker as disabled.", err=True)


@worker_group.command("run")
@click.option("--loglevel", default="info", show_default=True)
@click.option("--concurrency", type=int, help="Worker process/thread count.")
@click.option("--pool", type=str, help="Celery pool implementation, e.g. prefork, solo or threads.")
@click.option("--queues", default=DEFAULT_QUEUE_NAME, show_default=True, help="Comma-separated queues to consume.")
@click.pass_context
def worker_run(ctx, loglevel: str, concurrency: Optional[int], pool: Optional[str], queues: str):
    """Start a Celery worker for crew imports in this process."""
    app = _load_app(ctx)
    celery_app = _require_celery(app)
    app.extensions.setdefault("importer", {})["worker_enabled"] = True

    argv = ["worker", "--loglevel", loglevel, "-Q", queues]
    if concurrency:
        argv += ["--concurrency", str(concurrency)]
    if pool:
        argv += ["--pool", pool]

    click.echo(f"Starting crew import worker on {queues} (loglevel={loglevel})")
    try:
        celery_app.worker_main(argv=argv)
    except KeyboardInterrupt:
        click.echo("Worker stopped.")


@worker_group.command("ping")
@click.option("--timeout", default=10.0, show_default=True, help="Seconds to wait for the heartbeat.")
@click.pass_context
def worker_ping(ctx, timeout: float):
    """Send the heartbeat task and print the worker's reply."""
    celery_app = _require_celery(_load_app(ctx))
    heartbeat = celery_app.tasks.get(HEALTHCHECK_TASK)
    if heartbeat is None:
        raise click.ClickException(f"Task '{HEALTHCHECK_TASK}' is not registered on the importer Celery app.")

    try:
        reply = heartbeat.apply_async().get(timeout=timeout)
    except CeleryTimeoutError as exc:
        raise click.ClickException(f"No heartbeat reply after {timeout}s") from exc

    click.echo(json.dumps(reply, indent=2))


@importer_cli.command("cleanup-uploads")
@click.option(
    "--max-age-hours",
    default=72,
    show_default=True,
    type=int,
    help="Age threshold in hours; older stored uploads are deleted.",
)
@click.pass_context
def importer_cleanup_uploads(ctx, max_age_hours: int):
    """Delete stored crew uploads older than the threshold."""
    uploads_dir = resolve_upload_directory(_load_app(ctx))
    threshold = (datetime.now(timezone.utc) - timedelta(hours=max_age_hours)).timestamp()

    stale = []
    for path in uploads_dir.iterdir():
        try:
            if path.is_file() and path.stat().st_mtime < threshold:
                stale.append(path)
        except FileNotFoundError:  # pragma: no cover - removed concurrently
            continue
    for path in stale:
        cleanup_upload(path)

    click.echo(f"Removed {len(stale)} upload file(s) older than {max_age_hours} hours from {uploads_dir}.")
