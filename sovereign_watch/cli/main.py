"""Main entry point for the sovereign-watch command line interface."""

from __future__ import annotations

import asyncio
import sys

import typer
from rich.box import SIMPLE
from rich.console import Console
from rich.table import Table

from sovereign_watch.core.config import Settings, get_settings
from sovereign_watch.core.data.storage.factory import open_store
from sovereign_watch.core.data.storage.store import FiscalStore
from sovereign_watch.core.etl.client import FiscalDataClient
from sovereign_watch.core.exceptions import IngestJobError
from sovereign_watch.core.logging import configure_logging
from sovereign_watch.core.services.ingest_job import IngestJob, JobReport

STORE_EXIT_CODE = 3
JOB_EXIT_CODE = 4


def get_store(settings: Settings) -> FiscalStore | None:
    """Factory hook for obtaining the store used by ``ingest``."""

    return open_store(settings)


def get_client(settings: Settings) -> FiscalDataClient:
    """Factory hook for obtaining the upstream client used by ``ingest``."""

    return FiscalDataClient.from_settings(settings)


def create_app() -> typer.Typer:
    """Create a Typer application instance for sovereign-watch."""

    app = typer.Typer(add_completion=False, help="sovereign-watch command line interface")

    @app.callback()
    def main(
        ctx: typer.Context,
        log_level: str | None = typer.Option(
            None,
            "--log-level",
            help="Log level. Defaults to SOVEREIGN_WATCH_LOG_LEVEL.",
        ),
        json_logs: bool | None = typer.Option(
            None,
            "--json-logs/--text-logs",
            help="Emit JSON log lines or human readable text.",
        ),
    ) -> None:
        settings = get_settings()
        ctx.ensure_object(dict)
        ctx.obj["settings"] = settings
        configure_logging(
            (log_level or settings.log_level).upper(),
            json_logs=settings.log_json if json_logs is None else json_logs,
        )

    @app.command("serve")
    def serve_command(
        host: str = typer.Option("0.0.0.0", "--host", help="Bind address."),
        port: int = typer.Option(8000, "--port", help="Bind port."),
        reload: bool = typer.Option(False, "--reload", help="Reload on code changes."),
    ) -> None:
        """Run the serving API."""

        from sovereign_watch.web.main import serve

        serve(host=host, port=port, reload=reload)

    @app.command("ingest")
    def ingest_command(
        ctx: typer.Context,
        run_id: str | None = typer.Option(None, "--run-id", help="Correlation id for the job log."),
        no_color: bool = typer.Option(False, "--no-color", help="Disable colorized output."),
    ) -> None:
        """Run the daily ingestion job once against the configured store."""

        settings: Settings = ctx.obj["settings"]
        console = Console(file=sys.stdout, no_color=no_color)

        store = get_store(settings)
        if store is None:
            console.print("Database not configured; set SOVEREIGN_WATCH_DATABASE_URL")
            raise typer.Exit(code=STORE_EXIT_CODE)

        try:
            report = asyncio.run(_run_ingest(store, get_client(settings), run_id))
        except IngestJobError as exc:
            console.print(f"Ingestion failed: {exc.message}")
            raise typer.Exit(code=JOB_EXIT_CODE) from exc
        finally:
            store.close()

        console.print(_report_table(report, no_color=no_color))
        console.print(
            f"run {report.run_id}: {'success' if report.success else 'partial failure'}, "
            f"{report.records_processed} records in {report.duration_ms:.0f} ms"
        )
        if not report.success:
            raise typer.Exit(code=JOB_EXIT_CODE)

    return app


async def _run_ingest(store: FiscalStore, client: FiscalDataClient, run_id: str | None) -> JobReport:
    async with client:
        return await IngestJob(store, client).run(run_id)


def _report_table(report: JobReport, *, no_color: bool = False) -> Table:
    table = Table(box=SIMPLE, show_lines=False)
    header_style = "" if no_color else "bold"
    for column in ("step", "status", "count"):
        table.add_column(column, header_style=header_style, no_wrap=True)
    table.add_column("message", header_style=header_style, overflow="fold")
    for name, result in report.results.items():
        table.add_row(name, "ok" if result.success else "failed", str(result.count), result.message)
    return table


app = create_app()
