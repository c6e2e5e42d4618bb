"""
Brokerage CLI - Command line interface for running jobs.

Usage:
    brokerage --help                      Show all commands
    brokerage batch                       Run one report batch cycle
    brokerage batch --window-minutes 180  Catch up on the last three hours
    brokerage settings --client-id C1     List a tenant's batch settings
"""

import asyncio

import typer

app = typer.Typer(
    name="brokerage",
    help="Brokerage CLI - Job runner for recurring sales reports",
    no_args_is_help=True,
)


def _print_success(message: str) -> None:
    """Print a success message."""
    typer.echo(f"  ✅ {message}")


def _print_error(message: str) -> None:
    """Print an error message to stderr."""
    typer.echo(f"❌ {message}", err=True)


@app.command()
def batch(
    window_minutes: int | None = typer.Option(
        None,
        "--window-minutes",
        "-w",
        min=1,
        help="Trailing execution window (defaults to config)",
    ),
):
    """Run the report batch (create due reports, reschedule settings)."""
    from brokerage.core.logging import setup_logging
    from brokerage.jobs.report_batch import main

    setup_logging()
    try:
        result = asyncio.run(main(window_minutes=window_minutes))
    except Exception as e:
        _print_error(f"Report batch failed: {e}")
        raise typer.Exit(1) from e

    typer.echo(f"\nDue settings: {result.due}")
    if result.overdue:
        typer.echo(f"  overdue (caught up): {result.overdue}")
    for outcome, count in sorted(result.outcomes.items(), key=lambda item: item[0].value):
        typer.echo(f"  {outcome.value}: {count}")
    _print_success("Report batch completed")


@app.command()
def settings(
    client_id: str = typer.Option(..., "--client-id", "-c", help="Tenant to list"),
):
    """List the live batch report settings of a tenant."""
    from brokerage.config import get_settings
    from brokerage.core.database import Database
    from brokerage.core.datetime_utils import as_operational
    from brokerage.services.batch_settings import get_settings_by_tenant

    async def run():
        database = Database.from_url(get_settings().database_url)
        try:
            async with database.session() as db:
                return await get_settings_by_tenant(db, client_id)
        finally:
            await database.dispose()

    rows = asyncio.run(run())
    if not rows:
        typer.echo("No batch settings")
        return

    for s in rows:
        typer.echo(
            f"{s.property_id}  {s.status.value:<9}  {s.auto_create_period.value:<13}  "
            f"weekday={s.weekday}  next={as_operational(s.next_execution_date).isoformat()}  "
            f"runs={s.execution_count}"
        )


@app.command()
def migrate():
    """Run database migrations (alembic upgrade head)."""
    import subprocess

    result = subprocess.run(["alembic", "upgrade", "head"], check=False)
    raise typer.Exit(result.returncode)


@app.command()
def serve(
    reload: bool = typer.Option(False, "--reload", "-r", help="Enable hot reload"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to run on"),
):
    """Start the API server."""
    import subprocess

    cmd = ["uvicorn", "brokerage.main:app", "--host", "0.0.0.0", "--port", str(port)]
    if reload:
        cmd.append("--reload")

    subprocess.run(cmd, check=False)


if __name__ == "__main__":
    app()
