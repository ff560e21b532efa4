"""
Job Commands

Inspect, cancel and clean up queued jobs, and run the worker that consumes
the queue.
"""

from typing import Annotated, Optional

import typer

from mediaflow.cli.commands.options import ConfigOption, DebugOption, VerboseOption
from mediaflow.cli.config_utils import build_cli_args, load_config_from_cli
from mediaflow.cli.utils import console, print_mapping
from mediaflow.jobs.service import STATUS_NOT_FOUND, STATUS_UNKNOWN
from mediaflow.processing.factory import ProcessorFactory

app = typer.Typer(
    name="jobs",
    help="Inspect and manage queued jobs",
    rich_markup_mode="rich",
    no_args_is_help=True,
)


@app.command("status")
def jobs_status(
    job_id: Annotated[str, typer.Argument(help="Job id returned by process --async")],
    config: ConfigOption = None,
    verbose: VerboseOption = None,
):
    """
    Show the status record of a job.
    """
    app_config = load_config_from_cli(config_file=config, cli_args=build_cli_args(verbose))
    job_service = ProcessorFactory(app_config).get_job_service()

    status = job_service.get_job_status(job_id)
    print_mapping(f"Job {job_id}", status)
    if status.get('status') in (STATUS_NOT_FOUND, STATUS_UNKNOWN):
        raise typer.Exit(1)


@app.command("cancel")
def jobs_cancel(
    job_id: Annotated[str, typer.Argument(help="Job id to cancel")],
    config: ConfigOption = None,
    verbose: VerboseOption = None,
):
    """
    Cancel a job. Running jobs finish, but their result is discarded.
    """
    app_config = load_config_from_cli(config_file=config, cli_args=build_cli_args(verbose))
    job_service = ProcessorFactory(app_config).get_job_service()

    if not job_service.cancel_job(job_id):
        console.print(f"[red]Failed to cancel job {job_id}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Job {job_id} cancelled[/green]")


@app.command("cleanup")
def jobs_cleanup(
    days: Annotated[Optional[int], typer.Option("--days", "-d", min=0, help="Remove records older than this")] = None,
    config: ConfigOption = None,
    verbose: VerboseOption = None,
):
    """
    Delete old job status records.
    """
    app_config = load_config_from_cli(config_file=config, cli_args=build_cli_args(verbose))
    job_service = ProcessorFactory(app_config).get_job_service()

    deleted = job_service.cleanup_old_jobs(days)
    console.print(f"[green]✓ Removed {deleted} job records[/green]")


def worker(
    max_messages: Annotated[Optional[int], typer.Option("--max-messages", "-n", min=1, help="Stop after N jobs")] = None,
    idle_timeout: Annotated[Optional[float], typer.Option("--idle-timeout", help="Stop after S idle seconds")] = None,
    config: ConfigOption = None,
    verbose: VerboseOption = None,
    debug: DebugOption = None,
):
    """
    Run a worker that processes queued jobs.
    """
    app_config = load_config_from_cli(config_file=config, cli_args=build_cli_args(verbose, debug))
    job_worker = ProcessorFactory(app_config).create_worker()

    console.print(f"[cyan]Worker polling {app_config.jobs.spool_dir}[/cyan]")
    try:
        handled = job_worker.run(max_messages=max_messages, idle_timeout=idle_timeout)
    except KeyboardInterrupt:
        job_worker.stop()
        console.print("\n[yellow]Worker interrupted[/yellow]")
        raise typer.Exit(1)
    console.print(f"[green]✓ Worker handled {handled} jobs[/green]")
