#!/usr/bin/env python3
"""
Offboarding Control CLI - Command Line Interface for the Offboarding Engine.

Provides commands for submitting resignations, deciding manager and HR
stages, inspecting review queues and audit trails, and running the API
server. Works on the local engine, or on a running server with --api-url.
"""

import logging
import time
from typing import List, Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..clients import ApprovalClient, HttpBackend, LocalBackend, StatusClient, WorkflowBackend
from ..config import Settings, configure_logging, load_settings
from ..engine.derivation import progress_steps
from ..exceptions import OffboardingError
from ..models import OverallStatus, ProgressStep, ResignationRequest, Stage, StepState
from ..workflows import OffboardingWorkflow, build_workflow

logger = logging.getLogger(__name__)

# Rich console for pretty output
console = Console()

STEP_STYLES = {
    StepState.NOT_STARTED: ("·", "dim"),
    StepState.PENDING: ("…", "yellow"),
    StepState.APPROVED: ("✓", "green"),
    StepState.REJECTED: ("✗", "red"),
    StepState.COMPLETED: ("✓", "bold green"),
}

STATUS_STYLES = {
    OverallStatus.PENDING: "yellow",
    OverallStatus.APPROVED: "green",
    OverallStatus.REJECTED: "red",
}


class OffboardController:
    """Main controller for Offboarding Engine operations."""

    def __init__(self, settings: Settings, api_url: Optional[str] = None):
        """Initialize the controller against the local engine or a remote API."""
        self.settings = settings
        self.api_url = api_url
        self._workflow: Optional[OffboardingWorkflow] = None
        self._backend: Optional[WorkflowBackend] = None

    @property
    def backend(self) -> WorkflowBackend:
        """Backend for the clients, built on first use."""
        if self._backend is None:
            if self.api_url:
                self._backend = HttpBackend(self.api_url, timeout=self.settings.request_timeout_seconds)
            else:
                self._backend = LocalBackend(self.require_local())
        return self._backend

    def require_local(self) -> OffboardingWorkflow:
        if self.api_url:
            raise click.UsageError("This command only works against the local engine (omit --api-url)")
        if self._workflow is None:
            self._workflow = build_workflow(self.settings)
        return self._workflow


@click.group()
@click.option('--config', '-c', type=click.Path(exists=True, dir_okay=False), help='Path to YAML/JSON configuration file')
@click.option('--api-url', help='Use a running Offboarding Engine API instead of the local engine')
@click.option('--remote', is_flag=True, help='Use the API at the configured api_base_url')
@click.option('--log-level', default=None, help='Logging level (defaults to configuration)')
@click.pass_context
def cli(ctx, config, api_url, remote, log_level):
    """Offboarding Control CLI - Employee Resignation Approval Workflow"""
    settings = load_settings(config)
    configure_logging(log_level or settings.log_level)
    if remote and not api_url:
        api_url = settings.api_base_url
    ctx.ensure_object(dict)
    ctx.obj['controller'] = OffboardController(settings, api_url)


@cli.command()
@click.argument('identity')
@click.option('--fullname', prompt='Full Name')
@click.option('--department', default='', help='Department')
@click.option('--designation', default='', help='Designation')
@click.option('--reason', prompt='Reason for resignation')
@click.pass_context
def submit(ctx, identity, fullname, department, designation, reason):
    """Submit a resignation request for IDENTITY."""
    controller = ctx.obj['controller']

    client = StatusClient(controller.backend, identity)
    outcome = client.submit(fullname, department, designation, reason)

    if not outcome.success:
        console.print(f"[red]✗ {outcome.message}[/red]")
        ctx.exit(1)

    console.print(f"[green]✓ {outcome.message}[/green]")
    display_request(outcome.request)


@cli.command()
@click.argument('request_id')
@click.option('--stage', type=click.Choice([s.value for s in Stage]), required=True, help='Stage being decided')
@click.option('--decision', type=click.Choice(['approved', 'rejected'], case_sensitive=False), required=True,
              help='Approve or reject the request')
@click.option('--note', default='', help='Justification for the decision (required)')
@click.pass_context
def decide(ctx, request_id, stage, decision, note):
    """Record a manager or HR decision on REQUEST_ID."""
    controller = ctx.obj['controller']

    client = ApprovalClient(controller.backend, Stage(stage))
    client.set_note(request_id, note)
    outcome = client.approve(request_id) if decision.lower() == 'approved' else client.reject(request_id)

    if not outcome.success:
        console.print(f"[red]✗ {outcome.message}[/red]")
        ctx.exit(1)

    console.print(f"[green]✓ {outcome.message}[/green]")
    display_request(outcome.request)


@cli.command()
@click.argument('identity')
@click.pass_context
def status(ctx, identity):
    """Show the offboarding progress of IDENTITY."""
    controller = ctx.obj['controller']

    client = StatusClient(controller.backend, identity)
    if not client.refresh():
        console.print(f"[red]Could not fetch status: {client.last_error}[/red]")
        ctx.exit(1)

    if client.record is None:
        console.print(f"[yellow]No resignation request found for {identity}[/yellow]")
        return

    display_request(client.record)
    if client.can_submit:
        console.print("[blue]No pending request - a new resignation may be submitted[/blue]")


@cli.command()
@click.option('--stage', type=click.Choice([s.value for s in Stage]), required=True, help='Reviewer stage')
@click.pass_context
def queue(ctx, stage):
    """List requests awaiting a stage decision."""
    controller = ctx.obj['controller']

    client = ApprovalClient(controller.backend, Stage(stage))
    if not client.refresh():
        console.print(f"[red]Could not fetch review queue: {client.last_error}[/red]")
        ctx.exit(1)

    if not client.pending:
        console.print(f"[yellow]No requests awaiting {stage} review[/yellow]")
        return

    display_requests(client.pending, title=f"Awaiting {stage} review ({len(client.pending)})")


@cli.command()
@click.option('--stage', type=click.Choice([s.value for s in Stage]), required=True, help='Reviewer stage')
@click.pass_context
def reviewed(ctx, stage):
    """List requests a stage has already decided."""
    controller = ctx.obj['controller']

    try:
        records = controller.backend.reviewed(Stage(stage))
    except OffboardingError as e:
        console.print(f"[red]Could not fetch reviewed requests: {e.message}[/red]")
        ctx.exit(1)

    if not records:
        console.print(f"[yellow]No requests reviewed by {stage} yet[/yellow]")
        return

    display_requests(records, title=f"Reviewed by {stage} ({len(records)})")


@cli.command()
@click.option('--identity', help='Filter by employee identity')
@click.option('--status', 'status_filter', type=click.Choice([s.value for s in OverallStatus]), help='Filter by status')
@click.option('--limit', default=50, help='Maximum number of requests to show')
@click.pass_context
def list_requests(ctx, identity, status_filter, limit):
    """List resignation requests."""
    controller = ctx.obj['controller']

    try:
        records = controller.backend.list_requests(identity)
    except OffboardingError as e:
        console.print(f"[red]Could not list requests: {e.message}[/red]")
        ctx.exit(1)

    if status_filter:
        records = [r for r in records if r.overall_status.value == status_filter]
    records = records[:limit]

    if not records:
        console.print("[yellow]No resignation requests found[/yellow]")
        return

    display_requests(records, title=f"Resignation requests ({len(records)})")


@cli.command()
@click.pass_context
def stats(ctx):
    """Show request statistics."""
    controller = ctx.obj['controller']

    try:
        summary = controller.backend.summary()
    except OffboardingError as e:
        console.print(f"[red]Could not fetch statistics: {e.message}[/red]")
        ctx.exit(1)

    console.print("[bold blue]Resignation Statistics[/bold blue]")
    console.print(f"Total Requests: {summary.total_requests}")
    for status_name, count in summary.by_status.items():
        console.print(f"  {status_name}: {count}")
    console.print(f"Relieved: {summary.relieved}")

    console.print("\nAwaiting Review:")
    for stage_name, count in summary.awaiting_stage.items():
        console.print(f"  {stage_name}: {count}")


@cli.command()
@click.argument('identity')
@click.option('--limit', default=50, help='Maximum number of events to show')
@click.pass_context
def audit_trail(ctx, identity, limit):
    """Show the audit trail for IDENTITY."""
    workflow = ctx.obj['controller'].require_local()

    if not workflow.audit_logger:
        console.print("[red]Audit logging is disabled (no audit_dir configured)[/red]")
        ctx.exit(1)

    records = workflow.audit_logger.get_events(identity=identity.strip().lower(), limit=limit)
    if not records:
        console.print(f"[yellow]No audit records found for {identity}[/yellow]")
        return

    table = Table(title=f"Audit Trail for {identity}")
    table.add_column("Timestamp", style="cyan")
    table.add_column("Event Type", style="green")
    table.add_column("Action", style="magenta")
    table.add_column("Request", style="blue")
    table.add_column("Success", style="red")
    table.add_column("Error", style="yellow")

    for record in records:
        table.add_row(
            record.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            record.event_type,
            record.action,
            record.request_id or "-",
            "✓" if record.success else "✗",
            record.error_message or "",
        )

    console.print(table)


@cli.command()
@click.argument('identity')
@click.option('--interval', type=float, default=None, help='Polling interval in seconds')
@click.pass_context
def watch(ctx, identity, interval):
    """Poll and display the progress of IDENTITY until Ctrl+C."""
    controller = ctx.obj['controller']
    interval = interval or controller.settings.poll_interval_seconds

    client = StatusClient(controller.backend, identity, interval=interval)
    console.print(f"[blue]Watching {identity} every {interval:g}s - press Ctrl+C to stop[/blue]")

    last_seen = None
    with client:
        try:
            while True:
                snapshot = client.record.model_dump() if client.record else None
                if client.last_refreshed_at and snapshot != last_seen:
                    last_seen = snapshot
                    if client.record:
                        display_request(client.record)
                    else:
                        console.print(f"[yellow]No resignation request found for {identity}[/yellow]")
                time.sleep(0.5)
        except KeyboardInterrupt:
            console.print("[yellow]Stopped watching[/yellow]")


@cli.command()
@click.option('--port', default=8000, help='Port to run the API server on')
@click.option('--host', default='127.0.0.1', help='Host to bind the API server to')
@click.pass_context
def serve(ctx, port, host):
    """Start the Offboarding Engine API server."""
    from ..api.server import start_server

    settings = ctx.obj['controller'].settings
    console.print(f"[green]Starting Offboarding Engine API server on {host}:{port}[/green]")
    console.print("[blue]Press Ctrl+C to stop[/blue]")

    try:
        start_server(host=host, port=port, reload=False, log_level=settings.log_level, settings=settings)
    except KeyboardInterrupt:
        console.print("[yellow]Server stopped[/yellow]")


def display_request(record: ResignationRequest) -> None:
    """Display one request with its progress steps."""
    style = STATUS_STYLES[record.overall_status]
    console.print(Panel.fit(
        f"[bold blue]{record.fullname}[/bold blue]\n{record.identity}\n"
        f"Status: [{style}]{record.overall_status.value}[/{style}]"
    ))
    console.print(f"Request ID: {record.id}")
    console.print(f"Department: {record.department or 'Not specified'}")
    console.print(f"Designation: {record.designation or 'Not specified'}")
    console.print(f"Reason: {record.reason}")
    console.print(f"Submitted: {record.submitted_at.strftime('%Y-%m-%d %H:%M:%S')}")

    display_progress(progress_steps(record))


def display_progress(steps: List[ProgressStep]) -> None:
    """Display the four progress steps."""
    table = Table(title="Progress")
    table.add_column("Step", style="cyan")
    table.add_column("State")
    table.add_column("Note", style="magenta")
    table.add_column("When", style="blue")

    for step in steps:
        icon, style = STEP_STYLES[step.state]
        table.add_row(
            step.label,
            f"[{style}]{icon} {step.state.value}[/{style}]",
            step.note or "",
            step.at.strftime("%Y-%m-%d %H:%M:%S") if step.at else "",
        )

    console.print(table)


def display_requests(records: List[ResignationRequest], title: str) -> None:
    """Display requests as a table."""
    table = Table(title=title)
    table.add_column("Request ID", style="cyan")
    table.add_column("Identity", style="blue")
    table.add_column("Name", style="green")
    table.add_column("Department", style="yellow")
    table.add_column("Manager", style="magenta")
    table.add_column("HR", style="magenta")
    table.add_column("Status")
    table.add_column("Submitted", style="cyan")

    for record in records:
        style = STATUS_STYLES[record.overall_status]
        table.add_row(
            record.id,
            record.identity,
            record.fullname,
            record.department or "-",
            record.manager_decision.value,
            record.hr_decision.value,
            f"[{style}]{record.overall_status.value}[/{style}]",
            record.submitted_at.strftime("%Y-%m-%d %H:%M"),
        )

    console.print(table)


def main():
    """Console script entry point."""
    cli(obj={})


if __name__ == "__main__":
    main()
