"""CLI interface for tracewell.

Requires the 'cli' extra: pip install tracewell[cli]
"""

from __future__ import annotations

import sys
from datetime import UTC, datetime

try:
    import typer
    from rich.console import Console
    from rich.table import Table
except ImportError:
    print(
        "CLI dependencies not installed. Install with: pip install tracewell[cli]",
        file=sys.stderr,
    )
    sys.exit(1)

from tracewell import __version__
from tracewell._time import now_micros, seconds_to_micros
from tracewell.config import ENV_VARS, HarnessConfig
from tracewell.exceptions import QueryError
from tracewell.harness import HarnessContext
from tracewell.models.query import Criteria
from tracewell.models.span import TagValue, Trace
from tracewell.query.client import HttpQueryClient

app = typer.Typer(
    name="tracewell",
    help="Trace ingestion, query and integration-test harness.",
    add_completion=False,
)
console = Console()


def _parse_tag(raw: str) -> tuple[str, TagValue]:
    """Parse ``key=value``, typing the value as bool, int, float or string."""
    key, sep, text = raw.partition("=")
    if not sep or not key:
        msg = f"Expected key=value, got {raw!r}"
        raise typer.BadParameter(msg)
    lowered = text.lower()
    if lowered in ("true", "false"):
        return key, lowered == "true"
    for cast in (int, float):
        try:
            return key, cast(text)
        except ValueError:
            continue
    return key, text


def _format_micros(micros: int | None) -> str:
    if micros is None:
        return "-"
    moment = datetime.fromtimestamp(micros / 1_000_000, tz=UTC)
    return moment.isoformat(timespec="milliseconds")


def _trace_table(traces: list[Trace], title: str) -> Table:
    table = Table(title=title)
    table.add_column("Trace ID", style="cyan")
    table.add_column("Spans", justify="right")
    table.add_column("Services", style="green")
    table.add_column("Operations")
    table.add_column("Start")
    for trace in traces:
        table.add_row(
            trace.trace_id,
            str(len(trace.spans)),
            ", ".join(trace.services),
            ", ".join(trace.operation_names),
            _format_micros(trace.start_time),
        )
    return table


def _load_config() -> HarnessConfig:
    try:
        return HarnessConfig.from_env()
    except ValueError as exc:
        console.print(f"[red]Invalid configuration: {exc}[/red]")
        raise typer.Exit(code=1) from None


@app.callback()
def main(
    version: bool = typer.Option(False, "--version", "-v", help="Show version"),
) -> None:
    if version:
        console.print(f"tracewell {__version__}")
        raise typer.Exit()


@app.command()
def info() -> None:
    """Show the resolved harness configuration."""
    config = _load_config()
    table = Table(title="tracewell configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Env var", style="dim")
    table.add_column("Value", style="green")
    for field, env_var in ENV_VARS.items():
        table.add_row(field, env_var, str(getattr(config, field)))
    table.add_row("query_url", "", config.query_url)
    table.add_row("otlp_endpoint", "", config.otlp_endpoint)
    table.add_row("version", "", __version__)
    console.print(table)


@app.command()
def search(
    service: str = typer.Argument(..., help="Service name"),
    operation: str | None = typer.Option(None, "--operation", "-o", help="Operation name"),
    lookback: int = typer.Option(3600, "--lookback", "-l", help="Seconds to look back"),
    tag: list[str] | None = typer.Option(  # noqa: B008
        None, "--tag", "-t", help="Tag filter key=value"
    ),
    limit: int | None = typer.Option(None, "--limit", "-n", help="Maximum traces"),
) -> None:
    """Search the query service for traces."""
    config = _load_config()
    tags = dict(_parse_tag(raw) for raw in tag or [])
    criteria = Criteria(
        service=service,
        operation=operation,
        start=now_micros() - seconds_to_micros(lookback),
        tags=tags,
        limit=limit,
    )
    try:
        with HttpQueryClient(config.query_url) as client:
            traces = client.search(criteria)
    except QueryError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(code=1) from None

    if not traces:
        console.print(f"[yellow]No traces found for {service}[/yellow]")
        return
    console.print(_trace_table(traces, f"Traces for {service}"))


@app.command()
def trace(trace_id: str = typer.Argument(..., help="Trace ID")) -> None:
    """Show the spans of one trace."""
    config = _load_config()
    try:
        with HttpQueryClient(config.query_url) as client:
            found = client.get_trace(trace_id)
    except QueryError as exc:
        console.print(f"[red]Error: {exc}[/red]")
        raise typer.Exit(code=1) from None

    if found is None:
        console.print(f"[red]Trace {trace_id} not found[/red]")
        raise typer.Exit(code=1)

    table = Table(title=f"Trace {trace_id}")
    table.add_column("Span ID", style="cyan")
    table.add_column("Parent")
    table.add_column("Service", style="green")
    table.add_column("Operation")
    table.add_column("Duration (us)", justify="right")
    table.add_column("Tags", style="dim")
    for span in found.spans:
        table.add_row(
            span.span_id,
            span.parent_span_id or "-",
            span.service_name,
            span.operation_name,
            str(span.duration),
            ", ".join(f"{t.key}={t.value}" for t in span.tags),
        )
    console.print(table)


@app.command()
def emit(
    operation: str = typer.Argument(..., help="Operation name"),
    count: int = typer.Option(1, "--count", "-c", help="Number of traces"),
    tag: list[str] | None = typer.Option(None, "--tag", "-t", help="Tag key=value"),  # noqa: B008
) -> None:
    """Record test spans and send them to the collector."""
    config = _load_config()
    tags = dict(_parse_tag(raw) for raw in tag or [])
    with HarnessContext(config) as ctx:
        for _ in range(count):
            with ctx.tracer.start_span(operation, tags=tags) as span:
                console.print(f"  trace {span.trace_id}")
    console.print(
        f"[green]Emitted {count} span(s) for {config.service_name} "
        f"to {config.otlp_endpoint}[/green]"
    )


if __name__ == "__main__":
    app()
