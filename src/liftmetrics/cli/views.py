"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of session metrics, training load
and substitution suggestions.  Weights are stored in lb and shown in the
user's preferred unit.
"""

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.ascii_plot import create_weekly_load_chart
from ..core.equipment import compile_requirement, describe_requirement, evaluate
from ..core.exercises.base import Exercise, SubstitutionResult
from ..core.models import EquipmentInventory, Session, SnapshotMetrics, TrainingLoadSummary
from ..core.units import convert_weight, round_weight

console = Console()


def fmt_weight(value_lb: float | None, units: str = "lb") -> str:
    """Format a pound value in the display unit, '-' when absent."""
    if value_lb is None:
        return "-"
    shown = convert_weight(value_lb, "lb", units)
    return f"{round_weight(shown):g} {units}"


def _fmt_optional(value: float | None, fmt: str = ".1f") -> str:
    return "-" if value is None else format(value, fmt)


def format_session_metrics_table(
    session: Session,
    metrics: SnapshotMetrics,
    units: str = "lb",
) -> Table:
    """
    Create a Rich table of one session's metrics.

    Args:
        session: Session the metrics belong to
        metrics: Snapshot metrics (stored or live)
        units: Display weight unit

    Returns:
        Rich Table object
    """
    source = "snapshot" if session.completion_snapshot is not None else "live"
    table = Table(title=f"Session {session.id} ({session.status}, {source})")

    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    rows = [
        ("Sets", str(metrics.total_sets)),
        ("Reps", str(metrics.total_reps)),
        ("Tonnage", fmt_weight(metrics.tonnage, units)),
        ("Workload", f"{metrics.workload:.1f}"),
        ("Hard sets", str(metrics.hard_sets)),
        ("Avg effort (RPE)", _fmt_optional(metrics.avg_effort)),
        ("Avg intensity", _fmt_optional(metrics.avg_intensity, ".2f")),
        ("Avg rest (s)", _fmt_optional(metrics.avg_rest_seconds, ".0f")),
        ("Duration (min)", "-" if metrics.duration_minutes is None else str(metrics.duration_minutes)),
        ("Density", _fmt_optional(metrics.density)),
        ("sRPE load", _fmt_optional(metrics.srpe_load, ".0f")),
    ]
    if metrics.best_e1rm is not None:
        rows.append(("Best e1RM", f"{fmt_weight(metrics.best_e1rm, units)} ({metrics.best_e1rm_exercise})"))

    for label, value in rows:
        table.add_row(label, value)

    if session.completion_snapshot is not None:
        table.caption = f"formula {session.completion_snapshot.formula_version}"

    return table


def format_sessions_table(sessions: list[Session], workloads: list[float]) -> Table:
    """Create a Rich table listing sessions with their workload."""
    table = Table(title="Sessions")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("ID", style="cyan")
    table.add_column("Started", style="magenta")
    table.add_column("Status", style="green")
    table.add_column("Exercises", justify="right")
    table.add_column("Workload", justify="right", style="bold")

    for i, (session, workload) in enumerate(zip(sessions, workloads), 1):
        started = session.started_at.strftime("%Y-%m-%d %H:%M") if session.started_at else "-"
        table.add_row(
            str(i),
            session.id,
            started,
            session.status,
            str(len(session.exercises)),
            f"{workload:.0f}",
        )

    return table


def format_training_load(summary: TrainingLoadSummary, readiness: str) -> str:
    """
    Format a training-load summary as a text block.

    Args:
        summary: TrainingLoadSummary to display
        readiness: Load-based readiness level

    Returns:
        Formatted string
    """
    ratio = "n/a" if summary.insufficient_data else f"{summary.load_ratio:.2f}"
    status = summary.status
    if summary.high_risk:
        status += " (high risk)"
    if summary.is_initial_phase:
        status += " (initial phase, advisory)"
    since = "-" if summary.days_since_last is None else f"{summary.days_since_last:.1f} days"

    lines = [
        "Training load",
        f"- Acute (7d):          {summary.acute_load:.0f}",
        f"- Chronic (28d):       {summary.chronic_load:.0f}",
        f"- Chronic weekly avg:  {summary.chronic_weekly_avg:.0f}",
        f"- Acute:chronic ratio: {ratio}",
        f"- Status:              {status}",
        f"- Since last session:  {since}",
        f"- Readiness:           {readiness}",
    ]
    return "\n".join(lines)


def print_weekly_load_chart(summary: TrainingLoadSummary) -> None:
    """Print the weekly load trend as a bar chart."""
    console.print(create_weekly_load_chart(summary.weekly_trend))


def format_suggestions_table(current: Exercise, result: SubstitutionResult) -> Table:
    """Create a Rich table of ranked substitutes."""
    title = f"Substitutes for {current.name}"
    if result.used_fallback:
        title += " (no equipment match, ranked by muscle only)"
    table = Table(title=title)

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Exercise", style="cyan")
    table.add_column("Pattern", style="magenta")
    table.add_column("Primary", style="green")
    table.add_column("Score", justify="right", style="bold")

    for i, suggestion in enumerate(result.suggestions, 1):
        ex = suggestion.exercise
        table.add_row(
            str(i),
            ex.name,
            ex.movement_pattern or "-",
            ex.primary_muscle or "-",
            f"{suggestion.score:.2f}",
        )

    return table


def format_equipment_table(catalog: list[Exercise], inventory: EquipmentInventory) -> Table:
    """Create a Rich table of catalog exercises and whether the inventory supports them."""
    table = Table(title="Exercise availability")

    table.add_column("Exercise", style="cyan")
    table.add_column("Needs")
    table.add_column("OK", justify="center")

    for ex in catalog:
        requirement = compile_requirement(ex)
        ok = evaluate(requirement, inventory)
        table.add_row(
            ex.name,
            escape(describe_requirement(requirement)),
            "[green]✓[/green]" if ok else "[red]✗[/red]",
        )

    return table


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
