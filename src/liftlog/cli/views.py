"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of workout data.
"""

from datetime import date

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.config import WEIGHT_UNIT
from ..core.models import Exercise, PersonalRecord, Session, SetEntry
from ..core.records import PrOutcome, format_number, has_personal_record

console = Console()

PR_MARK = "🏆 PR"


def format_personal_record(record: PersonalRecord, weight_unit: str = WEIGHT_UNIT) -> str:
    """One-line PR summary, or "None" when there is no record."""
    if not has_personal_record(record):
        return "None"
    return (
        f"{format_number(record.reps)} reps, "
        f"{format_number(record.resistance_weight)}{weight_unit}, "
        f"height {format_number(record.resistance_height)}"
    )


def format_set(set_entry: SetEntry, weight_unit: str = WEIGHT_UNIT) -> str:
    """e.g. "135lbs × 8 reps" with "^ 12" appended when a height was logged."""
    text = (
        f"{format_number(set_entry.resistance_weight)}{weight_unit} × "
        f"{format_number(set_entry.rep_count)} reps"
    )
    if set_entry.resistance_height:
        text += f" ^ {format_number(set_entry.resistance_height)}"
    return text


def format_timestamp(timestamp: str) -> str:
    """Trim an ISO timestamp to date and minutes."""
    return timestamp[:16].replace("T", " ") if timestamp else "-"


def format_exercise_table(exercises: list[Exercise], weight_unit: str = WEIGHT_UNIT) -> Table:
    """
    Format exercises as a Rich table.

    Args:
        exercises: Exercises to display
        weight_unit: Unit label for weights

    Returns:
        Rich Table object
    """
    table = Table(title="Exercises", show_header=True, header_style="bold cyan")

    table.add_column("ID", style="dim")
    table.add_column("Exercise", style="bold")
    table.add_column("Category", style="magenta")
    table.add_column("Muscles")
    table.add_column("BW", justify="center")
    table.add_column("PR", style="green")

    for ex in exercises:
        table.add_row(
            ex.id,
            escape(ex.display_name),
            escape(ex.category or "-"),
            escape(", ".join(ex.muscle_groups) or "-"),
            "✓" if ex.is_bodyweight else "",
            format_personal_record(ex.pr, weight_unit),
        )

    return table


def print_exercises(exercises: list[Exercise], weight_unit: str = WEIGHT_UNIT) -> None:
    """Print exercises to console."""
    if not exercises:
        console.print("[yellow]No exercises yet.[/yellow]")
        return
    console.print(format_exercise_table(exercises, weight_unit))


def print_exercise_detail(
    exercise: Exercise,
    recent: list[SetEntry],
    weight_unit: str = WEIGHT_UNIT,
    pr_set: SetEntry | None = None,
) -> None:
    """
    Print one exercise with its PR and latest sets.

    Args:
        exercise: Exercise to show
        recent: Latest sets, newest first
        weight_unit: Unit label for weights
        pr_set: The set holding the PR, when it is still in the log
    """
    console.print()
    console.print(f"[bold cyan]{escape(exercise.display_name)}[/bold cyan]  [dim]{exercise.id}[/dim]")
    console.print(f"  Category: {escape(exercise.category or '-')}")
    console.print(f"  Muscles:  {escape(', '.join(exercise.muscle_groups) or '-')}")
    console.print(f"  Bodyweight exercise: {'yes' if exercise.is_bodyweight else 'no'}")
    console.print(f"  [bold]PR:[/bold] {format_personal_record(exercise.pr, weight_unit)}")
    if exercise.pr.last_updated:
        console.print(f"  [dim]Last updated: {format_timestamp(exercise.pr.last_updated)}[/dim]")
    if pr_set is not None:
        console.print(f"  [dim]PR set logged: {format_timestamp(pr_set.timestamp)}[/dim]")

    console.print()
    console.print("[bold]Previous Data[/bold]")
    if not recent:
        console.print("[yellow]No previous sets found.[/yellow]")
        return

    for s in recent:
        label = f"[green]{PR_MARK}[/green] " if s.id and s.id == exercise.pr.pr_set_id else ""
        console.print(f"  {label}{format_set(s, weight_unit)}  [dim]{format_timestamp(s.timestamp)}[/dim]")


def format_sessions_table(sessions: list[Session]) -> Table:
    """
    Format sessions as a Rich table.

    Args:
        sessions: Sessions to display

    Returns:
        Rich Table object
    """
    table = Table(title="Sessions", show_header=True, header_style="bold cyan")

    table.add_column("ID", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Category", style="magenta")
    table.add_column("BW", justify="right")
    table.add_column("Sets", justify="right")
    table.add_column("PR", justify="center")
    table.add_column("Notes", style="dim")

    for s in sessions:
        table.add_row(
            s.id,
            s.date or "-",
            escape(s.category or "Uncategorized"),
            format_number(s.body_weight) if s.body_weight is not None else "-",
            str(len(s.set_ids)),
            "🎉" if s.pr_hit else "",
            escape(s.session_notes),
        )

    return table


def print_sessions(sessions: list[Session]) -> None:
    """Print sessions to console."""
    if not sessions:
        console.print("[yellow]No sessions recorded yet.[/yellow]")
        return
    console.print(format_sessions_table(sessions))


def print_session(
    session: Session,
    sets: list[tuple[SetEntry, str]],
    pr_set_ids: set[str],
    weight_unit: str = WEIGHT_UNIT,
) -> None:
    """
    Print one session with its sets.

    Args:
        session: Session to show
        sets: (set, exercise name) pairs, newest first
        pr_set_ids: Ids of sets that currently hold an exercise PR
        weight_unit: Unit label for weights
    """
    console.print()
    console.print(f"[bold]Session: {escape(session.category or 'Uncategorized')}[/bold]  [dim]{session.id}[/dim]")
    if session.pr_hit:
        console.print("[bold green]🎉 PR Hit This Session![/bold green]")
    console.print(f"  Date: {session.date or '-'}")
    bw = format_number(session.body_weight) if session.body_weight is not None else "-"
    console.print(f"  Body weight: {bw}")
    if session.session_notes:
        console.print(f"  Notes: {escape(session.session_notes)}")

    if not sets:
        console.print("[yellow]No sets logged yet.[/yellow]")
        return

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Time", style="dim")
    table.add_column("Exercise", style="bold")
    table.add_column("Reps", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Height", justify="right")
    table.add_column("Intensity", justify="right")
    table.add_column("", style="green")
    table.add_column("Notes", style="dim")

    for s, name in sets:
        table.add_row(
            format_timestamp(s.timestamp),
            escape(name),
            format_number(s.rep_count),
            f"{format_number(s.resistance_weight)}{weight_unit}",
            format_number(s.resistance_height),
            format_number(s.intensity) if s.intensity is not None else "-",
            PR_MARK if s.id in pr_set_ids else "",
            escape(s.notes),
        )

    console.print(table)


def format_volume_table(volume: dict[str, int], metric: str) -> Table:
    """
    Format per-muscle-group volume as a Rich table.

    Args:
        volume: {muscle group: total}, in display order
        metric: "sets" or "reps"

    Returns:
        Rich Table object
    """
    table = Table(title="Training Volume", show_header=True, header_style="bold cyan")
    table.add_column("Muscle Group", style="bold")
    table.add_column(metric.capitalize(), justify="right")
    table.add_column("", style="blue")

    peak = max(volume.values(), default=0)
    for group, total in volume.items():
        bar = "█" * round(20 * total / peak) if peak else ""
        table.add_row(escape(group), str(total), bar)

    return table


def print_volume(volume: dict[str, int], metric: str) -> None:
    """Print the volume table, or a notice when nothing was logged."""
    if not volume:
        console.print("[yellow]No sets in this period.[/yellow]")
        return
    console.print(format_volume_table(volume, metric))


def print_muscle_group(
    group: str,
    exercises: list[Exercise],
    daily_counts: list[tuple[date, int]],
) -> None:
    """
    Print the exercises targeting a muscle group and its recent daily set counts.

    Args:
        group: Muscle group name
        exercises: Exercises that list the group
        daily_counts: (day, sets) pairs, oldest first
    """
    console.print()
    console.print(f"[bold cyan]{escape(group)} Details[/bold cyan]")

    console.print()
    console.print("[bold]Exercises[/bold]")
    if not exercises:
        console.print("[yellow]No exercises target this muscle group.[/yellow]")
        return
    for ex in exercises:
        console.print(f"  {escape(ex.display_name)}  [dim]{ex.id}[/dim]")

    console.print()
    if not any(count for _, count in daily_counts):
        console.print(f"[yellow]No sets recorded in the last {len(daily_counts)} days.[/yellow]")
        return

    table = Table(
        title=f"Last {len(daily_counts)}-Day Set Volume",
        show_header=True,
        header_style="bold cyan",
    )
    table.add_column("Date", style="cyan")
    table.add_column("Sets", justify="right")
    for day, count in daily_counts:
        table.add_row(day.isoformat(), str(count))
    console.print(table)


def print_pr_outcome(outcome: PrOutcome, message: str) -> None:
    """Print the PR banner, or the score comparison when no PR was hit."""
    if outcome.is_pr:
        console.print(f"[bold yellow]🎉 {escape(message)}[/bold yellow]")
    else:
        console.print(
            f"[dim]Score {format_number(outcome.score)} "
            f"(PR score {format_number(outcome.previous_score)})[/dim]"
        )


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{escape(message)}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {escape(message)}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {escape(message)}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{escape(message)}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{escape(message)} \\[y/N]: ")
    return response.lower() in ("y", "yes")
