"""Session commands: init, new-session, sessions, show-session, update-session, log-set."""

from dataclasses import replace
from datetime import datetime
from typing import Annotated, Optional

import typer

from ...core.config import SESSION_CATEGORIES
from ...core.engine.config_loader import load_display_config, load_scoring_config
from ...core.models import Session, SetEntry
from ...core.records import format_pr_message
from ...core.sessions import build_exercise_map, enrich_and_sort_sets, extract_exercise_ids, sessions_with_pr
from ...io.serializers import ValidationError, parse_sets_string, validate_date
from ...io.workout_store import DocumentNotFoundError, StaleRecordError
from .. import views
from ..app import StorePathOption, app, get_store, require_store


@app.command()
def init(store_path: StorePathOption = None) -> None:
    """Create an empty workout log."""
    store = get_store(store_path)
    if store.exists():
        views.print_info(f"Workout log already exists at {store.store_dir}")
        return
    store.init()
    views.print_success(f"Created workout log at {store.store_dir}")


def _check_category(category: str) -> None:
    if category and category not in SESSION_CATEGORIES:
        views.print_warning(
            f"Category '{category}' is not one of {', '.join(SESSION_CATEGORIES)}"
        )


@app.command("new-session")
def new_session(
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Session date (YYYY-MM-DD, default: today)"),
    ] = None,
    category: Annotated[
        str,
        typer.Option("--category", "-c", help="Category: Push | Pull | Legs"),
    ] = "",
    body_weight: Annotated[
        Optional[float],
        typer.Option("--body-weight", "-w", help="Body weight for this session"),
    ] = None,
    notes: Annotated[
        str,
        typer.Option("--notes", "-n", help="Session notes"),
    ] = "",
    store_path: StorePathOption = None,
) -> None:
    """
    Start a training session.

      liftlog new-session --category Pull --body-weight 180
    """
    store = require_store(store_path)

    if date is None:
        date = datetime.now().strftime("%Y-%m-%d")
    _check_category(category)

    try:
        validate_date(date)
        session = store.add_session(
            Session(date=date, body_weight=body_weight, category=category, session_notes=notes)
        )
    except (ValueError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Started session {session.id} ({session.date})")


@app.command("sessions")
def list_sessions(
    pr_only: Annotated[
        bool,
        typer.Option("--pr-only", help="Only sessions where a PR was hit"),
    ] = False,
    store_path: StorePathOption = None,
) -> None:
    """List sessions, newest first."""
    store = require_store(store_path)

    try:
        sessions = store.list_sessions()
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if pr_only:
        sessions = sessions_with_pr(sessions)
    views.print_sessions(sessions)


@app.command("show-session")
def show_session(
    session_id: Annotated[str, typer.Argument(help="Session ID")],
    store_path: StorePathOption = None,
) -> None:
    """Show a session and the sets logged in it."""
    store = require_store(store_path)
    display = load_display_config()

    try:
        session = store.get_session(session_id)
        sets = store.sets_for_session(session)
        exercise_ids = set(extract_exercise_ids(sets))
        exercises = [e for e in store.list_exercises() if e.id in exercise_ids]
    except (DocumentNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    pr_set_ids = {e.pr.pr_set_id for e in exercises if e.pr.pr_set_id}
    enriched = enrich_and_sort_sets(sets, build_exercise_map(exercises))
    views.print_session(session, enriched, pr_set_ids, display.weight_unit)


@app.command("update-session")
def update_session(
    session_id: Annotated[str, typer.Argument(help="Session ID")],
    date: Annotated[
        Optional[str],
        typer.Option("--date", "-d", help="Session date (YYYY-MM-DD)"),
    ] = None,
    category: Annotated[
        Optional[str],
        typer.Option("--category", "-c", help="Category: Push | Pull | Legs"),
    ] = None,
    body_weight: Annotated[
        Optional[float],
        typer.Option("--body-weight", "-w", help="Body weight for this session"),
    ] = None,
    notes: Annotated[
        Optional[str],
        typer.Option("--notes", "-n", help="Session notes"),
    ] = None,
    store_path: StorePathOption = None,
) -> None:
    """Update session metadata. Only the given fields change."""
    store = require_store(store_path)

    try:
        session = store.get_session(session_id)
    except (DocumentNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    changes: dict = {}
    if date is not None:
        changes["date"] = date
    if category is not None:
        _check_category(category)
        changes["category"] = category
    if body_weight is not None:
        changes["body_weight"] = body_weight
    if notes is not None:
        changes["session_notes"] = notes

    if not changes:
        views.print_info("Nothing to update.")
        return

    try:
        store.update_session(replace(session, **changes))
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Updated session {session_id}")


@app.command("log-set")
def log_set(
    session_id: Annotated[
        str,
        typer.Option("--session", "-s", help="Session ID"),
    ],
    exercise_id: Annotated[
        str,
        typer.Option("--exercise", "-e", help="Exercise ID"),
    ],
    sets: Annotated[
        Optional[str],
        typer.Option("--sets", help="Sets: reps@weight^height,... e.g. 8@135,6@145"),
    ] = None,
    reps: Annotated[
        Optional[int],
        typer.Option("--reps", "-r", help="Reps"),
    ] = None,
    weight: Annotated[
        Optional[float],
        typer.Option("--weight", "-w", help="Resistance weight"),
    ] = None,
    height: Annotated[
        Optional[float],
        typer.Option("--height", help="Resistance height (e.g. box height)"),
    ] = None,
    intensity: Annotated[
        Optional[float],
        typer.Option("--intensity", "-i", help="Perceived intensity"),
    ] = None,
    notes: Annotated[
        str,
        typer.Option("--notes", "-n", help="Set notes"),
    ] = "",
    store_path: StorePathOption = None,
) -> None:
    """
    Log one or more sets and check each against the exercise PR.

      liftlog log-set -s SESSION -e EXERCISE --sets "8@135,6@145"
      liftlog log-set -s SESSION -e EXERCISE --reps 10 --height 24
    """
    store = require_store(store_path)
    scoring = load_scoring_config()
    display = load_display_config()

    if sets is not None and any(v is not None for v in (reps, weight, height)):
        views.print_error("Use either --sets or --reps/--weight/--height, not both")
        raise typer.Exit(1)

    if sets is not None:
        try:
            parsed = parse_sets_string(sets)
        except ValidationError as e:
            views.print_error(f"Invalid sets format: {e}")
            raise typer.Exit(1)
    else:
        if reps is None and weight is None and height is None:
            views.print_error("Give --sets or at least one of --reps/--weight/--height")
            raise typer.Exit(1)
        parsed = [(reps, weight, height)]

    for r, w, h in parsed:
        try:
            entry = SetEntry(
                session_id=session_id,
                exercise_id=exercise_id,
                rep_count=r,
                resistance_weight=w,
                resistance_height=h,
                intensity=intensity,
                notes=notes,
            )
            recorded = store.record_set(entry, scoring)
        except StaleRecordError as e:
            views.print_error(str(e))
            views.print_info("The set was not saved. Run the command again to log it.")
            raise typer.Exit(1)
        except (ValueError, DocumentNotFoundError, ValidationError) as e:
            views.print_error(str(e))
            raise typer.Exit(1)

        views.print_success(
            f"Logged {views.format_set(recorded.set_entry, display.weight_unit)}"
        )
        views.print_pr_outcome(
            recorded.outcome,
            format_pr_message(recorded.set_entry, display.weight_unit),
        )
