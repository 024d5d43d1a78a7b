"""Exercise commands: add-exercise, exercises, show-exercise, edit-exercise, reset-pr, delete-exercise."""

from dataclasses import replace
from typing import Annotated, Optional

import typer

from ...core.config import MUSCLE_GROUPS, SESSION_CATEGORIES
from ...core.engine.config_loader import load_display_config
from ...core.models import Exercise
from ...io.serializers import ValidationError
from ...io.workout_store import DocumentNotFoundError
from .. import views
from ..app import StorePathOption, app, require_store


def _check_muscle_group(value: str, option: str) -> None:
    if value and value not in MUSCLE_GROUPS:
        views.print_warning(
            f"{option} '{value}' is not a known muscle group ({', '.join(MUSCLE_GROUPS)})"
        )


def _check_exercise_fields(category: str, primary: str, secondary: str, third: str) -> None:
    if category and category not in SESSION_CATEGORIES:
        views.print_warning(
            f"Category '{category}' is not one of {', '.join(SESSION_CATEGORIES)}"
        )
    if third and not secondary:
        views.print_error("--third requires --secondary")
        raise typer.Exit(1)
    if secondary and not primary:
        views.print_error("--secondary requires --primary")
        raise typer.Exit(1)
    for value, option in ((primary, "--primary"), (secondary, "--secondary"), (third, "--third")):
        _check_muscle_group(value, option)


@app.command("add-exercise")
def add_exercise(
    name: Annotated[
        Optional[str],
        typer.Option("--name", "-n", help="Exercise name, e.g. Curls"),
    ] = None,
    variation: Annotated[
        str,
        typer.Option("--variation", "-v", help="Variation, e.g. Dumbbell"),
    ] = "",
    category: Annotated[
        str,
        typer.Option("--category", "-c", help="Category: Push | Pull | Legs"),
    ] = "",
    primary: Annotated[
        str,
        typer.Option("--primary", help="Primary muscle group"),
    ] = "",
    secondary: Annotated[
        str,
        typer.Option("--secondary", help="Secondary muscle group"),
    ] = "",
    third: Annotated[
        str,
        typer.Option("--third", help="Third muscle group"),
    ] = "",
    bodyweight: Annotated[
        bool,
        typer.Option("--bodyweight/--external", help="Body weight counts toward the resistance"),
    ] = False,
    store_path: StorePathOption = None,
) -> None:
    """
    Add an exercise with an empty personal record.

      liftlog add-exercise --name "Pull-Up" --category Pull --primary Lats --bodyweight
    """
    store = require_store(store_path)

    if name is None:
        name = views.console.input("Name: ").strip()
    if not name:
        views.print_error("Exercise name must not be empty")
        raise typer.Exit(1)

    _check_exercise_fields(category, primary, secondary, third)

    try:
        exercise = store.add_exercise(
            Exercise(
                name=name,
                variation=variation,
                category=category,
                primary_muscle_group=primary,
                secondary_muscle_group=secondary,
                third_muscle_group=third,
                is_bodyweight=bodyweight,
            )
        )
    except (ValueError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Added exercise {exercise.display_name} ({exercise.id})")


@app.command("exercises")
def list_exercises(
    category: Annotated[
        Optional[str],
        typer.Option("--category", "-c", help="Only show this category"),
    ] = None,
    store_path: StorePathOption = None,
) -> None:
    """List exercises with their personal records."""
    store = require_store(store_path)
    display = load_display_config()

    try:
        exercises = store.list_exercises(category)
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_exercises(exercises, display.weight_unit)


@app.command("show-exercise")
def show_exercise(
    exercise_id: Annotated[str, typer.Argument(help="Exercise ID")],
    store_path: StorePathOption = None,
) -> None:
    """Show an exercise, its PR and the latest sets logged for it."""
    store = require_store(store_path)
    display = load_display_config()

    try:
        exercise = store.get_exercise(exercise_id)
        recent = store.sets_for_exercise(exercise_id, limit=display.recent_sets)
    except (DocumentNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    pr_set = None
    if exercise.pr.pr_set_id:
        try:
            pr_set = store.get_set(exercise.pr.pr_set_id)
        except DocumentNotFoundError:
            views.print_warning("The set holding this PR is no longer in the log")

    views.print_exercise_detail(exercise, recent, display.weight_unit, pr_set)


@app.command("edit-exercise")
def edit_exercise(
    exercise_id: Annotated[str, typer.Argument(help="Exercise ID")],
    name: Annotated[
        Optional[str],
        typer.Option("--name", "-n", help="Exercise name"),
    ] = None,
    variation: Annotated[
        Optional[str],
        typer.Option("--variation", "-v", help="Variation"),
    ] = None,
    category: Annotated[
        Optional[str],
        typer.Option("--category", "-c", help="Category: Push | Pull | Legs"),
    ] = None,
    primary: Annotated[
        Optional[str],
        typer.Option("--primary", help="Primary muscle group"),
    ] = None,
    secondary: Annotated[
        Optional[str],
        typer.Option("--secondary", help="Secondary muscle group"),
    ] = None,
    third: Annotated[
        Optional[str],
        typer.Option("--third", help="Third muscle group"),
    ] = None,
    bodyweight: Annotated[
        Optional[bool],
        typer.Option("--bodyweight/--external", help="Body weight counts toward the resistance"),
    ] = None,
    store_path: StorePathOption = None,
) -> None:
    """
    Edit an exercise. Only the given fields change; the PR is kept.

      liftlog edit-exercise ID --variation Weighted --secondary Biceps
    """
    store = require_store(store_path)

    try:
        current = store.get_exercise(exercise_id)
    except (DocumentNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    changes: dict = {}
    for field_name, value in (
        ("name", name),
        ("variation", variation),
        ("category", category),
        ("primary_muscle_group", primary),
        ("secondary_muscle_group", secondary),
        ("third_muscle_group", third),
        ("is_bodyweight", bodyweight),
    ):
        if value is not None:
            changes[field_name] = value

    if not changes:
        views.print_info("Nothing to update.")
        return

    try:
        edited = replace(current, **changes)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    _check_exercise_fields(
        edited.category,
        edited.primary_muscle_group,
        edited.secondary_muscle_group,
        edited.third_muscle_group,
    )

    try:
        stored = store.update_exercise(edited)
    except (DocumentNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Updated exercise {stored.display_name}")


@app.command("reset-pr")
def reset_pr(
    exercise_id: Annotated[str, typer.Argument(help="Exercise ID")],
    store_path: StorePathOption = None,
) -> None:
    """Clear the stored personal record of an exercise."""
    store = require_store(store_path)

    try:
        store.reset_personal_record(exercise_id)
    except (DocumentNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"PR reset for {exercise_id}")


@app.command("delete-exercise")
def delete_exercise(
    exercise_id: Annotated[str, typer.Argument(help="Exercise ID")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation"),
    ] = False,
    store_path: StorePathOption = None,
) -> None:
    """Delete an exercise. Sets already logged for it are kept."""
    store = require_store(store_path)

    try:
        exercise = store.get_exercise(exercise_id)
    except (DocumentNotFoundError, ValidationError) as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not force and not views.confirm_action(f"Really delete {exercise.display_name}?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)

    store.delete_exercise(exercise_id)
    views.print_success(f"Deleted exercise {exercise.display_name}")
