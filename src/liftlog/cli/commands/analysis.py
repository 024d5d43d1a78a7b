"""
Analysis commands.

score and check-pr evaluate sets without touching the log; volume and
muscle-group total what has been logged.
"""

import json
from dataclasses import replace
from datetime import date, timedelta
from typing import Annotated, Optional

import typer

from ...core.config import MUSCLE_GROUP_WINDOW_DAYS, VOLUME_LOOKBACK_DAYS, VOLUME_METRICS
from ...core.engine.config_loader import load_scoring_config
from ...core.models import PerformanceContext, PersonalRecord, SetEntry
from ...core.records import compute_performance_score, evaluate_set, format_number
from ...core.sessions import daily_set_counts, exercises_for_muscle_group, muscle_group_volume
from ...io.serializers import ValidationError, validate_date
from .. import views
from ..app import StorePathOption, app, require_store


@app.command()
def score(
    reps: Annotated[int, typer.Option("--reps", "-r", help="Reps")] = 0,
    weight: Annotated[float, typer.Option("--weight", "-w", help="Resistance weight")] = 0.0,
    body_weight: Annotated[
        float,
        typer.Option("--body-weight", "-b", help="Body weight (used for bodyweight exercises)"),
    ] = 0.0,
    bodyweight: Annotated[
        bool,
        typer.Option("--bodyweight/--external", help="Body weight counts toward the resistance"),
    ] = False,
    floor: Annotated[
        Optional[bool],
        typer.Option("--floor/--no-floor", help="Override scoring.resistance_floor"),
    ] = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
) -> None:
    """
    Compute the performance score of a set.

      liftlog score --reps 5 --weight 10 --body-weight 150 --bodyweight
    """
    if reps < 0:
        views.print_error("Reps must be non-negative")
        raise typer.Exit(1)

    scoring = load_scoring_config()
    if floor is not None:
        scoring = replace(scoring, resistance_floor=floor)

    context = PerformanceContext(body_weight=body_weight, is_bodyweight_exercise=bodyweight)
    value = compute_performance_score(
        SetEntry(rep_count=reps, resistance_weight=weight), context, scoring
    )

    if json_out:
        print(json.dumps({"score": value, "resistance_floor": scoring.resistance_floor}))
        return

    views.console.print(f"Score: [bold]{format_number(value)}[/bold]")


@app.command("check-pr")
def check_pr(
    best_reps: Annotated[int, typer.Option("--best-reps", help="Current PR reps")] = 0,
    best_weight: Annotated[float, typer.Option("--best-weight", help="Current PR weight")] = 0.0,
    best_height: Annotated[float, typer.Option("--best-height", help="Current PR height")] = 0.0,
    reps: Annotated[int, typer.Option("--reps", "-r", help="Candidate reps")] = 0,
    weight: Annotated[float, typer.Option("--weight", "-w", help="Candidate weight")] = 0.0,
    height: Annotated[float, typer.Option("--height", help="Candidate height")] = 0.0,
    body_weight: Annotated[
        float,
        typer.Option("--body-weight", "-b", help="Body weight (used for bodyweight exercises)"),
    ] = 0.0,
    bodyweight: Annotated[
        bool,
        typer.Option("--bodyweight/--external", help="Body weight counts toward the resistance"),
    ] = False,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
) -> None:
    """
    Check whether a candidate set would beat a personal record.

      liftlog check-pr --best-reps 5 --best-weight 50 --reps 6 --weight 50
    """
    if reps < 0 or best_reps < 0:
        views.print_error("Reps must be non-negative")
        raise typer.Exit(1)

    best = PersonalRecord(reps=best_reps, resistance_weight=best_weight, resistance_height=best_height)
    candidate = SetEntry(rep_count=reps, resistance_weight=weight, resistance_height=height)
    context = PerformanceContext(body_weight=body_weight, is_bodyweight_exercise=bodyweight)
    outcome = evaluate_set(best, candidate, context, load_scoring_config())

    if json_out:
        print(json.dumps({
            "is_pr": outcome.is_pr,
            "score": outcome.score,
            "previous_score": outcome.previous_score,
        }))
        return

    if outcome.is_pr:
        views.print_success("New PR!")
    else:
        views.print_info("Not a PR.")
    views.console.print(
        f"Score {format_number(outcome.score)} vs PR score {format_number(outcome.previous_score)}"
    )


@app.command()
def volume(
    metric: Annotated[
        str,
        typer.Option("--metric", "-m", help="What to total: sets | reps"),
    ] = "sets",
    category: Annotated[
        Optional[str],
        typer.Option("--category", "-c", help="Only exercises in this category"),
    ] = None,
    since: Annotated[
        Optional[str],
        typer.Option("--since", "-s", help=f"Start date YYYY-MM-DD (default: {VOLUME_LOOKBACK_DAYS} days ago)"),
    ] = None,
    json_out: Annotated[
        bool,
        typer.Option("--json", "-j", help="Output as JSON for machine processing"),
    ] = False,
    store_path: StorePathOption = None,
) -> None:
    """
    Total training volume per muscle group.

      liftlog volume --metric reps --category Pull --since 2025-06-01
    """
    if metric not in VOLUME_METRICS:
        views.print_error(f"Unknown metric '{metric}'. Use one of: {', '.join(VOLUME_METRICS)}")
        raise typer.Exit(1)

    store = require_store(store_path)

    try:
        start = (
            date.fromisoformat(validate_date(since))
            if since is not None
            else date.today() - timedelta(days=VOLUME_LOOKBACK_DAYS)
        )
        totals = muscle_group_volume(
            store.load_sets(), store.list_exercises(), metric, category, start
        )
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if json_out:
        print(json.dumps({
            "metric": metric,
            "since": start.isoformat(),
            "category": category,
            "volume": totals,
        }))
        return

    views.print_volume(totals, metric)


@app.command("muscle-group")
def muscle_group(
    group: Annotated[str, typer.Argument(help="Muscle group, e.g. Lats")],
    store_path: StorePathOption = None,
) -> None:
    """
    Show the exercises that train a muscle group and its recent daily set counts.

      liftlog muscle-group Lats
    """
    store = require_store(store_path)

    try:
        exercises = exercises_for_muscle_group(store.list_exercises(), group)
        counts = daily_set_counts(
            store.load_sets(), [ex.id for ex in exercises], MUSCLE_GROUP_WINDOW_DAYS
        )
    except ValidationError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_muscle_group(group, exercises, counts)
