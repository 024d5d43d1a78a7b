"""
Pure helpers for assembling session views.

No side effects; callers load the documents and pass them in.
"""

from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

from .config import MUSCLE_GROUP_WINDOW_DAYS, RECENT_SETS_LIMIT, UNKNOWN_EXERCISE_NAME
from .models import Exercise, PerformanceContext, Session, SetEntry


def extract_exercise_ids(sets: Iterable[SetEntry]) -> list[str]:
    """
    Unique exercise ids referenced by a list of sets, in first-seen order.

    Args:
        sets: Sets to scan

    Returns:
        List of exercise ids without duplicates
    """
    return list(dict.fromkeys(s.exercise_id for s in sets))


def build_exercise_map(exercises: Iterable[Exercise]) -> dict[str, str]:
    """Map exercise id -> display name ("Name (variation)" or "Name")."""
    return {ex.id: ex.display_name for ex in exercises}


def _local_time(timestamp: str) -> datetime | None:
    """Parse an ISO timestamp into naive local time; None if unparseable."""
    try:
        ts = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    except ValueError:
        return None
    # Compare naive and aware timestamps on the same footing
    return ts if ts.tzinfo is None else ts.astimezone().replace(tzinfo=None)


def _timestamp_key(set_entry: SetEntry) -> datetime:
    """Sort key for sets; unparseable values sort oldest."""
    return _local_time(set_entry.timestamp) or datetime.min


def sort_sets_newest_first(sets: Iterable[SetEntry]) -> list[SetEntry]:
    """Sort sets by timestamp, newest first."""
    return sorted(sets, key=_timestamp_key, reverse=True)


def enrich_and_sort_sets(
    sets: Iterable[SetEntry],
    exercise_names: dict[str, str],
) -> list[tuple[SetEntry, str]]:
    """
    Pair each set with its exercise name and sort newest first.

    Args:
        sets: Sets to display
        exercise_names: id -> display name (see build_exercise_map)

    Returns:
        List of (set, exercise name) tuples sorted by timestamp descending
    """
    return [
        (s, exercise_names.get(s.exercise_id, UNKNOWN_EXERCISE_NAME))
        for s in sort_sets_newest_first(sets)
    ]


def recent_sets(
    sets: Iterable[SetEntry],
    exercise_id: str,
    limit: int | None = RECENT_SETS_LIMIT,
) -> list[SetEntry]:
    """
    Latest sets logged for one exercise.

    Args:
        sets: All sets to search
        exercise_id: Exercise to filter on
        limit: Maximum number of sets returned (None = all)

    Returns:
        Up to ``limit`` sets, newest first
    """
    matching = sort_sets_newest_first(s for s in sets if s.exercise_id == exercise_id)
    return matching if limit is None else matching[: max(0, limit)]


def performance_context_for(session: Session | None, exercise: Exercise) -> PerformanceContext:
    """Build the scoring context from the session body weight and exercise type."""
    body_weight = session.body_weight if session is not None else None
    return PerformanceContext(
        body_weight=float(body_weight or 0.0),
        is_bodyweight_exercise=exercise.is_bodyweight,
    )


def sessions_with_pr(sessions: Sequence[Session]) -> list[Session]:
    """Sessions in which at least one PR was hit."""
    return [s for s in sessions if s.pr_hit]


# =============================================================================
# Training volume
# =============================================================================


def muscle_group_volume(
    sets: Iterable[SetEntry],
    exercises: Iterable[Exercise],
    metric: str = "sets",
    category: str | None = None,
    start_date: date | None = None,
) -> dict[str, int]:
    """
    Total training volume per muscle group.

    Every set counts toward each muscle group of its exercise. Sets without
    a parseable timestamp, sets before ``start_date`` and sets of unknown
    exercises are skipped.

    Args:
        sets: Sets to tally
        exercises: Known exercises
        metric: "sets" counts sets, "reps" sums rep_count
        category: Only exercises in this category (case-insensitive)
        start_date: First local date included

    Returns:
        {muscle group: volume}, largest first

    Raises:
        ValueError: If metric is not "sets" or "reps"
    """
    if metric not in ("sets", "reps"):
        raise ValueError(f"Unknown volume metric: {metric}. Expected 'sets' or 'reps'")

    by_id = {ex.id: ex for ex in exercises}
    totals: dict[str, int] = {}

    for s in sets:
        when = _local_time(s.timestamp)
        if when is None:
            continue
        if start_date is not None and when.date() < start_date:
            continue
        ex = by_id.get(s.exercise_id)
        if ex is None:
            continue
        if category and ex.category.lower() != category.lower():
            continue

        value = 1 if metric == "sets" else max(0, s.rep_count or 0)
        for group in ex.muscle_groups:
            totals[group] = totals.get(group, 0) + value

    return dict(sorted(totals.items(), key=lambda kv: (-kv[1], kv[0])))


def exercises_for_muscle_group(exercises: Iterable[Exercise], group: str) -> list[Exercise]:
    """Exercises listing ``group`` as primary, secondary or third muscle group."""
    wanted = group.lower()
    return [ex for ex in exercises if wanted in (g.lower() for g in ex.muscle_groups)]


def daily_set_counts(
    sets: Iterable[SetEntry],
    exercise_ids: Iterable[str],
    days: int = MUSCLE_GROUP_WINDOW_DAYS,
    today: date | None = None,
) -> list[tuple[date, int]]:
    """
    Number of sets per local day over the last ``days`` days.

    Args:
        sets: Sets to tally
        exercise_ids: Only sets of these exercises count
        days: Window length, ending today
        today: Last day of the window (default: local today)

    Returns:
        (day, set count) pairs, oldest first, one per day in the window
    """
    today = today or date.today()
    buckets = {today - timedelta(days=i): 0 for i in range(max(1, days) - 1, -1, -1)}
    wanted = set(exercise_ids)

    for s in sets:
        if s.exercise_id not in wanted:
            continue
        when = _local_time(s.timestamp)
        if when is not None and when.date() in buckets:
            buckets[when.date()] += 1

    return list(buckets.items())
