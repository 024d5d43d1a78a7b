"""
Personal-record evaluation.

Pure functions that score a set and decide whether it beats an exercise's
stored best. Nothing here performs I/O or keeps state; the store performs the
read-decide-write around these calls.

Score:
    R_eff = BW + w   (bodyweight exercise)
    R_eff = w        (otherwise; optionally floored when 0)
    score = reps * R_eff

PR rule (three-metric dominance over reps, weight, height):
    first record  : best is all zero and candidate has any positive metric
    improvement   : one metric strictly higher, the other two not lower
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from .config import DEFAULT_SCORING, WEIGHT_UNIT, ScoringConfig
from .models import PerformanceContext, PersonalRecord, SetEntry


@dataclass(frozen=True)
class PrOutcome:
    """Result of evaluating one candidate set against the stored best."""

    is_pr: bool
    score: float
    previous_score: float
    record: PersonalRecord | None  # record to store when is_pr, else None


def _value(x: float | int | None) -> float:
    """Missing metric reads as 0."""
    return float(x) if x is not None else 0.0


def _set_metrics(set_entry: SetEntry) -> tuple[float, float, float]:
    return (
        _value(set_entry.rep_count),
        _value(set_entry.resistance_weight),
        _value(set_entry.resistance_height),
    )


def _record_metrics(record: PersonalRecord | None) -> tuple[float, float, float]:
    if record is None:
        return (0.0, 0.0, 0.0)
    return (
        _value(record.reps),
        _value(record.resistance_weight),
        _value(record.resistance_height),
    )


def effective_resistance(
    resistance_weight: float | None,
    context: PerformanceContext,
    scoring: ScoringConfig | None = None,
) -> float:
    """
    Calculate the resistance a set is scored against.

    Bodyweight exercises add the lifter's body weight to any external
    weight. With the resistance floor enabled, a non-bodyweight exercise
    with no resistance is scored at the floor value instead of 0.

    Args:
        resistance_weight: External weight (None reads as 0)
        context: Body weight and bodyweight-exercise flag
        scoring: Scoring options (default: DEFAULT_SCORING)

    Returns:
        Effective resistance, never negative
    """
    scoring = scoring or DEFAULT_SCORING
    weight = _value(resistance_weight)

    if context.is_bodyweight_exercise:
        resistance = _value(context.body_weight) + weight
    else:
        resistance = weight
        if scoring.resistance_floor and resistance == 0:
            resistance = scoring.floor_value

    return max(0.0, resistance)


def _score(
    reps: float | int | None,
    resistance_weight: float | None,
    context: PerformanceContext,
    scoring: ScoringConfig | None,
) -> float:
    n = max(0.0, _value(reps))
    if n == 0:
        return 0.0
    return n * effective_resistance(resistance_weight, context, scoring)


def compute_performance_score(
    set_entry: SetEntry,
    context: PerformanceContext,
    scoring: ScoringConfig | None = None,
) -> float:
    """
    Calculate a comparable performance score for one set.

    score = reps * R_eff

    A set with no reps scores 0 regardless of resistance.

    Args:
        set_entry: Set to score
        context: Body weight and bodyweight-exercise flag
        scoring: Scoring options (default: DEFAULT_SCORING)

    Returns:
        Non-negative score
    """
    return _score(set_entry.rep_count, set_entry.resistance_weight, context, scoring)


def has_personal_record(record: PersonalRecord | None) -> bool:
    """True if the record holds any non-zero metric."""
    return any(m != 0 for m in _record_metrics(record))


def is_new_personal_record(
    current_best: PersonalRecord | None,
    candidate: SetEntry,
    context: PerformanceContext,
) -> bool:
    """
    Decide whether a candidate set is a new personal record.

    A set is a PR when there is no record yet and it has any positive
    metric, or when it strictly improves at least one of reps, weight and
    height without regressing the other two. Ties are not PRs.

    The decision does not depend on context; it is accepted so callers
    pass the same arguments they score with.

    Args:
        current_best: Stored best (None or all-zero = no record yet)
        candidate: Newly logged set
        context: Body weight and bodyweight-exercise flag

    Returns:
        True if the candidate is a new PR
    """
    best = _record_metrics(current_best)
    new = _set_metrics(candidate)

    if not has_personal_record(current_best):
        return any(m > 0 for m in new)

    for i in range(3):
        others_hold = all(new[j] >= best[j] for j in range(3) if j != i)
        if new[i] > best[i] and others_hold:
            return True
    return False


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def personal_record_from_set(set_entry: SetEntry, when: str | None = None) -> PersonalRecord:
    """
    Build the record to store after a set is judged a PR.

    Args:
        set_entry: The PR set
        when: ISO timestamp for last_updated (default: now, UTC)

    Returns:
        PersonalRecord referencing the set
    """
    return PersonalRecord(
        reps=set_entry.rep_count,
        resistance_weight=set_entry.resistance_weight,
        resistance_height=set_entry.resistance_height,
        pr_set_id=set_entry.id or None,
        last_updated=when or _now_iso(),
    )


def empty_personal_record(when: str | None = None) -> PersonalRecord:
    """Record with no metrics, used for new exercises and resets."""
    return PersonalRecord(last_updated=when or _now_iso())


def evaluate_set(
    current_best: PersonalRecord | None,
    candidate: SetEntry,
    context: PerformanceContext,
    scoring: ScoringConfig | None = None,
    when: str | None = None,
) -> PrOutcome:
    """
    Score a candidate set and decide PR status in one call.

    The previous score treats the stored best as a set performed in the
    same context.

    Args:
        current_best: Stored best for the exercise
        candidate: Newly logged set
        context: Body weight and bodyweight-exercise flag
        scoring: Scoring options
        when: Timestamp for the new record (default: now)

    Returns:
        PrOutcome with the record to store when the set is a PR
    """
    is_pr = is_new_personal_record(current_best, candidate, context)
    return PrOutcome(
        is_pr=is_pr,
        score=compute_performance_score(candidate, context, scoring),
        previous_score=_score(
            current_best.reps if current_best else None,
            current_best.resistance_weight if current_best else None,
            context,
            scoring,
        ),
        record=personal_record_from_set(candidate, when) if is_pr else None,
    )


def format_number(x: float | int | None) -> str:
    """Render a metric without a trailing .0 (None renders as 0)."""
    v = _value(x)
    return str(int(v)) if v == int(v) else f"{v:g}"


def format_pr_message(set_entry: SetEntry, weight_unit: str = WEIGHT_UNIT) -> str:
    """
    Message shown when a set is a new PR.

    e.g. "New PR! 5 reps, 50lbs, 0 height"
    """
    return (
        f"New PR! {format_number(set_entry.rep_count)} reps, "
        f"{format_number(set_entry.resistance_weight)}{weight_unit}, "
        f"{format_number(set_entry.resistance_height)} height"
    )
