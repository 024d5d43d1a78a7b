"""
JSON serialization for workout documents.

Handles conversion between dataclasses and JSON-compatible dicts. Document
keys follow the layout already used by stored workout data (e.g.
``rep_count`` next to ``resistanceWeight``), so existing exports load
unchanged.
"""

import json
import math
import re
from datetime import datetime
from typing import Any

from ..core.config import MAX_SET_REPEAT
from ..core.models import Exercise, PersonalRecord, Session, SetEntry


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def validate_date(date_str: str) -> str:
    """
    Validate and normalize date string to ISO format.

    Args:
        date_str: Date string to validate

    Returns:
        Normalized YYYY-MM-DD string

    Raises:
        ValidationError: If date format is invalid
    """
    if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
        raise ValidationError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")

    try:
        datetime.strptime(date_str, "%Y-%m-%d")
    except ValueError as e:
        raise ValidationError(f"Invalid date: {date_str}") from e

    return date_str


def validate_non_negative(value: int | float | None, name: str) -> int | float | None:
    """
    Validate that an optional value is non-negative.

    Args:
        value: Value to validate (None passes)
        name: Name for error message

    Returns:
        The value if valid

    Raises:
        ValidationError: If value is negative
    """
    if value is not None and value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def _optional_number(data: dict[str, Any], key: str, name: str) -> float | None:
    raw = data.get(key)
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be a number, got {raw!r}") from e
    if not math.isfinite(value):
        raise ValidationError(f"{name} must be finite, got {raw!r}")
    return value


def _optional_int(data: dict[str, Any], key: str, name: str) -> int | None:
    value = _optional_number(data, key, name)
    if value is None:
        return None
    if value != int(value):
        raise ValidationError(f"{name} must be a whole number, got {value}")
    return int(value)


# ---------------------------------------------------------------------------
# Sets
# ---------------------------------------------------------------------------


def set_entry_to_dict(set_entry: SetEntry) -> dict[str, Any]:
    """
    Convert SetEntry to a set document.

    Args:
        set_entry: SetEntry to convert

    Returns:
        Dict representation
    """
    return {
        "id": set_entry.id,
        "sessionId": set_entry.session_id,
        "exerciseId": set_entry.exercise_id,
        "rep_count": set_entry.rep_count,
        "intensity": set_entry.intensity,
        "resistanceWeight": set_entry.resistance_weight,
        "resistanceHeight": set_entry.resistance_height,
        "set_notes": set_entry.notes,
        "timestamp": set_entry.timestamp,
    }


def dict_to_set_entry(data: dict[str, Any]) -> SetEntry:
    """
    Convert a set document to SetEntry.

    Blank numeric fields (None or "") stay None.

    Args:
        data: Dict representation

    Returns:
        SetEntry instance

    Raises:
        ValidationError: If data is invalid
    """
    rep_count = _optional_int(data, "rep_count", "rep_count")
    validate_non_negative(rep_count, "rep_count")

    return SetEntry(
        id=str(data.get("id") or ""),
        session_id=str(data.get("sessionId") or ""),
        exercise_id=str(data.get("exerciseId") or ""),
        rep_count=rep_count,
        intensity=_optional_number(data, "intensity", "intensity"),
        resistance_weight=_optional_number(data, "resistanceWeight", "resistanceWeight"),
        resistance_height=_optional_number(data, "resistanceHeight", "resistanceHeight"),
        notes=str(data.get("set_notes") or ""),
        timestamp=str(data.get("timestamp") or ""),
    )


# ---------------------------------------------------------------------------
# Personal records and exercises
# ---------------------------------------------------------------------------


def personal_record_to_dict(record: PersonalRecord) -> dict[str, Any]:
    """Convert PersonalRecord to the ``pr`` sub-document of an exercise."""
    d: dict[str, Any] = {
        "reps": record.reps,
        "resistanceWeight": record.resistance_weight,
        "resistanceHeight": record.resistance_height,
        "lastUpdated": record.last_updated,
    }
    if record.pr_set_id:
        d["pr_set_id"] = record.pr_set_id
    return d


def dict_to_personal_record(data: dict[str, Any] | None) -> PersonalRecord:
    """
    Convert a ``pr`` sub-document to PersonalRecord.

    A missing sub-document means no record yet.
    """
    if not data:
        return PersonalRecord()
    return PersonalRecord(
        reps=_optional_int(data, "reps", "pr.reps"),
        resistance_weight=_optional_number(data, "resistanceWeight", "pr.resistanceWeight"),
        resistance_height=_optional_number(data, "resistanceHeight", "pr.resistanceHeight"),
        pr_set_id=data.get("pr_set_id") or None,
        last_updated=data.get("lastUpdated") or None,
    )


def exercise_to_dict(exercise: Exercise) -> dict[str, Any]:
    """
    Convert Exercise to an exercise document.

    Args:
        exercise: Exercise to convert

    Returns:
        Dict representation
    """
    return {
        "id": exercise.id,
        "name": exercise.name,
        "variation": exercise.variation,
        "category": exercise.category,
        "primaryMuscleGroup": exercise.primary_muscle_group,
        "secondaryMuscleGroup": exercise.secondary_muscle_group,
        "thirdMuscleGroup": exercise.third_muscle_group,
        "isBodyweight": exercise.is_bodyweight,
        "pr": personal_record_to_dict(exercise.pr),
        "createdAt": exercise.created_at,
        "revision": exercise.revision,
    }


def dict_to_exercise(data: dict[str, Any]) -> Exercise:
    """
    Convert an exercise document to Exercise.

    Args:
        data: Dict representation

    Returns:
        Exercise instance

    Raises:
        ValidationError: If data is invalid
    """
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"Invalid exercise name: {name!r}. Must be a non-empty string.")

    return Exercise(
        id=str(data.get("id") or ""),
        name=name,
        variation=str(data.get("variation") or ""),
        category=str(data.get("category") or ""),
        primary_muscle_group=str(data.get("primaryMuscleGroup") or ""),
        secondary_muscle_group=str(data.get("secondaryMuscleGroup") or ""),
        third_muscle_group=str(data.get("thirdMuscleGroup") or ""),
        is_bodyweight=bool(data.get("isBodyweight", False)),
        pr=dict_to_personal_record(data.get("pr")),
        created_at=str(data.get("createdAt") or ""),
        revision=int(data.get("revision", 0)),
    )


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def session_to_dict(session: Session) -> dict[str, Any]:
    """
    Convert Session to a session document.

    Args:
        session: Session to convert

    Returns:
        Dict representation
    """
    return {
        "id": session.id,
        "date": session.date,
        "body_weight": session.body_weight,
        "category": session.category,
        "session_notes": session.session_notes,
        "set_ids": list(session.set_ids),
        "pr_hit": session.pr_hit,
    }


def dict_to_session(data: dict[str, Any]) -> Session:
    """
    Convert a session document to Session, filling defaults for missing fields.

    Args:
        data: Dict representation

    Returns:
        Session instance

    Raises:
        ValidationError: If data is invalid
    """
    date = str(data.get("date") or "")
    if date:
        validate_date(date)

    body_weight = _optional_number(data, "body_weight", "body_weight")
    validate_non_negative(body_weight, "body_weight")

    return Session(
        id=str(data.get("id") or ""),
        date=date,
        body_weight=body_weight,
        category=str(data.get("category") or ""),
        session_notes=str(data.get("session_notes") or ""),
        set_ids=[str(s) for s in data.get("set_ids") or []],
        pr_hit=bool(data.get("pr_hit", False)),
    )


def set_to_json_line(set_entry: SetEntry) -> str:
    """
    Serialize a set to a single JSON line.

    Args:
        set_entry: SetEntry to serialize

    Returns:
        JSON string (single line, no trailing newline)
    """
    return json.dumps(set_entry_to_dict(set_entry), separators=(",", ":"))


def json_line_to_set(line: str) -> SetEntry:
    """
    Deserialize a JSON line to a SetEntry.

    Raises:
        ValidationError: If JSON is invalid or data validation fails
    """
    try:
        data = json.loads(line.strip())
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError(f"Expected a JSON object, got {type(data).__name__}")
    return dict_to_set_entry(data)


# ---------------------------------------------------------------------------
# Set strings
# ---------------------------------------------------------------------------

_NUMBER = r"\d+(?:\.\d+)?"


def parse_sets_string(sets_str: str) -> list[tuple[int, float | None, float | None]]:
    """
    Parse a sets string.

    Per-set formats (comma-separated):
        reps@weight^height   e.g. "5@50^12"   canonical
        reps@weight          e.g. "8@135"     height omitted
        reps^height          e.g. "10^24"     box jumps, no weight
        reps weight height   e.g. "5 50 12"   space-separated
        reps weight          e.g. "8 135"
        reps                 e.g. "12"        bare int

    A compact repeat suffix ``xN`` logs the same set N times,
    e.g. "5@135x3".

    Args:
        sets_str: Sets string to parse

    Returns:
        List of (reps, weight, height) tuples; omitted metrics are None

    Raises:
        ValidationError: If format is invalid
    """
    if not sets_str or not sets_str.strip():
        raise ValidationError("Sets string cannot be empty")

    sets: list[tuple[int, float | None, float | None]] = []
    parts = [p.strip() for p in sets_str.split(",") if p.strip()]

    for part in parts:
        repeat = 1
        m = re.fullmatch(r"(.+?)\s*[xX×]\s*(\d+)", part)
        if m:
            part = m.group(1).strip()
            repeat = int(m.group(2))
            if not 1 <= repeat <= MAX_SET_REPEAT:
                raise ValidationError(
                    f"Repeat count must be between 1 and {MAX_SET_REPEAT}: '{m.group(0)}'"
                )

        match_canon = re.fullmatch(
            rf"(\d+)(?:\s*@\s*\+?({_NUMBER}))?(?:\s*\^\s*({_NUMBER}))?", part
        )
        match_sp = re.fullmatch(rf"(\d+)\s+({_NUMBER})(?:\s+({_NUMBER}))?", part)

        match = match_canon or match_sp
        if match is None:
            raise ValidationError(
                f"Invalid set format: '{part}'.\n"
                f"Use: reps@weight^height (e.g. 5@50^12), reps@weight (e.g. 8@135),\n"
                f"     or space-separated: reps weight height (e.g. 5 50 12)."
            )

        reps = int(match.group(1))
        weight = float(match.group(2)) if match.group(2) is not None else None
        height = float(match.group(3)) if match.group(3) is not None else None

        for _ in range(repeat):
            sets.append((reps, weight, height))

    if not sets:
        raise ValidationError("No valid sets found in sets string")

    return sets
