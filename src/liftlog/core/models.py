"""
Data models for liftlog.

Dataclasses for the documents the log keeps (exercises, sessions, sets)
and for the inputs of the personal-record evaluator. Numeric set metrics are
optional because older documents and half-filled forms leave them empty;
the evaluator reads a missing metric as 0.
"""

from dataclasses import dataclass, field


@dataclass
class SetEntry:
    """
    A single logged set.

    rep_count, resistance_weight and resistance_height may be None when the
    user left them blank.
    """

    rep_count: int | None = None
    resistance_weight: float | None = None
    resistance_height: float | None = None
    exercise_id: str = ""
    session_id: str = ""
    intensity: float | None = None
    notes: str = ""
    timestamp: str = ""  # ISO-8601
    id: str = ""

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.rep_count is not None and self.rep_count < 0:
            raise ValueError("rep_count must be non-negative")


@dataclass(frozen=True)
class PerformanceContext:
    """
    Context needed to score a set.

    For a bodyweight exercise the body weight is added to the resistance
    weight when scoring.
    """

    body_weight: float = 0.0
    is_bodyweight_exercise: bool = False


@dataclass
class PersonalRecord:
    """
    Stored best performance for an exercise.

    All metrics None (or 0) means no record yet.
    """

    reps: int | None = None
    resistance_weight: float | None = None
    resistance_height: float | None = None
    pr_set_id: str | None = None
    last_updated: str | None = None


@dataclass
class Exercise:
    """
    An exercise definition with its current personal record.

    ``revision`` is bumped on every PR write and lets the store detect a
    best that changed between read and write.
    """

    name: str
    variation: str = ""
    category: str = ""
    primary_muscle_group: str = ""
    secondary_muscle_group: str = ""
    third_muscle_group: str = ""
    is_bodyweight: bool = False
    pr: PersonalRecord = field(default_factory=PersonalRecord)
    created_at: str = ""
    revision: int = 0
    id: str = ""

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("Exercise name must not be empty")
        if self.revision < 0:
            raise ValueError("revision must be non-negative")

    @property
    def display_name(self) -> str:
        """Name with the variation in parentheses when there is one."""
        if self.variation:
            return f"{self.name} ({self.variation})"
        return self.name

    @property
    def muscle_groups(self) -> list[str]:
        """Non-empty muscle groups in primary, secondary, third order."""
        groups = [
            self.primary_muscle_group,
            self.secondary_muscle_group,
            self.third_muscle_group,
        ]
        return [g for g in groups if g]


@dataclass
class Session:
    """
    A training session grouping the sets logged on one day.
    """

    date: str = ""  # YYYY-MM-DD
    body_weight: float | None = None
    category: str = ""
    session_notes: str = ""
    set_ids: list[str] = field(default_factory=list)
    pr_hit: bool = False
    id: str = ""

    def __post_init__(self) -> None:
        """Validate session data."""
        if self.date:
            self._validate_date(self.date)
        if self.body_weight is not None and self.body_weight < 0:
            raise ValueError("body_weight must be non-negative")

    @staticmethod
    def _validate_date(date_str: str) -> None:
        """Validate date string is ISO format YYYY-MM-DD."""
        import re

        if not re.match(r"^\d{4}-\d{2}-\d{2}$", date_str):
            raise ValueError(f"Invalid date format: {date_str}. Expected YYYY-MM-DD")

        from datetime import datetime

        try:
            datetime.strptime(date_str, "%Y-%m-%d")
        except ValueError as e:
            raise ValueError(f"Invalid date: {date_str}") from e
