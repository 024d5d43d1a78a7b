"""
Configuration constants for the workout log.

All adjustable parameters are centralized here; the YAML config
(liftlog.yaml, ~/.liftlog/config.yaml) can override the tunable ones.
"""

from dataclasses import dataclass
from typing import Final

# =============================================================================
# PERFORMANCE SCORING
# =============================================================================

# When enabled, an effective resistance of 0 on a non-bodyweight exercise is
# scored as FLOOR_VALUE so purely rep-based exercises still rank by reps.
RESISTANCE_FLOOR_ENABLED: Final[bool] = False
RESISTANCE_FLOOR_VALUE: Final[float] = 1.0

# =============================================================================
# PERSISTENCE
# =============================================================================

MAX_WRITE_ATTEMPTS: Final[int] = 3  # read-decide-write retries on a stale PR
STORE_DIR_NAME: Final[str] = ".liftlog"
MAX_SET_REPEAT: Final[int] = 50  # upper bound for the "xN" suffix in a sets string

# =============================================================================
# DISPLAY
# =============================================================================

WEIGHT_UNIT: Final[str] = "lbs"
RECENT_SETS_LIMIT: Final[int] = 5
UNKNOWN_EXERCISE_NAME: Final[str] = "Unknown Exercise"

# =============================================================================
# TRAINING VOLUME
# =============================================================================

VOLUME_METRICS: Final[tuple[str, ...]] = ("sets", "reps")
VOLUME_LOOKBACK_DAYS: Final[int] = 30  # default start of the volume window
MUSCLE_GROUP_WINDOW_DAYS: Final[int] = 7  # daily set counts on the muscle-group view

# =============================================================================
# EXERCISE CATALOG
# =============================================================================

SESSION_CATEGORIES: Final[tuple[str, ...]] = ("Push", "Pull", "Legs")

MUSCLE_GROUPS: Final[tuple[str, ...]] = (
    "Chest",
    "Back",
    "Shoulders",
    "Biceps",
    "Triceps",
    "Quads",
    "Hamstrings",
    "Glutes",
    "Calves",
    "Core",
    "Forearms",
    "Lats",
    "Traps",
    "Obliques",
)


@dataclass(frozen=True)
class ScoringConfig:
    """Scoring options applied by compute_performance_score."""

    resistance_floor: bool = RESISTANCE_FLOOR_ENABLED
    floor_value: float = RESISTANCE_FLOOR_VALUE


@dataclass(frozen=True)
class StoreConfig:
    """Options for the local document store."""

    max_write_attempts: int = MAX_WRITE_ATTEMPTS


@dataclass(frozen=True)
class DisplayConfig:
    """Options for CLI output."""

    weight_unit: str = WEIGHT_UNIT
    recent_sets: int = RECENT_SETS_LIMIT


DEFAULT_SCORING: Final[ScoringConfig] = ScoringConfig()
