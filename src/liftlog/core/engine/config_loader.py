"""
YAML → typed config loader.

Loads settings from liftlog.yaml (bundled with the package) and optionally
merges user overrides from ~/.liftlog/config.yaml.

Usage:
    from liftlog.core.engine.config_loader import load_scoring_config
    scoring = load_scoring_config()

Missing keys fall back to the Python defaults in config.py. A file that
cannot be parsed is ignored with a warning.
"""

from __future__ import annotations

import math
import os
import warnings
from pathlib import Path
from typing import Any

import yaml

from ..config import (
    MAX_WRITE_ATTEMPTS,
    RECENT_SETS_LIMIT,
    RESISTANCE_FLOOR_ENABLED,
    RESISTANCE_FLOOR_VALUE,
    STORE_DIR_NAME,
    WEIGHT_UNIT,
    DisplayConfig,
    ScoringConfig,
    StoreConfig,
)

# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; warn and return {} if it cannot be read."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh)
    except (OSError, yaml.YAMLError) as exc:
        warnings.warn(f"liftlog: ignoring config file {path} ({exc})", stacklevel=2)
        return {}
    return data if isinstance(data, dict) else {}


def _deep_merge(base: dict, override: dict) -> dict:
    """Recursively merge *override* into *base* (non-destructive to base)."""
    result = dict(base)
    for k, v in override.items():
        if isinstance(v, dict) and isinstance(result.get(k), dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    value = config.get(name)
    return value if isinstance(value, dict) else {}


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def get_bundled_yaml_path() -> Path | None:
    """Return the path to the bundled liftlog.yaml, or None if not found."""
    # config_loader.py lives at src/liftlog/core/engine/config_loader.py
    candidate = Path(__file__).parent.parent.parent / "liftlog.yaml"
    return candidate if candidate.exists() else None


def get_user_yaml_path() -> Path | None:
    """Return ~/.liftlog/config.yaml if it exists, else None."""
    home = Path(os.environ.get("HOME", "~")).expanduser()
    p = home / STORE_DIR_NAME / "config.yaml"
    return p if p.exists() else None


def load_config(user_path: Path | None = None) -> dict[str, Any]:
    """
    Load and merge configuration from YAML sources.

    Load order (later overrides earlier):
    1. Bundled src/liftlog/liftlog.yaml
    2. User override (``user_path`` or ~/.liftlog/config.yaml)

    Returns:
        Merged dict of config sections. Empty dict if no YAML available.
    """
    config: dict[str, Any] = {}

    bundled = get_bundled_yaml_path()
    if bundled is not None:
        config = _deep_merge(config, _load_yaml_file(bundled))

    user = user_path if user_path is not None else get_user_yaml_path()
    if user is not None and user.exists():
        config = _deep_merge(config, _load_yaml_file(user))

    return config


def _invalid(key: str, value: Any, default: Any, expected: str) -> Any:
    warnings.warn(
        f"liftlog: {key} must be {expected}, got {value!r}; using {default!r}",
        stacklevel=3,
    )
    return default


def _get_bool(section: dict[str, Any], name: str, key: str, default: bool) -> bool:
    value = section.get(name, default)
    if not isinstance(value, bool):
        return _invalid(key, value, default, "true or false")
    return value


def _get_number(
    section: dict[str, Any],
    name: str,
    key: str,
    default: float,
    minimum: float = 0.0,
) -> float:
    value = section.get(name, default)
    if isinstance(value, bool):
        return _invalid(key, value, default, "a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        return _invalid(key, value, default, "a number")
    if not math.isfinite(number) or number < minimum:
        return _invalid(key, value, default, f"a number >= {minimum:g}")
    return number


def _get_int(section: dict[str, Any], name: str, key: str, default: int, minimum: int) -> int:
    value = section.get(name, default)
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        return _invalid(key, value, default, f"a whole number >= {minimum}")
    try:
        number = int(value)
    except ValueError:
        return _invalid(key, value, default, f"a whole number >= {minimum}")
    if number < minimum:
        return _invalid(key, value, default, f"a whole number >= {minimum}")
    return number


def scoring_config_from_dict(config: dict[str, Any]) -> ScoringConfig:
    """Build ScoringConfig from the ``scoring`` section of a merged config."""
    section = _section(config, "scoring")
    return ScoringConfig(
        resistance_floor=_get_bool(
            section, "resistance_floor", "scoring.resistance_floor", RESISTANCE_FLOOR_ENABLED
        ),
        floor_value=_get_number(
            section, "floor_value", "scoring.floor_value", RESISTANCE_FLOOR_VALUE
        ),
    )


def store_config_from_dict(config: dict[str, Any]) -> StoreConfig:
    """Build StoreConfig from the ``store`` section of a merged config."""
    section = _section(config, "store")
    return StoreConfig(
        max_write_attempts=_get_int(
            section, "max_write_attempts", "store.max_write_attempts", MAX_WRITE_ATTEMPTS, 1
        ),
    )


def display_config_from_dict(config: dict[str, Any]) -> DisplayConfig:
    """Build DisplayConfig from the ``display`` section of a merged config."""
    section = _section(config, "display")
    unit = section.get("weight_unit", WEIGHT_UNIT)
    if not isinstance(unit, str):
        unit = _invalid("display.weight_unit", unit, WEIGHT_UNIT, "a string")
    return DisplayConfig(
        weight_unit=unit,
        recent_sets=_get_int(section, "recent_sets", "display.recent_sets", RECENT_SETS_LIMIT, 0),
    )



def load_scoring_config(user_path: Path | None = None) -> ScoringConfig:
    """Load the scoring options."""
    return scoring_config_from_dict(load_config(user_path))


def load_store_config(user_path: Path | None = None) -> StoreConfig:
    """Load the store options."""
    return store_config_from_dict(load_config(user_path))


def load_display_config(user_path: Path | None = None) -> DisplayConfig:
    """Load the display options."""
    return display_config_from_dict(load_config(user_path))
