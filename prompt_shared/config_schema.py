"""
Feature configuration validation shared by the settings providers and the CLI.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, FrozenSet, Mapping

from .errors import ConfigValidationError
from .models import FeatureConfig, UserType, parse_flag

_ALIASES = {
    "enabled": ("enabled", "isEnabled"),
    "min_active_days": ("min_active_days", "minActiveDays"),
    "min_install_age_days": ("min_install_age_days", "minInstallAgeDays"),
    "reshow_interval_days": ("reshow_interval_days", "reshowIntervalDays"),
    "max_times_shown": ("max_times_shown", "maxTimesShown"),
    "eligible_user_types": ("eligible_user_types", "eligibleUserTypes"),
}


def load_and_validate_config(path: Path) -> FeatureConfig:
    """
    Load a feature settings JSON file and validate it.

    The file uses the same shape as the remote settings payload; see
    parse_feature_config for the accepted keys.
    """
    try:
        contents = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise ConfigValidationError(f"Config file not found: {path}") from exc
    except OSError as exc:
        raise ConfigValidationError(f"Unable to read config: {path}") from exc

    try:
        raw_config = json.loads(contents)
    except json.JSONDecodeError as exc:
        raise ConfigValidationError(f"Config is not valid JSON: {exc}") from exc

    if not isinstance(raw_config, dict):
        raise ConfigValidationError("Config root must be a JSON object.")

    return parse_feature_config(raw_config)


def parse_feature_config(raw: Mapping[str, Any]) -> FeatureConfig:
    """
    Build a FeatureConfig from a settings mapping.

    Keys may be given in snake_case or camelCase. Every numeric threshold is
    required; `enabled` defaults to False and `eligible_user_types` to empty.
    """
    values = _normalise_keys(raw)

    return FeatureConfig(
        enabled=_require_bool(values.get("enabled"), field="enabled"),
        min_active_days=_require_count(values.get("min_active_days"), field="min_active_days"),
        min_install_age_days=_require_count(values.get("min_install_age_days"), field="min_install_age_days"),
        reshow_interval_days=_require_count(values.get("reshow_interval_days"), field="reshow_interval_days"),
        max_times_shown=_require_count(values.get("max_times_shown"), field="max_times_shown"),
        eligible_user_types=parse_user_types(values.get("eligible_user_types")),
    )


def parse_user_types(value: Any) -> FrozenSet[UserType]:
    """Accept a list of user type names or a comma separated string."""
    if value is None:
        return frozenset()
    if isinstance(value, str):
        items = [part for part in (p.strip() for p in value.split(",")) if part]
    elif isinstance(value, (list, tuple, set, frozenset)):
        items = list(value)
    else:
        raise ConfigValidationError("eligible_user_types must be a list of user types.")

    result = set()
    for item in items:
        if isinstance(item, UserType):
            result.add(item)
            continue
        if not isinstance(item, str):
            raise ConfigValidationError("eligible_user_types entries must be strings.")
        try:
            result.add(UserType(item.strip().lower()))
        except ValueError as exc:
            allowed = ", ".join(t.value for t in UserType)
            raise ConfigValidationError(
                f"Unknown user type '{item}'. Expected one of: {allowed}."
            ) from exc
    return frozenset(result)


def _normalise_keys(raw: Mapping[str, Any]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for canonical, aliases in _ALIASES.items():
        for alias in aliases:
            if alias in raw:
                values[canonical] = raw[alias]
                break
    return values


def _require_bool(value: Any, *, field: str) -> bool:
    try:
        return parse_flag(value)
    except ValueError as exc:
        raise ConfigValidationError(f"{field} must be a boolean.") from exc


def _require_count(value: Any, *, field: str) -> int:
    if value is None:
        raise ConfigValidationError(f"{field} is required.")
    if isinstance(value, bool):
        raise ConfigValidationError(f"{field} must be a non-negative integer.")
    try:
        count = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigValidationError(f"{field} must be a non-negative integer.") from exc
    if count < 0:
        raise ConfigValidationError(f"{field} cannot be negative.")
    return count
