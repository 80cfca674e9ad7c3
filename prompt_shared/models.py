"""
Value types exchanged between the prompt engine, its collaborators and storage.

Every persisted snapshot is immutable. Changing state means building a new
value with ``dataclasses.replace`` and handing it back to the owning store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Mapping, Optional

from .errors import ConfigValidationError


class UserType(Enum):
    NEW = "new"
    EXISTING = "existing"
    RETURNING = "returning"


class Variant(Enum):
    FIRST_PROMPT = "first_prompt"
    REMINDER = "reminder"


class PromptOutcome(Enum):
    ACCEPTED = "accepted"
    DISMISSED = "dismissed"
    DISMISSED_PERMANENTLY = "dismissed_permanently"


class SuppressionReason(Enum):
    """First failing eligibility check, in evaluation order."""

    FEATURE_DISABLED = "feature_disabled"
    ALREADY_DEFAULT = "already_default"
    USER_TYPE_NOT_ELIGIBLE = "user_type_not_eligible"
    INSTALL_DATE_UNKNOWN = "install_date_unknown"
    INSTALL_TOO_RECENT = "install_too_recent"
    NOT_ENOUGH_ACTIVE_DAYS = "not_enough_active_days"
    PERMANENTLY_DISMISSED = "permanently_dismissed"
    MAX_TIMES_SHOWN = "max_times_shown"
    RESHOW_INTERVAL = "reshow_interval"
    ONBOARDING_INCOMPLETE = "onboarding_incomplete"
    PRESENTATION_IN_PROGRESS = "presentation_in_progress"


@dataclass(frozen=True, slots=True)
class UserActivity:
    last_active_date: Optional[date] = None
    number_of_active_days: int = 0

    def __post_init__(self) -> None:
        if self.number_of_active_days < 0:
            raise ValueError("number_of_active_days cannot be negative.")

    @classmethod
    def empty(cls) -> "UserActivity":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.last_active_date is None and self.number_of_active_days == 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "last_active_date": _format_date(self.last_active_date),
            "number_of_active_days": self.number_of_active_days,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserActivity":
        return cls(
            last_active_date=_parse_date(data.get("last_active_date")),
            number_of_active_days=_parse_count(data.get("number_of_active_days")),
        )


@dataclass(frozen=True, slots=True)
class PromptHistory:
    times_shown: int = 0
    last_shown_date: Optional[date] = None
    permanently_dismissed: bool = False
    last_variant: Optional[Variant] = None

    def __post_init__(self) -> None:
        if self.times_shown < 0:
            raise ValueError("times_shown cannot be negative.")

    @classmethod
    def empty(cls) -> "PromptHistory":
        return cls()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "times_shown": self.times_shown,
            "last_shown_date": _format_date(self.last_shown_date),
            "permanently_dismissed": self.permanently_dismissed,
            "last_variant": self.last_variant.value if self.last_variant else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PromptHistory":
        raw_variant = data.get("last_variant")
        return cls(
            times_shown=_parse_count(data.get("times_shown")),
            last_shown_date=_parse_date(data.get("last_shown_date")),
            permanently_dismissed=parse_flag(data.get("permanently_dismissed")),
            last_variant=Variant(raw_variant) if raw_variant else None,
        )

    @classmethod
    def from_stored(cls, data: Mapping[str, Any], problems: Optional[List[str]] = None) -> "PromptHistory":
        """
        Decode persisted history one field at a time.

        `times_shown` and `permanently_dismissed` gate suppression, so a bad
        value in either raises ValueError and the caller must not treat the
        user as never prompted. An unreadable `last_shown_date` or
        `last_variant` is dropped and described in `problems`.
        """
        times_shown = _parse_count(data.get("times_shown"))
        permanently_dismissed = parse_flag(data.get("permanently_dismissed"))

        try:
            last_shown_date = _parse_date(data.get("last_shown_date"))
        except ValueError as exc:
            last_shown_date = None
            _note(problems, f"dropped last_shown_date: {exc}")

        raw_variant = data.get("last_variant")
        try:
            last_variant = Variant(raw_variant) if raw_variant else None
        except ValueError:
            last_variant = None
            _note(problems, f"dropped unknown last_variant {raw_variant!r}")

        return cls(
            times_shown=times_shown,
            last_shown_date=last_shown_date,
            permanently_dismissed=permanently_dismissed,
            last_variant=last_variant,
        )


@dataclass(frozen=True, slots=True)
class FeatureConfig:
    """
    Tunable eligibility thresholds delivered by the feature flag collaborator.

    Construction validates every threshold so a malformed remote payload is
    reported as ConfigValidationError instead of reaching the decider.
    """

    enabled: bool = False
    min_active_days: int = 0
    min_install_age_days: int = 0
    reshow_interval_days: int = 0
    max_times_shown: int = 0
    eligible_user_types: FrozenSet[UserType] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        for name in ("min_active_days", "min_install_age_days", "reshow_interval_days", "max_times_shown"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigValidationError(f"{name} must be an integer.")
            if value < 0:
                raise ConfigValidationError(f"{name} cannot be negative.")
        if not isinstance(self.eligible_user_types, frozenset):
            object.__setattr__(self, "eligible_user_types", frozenset(self.eligible_user_types))
        for user_type in self.eligible_user_types:
            if not isinstance(user_type, UserType):
                raise ConfigValidationError(f"Unknown user type {user_type!r}.")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "min_active_days": self.min_active_days,
            "min_install_age_days": self.min_install_age_days,
            "reshow_interval_days": self.reshow_interval_days,
            "max_times_shown": self.max_times_shown,
            "eligible_user_types": sorted(t.value for t in self.eligible_user_types),
        }


@dataclass(frozen=True, slots=True)
class PromptDecision:
    variant: Optional[Variant] = None
    reason: Optional[SuppressionReason] = None

    @classmethod
    def none(cls, reason: SuppressionReason) -> "PromptDecision":
        return cls(variant=None, reason=reason)

    @classmethod
    def show(cls, variant: Variant) -> "PromptDecision":
        return cls(variant=variant, reason=None)

    @property
    def should_show(self) -> bool:
        return self.variant is not None

    def describe(self) -> str:
        if self.variant is not None:
            return f"show {self.variant.value}"
        reason = self.reason.value if self.reason else "unknown"
        return f"suppress ({reason})"


def _format_date(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_date(value: Any) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Expected an ISO-8601 date string, got {type(value).__name__}.")
    return date.fromisoformat(value.strip()[:10])


def _parse_count(value: Any) -> int:
    if value is None:
        return 0
    if isinstance(value, bool):
        raise ValueError("Counters must be integers, not booleans.")
    count = int(value)
    if count < 0:
        raise ValueError("Counters cannot be negative.")
    return count


def parse_flag(value: Any) -> bool:
    """Strict boolean coercion; accepts bools, 0/1 and "true"/"false"."""
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in {"true", "false"}:
        return value.strip().lower() == "true"
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    raise ValueError(f"Expected a boolean, got {value!r}.")


def _note(problems: Optional[List[str]], message: str) -> None:
    if problems is not None:
        problems.append(message)
