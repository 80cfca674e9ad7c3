"""
Eligibility policy for the default browser prompt.

`decide` is a pure function: no I/O, no clock reads, no exceptions for any
well-formed DecisionInputs. Checks run in a fixed priority order and the first
failing one is reported as the suppression reason.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from prompt_shared.models import (
    FeatureConfig,
    PromptDecision,
    PromptHistory,
    SuppressionReason,
    UserActivity,
    UserType,
    Variant,
)


@dataclass(frozen=True, slots=True)
class DecisionInputs:
    config: FeatureConfig
    is_default_browser: bool
    user_type: UserType
    install_date: Optional[date]
    activity: UserActivity
    history: PromptHistory
    today: date


def days_between(start: date, end: date) -> int:
    """Whole calendar days from `start` to `end`; negative when `end` is earlier."""
    return (end - start).days


def decide(inputs: DecisionInputs) -> PromptDecision:
    config = inputs.config
    history = inputs.history

    if not config.enabled:
        return PromptDecision.none(SuppressionReason.FEATURE_DISABLED)

    if inputs.is_default_browser:
        return PromptDecision.none(SuppressionReason.ALREADY_DEFAULT)

    if inputs.user_type not in config.eligible_user_types:
        return PromptDecision.none(SuppressionReason.USER_TYPE_NOT_ELIGIBLE)

    if inputs.install_date is None:
        return PromptDecision.none(SuppressionReason.INSTALL_DATE_UNKNOWN)
    if days_between(inputs.install_date, inputs.today) < config.min_install_age_days:
        return PromptDecision.none(SuppressionReason.INSTALL_TOO_RECENT)

    if inputs.activity.number_of_active_days < config.min_active_days:
        return PromptDecision.none(SuppressionReason.NOT_ENOUGH_ACTIVE_DAYS)

    if history.permanently_dismissed:
        return PromptDecision.none(SuppressionReason.PERMANENTLY_DISMISSED)

    if history.times_shown >= config.max_times_shown:
        return PromptDecision.none(SuppressionReason.MAX_TIMES_SHOWN)

    if history.last_shown_date is not None:
        if days_between(history.last_shown_date, inputs.today) < config.reshow_interval_days:
            return PromptDecision.none(SuppressionReason.RESHOW_INTERVAL)

    if history.times_shown == 0:
        return PromptDecision.show(Variant.FIRST_PROMPT)
    return PromptDecision.show(Variant.REMINDER)


class PromptEligibilityDecider:
    """Object seam around `decide` so the coordinator can take a substitute."""

    def decide(self, inputs: DecisionInputs) -> PromptDecision:
        return decide(inputs)
