"""
Coordinator running one prompt evaluation cycle from trigger to recorded outcome.
"""

from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, replace
from datetime import date, datetime, timezone
from enum import Enum
from typing import Callable, Optional

from prompt_core.activity_tracker import ActivityTracker, calendar_day
from prompt_core.decider import DecisionInputs, PromptEligibilityDecider
from prompt_core.default_status import DefaultStatusCache
from prompt_core.events import PromptEvent, PromptEventName, event_for_outcome
from prompt_core.interfaces import (
    EventMapper,
    FeatureFlagProvider,
    InstallDateProvider,
    OnboardingCompletionProvider,
    Presenter,
    PromptHistoryStorage,
    SettingsNavigator,
    UserTypeProvider,
)
from prompt_runtime import logger as app_logger
from prompt_shared.errors import InvalidTransitionError
from prompt_shared.models import (
    FeatureConfig,
    PromptDecision,
    PromptHistory,
    PromptOutcome,
    SuppressionReason,
    UserActivity,
    Variant,
)

_LOGGER = app_logger.get_logger("coordinator")


class CoordinatorState(Enum):
    IDLE = "idle"
    EVALUATING = "evaluating"
    PRESENTING = "presenting"
    RECORDING = "recording"


@dataclass(frozen=True, slots=True)
class PendingPresentation:
    presentation_id: int
    variant: Variant


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PromptCoordinator:
    """
    Gathers inputs, asks the decider, presents the prompt and records the result.

    Prompt history is only written once a presentation reports a definite
    outcome. An abandoned presentation leaves history untouched so the next
    trigger may present again.
    """

    def __init__(
        self,
        *,
        tracker: ActivityTracker,
        status_cache: DefaultStatusCache,
        feature_flags: FeatureFlagProvider,
        user_types: UserTypeProvider,
        install_dates: InstallDateProvider,
        onboarding: OnboardingCompletionProvider,
        history_storage: PromptHistoryStorage,
        presenter: Presenter,
        event_mapper: EventMapper,
        decider: Optional[PromptEligibilityDecider] = None,
        settings_navigator: Optional[SettingsNavigator] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._tracker = tracker
        self._status_cache = status_cache
        self._feature_flags = feature_flags
        self._user_types = user_types
        self._install_dates = install_dates
        self._onboarding = onboarding
        self._history_storage = history_storage
        self._presenter = presenter
        self._event_mapper = event_mapper
        self._decider = decider or PromptEligibilityDecider()
        self._settings_navigator = settings_navigator
        self._clock = clock

        self._lock = threading.RLock()
        self._state = CoordinatorState.IDLE
        self._pending: Optional[PendingPresentation] = None
        self._ids = itertools.count(1)
        self._last_config: Optional[FeatureConfig] = None

    @property
    def state(self) -> CoordinatorState:
        with self._lock:
            return self._state

    @property
    def pending_variant(self) -> Optional[Variant]:
        with self._lock:
            return self._pending.variant if self._pending else None

    def record_activity(self, now: Optional[datetime] = None) -> UserActivity:
        """Entry point for application lifecycle ticks."""
        return self._tracker.record_tick(now or self._clock())

    def current_decision(self, now: Optional[datetime] = None) -> PromptDecision:
        """Compute the decision for the current inputs without presenting anything."""
        return self._decider.decide(self._gather_inputs(now or self._clock()))

    def evaluate(self, now: Optional[datetime] = None) -> PromptDecision:
        """
        Run one evaluation cycle.

        Returns the decision. When it is a Show, the presenter has been asked
        to display the variant and the coordinator waits in PRESENTING for
        `handle_outcome` or `abandon_presentation`.
        """
        moment = now or self._clock()
        with self._lock:
            if self._state is not CoordinatorState.IDLE:
                _LOGGER.debug("Evaluation skipped; coordinator is {}.", self._state.value)
                return PromptDecision.none(SuppressionReason.PRESENTATION_IN_PROGRESS)

            if not self._onboarding.is_onboarding_completed():
                _LOGGER.debug("Onboarding not completed; not evaluating prompt.")
                return PromptDecision.none(SuppressionReason.ONBOARDING_INCOMPLETE)

            self._state = CoordinatorState.EVALUATING
            try:
                inputs = self._gather_inputs(moment)
                decision = self._decider.decide(inputs)
            except Exception:
                self._state = CoordinatorState.IDLE
                raise

            if not decision.should_show:
                _LOGGER.debug("No prompt to show: {}", decision.describe())
                self._state = CoordinatorState.IDLE
                return decision

            pending = PendingPresentation(presentation_id=next(self._ids), variant=decision.variant)
            self._pending = pending
            self._state = CoordinatorState.PRESENTING
            times_shown = inputs.history.times_shown

        _LOGGER.info("Presenting default browser prompt ({}).", pending.variant.value)
        self._fire(PromptEvent(name=PromptEventName.SHOWN, variant=pending.variant, times_shown=times_shown + 1))

        def on_outcome(outcome: PromptOutcome) -> Optional[PromptHistory]:
            return self._complete(pending.presentation_id, outcome)

        try:
            self._presenter.present(pending.variant, on_outcome)
        except Exception:
            # A synchronous outcome may already have cleared the pending presentation.
            if self._abandon(pending.presentation_id):
                _LOGGER.exception("Presenter failed for {}.", pending.variant.value)
            raise
        return decision

    def handle_outcome(self, outcome: PromptOutcome, now: Optional[datetime] = None) -> PromptHistory:
        """Record the user's response to the prompt currently on screen."""
        with self._lock:
            if self._state is not CoordinatorState.PRESENTING or self._pending is None:
                raise InvalidTransitionError(
                    f"Cannot record outcome {outcome.value} while {self._state.value}."
                )
            return self._record(self._pending, outcome, now)

    def abandon_presentation(self) -> bool:
        """
        Drop the presentation in progress without touching prompt history.

        Called when the application is suspended or terminated before the
        user responded. Returns True when a presentation was abandoned.
        """
        with self._lock:
            if self._pending is None:
                return False
            return self._abandon(self._pending.presentation_id)

    def _complete(self, presentation_id: int, outcome: PromptOutcome) -> Optional[PromptHistory]:
        with self._lock:
            pending = self._pending
            if pending is None or pending.presentation_id != presentation_id:
                _LOGGER.warning("Ignoring outcome {} for a presentation that is no longer active.", outcome.value)
                return None
            return self._record(pending, outcome, None)

    def _abandon(self, presentation_id: int) -> bool:
        with self._lock:
            if self._pending is None or self._pending.presentation_id != presentation_id:
                return False
            _LOGGER.info("Prompt presentation ({}) abandoned; history unchanged.", self._pending.variant.value)
            self._pending = None
            self._state = CoordinatorState.IDLE
            return True

    def _record(self, pending: PendingPresentation, outcome: PromptOutcome, now: Optional[datetime]) -> PromptHistory:
        self._state = CoordinatorState.RECORDING
        try:
            current = self._history_storage.load_history()
            updated = replace(
                current,
                times_shown=current.times_shown + 1,
                last_shown_date=self._today(now or self._clock()),
                last_variant=pending.variant,
                permanently_dismissed=(
                    current.permanently_dismissed or outcome is PromptOutcome.DISMISSED_PERMANENTLY
                ),
            )
            self._history_storage.save_history(updated)
        except Exception:
            _LOGGER.exception("Failed to record prompt outcome {}; history left unchanged.", outcome.value)
            self._pending = None
            self._state = CoordinatorState.IDLE
            raise

        _LOGGER.info(
            "Recorded prompt outcome {} for {} (shown {} times).",
            outcome.value,
            pending.variant.value,
            updated.times_shown,
        )
        self._fire(event_for_outcome(outcome, pending.variant, updated.times_shown))
        if outcome is PromptOutcome.ACCEPTED:
            self._open_settings()

        self._pending = None
        self._state = CoordinatorState.IDLE
        return updated

    def _gather_inputs(self, moment: datetime) -> DecisionInputs:
        return DecisionInputs(
            config=self._read_config(),
            is_default_browser=self._status_cache.is_default_browser(),
            user_type=self._user_types.current_user_type(),
            install_date=self._install_dates.install_date(),
            activity=self._tracker.current_activity(),
            history=self._history_storage.load_history(),
            today=self._today(moment),
        )

    def _read_config(self) -> FeatureConfig:
        try:
            config = self._feature_flags.settings()
            if not self._feature_flags.is_enabled():
                config = replace(config, enabled=False)
        except Exception as exc:
            fallback = self._last_config or FeatureConfig(enabled=False)
            _LOGGER.warning("Feature flag read failed; using last known config: {}", exc)
            return fallback
        self._last_config = config
        return config

    def _today(self, moment: datetime) -> date:
        return calendar_day(moment, self._tracker.tz)

    def _fire(self, event: PromptEvent) -> None:
        try:
            self._event_mapper.fire(event)
        except Exception:
            _LOGGER.exception("Failed to fire prompt event {}.", event.name.value)

    def _open_settings(self) -> None:
        if self._settings_navigator is None:
            return
        try:
            self._settings_navigator.open_default_browser_settings()
        except Exception:
            _LOGGER.exception("Failed to open default browser settings.")
