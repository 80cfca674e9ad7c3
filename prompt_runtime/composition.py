"""
Composition root wiring the prompt engine together.

The application builds one PromptEngine at start-up and hands the pieces to
whatever needs them; nothing in the engine is reachable through globals.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import tzinfo
from typing import Optional

from prompt_core.activity_tracker import ActivityTracker
from prompt_core.coordinator import PromptCoordinator, utcnow
from prompt_core.decider import PromptEligibilityDecider
from prompt_core.default_status import DEFAULT_SYNC_TIMEOUT_SECONDS, DefaultStatusCache
from prompt_core.events import LoggingEventMapper
from prompt_core.interfaces import (
    ActivityStorage,
    DefaultBrowserStatusProvider,
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
from prompt_shared.errors import PromptStorageError

_LOGGER = app_logger.get_logger("composition")


@dataclass
class PromptEngine:
    tracker: ActivityTracker
    status_cache: DefaultStatusCache
    coordinator: PromptCoordinator
    history_storage: PromptHistoryStorage

    def reset_history(self) -> None:
        """Administrative reset of prompt history; the engine itself never clears it."""
        delete = getattr(self.history_storage, "delete_history", None)
        if delete is None:
            raise PromptStorageError(
                f"{type(self.history_storage).__name__} does not support deleting history."
            )
        delete()
        _LOGGER.info("Prompt history reset.")

    def close(self) -> None:
        self.status_cache.close()


def build_engine(
    *,
    activity_storage: ActivityStorage,
    history_storage: PromptHistoryStorage,
    feature_flags: FeatureFlagProvider,
    user_types: UserTypeProvider,
    install_dates: InstallDateProvider,
    onboarding: OnboardingCompletionProvider,
    default_status: DefaultBrowserStatusProvider,
    presenter: Presenter,
    event_mapper: Optional[EventMapper] = None,
    settings_navigator: Optional[SettingsNavigator] = None,
    tz: Optional[tzinfo] = None,
    clock=utcnow,
    sync_timeout: float = DEFAULT_SYNC_TIMEOUT_SECONDS,
) -> PromptEngine:
    tracker = ActivityTracker(activity_storage, tz=tz)
    status_cache = DefaultStatusCache(default_status, sync_timeout=sync_timeout)
    coordinator = PromptCoordinator(
        tracker=tracker,
        status_cache=status_cache,
        feature_flags=feature_flags,
        user_types=user_types,
        install_dates=install_dates,
        onboarding=onboarding,
        history_storage=history_storage,
        presenter=presenter,
        event_mapper=event_mapper or LoggingEventMapper(),
        decider=PromptEligibilityDecider(),
        settings_navigator=settings_navigator,
        clock=clock,
    )
    _LOGGER.debug("Prompt engine assembled (tz={}).", tz)
    return PromptEngine(
        tracker=tracker,
        status_cache=status_cache,
        coordinator=coordinator,
        history_storage=history_storage,
    )
