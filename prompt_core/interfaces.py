"""
Collaborator contracts consumed or driven by the prompt engine.
"""

from __future__ import annotations

from datetime import date
from typing import Callable, Optional, Protocol

from prompt_core.events import PromptEvent
from prompt_shared.models import (
    FeatureConfig,
    PromptHistory,
    PromptOutcome,
    UserActivity,
    UserType,
    Variant,
)


OutcomeCallback = Callable[[PromptOutcome], object]


class ActivityStorage(Protocol):
    def save(self, activity: UserActivity) -> None: ...

    def delete_activity(self) -> None: ...

    def current_activity(self) -> UserActivity: ...


class PromptHistoryStorage(Protocol):
    def load_history(self) -> PromptHistory: ...

    def save_history(self, history: PromptHistory) -> None: ...


class FeatureFlagProvider(Protocol):
    def is_enabled(self) -> bool: ...

    def settings(self) -> FeatureConfig: ...


class UserTypeProvider(Protocol):
    def current_user_type(self) -> UserType: ...


class InstallDateProvider(Protocol):
    def install_date(self) -> Optional[date]: ...


class DefaultBrowserStatusProvider(Protocol):
    """OS query; may be slow and may raise."""

    def is_default(self) -> bool: ...


class OnboardingCompletionProvider(Protocol):
    def is_onboarding_completed(self) -> bool: ...


class Presenter(Protocol):
    """
    Shows the prompt UI for a variant.

    Exactly one outcome is reported through `on_outcome`, either before
    `present` returns or later from the UI. If the app goes away first the
    coordinator is told via `abandon_presentation` instead.
    """

    def present(self, variant: Variant, on_outcome: OutcomeCallback) -> None: ...


class EventMapper(Protocol):
    def fire(self, event: PromptEvent) -> None: ...


class SettingsNavigator(Protocol):
    def open_default_browser_settings(self) -> None: ...
