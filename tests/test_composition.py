"""Tests for the composition root."""

from datetime import timezone

import pytest

from conftest import (
    NOW,
    FakeEnvironment,
    FakeFeatureFlags,
    FakeStatusProvider,
    RecordingEventMapper,
    RecordingNavigator,
    RecordingPresenter,
    active_days,
)
from prompt_core.coordinator import CoordinatorState
from prompt_runtime.composition import build_engine
from prompt_shared.errors import PromptStorageError
from prompt_shared.models import PromptHistory, PromptOutcome, Variant


def _engine(store, **overrides):
    environment = FakeEnvironment()
    kwargs = dict(
        activity_storage=store,
        history_storage=store,
        feature_flags=FakeFeatureFlags(),
        user_types=environment,
        install_dates=environment,
        onboarding=environment,
        default_status=FakeStatusProvider(False),
        presenter=RecordingPresenter(PromptOutcome.ACCEPTED),
        event_mapper=RecordingEventMapper(),
        tz=timezone.utc,
        clock=lambda: NOW,
        sync_timeout=5.0,
    )
    kwargs.update(overrides)
    return build_engine(**kwargs)


def test_engine_runs_a_full_cycle(store):
    navigator = RecordingNavigator()
    engine = _engine(store, settings_navigator=navigator)
    active_days(store, 2)
    try:
        assert engine.coordinator.record_activity().number_of_active_days == 3

        decision = engine.coordinator.evaluate()

        assert decision.variant is Variant.FIRST_PROMPT
        assert engine.coordinator.state is CoordinatorState.IDLE
        assert store.load_history().times_shown == 1
        assert navigator.opened == 1
    finally:
        engine.close()


def test_reset_history_clears_permanent_dismissal(store):
    engine = _engine(store)
    store.save_history(PromptHistory(times_shown=1, permanently_dismissed=True))
    try:
        engine.reset_history()
        assert store.load_history() == PromptHistory.empty()
    finally:
        engine.close()


class _ReadOnlyHistory:
    def load_history(self):
        return PromptHistory.empty()

    def save_history(self, history):
        pass


def test_reset_history_requires_delete_support(store):
    engine = _engine(store, history_storage=_ReadOnlyHistory())
    try:
        with pytest.raises(PromptStorageError):
            engine.reset_history()
    finally:
        engine.close()
