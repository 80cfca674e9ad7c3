"""Shared fakes for the prompt engine collaborators."""

import os
import tempfile

os.environ.setdefault("DEFAULT_BROWSER_PROMPT_LOG_DIR", tempfile.mkdtemp(prefix="dbp-test-logs-"))

from datetime import date, datetime, timedelta, timezone  # noqa: E402

import pytest  # noqa: E402

from prompt_core.activity_tracker import ActivityTracker  # noqa: E402
from prompt_core.coordinator import PromptCoordinator  # noqa: E402
from prompt_core.default_status import DefaultStatusCache  # noqa: E402
from prompt_core.memory_store import InMemoryPromptStore  # noqa: E402
from prompt_shared.errors import PromptStorageError  # noqa: E402
from prompt_shared.models import FeatureConfig, UserActivity, UserType  # noqa: E402

NOW = datetime(2025, 6, 27, 10, 30, tzinfo=timezone.utc)
TODAY = NOW.date()

BASE_CONFIG = FeatureConfig(
    enabled=True,
    min_active_days=3,
    min_install_age_days=0,
    reshow_interval_days=7,
    max_times_shown=2,
    eligible_user_types=frozenset({UserType.EXISTING}),
)


class FakeFeatureFlags:
    def __init__(self, config=BASE_CONFIG, enabled=None, error=None):
        self.config = config
        self.enabled = enabled
        self.error = error

    def is_enabled(self):
        if self.error:
            raise self.error
        return self.config.enabled if self.enabled is None else self.enabled

    def settings(self):
        if self.error:
            raise self.error
        return self.config


class FakeEnvironment:
    """User type, install date and onboarding answers in one object."""

    def __init__(self, user_type=UserType.EXISTING, installed_on=TODAY - timedelta(days=10), onboarded=True):
        self.user_type = user_type
        self.installed_on = installed_on
        self.onboarded = onboarded

    def current_user_type(self):
        return self.user_type

    def install_date(self):
        return self.installed_on

    def is_onboarding_completed(self):
        return self.onboarded


class FakeStatusProvider:
    def __init__(self, value=False, error=None):
        self.value = value
        self.error = error
        self.calls = 0

    def is_default(self):
        self.calls += 1
        if self.error:
            raise self.error
        return self.value


class RecordingPresenter:
    """Records presentations; answers immediately when `outcome` is set."""

    def __init__(self, outcome=None, error=None):
        self.outcome = outcome
        self.error = error
        self.presented = []
        self.callbacks = []

    def present(self, variant, on_outcome):
        self.presented.append(variant)
        self.callbacks.append(on_outcome)
        if self.error:
            raise self.error
        if self.outcome is not None:
            on_outcome(self.outcome)


class RecordingEventMapper:
    def __init__(self, error=None):
        self.events = []
        self.error = error

    def fire(self, event):
        self.events.append(event)
        if self.error:
            raise self.error


class RecordingNavigator:
    def __init__(self):
        self.opened = 0

    def open_default_browser_settings(self):
        self.opened += 1


class FailingHistoryStore(InMemoryPromptStore):
    def __init__(self):
        super().__init__()
        self.fail_writes = True

    def save_history(self, history):
        if self.fail_writes:
            raise PromptStorageError("disk full")
        super().save_history(history)


class FakeWinreg:
    """Dictionary-backed stand-in for the winreg module."""

    HKEY_CURRENT_USER = 1
    KEY_READ = 0x20019
    KEY_WRITE = 0x20006
    REG_SZ = 1
    REG_DWORD = 4

    def __init__(self):
        self.keys = {}

    def OpenKey(self, hive, subkey, reserved, access):
        if (hive, subkey) not in self.keys:
            raise FileNotFoundError(subkey)
        return (hive, subkey)

    def CreateKey(self, hive, subkey):
        self.keys.setdefault((hive, subkey), {})
        return (hive, subkey)

    def CloseKey(self, key):
        pass

    def QueryValueEx(self, key, name):
        values = self.keys[key]
        if name not in values:
            raise FileNotFoundError(name)
        return values[name]

    def SetValueEx(self, key, name, reserved, value_type, value):
        self.keys[key][name] = (value, value_type)

    def DeleteValue(self, key, name):
        if name not in self.keys[key]:
            raise FileNotFoundError(name)
        del self.keys[key][name]

    def DeleteKey(self, hive, subkey):
        if (hive, subkey) not in self.keys:
            raise FileNotFoundError(subkey)
        del self.keys[(hive, subkey)]


@pytest.fixture
def store():
    return InMemoryPromptStore()


@pytest.fixture
def fake_winreg():
    return FakeWinreg()


@pytest.fixture
def make_coordinator(store):
    """Build a coordinator around fakes; keyword overrides replace any collaborator."""
    caches = []

    def factory(**overrides):
        history_storage = overrides.pop("history_storage", store)
        tracker = overrides.pop("tracker", ActivityTracker(store, tz=timezone.utc))
        status = overrides.pop("status_provider", FakeStatusProvider(False))
        cache = DefaultStatusCache(status, sync_timeout=5.0)
        caches.append(cache)
        environment = overrides.pop("environment", FakeEnvironment())
        kwargs = dict(
            tracker=tracker,
            status_cache=cache,
            feature_flags=FakeFeatureFlags(),
            user_types=environment,
            install_dates=environment,
            onboarding=environment,
            history_storage=history_storage,
            presenter=RecordingPresenter(),
            event_mapper=RecordingEventMapper(),
            clock=lambda: NOW,
        )
        kwargs.update(overrides)
        return PromptCoordinator(**kwargs)

    yield factory
    for cache in caches:
        cache.close()


def active_days(store, count, last=TODAY - timedelta(days=1)):
    store.save(UserActivity(last_active_date=last, number_of_active_days=count))


def days_ago(days: int) -> date:
    return TODAY - timedelta(days=days)
