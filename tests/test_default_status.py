"""Tests for DefaultStatusCache."""

import threading
import time

from conftest import FakeStatusProvider
from prompt_core.default_status import DefaultStatusCache


class BlockingProvider:
    def __init__(self, value, blocking=True):
        self.value = value
        self.blocking = blocking
        self.release = threading.Event()

    def is_default(self):
        if self.blocking:
            self.release.wait(timeout=5)
        return self.value


def _wait_for(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


def test_returns_provider_value_when_fast():
    cache = DefaultStatusCache(FakeStatusProvider(False), sync_timeout=5.0)
    try:
        assert cache.is_default_browser() is False
        assert cache.cached_value is False
    finally:
        cache.close()


def test_unknown_status_assumes_default_until_known():
    provider = BlockingProvider(False)
    cache = DefaultStatusCache(provider, sync_timeout=0.01)
    try:
        assert cache.is_default_browser() is True
        provider.release.set()
        assert _wait_for(lambda: cache.cached_value is False)
        assert cache.is_default_browser() is False
    finally:
        provider.release.set()
        cache.close()


def test_slow_refresh_returns_cached_value_immediately():
    provider = BlockingProvider(True, blocking=False)
    cache = DefaultStatusCache(provider, sync_timeout=0.01)
    try:
        assert cache.refresh() is True

        provider.value = False
        provider.blocking = True
        started = time.monotonic()
        assert cache.is_default_browser() is True
        assert time.monotonic() - started < 1.0
    finally:
        provider.release.set()
        cache.close()


def test_failure_keeps_previous_value():
    provider = FakeStatusProvider(True)
    cache = DefaultStatusCache(provider, sync_timeout=5.0)
    try:
        assert cache.refresh() is True
        provider.error = OSError("LaunchServices unavailable")
        assert cache.refresh() is True
        assert cache.is_default_browser() is True
    finally:
        cache.close()


def test_failure_before_first_success_uses_fallback():
    cache = DefaultStatusCache(
        FakeStatusProvider(error=OSError("boom")),
        sync_timeout=5.0,
        assume_default_when_unknown=False,
    )
    try:
        assert cache.is_default_browser() is False
        assert cache.cached_value is None
    finally:
        cache.close()


def test_closed_cache_still_answers():
    cache = DefaultStatusCache(FakeStatusProvider(False), sync_timeout=5.0)
    cache.refresh()
    cache.close()
    assert cache.is_default_browser() is False
