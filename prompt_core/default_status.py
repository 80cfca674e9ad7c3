"""
Cached answer to "is this browser the OS default?".
"""

from __future__ import annotations

import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional

from prompt_core.interfaces import DefaultBrowserStatusProvider
from prompt_runtime import logger as app_logger

_LOGGER = app_logger.get_logger("default-status")

DEFAULT_SYNC_TIMEOUT_SECONDS = 0.05


class DefaultStatusCache:
    """
    Insulates the decision path from a slow or failing OS status query.

    `is_default_browser` never blocks longer than `sync_timeout`. A refresh
    that fails keeps the previous value, so an outage never turns a known
    "is default" into "is not default". Until the first successful query the
    cache reports `assume_default_when_unknown`.
    """

    def __init__(
        self,
        provider: DefaultBrowserStatusProvider,
        *,
        sync_timeout: float = DEFAULT_SYNC_TIMEOUT_SECONDS,
        assume_default_when_unknown: bool = True,
    ) -> None:
        self._provider = provider
        self._sync_timeout = max(0.0, sync_timeout)
        self._fallback = assume_default_when_unknown
        self._cached: Optional[bool] = None
        self._lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="default-status")
        self._in_flight: Optional[Future] = None

    @property
    def cached_value(self) -> Optional[bool]:
        """Last successfully queried status, or None if never known."""
        with self._lock:
            return self._cached

    def is_default_browser(self) -> bool:
        future = self._schedule_refresh()
        if future is not None:
            try:
                future.result(timeout=self._sync_timeout)
            except FutureTimeoutError:
                _LOGGER.debug("Default browser status refresh still running; using cached value.")
        return self._current_value()

    def refresh(self) -> bool:
        """Query the provider synchronously and return the resulting cached value."""
        self._query_provider()
        return self._current_value()

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    def _schedule_refresh(self) -> Optional[Future]:
        with self._lock:
            if self._in_flight is not None and not self._in_flight.done():
                return self._in_flight
            try:
                self._in_flight = self._executor.submit(self._query_provider)
            except RuntimeError:
                _LOGGER.warning("Default status cache is closed; returning cached value.")
                return None
            return self._in_flight

    def _query_provider(self) -> None:
        try:
            status = bool(self._provider.is_default())
        except Exception as exc:
            _LOGGER.warning("Default browser status query failed; keeping cached value: {}", exc)
            return
        with self._lock:
            previous = self._cached
            self._cached = status
        if previous != status:
            _LOGGER.info("Default browser status changed: {} -> {}", previous, status)

    def _current_value(self) -> bool:
        with self._lock:
            return self._fallback if self._cached is None else self._cached
