"""
Counts the distinct calendar days on which the application became active.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date, datetime, tzinfo
from typing import Optional

from prompt_core.interfaces import ActivityStorage
from prompt_runtime import logger as app_logger
from prompt_shared.models import UserActivity

_LOGGER = app_logger.get_logger("activity")


def calendar_day(moment: datetime, tz: Optional[tzinfo] = None) -> date:
    """
    Bucket an instant into a calendar day.

    Aware datetimes are converted into `tz` (the local zone when None). Naive
    datetimes are taken to already be wall-clock time in that zone.
    """
    if moment.tzinfo is None:
        return moment.date()
    return moment.astimezone(tz).date()


class ActivityTracker:
    """
    Turns "application became active" ticks into a count of active days.

    The tracker owns no I/O of its own; every read and write goes through the
    injected ActivityStorage. Storage failures propagate to the caller and are
    never retried here.
    """

    def __init__(self, storage: ActivityStorage, *, tz: Optional[tzinfo] = None) -> None:
        self._storage = storage
        self._tz = tz
        self._lock = threading.RLock()

    @property
    def tz(self) -> Optional[tzinfo]:
        return self._tz

    def record_tick(self, now: datetime) -> UserActivity:
        """Count `now` as activity; at most one store write per call."""
        day = calendar_day(now, self._tz)
        with self._lock:
            current = self._storage.current_activity()
            if current.last_active_date == day:
                return current

            updated = replace(
                current,
                last_active_date=day,
                number_of_active_days=current.number_of_active_days + 1,
            )
            self._storage.save(updated)
            _LOGGER.debug(
                "Recorded active day {} (total {}).",
                day.isoformat(),
                updated.number_of_active_days,
            )
            return updated

    def current_activity(self) -> UserActivity:
        with self._lock:
            return self._storage.current_activity()

    def number_of_active_days(self) -> int:
        return self.current_activity().number_of_active_days

    def reset(self) -> None:
        with self._lock:
            self._storage.delete_activity()
        _LOGGER.info("User activity reset.")
