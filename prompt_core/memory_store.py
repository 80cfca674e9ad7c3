"""
In-process storage for activity and prompt history snapshots.
"""

from __future__ import annotations

import threading

from prompt_shared.models import PromptHistory, UserActivity


class InMemoryPromptStore:
    """Implements ActivityStorage and PromptHistoryStorage over immutable snapshots."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._activity = UserActivity.empty()
        self._history = PromptHistory.empty()

    def save(self, activity: UserActivity) -> None:
        with self._lock:
            self._activity = activity

    def delete_activity(self) -> None:
        with self._lock:
            self._activity = UserActivity.empty()

    def current_activity(self) -> UserActivity:
        with self._lock:
            return self._activity

    def load_history(self) -> PromptHistory:
        with self._lock:
            return self._history

    def save_history(self, history: PromptHistory) -> None:
        with self._lock:
            self._history = history

    def delete_history(self) -> None:
        with self._lock:
            self._history = PromptHistory.empty()
