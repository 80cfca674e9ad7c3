"""
JSON file persistence for activity and prompt history.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional

from prompt_runtime import logger as app_logger
from prompt_shared.errors import PromptStorageError
from prompt_shared.models import PromptHistory, UserActivity

_LOGGER = app_logger.get_logger("storage")

ACTIVITY_FILE = "activity.json"
HISTORY_FILE = "history.json"


class JsonFilePromptStore:
    """
    Keeps one JSON document per entity inside `state_dir`.

    Writes go to a temporary file that is then moved over the target, so a
    crash mid-write leaves the previous snapshot intact. A malformed activity
    file reads as empty; a history file whose counters cannot be
    read raises PromptStorageError instead of reading as never prompted.
    """

    def __init__(self, state_dir: Path) -> None:
        self.state_dir = Path(state_dir)
        self._lock = threading.Lock()

    @property
    def activity_path(self) -> Path:
        return self.state_dir / ACTIVITY_FILE

    @property
    def history_path(self) -> Path:
        return self.state_dir / HISTORY_FILE

    def save(self, activity: UserActivity) -> None:
        self._write(self.activity_path, activity.to_dict())

    def delete_activity(self) -> None:
        self._delete(self.activity_path)

    def current_activity(self) -> UserActivity:
        path = self.activity_path
        try:
            raw = self._load_json(path)
            return UserActivity.from_dict(raw) if raw is not None else UserActivity.empty()
        except (ValueError, TypeError) as exc:
            _LOGGER.warning("Ignoring malformed activity file {}: {}", path, exc)
            return UserActivity.empty()

    def load_history(self) -> PromptHistory:
        path = self.history_path
        problems: List[str] = []
        try:
            raw = self._load_json(path)
            if raw is None:
                return PromptHistory.empty()
            history = PromptHistory.from_stored(raw, problems)
        except (ValueError, TypeError) as exc:
            raise PromptStorageError(f"Prompt history in {path} is unreadable: {exc}") from exc
        for problem in problems:
            _LOGGER.warning("Prompt history in {}: {}", path, problem)
        return history

    def save_history(self, history: PromptHistory) -> None:
        self._write(self.history_path, history.to_dict())

    def delete_history(self) -> None:
        self._delete(self.history_path)

    def _load_json(self, path: Path) -> Optional[Dict[str, Any]]:
        """Return the parsed document, or None when the file does not exist."""
        with self._lock:
            try:
                contents = path.read_text(encoding="utf-8")
            except FileNotFoundError:
                return None
            except OSError as exc:
                raise PromptStorageError(f"Unable to read {path}: {exc}") from exc

        raw = json.loads(contents)
        if not isinstance(raw, dict):
            raise ValueError("root must be a JSON object")
        return raw

    def _write(self, path: Path, payload: Dict[str, Any]) -> None:
        with self._lock:
            tmp_name: Optional[str] = None
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=path.name, suffix=".tmp")
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(payload, handle, sort_keys=True)
                os.replace(tmp_name, path)
            except OSError as exc:
                if tmp_name is not None:
                    Path(tmp_name).unlink(missing_ok=True)
                raise PromptStorageError(f"Unable to write {path}: {exc}") from exc

    def _delete(self, path: Path) -> None:
        with self._lock:
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                raise PromptStorageError(f"Unable to delete {path}: {exc}") from exc
