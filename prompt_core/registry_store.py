"""
Persistence layer for prompt engine state using the Windows registry.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import date
from typing import Iterator, List, Optional

from prompt_runtime import logger as app_logger
from prompt_shared.errors import PromptStorageError
from prompt_shared.models import PromptHistory, UserActivity, Variant

try:
    import winreg
except ModuleNotFoundError:  # pragma: no cover - non-Windows environments
    winreg = None

_LOGGER = app_logger.get_logger("storage")

ACTIVITY_KEY = "Activity"
HISTORY_KEY = "History"


class RegistryPromptStore:
    """Thin wrapper over winreg storing activity and history under HKCU."""

    base_subkey: str = r"Software\DefaultBrowserPrompt\State"

    def __init__(self, *, hive: Optional[int] = None, winreg_module=winreg) -> None:
        if winreg_module is None:
            raise PromptStorageError("The Windows registry is not available on this platform.")
        self._winreg = winreg_module
        self.hive = hive if hive is not None else winreg_module.HKEY_CURRENT_USER

    def current_activity(self) -> UserActivity:
        try:
            with self._open_key(ACTIVITY_KEY, writable=False) as key:
                raw_date = self._query_optional(key, "LastActiveDate")
                raw_days = self._query_optional(key, "ActiveDays")
        except FileNotFoundError:
            return UserActivity.empty()
        except OSError as exc:
            raise PromptStorageError(f"Unable to read activity from registry: {exc}") from exc

        try:
            return UserActivity.from_dict({"last_active_date": raw_date, "number_of_active_days": raw_days})
        except (TypeError, ValueError) as exc:
            _LOGGER.warning("Ignoring malformed activity in registry: {}", exc)
            return UserActivity.empty()

    def save(self, activity: UserActivity) -> None:
        try:
            with self._open_key(ACTIVITY_KEY, writable=True) as key:
                self._set_optional_date(key, "LastActiveDate", activity.last_active_date)
                self._winreg.SetValueEx(
                    key, "ActiveDays", 0, self._winreg.REG_DWORD, activity.number_of_active_days
                )
        except OSError as exc:
            raise PromptStorageError(f"Unable to write activity to registry: {exc}") from exc

    def delete_activity(self) -> None:
        self._delete_key(ACTIVITY_KEY)

    def load_history(self) -> PromptHistory:
        try:
            with self._open_key(HISTORY_KEY, writable=False) as key:
                raw = {
                    "times_shown": self._query_optional(key, "TimesShown"),
                    "last_shown_date": self._query_optional(key, "LastShownDate"),
                    "permanently_dismissed": self._query_optional(key, "PermanentlyDismissed"),
                    "last_variant": self._query_optional(key, "LastVariant"),
                }
        except FileNotFoundError:
            return PromptHistory.empty()
        except OSError as exc:
            raise PromptStorageError(f"Unable to read prompt history from registry: {exc}") from exc

        problems: List[str] = []
        try:
            history = PromptHistory.from_stored(raw, problems)
        except (TypeError, ValueError) as exc:
            raise PromptStorageError(f"Prompt history in registry is unreadable: {exc}") from exc
        for problem in problems:
            _LOGGER.warning("Prompt history in registry: {}", problem)
        return history

    def save_history(self, history: PromptHistory) -> None:
        try:
            with self._open_key(HISTORY_KEY, writable=True) as key:
                self._winreg.SetValueEx(key, "TimesShown", 0, self._winreg.REG_DWORD, history.times_shown)
                self._set_optional_date(key, "LastShownDate", history.last_shown_date)
                self._winreg.SetValueEx(
                    key, "PermanentlyDismissed", 0, self._winreg.REG_DWORD, int(history.permanently_dismissed)
                )
                self._set_optional_variant(key, history.last_variant)
        except OSError as exc:
            raise PromptStorageError(f"Unable to write prompt history to registry: {exc}") from exc

    def delete_history(self) -> None:
        self._delete_key(HISTORY_KEY)

    @contextmanager
    def _open_key(self, key_name: str, *, writable: bool) -> Iterator:
        subkey = f"{self.base_subkey}\\{key_name}"
        access = self._winreg.KEY_READ
        if writable:
            access |= self._winreg.KEY_WRITE

        try:
            key = self._winreg.OpenKey(self.hive, subkey, 0, access)
        except FileNotFoundError:
            if not writable:
                raise
            key = self._winreg.CreateKey(self.hive, subkey)
        try:
            yield key
        finally:
            self._winreg.CloseKey(key)

    def _delete_key(self, key_name: str) -> None:
        try:
            self._winreg.DeleteKey(self.hive, f"{self.base_subkey}\\{key_name}")
        except FileNotFoundError:
            return
        except OSError as exc:
            raise PromptStorageError(f"Unable to delete registry key {key_name}: {exc}") from exc

    def _query_optional(self, key, value_name: str):
        try:
            value, _ = self._winreg.QueryValueEx(key, value_name)
            return value
        except FileNotFoundError:
            return None

    def _set_optional_date(self, key, value_name: str, value: Optional[date]) -> None:
        if value is None:
            self._delete_value(key, value_name)
        else:
            self._winreg.SetValueEx(key, value_name, 0, self._winreg.REG_SZ, value.isoformat())

    def _set_optional_variant(self, key, variant: Optional[Variant]) -> None:
        if variant is None:
            self._delete_value(key, "LastVariant")
        else:
            self._winreg.SetValueEx(key, "LastVariant", 0, self._winreg.REG_SZ, variant.value)

    def _delete_value(self, key, value_name: str) -> None:
        try:
            self._winreg.DeleteValue(key, value_name)
        except FileNotFoundError:
            pass
