"""
Feature flag providers supplying FeatureConfig to the prompt coordinator.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from pathlib import Path
from typing import Optional

from prompt_runtime import logger as app_logger
from prompt_shared.config_schema import load_and_validate_config, parse_user_types
from prompt_shared.errors import ConfigValidationError
from prompt_shared.models import FeatureConfig, UserType

try:
    import winreg
except ModuleNotFoundError:  # pragma: no cover - non-Windows environments
    winreg = None

_LOGGER = app_logger.get_logger("settings")

_BASE_SUBKEY = r"Software\DefaultBrowserPrompt\Settings"
_MAX_THRESHOLD = 365

# Tunable fallbacks for providers; the decider never reads these directly.
DEFAULT_FEATURE_CONFIG = FeatureConfig(
    enabled=False,
    min_active_days=4,
    min_install_age_days=7,
    reshow_interval_days=14,
    max_times_shown=3,
    eligible_user_types=frozenset({UserType.EXISTING, UserType.RETURNING}),
)


class StaticFeatureFlagProvider:
    """Serves a fixed configuration."""

    def __init__(self, config: FeatureConfig = DEFAULT_FEATURE_CONFIG) -> None:
        self._config = config

    def is_enabled(self) -> bool:
        return self._config.enabled

    def settings(self) -> FeatureConfig:
        return self._config


class JsonFeatureFlagProvider:
    """
    Re-reads a JSON settings file on every call.

    A missing or invalid file falls back to the last configuration that
    validated, or to `fallback` if none ever did.
    """

    def __init__(self, path: Path, *, fallback: FeatureConfig = DEFAULT_FEATURE_CONFIG) -> None:
        self.path = Path(path)
        self._last_good = fallback
        self._lock = threading.Lock()

    def is_enabled(self) -> bool:
        return self.settings().enabled

    def settings(self) -> FeatureConfig:
        with self._lock:
            try:
                self._last_good = load_and_validate_config(self.path)
            except ConfigValidationError as exc:
                _LOGGER.warning("Using last known feature config; {} could not be loaded: {}", self.path, exc)
            return self._last_good


class RegistryFeatureFlagProvider:
    """Loads feature settings from HKCU and clamps invalid data."""

    def __init__(
        self,
        *,
        hive: Optional[int] = None,
        winreg_module=winreg,
        defaults: FeatureConfig = DEFAULT_FEATURE_CONFIG,
    ) -> None:
        if winreg_module is None:
            raise ConfigValidationError("The Windows registry is not available on this platform.")
        self._winreg = winreg_module
        self.hive = hive or winreg_module.HKEY_CURRENT_USER
        self._defaults = defaults

    def is_enabled(self) -> bool:
        return self.settings().enabled

    def settings(self) -> FeatureConfig:
        key = self._open_key()
        if key is None:
            return self._defaults

        try:
            return replace(
                self._defaults,
                enabled=self._read_bool(key, "IsEnabled", self._defaults.enabled),
                min_active_days=self._read_threshold(key, "MinActiveDays", self._defaults.min_active_days),
                min_install_age_days=self._read_threshold(
                    key, "MinInstallAgeDays", self._defaults.min_install_age_days
                ),
                reshow_interval_days=self._read_threshold(
                    key, "ReshowIntervalDays", self._defaults.reshow_interval_days
                ),
                max_times_shown=self._read_threshold(key, "MaxTimesShown", self._defaults.max_times_shown),
                eligible_user_types=self._read_user_types(key),
            )
        finally:
            self._winreg.CloseKey(key)

    def _open_key(self):
        try:
            return self._winreg.OpenKey(self.hive, _BASE_SUBKEY, 0, self._winreg.KEY_READ)
        except FileNotFoundError:
            return None

    def _read_bool(self, key, name: str, default: bool) -> bool:
        raw = self._read_dword(key, name)
        if raw is None:
            return default
        return bool(raw)

    def _read_threshold(self, key, name: str, default: int) -> int:
        raw = self._read_dword(key, name)
        if raw is None:
            return default
        if raw < 0 or raw > _MAX_THRESHOLD:
            _LOGGER.warning(
                "Invalid {} value {} found in registry. Clamping to safe bounds.",
                name,
                raw,
            )
        return max(0, min(_MAX_THRESHOLD, raw))

    def _read_user_types(self, key) -> frozenset:
        try:
            value, value_type = self._winreg.QueryValueEx(key, "EligibleUserTypes")
        except FileNotFoundError:
            return self._defaults.eligible_user_types
        if value_type != self._winreg.REG_SZ:
            _LOGGER.warning("Registry value EligibleUserTypes has unexpected type {}.", value_type)
            return self._defaults.eligible_user_types
        try:
            return parse_user_types(value)
        except ConfigValidationError as exc:
            _LOGGER.warning("Ignoring EligibleUserTypes from registry: {}", exc)
            return self._defaults.eligible_user_types

    def _read_dword(self, key, name: str) -> Optional[int]:
        try:
            value, value_type = self._winreg.QueryValueEx(key, name)
        except FileNotFoundError:
            return None
        if value_type != self._winreg.REG_DWORD:
            _LOGGER.warning("Registry value {} has unexpected type {}.", name, value_type)
            return None
        return int(value)
