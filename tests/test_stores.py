"""Tests for the activity and history storage adapters."""

import json
from datetime import date

import pytest

from prompt_core.file_store import JsonFilePromptStore
from prompt_core.registry_store import RegistryPromptStore
from prompt_shared.errors import PromptStorageError
from prompt_shared.models import PromptHistory, UserActivity, Variant

ACTIVITY = UserActivity(last_active_date=date(2025, 6, 27), number_of_active_days=4)
HISTORY = PromptHistory(
    times_shown=2,
    last_shown_date=date(2025, 6, 20),
    permanently_dismissed=True,
    last_variant=Variant.REMINDER,
)


def test_memory_store_defaults_and_reset(store):
    assert store.current_activity() == UserActivity.empty()
    assert store.load_history() == PromptHistory.empty()

    store.save(ACTIVITY)
    store.save_history(HISTORY)
    assert store.current_activity() == ACTIVITY
    assert store.load_history() == HISTORY

    store.delete_activity()
    store.delete_history()
    assert store.current_activity().is_empty
    assert store.load_history() == PromptHistory.empty()


def test_file_store_persists_across_instances(tmp_path):
    JsonFilePromptStore(tmp_path).save(ACTIVITY)
    JsonFilePromptStore(tmp_path).save_history(HISTORY)

    reopened = JsonFilePromptStore(tmp_path)
    assert reopened.current_activity() == ACTIVITY
    assert reopened.load_history() == HISTORY


def test_file_store_missing_files_are_empty(tmp_path):
    store = JsonFilePromptStore(tmp_path / "fresh")
    assert store.current_activity() == UserActivity.empty()
    assert store.load_history() == PromptHistory.empty()


def test_file_store_malformed_activity_is_empty(tmp_path):
    store = JsonFilePromptStore(tmp_path)
    store.activity_path.write_text("{not json", encoding="utf-8")

    assert store.current_activity() == UserActivity.empty()


def test_file_store_unknown_variant_keeps_permanent_dismissal(tmp_path):
    store = JsonFilePromptStore(tmp_path)
    store.save_history(PromptHistory(times_shown=1, permanently_dismissed=True, last_variant=Variant.REMINDER))
    payload = json.loads(store.history_path.read_text(encoding="utf-8"))
    payload["last_variant"] = "inactive_modal"
    store.history_path.write_text(json.dumps(payload), encoding="utf-8")

    history = store.load_history()

    assert history == PromptHistory(times_shown=1, permanently_dismissed=True)


def test_file_store_bad_date_drops_only_the_date(tmp_path):
    store = JsonFilePromptStore(tmp_path)
    store.history_path.write_text(
        json.dumps({"times_shown": 2, "last_shown_date": "last tuesday", "permanently_dismissed": True}),
        encoding="utf-8",
    )

    assert store.load_history() == PromptHistory(times_shown=2, permanently_dismissed=True)


@pytest.mark.parametrize(
    "contents",
    [
        "{not json",
        "[1, 2]",
        json.dumps({"times_shown": -3}),
        json.dumps({"times_shown": "often"}),
        json.dumps({"times_shown": 1, "permanently_dismissed": "maybe"}),
    ],
)
def test_file_store_unreadable_history_raises(tmp_path, contents):
    store = JsonFilePromptStore(tmp_path)
    store.history_path.write_text(contents, encoding="utf-8")

    with pytest.raises(PromptStorageError):
        store.load_history()


def test_file_store_string_flag_is_decoded_strictly(tmp_path):
    store = JsonFilePromptStore(tmp_path)
    store.history_path.write_text(json.dumps({"times_shown": 1, "permanently_dismissed": "false"}), encoding="utf-8")

    assert store.load_history().permanently_dismissed is False


def test_file_store_delete(tmp_path):
    store = JsonFilePromptStore(tmp_path)
    store.save(ACTIVITY)
    store.delete_activity()
    store.delete_activity()
    assert not store.activity_path.exists()


def test_file_store_write_failure_raises(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")
    store = JsonFilePromptStore(blocker / "state")
    with pytest.raises(PromptStorageError):
        store.save_history(HISTORY)


def test_registry_store_round_trip(fake_winreg):
    store = RegistryPromptStore(winreg_module=fake_winreg)
    store.save(ACTIVITY)
    store.save_history(HISTORY)

    assert store.current_activity() == ACTIVITY
    assert store.load_history() == HISTORY

    values = fake_winreg.keys[(fake_winreg.HKEY_CURRENT_USER, store.base_subkey + "\\History")]
    assert values["TimesShown"] == (2, fake_winreg.REG_DWORD)
    assert values["LastVariant"] == ("reminder", fake_winreg.REG_SZ)


def test_registry_store_missing_keys_are_empty(fake_winreg):
    store = RegistryPromptStore(winreg_module=fake_winreg)
    assert store.current_activity() == UserActivity.empty()
    assert store.load_history() == PromptHistory.empty()


def test_registry_store_clears_optional_values(fake_winreg):
    store = RegistryPromptStore(winreg_module=fake_winreg)
    store.save_history(HISTORY)
    store.save_history(PromptHistory(times_shown=2))

    assert store.load_history() == PromptHistory(times_shown=2)


def test_registry_store_delete(fake_winreg):
    store = RegistryPromptStore(winreg_module=fake_winreg)
    store.save(ACTIVITY)
    store.save_history(HISTORY)

    store.delete_activity()
    store.delete_history()
    store.delete_activity()

    assert store.current_activity() == UserActivity.empty()
    assert store.load_history() == PromptHistory.empty()


def test_registry_store_malformed_value_is_empty(fake_winreg):
    store = RegistryPromptStore(winreg_module=fake_winreg)
    key = fake_winreg.CreateKey(fake_winreg.HKEY_CURRENT_USER, store.base_subkey + "\\Activity")
    fake_winreg.SetValueEx(key, "LastActiveDate", 0, fake_winreg.REG_SZ, "yesterday")

    assert store.current_activity() == UserActivity.empty()


def test_registry_store_requires_winreg():
    with pytest.raises(PromptStorageError):
        RegistryPromptStore(winreg_module=None)


def test_registry_store_unknown_variant_keeps_permanent_dismissal(fake_winreg):
    store = RegistryPromptStore(winreg_module=fake_winreg)
    store.save_history(HISTORY)
    key = (fake_winreg.HKEY_CURRENT_USER, store.base_subkey + "\\History")
    fake_winreg.SetValueEx(key, "LastVariant", 0, fake_winreg.REG_SZ, "inactive_modal")

    history = store.load_history()

    assert history.permanently_dismissed is True
    assert history.times_shown == HISTORY.times_shown
    assert history.last_shown_date == HISTORY.last_shown_date
    assert history.last_variant is None


@pytest.mark.parametrize(
    "name, value_type, value",
    [
        ("PermanentlyDismissed", 1, "yes"),
        ("PermanentlyDismissed", 4, 7),
        ("TimesShown", 1, "lots"),
    ],
)
def test_registry_store_unreadable_history_raises(fake_winreg, name, value_type, value):
    store = RegistryPromptStore(winreg_module=fake_winreg)
    store.save_history(HISTORY)
    key = (fake_winreg.HKEY_CURRENT_USER, store.base_subkey + "\\History")
    fake_winreg.SetValueEx(key, name, 0, value_type, value)

    with pytest.raises(PromptStorageError):
        store.load_history()
