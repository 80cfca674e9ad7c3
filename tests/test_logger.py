"""Tests for the logging setup."""

from prompt_runtime import logger as app_logger


def test_log_file_follows_environment(monkeypatch, tmp_path):
    monkeypatch.setenv(app_logger.LOG_DIR_ENV, str(tmp_path))
    assert app_logger.log_file_path() == tmp_path / app_logger.LOG_FILE_NAME


def test_log_file_defaults_to_state_dir(monkeypatch):
    monkeypatch.delenv(app_logger.LOG_DIR_ENV, raising=False)
    assert app_logger.log_file_path() == app_logger.DEFAULT_LOG_DIR / app_logger.LOG_FILE_NAME


def test_component_is_bound_into_records():
    records = []
    sink_id = app_logger.get_logger().add(lambda message: records.append(message.record), level="DEBUG")
    try:
        app_logger.get_logger("coordinator").info("state change")
        app_logger.get_logger().complete()
    finally:
        app_logger.get_logger().remove(sink_id)

    assert [r["extra"]["component"] for r in records if r["message"] == "state change"] == ["coordinator"]
