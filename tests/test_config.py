"""Tests for configuration loading and runtime settings."""

import logging

import pytest
import yaml

from echo_mirror.config import (
    AnalyzerSettings,
    AudioSettings,
    GlobalConfig,
    SystemConfig,
    configure_logging,
)


def write_config(tmp_path, data) -> str:
    path = tmp_path / "echo_mirror.yaml"
    path.write_text(yaml.safe_dump(data))
    return str(path)


def test_load_full_config(tmp_path):
    path = write_config(
        tmp_path,
        {
            "system": {"log_level": "DEBUG"},
            "audio": {"sample_rate": 48000, "chunk_size": 1024, "channels": 1},
            "analyzer": {"sensitivity": 75, "ignore_ambient_noise": True, "event_cooldown": 3},
            "storage": {"db_path": "events.db", "queue_size": 8, "retry_attempts": 5},
        },
    )

    config = GlobalConfig.load(path)

    assert config.system.log_level == "DEBUG"
    assert config.audio.sample_rate == 48000
    assert config.audio.chunk_size == 1024
    assert config.audio.fft_size == 1024
    assert config.audio.channels == 1
    assert config.analyzer.sensitivity == pytest.approx(0.75)
    assert config.analyzer.ignore_ambient_noise is True
    assert config.analyzer.event_cooldown == 3.0
    assert config.storage.db_path == "events.db"
    assert config.storage.queue_size == 8
    assert config.storage.retry_attempts == 5
    assert config.storage.recent_limit == 10


def test_empty_file_uses_defaults(tmp_path):
    path = tmp_path / "empty.yaml"
    path.write_text("")

    config = GlobalConfig.load(path)

    assert config.audio == AudioSettings()
    assert config.analyzer.sensitivity == pytest.approx(0.5)
    assert config.analyzer.ignore_ambient_noise is False
    assert config.analyzer.event_cooldown == 2.0
    assert config.storage.db_path == "echo_mirror.db"


def test_storage_can_be_disabled(tmp_path):
    config = GlobalConfig.load(write_config(tmp_path, {"storage": {"db_path": None}}))

    assert config.storage.db_path is None


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        GlobalConfig.load(tmp_path / "nope.yaml")


@pytest.mark.parametrize(
    "percent, expected",
    [(0, 0.0), (50, 0.5), (100, 1.0), (150, 1.0), (-10, 0.0), (33, 0.33)],
)
def test_sensitivity_percent_is_mapped_and_clamped(percent, expected):
    settings = AnalyzerSettings()

    settings.set_sensitivity_percent(percent)

    assert settings.sensitivity == pytest.approx(expected)


def test_block_duration():
    assert AudioSettings(sample_rate=44100, chunk_size=2048).block_duration == pytest.approx(
        2048 / 44100
    )


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_logging_sets_level(tmp_path, restore_root_logger):
    log_file = tmp_path / "echo.log"

    configure_logging(SystemConfig(log_level="WARNING", log_file=str(log_file)))
    logging.getLogger("echo_mirror.test").warning("hello")
    logging.getLogger("echo_mirror.test").info("quiet")

    assert restore_root_logger.level == logging.WARNING
    contents = log_file.read_text()
    assert "hello" in contents
    assert "quiet" not in contents
