from pathlib import Path

import pytest
import yaml

from needle.shared.core.configuration import (
    DEFAULT_API_URL,
    ConfigManager,
    SystemConfig,
    ValidationLevel,
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in ("NEEDLE_API_URL", "NEEDLE_API_TIMEOUT", "NEEDLE_DATA_DIR", "LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)


def write(path, data):
    path.write_text(yaml.safe_dump(data))


def test_defaults_without_files(tmp_path):
    config = ConfigManager(tmp_path).get_config()
    assert config.api.base_url == DEFAULT_API_URL
    assert config.storage.credential_key == "needle_token"
    assert config.storage.credential_path == Path("data") / "session.yaml"


def test_precedence_env_over_project_over_user(tmp_path, monkeypatch):
    write(tmp_path / "defaults.yaml", {"api": {"timeout": 10.0}})
    write(tmp_path / "user.yaml", {"api": {"base_url": "http://user:1"}, "logging": {"level": "DEBUG"}})
    write(tmp_path / "project.yaml", {"api": {"base_url": "http://project:2"}})

    manager = ConfigManager(tmp_path)
    config = manager.get_config()
    assert config.api.base_url == "http://project:2"
    assert config.api.timeout == 10.0
    assert config.logging.level == "DEBUG"

    monkeypatch.setenv("NEEDLE_API_URL", "https://api.needle.dev")
    monkeypatch.setenv("NEEDLE_API_TIMEOUT", "5")
    config = manager.get_config()
    assert config.api.base_url == "https://api.needle.dev"
    assert config.api.timeout == 5.0


def test_bad_env_value_ignored(tmp_path, monkeypatch):
    monkeypatch.setenv("NEEDLE_API_TIMEOUT", "soon")
    assert ConfigManager(tmp_path).get_config().api.timeout == 30.0


def test_validation_levels(tmp_path):
    write(tmp_path / "user.yaml", {"api": {"timeout": 0.01}})
    manager = ConfigManager(tmp_path)

    with pytest.raises(ValueError):
        manager.get_config(ValidationLevel.STRICT)
    assert manager.get_config(ValidationLevel.LENIENT) == SystemConfig()


def test_save_user_config_round_trip(tmp_path):
    manager = ConfigManager(tmp_path / "cfg")
    manager.get_config()
    assert manager.save_user_config({"api": {"base_url": "http://saved:9"}})
    assert manager.get_config().api.base_url == "http://saved:9"
