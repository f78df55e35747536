"""
Unit tests for config module
"""

import os
from pathlib import Path

import pytest

from dlmomentos.config import DEFAULT_API_BASE_URL, Config, ConfigError
from dlmomentos.credential_store import Credentials, save


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    """Point the user config directory at a temp dir and clear related env vars"""
    config_dir = tmp_path / "dlmomentos"
    config_dir.mkdir()
    monkeypatch.setattr("dlmomentos.config.user_config_dir", lambda _: str(config_dir))
    for key in [
        "OUTPUT_DIR",
        "LOG_LEVEL",
        "MOMENTOS_API_BASE_URL",
        "MOMENTOS_TOKEN",
        "MOMENTOS_USER_ID",
        "DLMOMENTOS_CREDENTIALS_PATH",
        "DLMOMENTOS_MAX_WORKERS",
        "DLMOMENTOS_TIMEOUT",
    ]:
        monkeypatch.delenv(key, raising=False)
    return config_dir


def test_config_defaults():
    """Test that default values are set correctly"""
    config = Config()
    assert config.output_dir == Path(".")
    assert config.log_level == "INFO"
    assert config.api_base_url == DEFAULT_API_BASE_URL
    assert config.max_workers == 8
    assert config.request_timeout == 30.0


def test_config_loads_from_env(monkeypatch):
    """Test that config loads from environment variables"""
    monkeypatch.setenv("OUTPUT_DIR", "/tmp/custom")
    monkeypatch.setenv("MOMENTOS_API_BASE_URL", "https://mds.staging.example.com/")
    monkeypatch.setenv("DLMOMENTOS_MAX_WORKERS", "3")
    monkeypatch.setenv("DLMOMENTOS_TIMEOUT", "5.5")

    config = Config()
    assert config.output_dir == Path("/tmp/custom")
    assert config.api_base_url == "https://mds.staging.example.com"
    assert config.max_workers == 3
    assert config.request_timeout == 5.5


@pytest.mark.parametrize(
    "env_key,value,message",
    [
        ("DLMOMENTOS_MAX_WORKERS", "many", "max_workers must be an integer"),
        ("DLMOMENTOS_MAX_WORKERS", "0", "at least 1"),
        ("DLMOMENTOS_TIMEOUT", "soon", "request_timeout must be a number"),
        ("DLMOMENTOS_TIMEOUT", "-1", "must be positive"),
    ],
)
def test_invalid_numeric_settings(monkeypatch, env_key, value, message):
    monkeypatch.setenv(env_key, value)
    with pytest.raises(ConfigError, match=message):
        Config()


def test_missing_config_file_raises_error(tmp_path):
    """Explicit config path must exist instead of silently loading .env"""
    missing = tmp_path / "missing.json"
    with pytest.raises(ConfigError) as exc_info:
        Config(env_file=str(missing))
    assert "does not exist" in str(exc_info.value)


def test_null_device_config_yields_defaults():
    config = Config(env_file=os.devnull)
    assert config.max_workers == 8


def test_config_discovers_user_config_json(isolated_config_dir):
    """Config should load settings from default user config directory."""
    (isolated_config_dir / "config.json").write_text(
        '{"output_dir": "/data/momentos", "max_workers": 2}'
    )

    cfg = Config()
    assert cfg.output_dir == Path("/data/momentos")
    assert cfg.max_workers == 2


def test_config_discovers_user_config_yaml(isolated_config_dir):
    """YAML config files in user config dir should be discovered."""
    pytest.importorskip("yaml")
    (isolated_config_dir / "config.yaml").write_text("request_timeout: 12\nlog_level: DEBUG\n")

    cfg = Config()
    assert cfg.request_timeout == 12.0
    assert cfg.log_level == "DEBUG"


def test_explicit_config_overrides_user_config(tmp_path, isolated_config_dir):
    """Explicit --config path should take precedence over discovered config."""
    (isolated_config_dir / "config.json").write_text('{"output_dir": "/default"}')
    explicit_file = tmp_path / "explicit.json"
    explicit_file.write_text('{"output_dir": "/explicit"}')

    cfg = Config(env_file=str(explicit_file))
    assert cfg.output_dir == Path("/explicit")


def test_unknown_keys_rejected(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text('{"legacy_setting": "x"}')
    with pytest.raises(ConfigError, match="Unknown keys"):
        Config(env_file=str(config_file))


def test_invalid_json_rejected(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text("{not json")
    with pytest.raises(ConfigError, match="Invalid JSON"):
        Config(env_file=str(config_file))


def test_invalid_log_level_rejected(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text('{"log_level": "LOUD"}')
    with pytest.raises(ConfigError, match="log_level"):
        Config(env_file=str(config_file))


def test_non_string_path_rejected(tmp_path):
    config_file = tmp_path / "config.json"
    config_file.write_text('{"output_dir": 5}')
    with pytest.raises(ConfigError, match="output_dir must be a string"):
        Config(env_file=str(config_file))


def test_yaml_dependency_check_yaml_not_available(tmp_path, monkeypatch):
    """Test that YAML file loading fails gracefully when PyYAML not installed"""
    yaml_file = tmp_path / "config.yaml"
    yaml_file.write_text("max_workers: 2\n")
    monkeypatch.setattr("dlmomentos.config.YAML_AVAILABLE", False)

    with pytest.raises(ConfigError) as exc_info:
        Config(env_file=str(yaml_file))
    assert "PyYAML not installed" in str(exc_info.value)
    assert yaml_file.name in str(exc_info.value)


def test_dotenv_config_file(tmp_path, monkeypatch):
    env_file = tmp_path / "settings.env"
    env_file.write_text("DLMOMENTOS_MAX_WORKERS=4\n")

    cfg = Config(env_file=str(env_file))
    assert cfg.max_workers == 4


class TestCredentials:
    def test_not_signed_in(self):
        cfg = Config()
        assert cfg.get_bearer_token() is None
        assert cfg.get_user_id() is None

    def test_default_credentials_path(self, isolated_config_dir):
        assert Config().credentials_path == isolated_config_dir / "credentials.json"

    def test_reads_stored_credentials(self, isolated_config_dir):
        save(
            isolated_config_dir / "credentials.json",
            Credentials(token="stored-token", user_id="u1", email="a@example.com"),
        )
        cfg = Config()
        assert cfg.get_bearer_token() == "stored-token"
        assert cfg.get_user_id() == "u1"

    def test_environment_overrides_stored_credentials(self, isolated_config_dir, monkeypatch):
        save(
            isolated_config_dir / "credentials.json",
            Credentials(token="stored-token", user_id="u1"),
        )
        monkeypatch.setenv("MOMENTOS_TOKEN", "env-token")
        monkeypatch.setenv("MOMENTOS_USER_ID", "u2")
        cfg = Config()
        assert cfg.get_bearer_token() == "env-token"
        assert cfg.get_user_id() == "u2"

    def test_custom_credentials_path(self, tmp_path, monkeypatch):
        path = tmp_path / "elsewhere" / "creds.json"
        monkeypatch.setenv("DLMOMENTOS_CREDENTIALS_PATH", str(path))
        save(path, Credentials(token="t", user_id="u"))
        cfg = Config()
        assert cfg.credentials_path == path
        assert cfg.get_bearer_token() == "t"

    def test_repr_excludes_token(self, monkeypatch):
        monkeypatch.setenv("MOMENTOS_TOKEN", "super-secret")
        text = repr(Config())
        assert "super-secret" not in text
        assert "signed_in=True" in text
