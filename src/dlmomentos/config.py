"""
Configuration management for dlmomentos
"""

import json
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from platformdirs import user_config_dir

from dlmomentos.credential_store import Credentials
from dlmomentos.credential_store import load as load_credentials
from dlmomentos.exceptions import ConfigError

# Check YAML availability at module level
try:
    from importlib.util import find_spec

    YAML_AVAILABLE = find_spec("yaml") is not None
except ImportError:
    YAML_AVAILABLE = False


DEFAULT_API_BASE_URL = "https://mds.production.momentos.life"
DEFAULT_MAX_WORKERS = 8
DEFAULT_REQUEST_TIMEOUT = 30.0


class Config:
    """Configuration loader and validator with multi-source support.

    Also acts as the credential provider for the download pipeline:
    get_bearer_token() and get_user_id() resolve the session from the
    environment first, then from the credentials file written by login.
    """

    KNOWN_FIELDS = {
        "output_dir": ".",
        "log_level": "INFO",
        "api_base_url": DEFAULT_API_BASE_URL,
        # Resolved at runtime under the platformdirs user config directory
        "credentials_path": None,
        "max_workers": DEFAULT_MAX_WORKERS,
        "request_timeout": DEFAULT_REQUEST_TIMEOUT,
    }

    def __init__(self, env_file: str | None = None):
        # Configuration priority:
        # 1. Config file (JSON/YAML)
        # 2. Environment variables
        # 3. .env file (when passed explicitly)
        # 4. Defaults

        self.config_dir = Path(user_config_dir("dlmomentos"))
        config_data: dict[str, Any] = {}

        if env_file is not None:
            config_data = self._load_config_file(env_file)
        else:
            default_config = self._find_default_config()
            if default_config:
                config_data = self._load_config_file(str(default_config))

        output_dir_val = config_data.get("output_dir") or os.getenv("OUTPUT_DIR", ".")
        self.output_dir = Path(str(output_dir_val))
        self.log_level = str(config_data.get("log_level") or os.getenv("LOG_LEVEL", "INFO"))

        api_base = config_data.get("api_base_url") or os.getenv(
            "MOMENTOS_API_BASE_URL", DEFAULT_API_BASE_URL
        )
        self.api_base_url = str(api_base).rstrip("/")

        configured_credentials_path = config_data.get("credentials_path") or os.getenv(
            "DLMOMENTOS_CREDENTIALS_PATH"
        )
        if configured_credentials_path:
            self.credentials_path = Path(str(configured_credentials_path))
        else:
            self.credentials_path = self.config_dir / "credentials.json"

        self.max_workers = self._parse_int(
            config_data.get("max_workers", os.getenv("DLMOMENTOS_MAX_WORKERS")),
            "max_workers",
            DEFAULT_MAX_WORKERS,
        )
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be at least 1, got {self.max_workers}")

        self.request_timeout = self._parse_float(
            config_data.get("request_timeout", os.getenv("DLMOMENTOS_TIMEOUT")),
            "request_timeout",
            DEFAULT_REQUEST_TIMEOUT,
        )
        if self.request_timeout <= 0:
            raise ConfigError(f"request_timeout must be positive, got {self.request_timeout}")

        self._credentials: Credentials | None = None
        self._credentials_loaded = False

    def __repr__(self) -> str:
        """String representation that never includes the bearer token"""
        return (
            f"Config("
            f"output_dir={self.output_dir!r}, "
            f"log_level={self.log_level!r}, "
            f"api_base_url={self.api_base_url!r}, "
            f"max_workers={self.max_workers!r}, "
            f"signed_in={self.get_bearer_token() is not None}"
            f")"
        )

    @staticmethod
    def _parse_int(raw: Any, name: str, default: int) -> int:
        if raw is None or raw == "":
            return default
        if isinstance(raw, bool):
            raise ConfigError(f"{name} must be an integer, got {raw!r}")
        try:
            return int(raw)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} must be an integer, got {raw!r}")

    @staticmethod
    def _parse_float(raw: Any, name: str, default: float) -> float:
        if raw is None or raw == "":
            return default
        if isinstance(raw, bool):
            raise ConfigError(f"{name} must be a number, got {raw!r}")
        try:
            return float(raw)
        except (TypeError, ValueError):
            raise ConfigError(f"{name} must be a number, got {raw!r}")

    @staticmethod
    def _is_null_device(path_str: str) -> bool:
        """Return True when the provided path represents the OS null device."""
        normalized = path_str.strip().lower().replace("\\", "/")
        null_candidates = {"/dev/null", "nul", "nul:", os.devnull.lower()}
        return normalized in null_candidates

    def _load_config_file(self, config_path: str) -> dict[str, Any]:
        """
        Load configuration from JSON or YAML file

        Args:
            config_path: Path to config file (.json, .yaml/.yml, or .env)

        Returns:
            Configuration dictionary

        Raises:
            ConfigError: If file cannot be loaded or parsed
        """
        if self._is_null_device(config_path):
            return {}

        path = Path(config_path)

        if not path.exists():
            raise ConfigError(
                f"Config file '{config_path}' does not exist. "
                "Provide an existing JSON/YAML/.env file or remove the --config flag."
            )

        if path.suffix.lower() in [".yaml", ".yml"] and not YAML_AVAILABLE:
            raise ConfigError(
                f"Cannot load YAML config file '{path.name}': PyYAML not installed. "
                "Install with: pip install pyyaml"
            )

        try:
            with open(path) as f:
                if path.suffix.lower() == ".json":
                    data = json.load(f)
                elif path.suffix.lower() in [".yaml", ".yml"]:
                    data = self._load_yaml(f)
                else:
                    # Assume .env file
                    load_dotenv(config_path)
                    return {}
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in config file {config_path}: {e}")
        except OSError as e:
            raise ConfigError(f"Failed to load config file {config_path}: {e}")

        self._validate_schema(data, path)
        return dict(data)

    def _load_yaml(self, file_obj: Any) -> dict[str, Any]:
        import yaml

        try:
            result = yaml.safe_load(file_obj)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}")
        return dict(result) if result else {}

    def _find_default_config(self) -> Path | None:
        """Locate the default config file in the user config directory."""
        for filename in ("config.json", "config.yaml", "config.yml"):
            candidate = self.config_dir / filename
            if candidate.exists():
                return candidate
        return None

    def _validate_schema(self, data: Any, path: Path) -> None:
        """
        Validate configuration schema

        Raises:
            ConfigError: If schema validation fails
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a JSON/YAML object")

        unknown_keys = set(data.keys()) - set(self.KNOWN_FIELDS)
        if unknown_keys:
            raise ConfigError(
                f"Unknown keys in config file {path}: {', '.join(sorted(unknown_keys))}\n"
                f"Valid keys: {', '.join(sorted(self.KNOWN_FIELDS))}"
            )

        for key in ("output_dir", "api_base_url", "credentials_path"):
            if key in data and not isinstance(data[key], str):
                raise ConfigError(f"{key} must be a string in {path}")

        if "log_level" in data:
            valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
            if str(data["log_level"]).upper() not in valid_levels:
                raise ConfigError(f"log_level must be one of {valid_levels} in {path}")

    def _stored_credentials(self) -> Credentials | None:
        if not self._credentials_loaded:
            self._credentials = load_credentials(self.credentials_path)
            self._credentials_loaded = True
        return self._credentials

    def get_bearer_token(self) -> str | None:
        """Bearer token for API calls, or None when not signed in."""
        env_token = os.getenv("MOMENTOS_TOKEN")
        if env_token:
            return env_token
        stored = self._stored_credentials()
        return stored.token if stored else None

    def get_user_id(self) -> str | None:
        """Momentos user ID of the signed-in account, or None."""
        env_user = os.getenv("MOMENTOS_USER_ID")
        if env_user:
            return env_user
        stored = self._stored_credentials()
        return stored.user_id if stored else None
