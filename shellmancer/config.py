import json
import os

from dataclasses import dataclass, field, replace
from typing import Dict, Optional


DEFAULT_PROVIDER = "google"
DEFAULT_MODEL = "gemini-2.0-flash"
CONFIG_ENV_VAR = "SHELLMANCER_CONFIG"


class ConfigError(Exception):
    """Raised when the configuration file exists but cannot be used."""


def default_config_path() -> str:
    return os.environ.get(CONFIG_ENV_VAR) or os.path.join(
        os.path.expanduser("~"), ".shellmancer", "config.json"
    )


@dataclass(frozen=True)
class Config:
    """An immutable snapshot of the persisted settings.

    Every command loads its own snapshot and threads it through the calls that
    need it; changing a setting means saving a new snapshot.
    """

    provider: str = DEFAULT_PROVIDER
    model: str = DEFAULT_MODEL
    provider_configs: Dict[str, Dict] = field(default_factory=dict)

    @property
    def model_id(self) -> str:
        # aisuite addresses models as "<provider>:<model>"
        return f"{self.provider}:{self.model}"

    @property
    def api_key(self) -> Optional[str]:
        return self.provider_configs.get(self.provider, {}).get("api_key")

    def with_model(self, model: str) -> "Config":
        if not model.strip():
            raise ConfigError("Model name cannot be empty.")
        return replace(self, model=model.strip())

    def without_api_key(self) -> "Config":
        provider_configs = {
            name: dict(settings) for name, settings in self.provider_configs.items()
        }
        provider_configs.get(self.provider, {}).pop("api_key", None)
        return replace(self, provider_configs=provider_configs)

    def to_dict(self) -> Dict:
        return {
            "provider": self.provider,
            "model": self.model,
            "provider_configs": self.provider_configs,
        }


def load_config(path: Optional[str] = None) -> Config:
    """Reads the configuration file, falling back to defaults when it is missing."""
    config_path = path or default_config_path()
    if not os.path.exists(config_path):
        return Config()

    try:
        with open(config_path, "r", encoding="utf-8") as config_file:
            data = json.load(config_file)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Could not read config file '{config_path}': {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Config file '{config_path}' must contain a JSON object.")

    provider_configs = data.get("provider_configs") or {}
    if not isinstance(provider_configs, dict):
        raise ConfigError("'provider_configs' must be a JSON object.")

    return Config(
        provider=data.get("provider") or DEFAULT_PROVIDER,
        model=data.get("model") or DEFAULT_MODEL,
        provider_configs=provider_configs,
    )


def save_config(config: Config, path: Optional[str] = None):
    config_path = path or default_config_path()
    directory = os.path.dirname(config_path)
    try:
        if directory:
            os.makedirs(directory, exist_ok=True)
        with open(config_path, "w", encoding="utf-8") as config_file:
            json.dump(config.to_dict(), config_file, indent=2)
    except OSError as e:
        raise ConfigError(f"Could not write config file '{config_path}': {e}") from e

    # The file may hold an API key, keep it private to the owner
    try:
        os.chmod(config_path, 0o600)
    except OSError:
        pass
