"""Configuration loading from CLI args, env vars, and an optional YAML file.

Priority, lowest to highest: defaults, YAML file, environment, CLI.
"""

import logging
import os
from dataclasses import dataclass, field

import yaml

from logwatch.errors import ConfigurationError
from logwatch.rules import CategoryRule, rule_from_dict

logger = logging.getLogger(__name__)


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes", "on")


@dataclass(frozen=True)
class Config:
    log_file: str | None = None
    poll_interval: float = 0.25
    dedup_key_length: int = 50
    dedup_max_keys: int = 100_000
    use_notifications: bool = False
    log_level: str = "INFO"
    rules: tuple[CategoryRule, ...] = field(default_factory=tuple)

    def __post_init__(self):
        if self.poll_interval <= 0:
            raise ConfigurationError("poll_interval must be positive")
        if self.dedup_key_length <= 0:
            raise ConfigurationError("dedup_key_length must be positive")
        if self.dedup_max_keys <= 0:
            raise ConfigurationError("dedup_max_keys must be positive")


def load_yaml_config(path: str | None) -> dict:
    """Load settings and extra rules from a YAML file. Returns {} if no path."""
    if not path:
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.warning("Config file %s not found, using defaults", path)
        return {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping")
    logger.info("Loaded YAML config from %s", path)
    return data


def _coerce(name: str, value, cast):
    try:
        return cast(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid value for {name}: {value!r}") from None


def load_config(cli_args=None, yaml_data: dict | None = None) -> Config:
    """Build Config from parsed CLI args (argparse.Namespace or None), env vars and YAML data."""
    yaml_data = yaml_data or {}

    raw_rules = yaml_data.get("rules") or []
    if not isinstance(raw_rules, list):
        raise ConfigurationError("'rules' must be a list")
    rules = tuple(rule_from_dict(r) for r in raw_rules)

    settings = {
        "poll_interval": yaml_data.get("poll_interval", Config.poll_interval),
        "dedup_key_length": yaml_data.get("dedup_key_length", Config.dedup_key_length),
        "dedup_max_keys": yaml_data.get("dedup_max_keys", Config.dedup_max_keys),
        "use_notifications": yaml_data.get("use_notifications", Config.use_notifications),
        "log_level": yaml_data.get("log_level", Config.log_level),
        "log_file": yaml_data.get("log_file"),
    }

    env_map = {
        "POLL_INTERVAL": "poll_interval",
        "DEDUP_KEY_LENGTH": "dedup_key_length",
        "DEDUP_MAX_KEYS": "dedup_max_keys",
        "USE_NOTIFICATIONS": "use_notifications",
        "LOG_LEVEL": "log_level",
        "LOG_FILE": "log_file",
    }
    for env_name, key in env_map.items():
        if env_name in os.environ:
            settings[key] = os.environ[env_name]

    if cli_args is not None:
        for key in ("log_file", "poll_interval", "log_level"):
            value = getattr(cli_args, key, None)
            if value is not None:
                settings[key] = value
        if getattr(cli_args, "notify", False):
            settings["use_notifications"] = True

    return Config(
        log_file=settings["log_file"],
        poll_interval=_coerce("poll_interval", settings["poll_interval"], float),
        dedup_key_length=_coerce("dedup_key_length", settings["dedup_key_length"], int),
        dedup_max_keys=_coerce("dedup_max_keys", settings["dedup_max_keys"], int),
        use_notifications=_parse_bool(settings["use_notifications"]),
        log_level=str(settings["log_level"]).upper(),
        rules=rules,
    )
