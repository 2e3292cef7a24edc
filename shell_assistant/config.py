"""
Configuration file handling.

Settings live in a JSON file inside the application directory and are read
once at startup. The core only ever sees the resulting `Config` value.
"""

import json
import os

from dataclasses import asdict, dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional

from .errors import ConfigError

APP_DIR_ENV = "SHELL_ASSISTANT_HOME"
CONFIG_FILENAME = "config.json"
LOG_DIRNAME = "logs"

PROVIDERS = ("openai", "anthropic")
UNKNOWN_MODE_POLICIES = ("fail", "fallback")
LOG_LEVELS = ("debug", "info", "warn", "error")


@dataclass(frozen=True)
class LLMConfig:
    provider: str = "openai"
    model: str = "gpt-5"
    timeout: int = 30
    max_retries: int = 3
    use_thinking: bool = False
    use_web_search: bool = True
    on_unknown_mode: str = "fail"


@dataclass(frozen=True)
class ContextConfig:
    max_lines: int = 100
    max_size_kb: int = 50


@dataclass(frozen=True)
class LoggingConfig:
    enabled: bool = True
    level: str = "info"


@dataclass(frozen=True)
class Config:
    llm: LLMConfig = field(default_factory=LLMConfig)
    context: ContextConfig = field(default_factory=ContextConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def to_dict(self) -> Dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict) -> "Config":
        if not isinstance(data, dict):
            raise ConfigError("The configuration file must contain a JSON object.")

        sections = {}
        for section in fields(cls):
            section_type = section.default_factory
            values = data.get(section.name, {})
            if not isinstance(values, dict):
                raise ConfigError(f"Section '{section.name}' must be a JSON object.")
            # Unknown keys are ignored so older files keep loading.
            known = {f.name for f in fields(section_type)}
            sections[section.name] = section_type(**{k: v for k, v in values.items() if k in known})

        config = cls(**sections)
        for key in config_keys():
            _validate(key, get_value(config, key))
        return config


class ModelPreset(NamedTuple):
    id: str
    name: str
    description: str


MODEL_PRESETS: Dict[str, List[ModelPreset]] = {
    "openai": [
        ModelPreset("gpt-5", "GPT-5", "Flagship model for complex reasoning and coding"),
        ModelPreset("gpt-5-mini", "GPT-5 mini", "Faster, cheaper GPT-5 for well-defined tasks"),
        ModelPreset("gpt-4.1", "GPT-4.1", "Smart non-reasoning model"),
    ],
    "anthropic": [
        ModelPreset("claude-sonnet-4-5", "Claude Sonnet 4.5", "Balanced intelligence and speed"),
        ModelPreset("claude-opus-4-1", "Claude Opus 4.1", "Most capable model for hard problems"),
        ModelPreset("claude-haiku-4-5", "Claude Haiku 4.5", "Fastest model for simple tasks"),
    ],
}


def app_dir() -> Path:
    override = os.environ.get(APP_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".shell-assistant"


def config_path() -> Path:
    return app_dir() / CONFIG_FILENAME


def log_dir() -> Path:
    return app_dir() / LOG_DIRNAME


def _ensure_dir(path: Path):
    if not path.exists():
        path.mkdir(parents=True)
        if os.name == "posix":
            path.chmod(0o700)


def load_default_config() -> Config:
    return Config()


def load_config(path: Optional[Path] = None) -> Config:
    """Loads the configuration, writing the defaults first if there is no file yet."""
    path = path or config_path()
    if not path.exists():
        config = load_default_config()
        save_config(config, path)
        return config

    try:
        with open(path, "r", encoding="utf-8") as config_file:
            data = json.load(config_file)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"Error reading or parsing {path}: {e}") from e

    try:
        return Config.from_dict(data)
    except TypeError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e


def save_config(config: Config, path: Optional[Path] = None):
    path = path or config_path()
    _ensure_dir(path.parent)
    with open(path, "w", encoding="utf-8") as config_file:
        json.dump(config.to_dict(), config_file, indent=2)
        config_file.write("\n")
    if os.name == "posix":
        path.chmod(0o600)


##############################################################################
# Dotted-key access used by `assist config`.


def config_keys() -> List[str]:
    defaults = load_default_config()
    return [
        f"{section.name}.{f.name}"
        for section in fields(defaults)
        for f in fields(getattr(defaults, section.name))
    ]


def _split_key(key: str):
    if key not in config_keys():
        raise ConfigError(f"Unknown config key: {key}")
    return key.split(".", 1)


def get_value(config: Config, key: str) -> Any:
    section, name = _split_key(key)
    return getattr(getattr(config, section), name)


def _parse(key: str, raw: str, current: Any) -> Any:
    if isinstance(current, bool):
        lowered = raw.strip().lower()
        if lowered in ("true", "yes", "on", "1"):
            return True
        if lowered in ("false", "no", "off", "0"):
            return False
        raise ConfigError(f"Invalid {key} value: {raw} - expected true or false")
    if isinstance(current, int):
        try:
            return int(raw)
        except ValueError:
            raise ConfigError(f"Invalid {key} value: {raw} - expected an integer") from None
    return raw.strip()


def _check_type(key: str, value: Any):
    expected = type(get_value(load_default_config(), key))
    # bool is a subclass of int, so both directions are checked explicitly.
    if expected is bool:
        valid = isinstance(value, bool)
    elif expected is int:
        valid = isinstance(value, int) and not isinstance(value, bool)
    else:
        valid = isinstance(value, expected)
    if not valid:
        names = {bool: "true or false", int: "an integer", str: "a string"}
        raise ConfigError(f"Invalid {key}: {value!r}. Expected {names.get(expected, expected.__name__)}.")


def _validate(key: str, value: Any):
    _check_type(key, value)
    checks = {
        "llm.provider": PROVIDERS,
        "llm.on_unknown_mode": UNKNOWN_MODE_POLICIES,
        "logging.level": LOG_LEVELS,
    }
    if key in checks and value not in checks[key]:
        raise ConfigError(f"Invalid {key}: {value}. Available: {', '.join(checks[key])}")
    if key in ("llm.timeout", "llm.max_retries", "context.max_lines", "context.max_size_kb") and value < 1:
        raise ConfigError(f"Invalid {key}: {value}. It must be a positive integer.")
    if key == "llm.model" and not value.strip():
        raise ConfigError(f"Invalid {key}: the model id cannot be empty.")


def _with_value(config: Config, key: str, value: Any) -> Config:
    section, name = _split_key(key)
    updated = replace(getattr(config, section), **{name: value})
    return replace(config, **{section: updated})


def set_value(config: Config, key: str, raw: str) -> Config:
    value = _parse(key, raw, get_value(config, key))
    _validate(key, value)
    return _with_value(config, key, value)


def unset_value(config: Config, key: str) -> Config:
    return _with_value(config, key, get_value(load_default_config(), key))


def render(config: Config) -> str:
    return json.dumps(config.to_dict(), indent=2)
