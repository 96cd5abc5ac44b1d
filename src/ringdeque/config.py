import os
import sys
import tomllib
from dataclasses import dataclass, field, is_dataclass
from pathlib import Path
from typing import Any, ClassVar, TypeVar

from loguru import logger

from ringdeque.behavior import Behavior

# --- Constants ---
APP_NAME = "ringdeque"
CONFIG_ENV_VAR = "RINGDEQUE_CONFIG"
# Use a platform-agnostic user config directory
if sys.platform == "win32":
    CONFIG_DIR = Path.home() / "AppData" / "Roaming" / APP_NAME
else:
    CONFIG_DIR = Path.home() / ".config" / APP_NAME

CONFIG_FILE = CONFIG_DIR / "config.toml"

# --- Dataclass Models for Settings ---
T = TypeVar("T")


@dataclass
class GeneralSettings:
    """Logging settings used by `setup_logging`."""

    log_level_console: str = "INFO"
    log_level_file: str = "DEBUG"
    # Empty disables the JSON file sink.
    log_directory: str = ""


@dataclass
class DequeSettings:
    """Defaults for deques built through `make_deque`."""

    default_capacity: int = 64
    default_behavior: str = Behavior.SATURATING.value
    # Verify slot bookkeeping after every mutation. Slow.
    check_invariants: bool = False


@dataclass
class Settings:
    """Root container for all package settings."""

    general: GeneralSettings = field(default_factory=GeneralSettings)
    deque: DequeSettings = field(default_factory=DequeSettings)

    _instance: ClassVar["Settings | None"] = None

    @classmethod
    def get_instance(cls) -> "Settings":
        """Returns the singleton instance of the Settings object."""
        if cls._instance is None:
            cls._instance = load_config()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """Forgets the singleton so the next access reloads the config file."""
        cls._instance = None


def _update_dataclass(dc_instance: T, data: dict[str, Any]) -> T:
    """Recursively updates a dataclass instance from a dictionary."""
    for f in field_names(dc_instance):
        if f in data:
            field_value = getattr(dc_instance, f)
            if is_dataclass(field_value):
                if isinstance(data[f], dict):
                    _update_dataclass(field_value, data[f])
                else:
                    logger.warning(f"Ignoring '{f}': expected a table.")
            else:
                setattr(dc_instance, f, data[f])
    return dc_instance


def field_names(dc_instance: Any) -> list[str]:
    """Helper to get field names from a dataclass instance."""
    return [f.name for f in dc_instance.__dataclass_fields__.values()]


def _validate(settings_obj: Settings) -> Settings:
    """Replaces invalid settings with their defaults, with a warning."""
    general_defaults = GeneralSettings()
    for name in field_names(general_defaults):
        value = getattr(settings_obj.general, name)
        if not isinstance(value, str):
            logger.warning(f"Invalid {name} {value!r}; expected a string.")
            setattr(settings_obj.general, name, getattr(general_defaults, name))

    defaults = DequeSettings()
    deque_settings = settings_obj.deque

    capacity = deque_settings.default_capacity
    if not isinstance(capacity, int) or isinstance(capacity, bool) or capacity < 0:
        logger.warning(
            f"Invalid default_capacity {capacity!r}; "
            f"using {defaults.default_capacity}."
        )
        deque_settings.default_capacity = defaults.default_capacity

    try:
        deque_settings.default_behavior = Behavior.parse(
            deque_settings.default_behavior
        ).value
    except ValueError as e:
        logger.warning(f"{e} Using '{defaults.default_behavior}'.")
        deque_settings.default_behavior = defaults.default_behavior

    if not isinstance(deque_settings.check_invariants, bool):
        logger.warning(
            f"Invalid check_invariants {deque_settings.check_invariants!r}; "
            "expected true or false."
        )
        deque_settings.check_invariants = defaults.check_invariants

    return settings_obj


def resolve_config_path() -> Path:
    """Returns the config file path, honouring the RINGDEQUE_CONFIG variable."""
    override = os.environ.get(CONFIG_ENV_VAR)
    return Path(override).expanduser() if override else CONFIG_FILE


def load_config(path: Path | None = None) -> Settings:
    """Loads settings from a TOML file, merging them with defaults.

    A missing file is not an error: the defaults are used as they are.

    Args:
        path: The path to the configuration file. Defaults to
            `resolve_config_path()`.

    Returns:
        A populated Settings object.
    """
    path = path or resolve_config_path()
    settings_obj = Settings()
    logger.info(f"Loading configuration from '{path}'...")

    if not path.exists():
        logger.debug(f"Configuration file not found at '{path}'; using defaults.")
        return settings_obj

    try:
        with path.open("rb") as f:
            user_config = tomllib.load(f)
        _update_dataclass(settings_obj, user_config)
        logger.success("Successfully loaded user configuration.")
    except tomllib.TOMLDecodeError as e:
        logger.error(f"Error decoding TOML from '{path}': {e}")
        logger.warning("Using default settings due to configuration error.")
        return Settings()
    except OSError as e:
        logger.error(f"Could not read configuration file '{path}': {e}")
        logger.warning("Using default settings due to configuration error.")
        return Settings()

    return _validate(settings_obj)
