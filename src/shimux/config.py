"""Configuration for shimux.

Values come from three layers, later layers winning:

1. defaults declared on the pydantic models below
2. a TOML file (``SHIMUX_CONFIG_FILE`` or ``~/.config/shimux/config.toml``)
3. ``SHIMUX_<SECTION>_<FIELD>`` environment variables
"""
import logging
import os
import re
import tomllib
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

ENV_PREFIX = "SHIMUX"
DEFAULT_CONFIG_PATH = Path("~/.config/shimux/config.toml")


class ServerConfig(BaseModel):
    """Control endpoint settings."""
    host: str = Field("127.0.0.1", description="Address the control server binds to")
    port: int = Field(21591, description="Control server port")
    auto_start: bool = Field(True, description="Start the server on demand from the CLI")


class LayoutConfig(BaseModel):
    """Viewport arrangement settings."""
    display_width: int = Field(240, description="Initial display width in columns")
    min_column_width: int = Field(80, description="Narrowest viewport show-all will create")


class LaunchConfig(BaseModel):
    """Session launch settings."""
    backend: str = Field("pty", description="Terminal backend: pty or inherit")
    shell: str = Field(default_factory=lambda: os.environ.get("SHELL", "/bin/sh"),
                       description="Shell spawned for new panes")
    session_command: str = Field("claude", description="Command run by start-session")
    shim_dir: str = Field("", description="Directory holding the tmux shim (empty: bundled)")
    debug: bool = Field(False, description="Export the debug flag to launched sessions")
    extra_env: Dict[str, str] = Field(default_factory=dict,
                                      description="Additional variables for launched sessions")


class LoggingConfig(BaseModel):
    """Logging settings."""
    level: str = Field("INFO", description="Log level")
    client_log_file: str = Field("", description="Log file for the TUI (empty: no logging)")


class Config(BaseModel):
    """Complete shimux configuration."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    launch: LaunchConfig = Field(default_factory=LaunchConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


_config: Optional[Config] = None


def generate_env_var_name(section: str, field: str) -> str:
    """Build the override variable for a config field."""
    return f"{ENV_PREFIX}_{section.upper()}_{field.upper()}"


def get_all_env_mappings() -> Dict[str, Tuple[str, str]]:
    """Map every overridable variable name to its (section, field).

    Only scalar fields are overridable; mappings such as ``extra_env`` are
    file-only.
    """
    mappings = {}
    for section, section_field in Config.model_fields.items():
        section_model = section_field.annotation
        for field, info in section_model.model_fields.items():
            if info.annotation in (str, int, bool):
                mappings[generate_env_var_name(section, field)] = (section, field)
    return mappings


def _convert_env_value(value: str) -> Any:
    """Convert an environment string to bool, int or str."""
    lowered = value.lower()
    if lowered in ("true", "yes", "on"):
        return True
    if lowered in ("false", "no", "off"):
        return False
    try:
        return int(value)
    except ValueError:
        pass
    # "1"/"0" already became ints above; pydantic coerces them for bool fields
    return value


def load_all_env_overrides() -> Dict[str, Dict[str, Any]]:
    """Collect overrides from the environment, grouped by section."""
    overrides: Dict[str, Dict[str, Any]] = {}
    for env_var, (section, field) in get_all_env_mappings().items():
        value = os.environ.get(env_var)
        if value is None:
            continue
        overrides.setdefault(section, {})[field] = _convert_env_value(value)
    return overrides


def load_config(config_path: Optional[str] = None) -> Config:
    """Load configuration from file and environment."""
    if config_path is None:
        config_path = os.environ.get(f"{ENV_PREFIX}_CONFIG_FILE")
    path = Path(config_path).expanduser() if config_path else DEFAULT_CONFIG_PATH.expanduser()

    data: Dict[str, Any] = {}
    if path.exists():
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            logger.debug(f"Loaded config from {path}")
        except (OSError, tomllib.TOMLDecodeError) as e:
            logger.warning(f"Ignoring unreadable config file {path}: {e}")
            data = {}

    for section, values in load_all_env_overrides().items():
        data.setdefault(section, {}).update(values)

    return Config(**data)


def get_config() -> Config:
    """Return the process-wide configuration, loading it on first use."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def set_config(config: Optional[Config]) -> None:
    """Replace the process-wide configuration (None forces a reload)."""
    global _config
    _config = config


_TOML_ESCAPES = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\r": "\\r", "\t": "\\t"}


def _toml_string(value: str) -> str:
    escaped = "".join(
        _TOML_ESCAPES.get(char, f"\\u{ord(char):04x}" if ord(char) < 0x20 or ord(char) == 0x7f else char)
        for char in value
    )
    return f'"{escaped}"'


def _toml_key(key: str) -> str:
    if key and re.fullmatch(r"[A-Za-z0-9_-]+", key):
        return key
    return _toml_string(key)


def _toml_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    return _toml_string(str(value))


def dump_config_toml(config: Config) -> str:
    """Render a config as TOML."""
    lines = []
    tables = []
    for section, model in config:
        lines.append(f"[{section}]")
        for field, value in model:
            if isinstance(value, dict):
                tables.append((f"{section}.{field}", value))
                continue
            lines.append(f"{field} = {_toml_value(value)}")
        lines.append("")
    for name, values in tables:
        lines.append(f"[{name}]")
        for key, value in values.items():
            lines.append(f"{_toml_key(key)} = {_toml_value(value)}")
        lines.append("")
    return "\n".join(lines)


def dump_config_env(config: Config) -> str:
    """Render a config as SHIMUX_* environment assignments."""
    lines = []
    for env_var, (section, field) in get_all_env_mappings().items():
        value = getattr(getattr(config, section), field)
        if isinstance(value, bool):
            value = "true" if value else "false"
        lines.append(f"{env_var}={value}")
    return "\n".join(lines)
