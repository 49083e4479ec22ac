"""Configuration management module.

This module handles persistent configuration storage using TOML format.
Stores where public keys are discovered and the default lab directory.

Security:
- Config file permissions: 0600 (owner read/write only)
- Atomic writes (temp file + rename)
"""

import logging
import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

try:
    import tomli  # type: ignore[import]
except ImportError:
    # Fallback for newer Python versions
    try:
        import tomllib as tomli  # type: ignore[import]
    except ImportError as e:
        raise ImportError("toml library not available. Install with: pip install tomli") from e

try:
    import tomlkit
except ImportError as e:
    raise ImportError("tomlkit library not available. Install with: pip install tomlkit") from e

from labkeys.modules.authorized_keys import (
    DEFAULT_AUTHORIZED_KEYS_PATH,
    DEFAULT_PUB_KEYS_GLOB,
)

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}


class ConfigError(Exception):
    """Raised when configuration operations fail."""

    pass


@dataclass
class LabKeysConfig:
    """labkeys configuration data."""

    pub_keys_glob: str = DEFAULT_PUB_KEYS_GLOB
    authorized_keys_path: str = DEFAULT_AUTHORIZED_KEYS_PATH
    lab_dir: str | None = None
    prune_stale: bool = False  # Remove the lab file when no keys are found

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        data = asdict(self)
        # TOML has no null
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LabKeysConfig":
        """Create from dictionary."""
        return cls(
            pub_keys_glob=data.get("pub_keys_glob", DEFAULT_PUB_KEYS_GLOB),
            authorized_keys_path=data.get("authorized_keys_path", DEFAULT_AUTHORIZED_KEYS_PATH),
            lab_dir=data.get("lab_dir"),
            prune_stale=_parse_bool("prune_stale", data.get("prune_stale", False)),
        )


class ConfigManager:
    """Manage labkeys configuration file.

    Configuration is stored at ~/.labkeys/config.toml with secure permissions.
    """

    DEFAULT_CONFIG_DIR = Path.home() / ".labkeys"
    DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

    @classmethod
    def get_config_path(cls, custom_path: str | None = None) -> Path:
        """Get configuration file path.

        Args:
            custom_path: Custom config file path (optional)

        Returns:
            Path to config file

        Raises:
            ConfigError: If a custom path is given but does not exist
        """
        if custom_path:
            path = Path(custom_path).expanduser().resolve()
            if not path.exists():
                raise ConfigError(f"Config file not found: {path}")
            return path

        return cls.DEFAULT_CONFIG_FILE

    @classmethod
    def ensure_config_dir(cls) -> Path:
        """Ensure config directory exists with secure permissions.

        Raises:
            ConfigError: If directory creation fails
        """
        try:
            cls.DEFAULT_CONFIG_DIR.mkdir(parents=True, exist_ok=True)

            # Set secure permissions (owner only: rwx------)
            os.chmod(cls.DEFAULT_CONFIG_DIR, 0o700)

            logger.debug(f"Config directory ready: {cls.DEFAULT_CONFIG_DIR}")
            return cls.DEFAULT_CONFIG_DIR

        except OSError as e:
            raise ConfigError(f"Failed to create config directory: {e}") from e

    @classmethod
    def load_config(cls, custom_path: str | None = None) -> LabKeysConfig:
        """Load configuration from file.

        Args:
            custom_path: Custom config file path (optional)

        Returns:
            LabKeysConfig object (defaults if no file exists)

        Raises:
            ConfigError: If loading fails
        """
        config_path = cls.get_config_path(custom_path)

        if not config_path.exists():
            logger.debug("Config file not found, using defaults")
            return LabKeysConfig()

        try:
            mode = config_path.stat().st_mode & 0o777
            if mode & 0o077:  # Group/other have any permissions
                logger.warning(
                    f"Config file has insecure permissions: {oct(mode)}. Fixing to 0600..."
                )
                os.chmod(config_path, 0o600)

            with open(config_path, "rb") as f:
                data = tomli.load(f)  # type: ignore[attr-defined]

            logger.debug(f"Loaded config from: {config_path}")
            return LabKeysConfig.from_dict(data)

        except Exception as e:
            raise ConfigError(f"Failed to load config: {e}") from e

    @classmethod
    def save_config(cls, config: LabKeysConfig, custom_path: str | None = None) -> None:
        """Save configuration to file.

        Args:
            config: Configuration to save
            custom_path: Custom config file path (optional)

        Raises:
            ConfigError: If saving fails
        """
        temp_path: Path | None = None
        try:
            if custom_path:
                config_path = Path(custom_path).expanduser().resolve()
                config_path.parent.mkdir(parents=True, exist_ok=True)
            else:
                cls.ensure_config_dir()
                config_path = cls.DEFAULT_CONFIG_FILE

            temp_path = config_path.with_suffix(".tmp")

            # Keep comments and formatting of an existing file
            if config_path.exists():
                with open(config_path) as f:
                    doc = tomlkit.load(f)
            else:
                doc = tomlkit.document()

            data = config.to_dict()
            for key, value in data.items():
                doc[key] = value
            for key in [k for k in doc if k not in data]:
                del doc[key]

            with open(temp_path, "w") as f:
                tomlkit.dump(doc, f)

            os.chmod(temp_path, 0o600)
            temp_path.replace(config_path)

            logger.debug(f"Saved config to: {config_path}")

        except Exception as e:
            if temp_path and temp_path.exists():
                temp_path.unlink()
            raise ConfigError(f"Failed to save config: {e}") from e

    @classmethod
    def update_config(cls, custom_path: str | None = None, **updates: Any) -> LabKeysConfig:
        """Update configuration values.

        String values are coerced to the field's type, so values coming
        straight from the command line can be passed through.

        Raises:
            ConfigError: If a key is unknown, a value is invalid, or saving fails
        """
        config = cls.load_config(custom_path)
        known = {f.name: f for f in fields(LabKeysConfig)}

        for key, value in updates.items():
            if key not in known:
                raise ConfigError(
                    f"Unknown config key: {key}. Valid keys: {', '.join(sorted(known))}"
                )
            if key == "prune_stale":
                value = _parse_bool(key, value)
            setattr(config, key, value)

        cls.save_config(config, custom_path)
        return config


def _parse_bool(key: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ConfigError(f"Invalid boolean for {key}: {value}")
