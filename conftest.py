"""Pytest configuration and fixtures for labkeys tests.

CRITICAL: Keeps tests away from the real ~/.labkeys config.
"""

import pytest


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Point ConfigManager at a temporary config directory.

    Tests should NEVER read or modify ~/.labkeys/config.toml.

    Example:
        def test_something(isolated_config):
            config_path = isolated_config / "config.toml"
            # Safe to modify - it's in tmp_path
    """
    from labkeys.config_manager import ConfigManager

    config_dir = tmp_path / ".labkeys"
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_DIR", config_dir)
    monkeypatch.setattr(ConfigManager, "DEFAULT_CONFIG_FILE", config_dir / "config.toml")
    return config_dir
