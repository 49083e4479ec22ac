"""
Shared test fixtures for labkeys tests.

This module provides common fixtures used across all test types:
- Temporary home and SSH directories
- Sample public key files
"""

import pytest

from tests.utils import ALICE_KEY, BOB_KEY, HOST_AUTHORIZED_KEYS


# ============================================================================
# DIRECTORY FIXTURES
# ============================================================================


@pytest.fixture
def temp_home_dir(tmp_path, monkeypatch):
    """Temporary home directory for testing.

    Sets HOME so that ~ expansion never reaches the real home directory.
    """
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    monkeypatch.setenv("HOME", str(home_dir))
    return home_dir


@pytest.fixture
def temp_ssh_dir(temp_home_dir):
    """Temporary ~/.ssh directory with owner-only permissions."""
    ssh_dir = temp_home_dir / ".ssh"
    ssh_dir.mkdir(mode=0o700)
    return ssh_dir


@pytest.fixture
def lab_dir(tmp_path):
    """Existing lab directory for generated artifacts."""
    path = tmp_path / "clab-demo"
    path.mkdir()
    return path


# ============================================================================
# KEY FIXTURES
# ============================================================================


@pytest.fixture
def sample_pub_keys(temp_ssh_dir):
    """alice.pub (newline terminated) and bob.pub (no trailing newline)."""
    alice = temp_ssh_dir / "alice.pub"
    bob = temp_ssh_dir / "bob.pub"
    alice.write_text(ALICE_KEY)
    bob.write_text(BOB_KEY)
    return [alice, bob]


@pytest.fixture
def host_authorized_keys(temp_ssh_dir):
    """The host's own ~/.ssh/authorized_keys."""
    path = temp_ssh_dir / "authorized_keys"
    path.write_text(HOST_AUTHORIZED_KEYS)
    return path
