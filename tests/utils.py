"""
Test utilities for labkeys tests.

Sample key material and small assertion helpers.
"""

import os
from pathlib import Path

ALICE_KEY = "ssh-rsa AAAAB3NzaC1yc2EAAAADAQABAAABAQC alice@host\n"
BOB_KEY = "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIBob bob@host"  # no trailing newline
HOST_AUTHORIZED_KEYS = "ssh-ed25519 AAAAC3NzaC1lZDI1NTE5AAAAIOps ops@bastion\n"


def file_mode(path: Path) -> int:
    """Permission bits of path."""
    return os.stat(path).st_mode & 0o777
