"""Lab directory layout.

The lab directory holds artifacts generated for a lab build. The
authorized_keys file written there is what the node provisioning step
mounts or copies into each node.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from labkeys.modules.path_utils import resolve_path

logger = logging.getLogger(__name__)

AUTHORIZED_KEYS_FILENAME = "authorized_keys"
LAB_DIR_MODE = 0o755


class LabPathError(Exception):
    """Raised when the lab directory cannot be prepared."""

    pass


@dataclass
class LabPaths:
    """Paths of the files generated for one lab."""

    lab_dir: Path

    def __post_init__(self) -> None:
        self.lab_dir = resolve_path(self.lab_dir)

    def authorized_keys_filename(self) -> Path:
        """Path of the aggregated authorized_keys file for this lab."""
        return self.lab_dir / AUTHORIZED_KEYS_FILENAME

    def ensure_lab_dir(self) -> Path:
        """Create the lab directory if missing.

        Returns:
            Path to the lab directory

        Raises:
            LabPathError: If the directory cannot be created
        """
        if self.lab_dir.is_dir():
            return self.lab_dir

        try:
            self.lab_dir.mkdir(parents=True, exist_ok=True)
            os.chmod(self.lab_dir, LAB_DIR_MODE)
        except OSError as e:
            raise LabPathError(f"Failed to create lab directory {self.lab_dir}: {e}") from e

        logger.debug(f"Created lab directory: {self.lab_dir}")
        return self.lab_dir
