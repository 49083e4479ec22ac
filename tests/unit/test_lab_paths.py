"""Unit tests for lab_paths module."""

from unittest.mock import patch

import pytest

from labkeys.lab_paths import LabPathError, LabPaths
from tests.utils import file_mode


class TestLabPaths:
    """Test LabPaths."""

    def test_authorized_keys_filename(self, lab_dir):
        """Test the artifact lives directly in the lab directory."""
        assert LabPaths(lab_dir).authorized_keys_filename() == lab_dir / "authorized_keys"

    def test_lab_dir_is_resolved(self, temp_home_dir):
        """Test ~ in the lab directory is expanded."""
        paths = LabPaths("~/labs/demo")

        assert paths.lab_dir == temp_home_dir / "labs" / "demo"

    def test_ensure_lab_dir_creates_missing_directory(self, tmp_path):
        """Test the lab directory and its parents are created."""
        paths = LabPaths(tmp_path / "labs" / "demo")

        result = paths.ensure_lab_dir()

        assert result.is_dir()
        assert file_mode(result) == 0o755

    def test_ensure_lab_dir_keeps_existing_directory(self, lab_dir):
        """Test an existing directory is left as is."""
        lab_dir.chmod(0o700)

        LabPaths(lab_dir).ensure_lab_dir()

        assert file_mode(lab_dir) == 0o700

    def test_ensure_lab_dir_failure(self, tmp_path):
        """Test mkdir failure raises LabPathError."""
        paths = LabPaths(tmp_path / "demo")

        with patch("pathlib.Path.mkdir", side_effect=OSError("read-only file system")):
            with pytest.raises(LabPathError, match="read-only"):
                paths.ensure_lab_dir()
