"""Path and file primitives.

Small helpers shared by the key aggregation code and the CLI:
- resolve_path: expand ~ and environment variables into an absolute path
- file_exists: regular-file existence check
- create_file: write content to a path, replacing what was there
"""

import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)


def resolve_path(path: str | Path, base_dir: str | Path | None = None) -> Path:
    """Resolve a user-supplied path into an absolute path.

    Expands a leading ``~`` and any ``$VAR`` / ``${VAR}`` references.
    Relative results are anchored at ``base_dir`` (current directory if
    not given). Glob characters are left untouched, so this is safe to use
    on patterns.

    Args:
        path: Path or pattern to resolve
        base_dir: Directory relative paths are resolved against

    Returns:
        Absolute path

    Raises:
        ValueError: If path is empty

    Example:
        >>> resolve_path("~/.ssh/*.pub")
        PosixPath('/home/user/.ssh/*.pub')
    """
    raw = str(path)
    if not raw:
        raise ValueError("Path must not be empty")

    expanded = Path(os.path.expanduser(os.path.expandvars(raw)))

    if not expanded.is_absolute():
        base = Path(base_dir) if base_dir is not None else Path.cwd()
        expanded = base / expanded

    return Path(os.path.normpath(expanded))


def file_exists(path: str | Path) -> bool:
    """Return True if path exists and is a regular file."""
    return Path(path).is_file()


def create_file(path: str | Path, content: bytes | str) -> None:
    """Write content to path, truncating any previous content.

    The parent directory must already exist. OSError propagates to the
    caller.
    """
    data = content.encode() if isinstance(content, str) else content
    with open(path, "wb") as f:
        f.write(data)
    logger.debug(f"Wrote {len(data)} bytes to {path}")
