"""
Authorized Keys Aggregator Module

Collect the SSH public keys found on the lab host into a single
authorized_keys file for lab nodes.

Sources, in order:
- Every file matching the public key glob (default: ~/.ssh/*.pub), sorted by name
- The host's own authorized_keys file (default: ~/.ssh/authorized_keys), if present

Guarantees:
- Every entry in the output ends with a newline
- All sources are read before the destination is touched (no partial file)
- Output permissions: 0644 (readable by all, so node users can read it)
- No key validation, no deduplication
"""

import logging
import os
from dataclasses import dataclass, field
from glob import glob
from pathlib import Path

from labkeys.modules.path_utils import create_file, file_exists, resolve_path

logger = logging.getLogger(__name__)

DEFAULT_PUB_KEYS_GLOB = "~/.ssh/*.pub"
DEFAULT_AUTHORIZED_KEYS_PATH = "~/.ssh/authorized_keys"
AUTHORIZED_KEYS_MODE = 0o644

SOURCE_KIND_GLOB = "glob"
SOURCE_KIND_AUTHORIZED_KEYS = "authorized_keys"


class AuthorizedKeysError(Exception):
    """Raised when building the authorized_keys file fails."""

    def __init__(
        self,
        message: str,
        path: Path | str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.path = path
        self.cause = cause


class DiscoveryError(AuthorizedKeysError):
    """Raised when the public key glob is malformed."""
    pass


class ReadError(AuthorizedKeysError):
    """Raised when a key source cannot be read. Nothing has been written."""
    pass


class WriteError(AuthorizedKeysError):
    """Raised when the destination file cannot be written."""
    pass


class FileModeError(AuthorizedKeysError):
    """Raised when the destination mode cannot be set.

    The content has already been written when this is raised.
    """
    pass


@dataclass
class KeySource:
    """A file believed to contain public keys."""
    path: Path
    kind: str = SOURCE_KIND_GLOB


@dataclass
class AggregationResult:
    """Outcome of a successful build."""
    destination: Path
    sources: list[KeySource] = field(default_factory=list)
    bytes_written: int = 0
    written: bool = False
    removed_stale: bool = False


def validate_glob_pattern(pattern: str) -> None:
    """
    Reject malformed glob patterns.

    Python's glob silently treats a broken pattern as a literal, which
    would turn a typo into "no keys found". Rejected instead:
    - an empty pattern
    - a trailing ``\\``
    - an unclosed ``[`` or an empty class (``[]``, ``[!]``)
    - a range missing an endpoint (``[-a]``, ``[a-]``)

    Raises:
        DiscoveryError: If the pattern is malformed
    """
    if not pattern:
        raise DiscoveryError("Malformed glob pattern: empty pattern", path=pattern)

    if pattern.endswith("\\"):
        raise DiscoveryError(
            f"Malformed glob pattern {pattern}: trailing escape character", path=pattern
        )

    i = 0
    n = len(pattern)
    while i < n:
        if pattern[i] != "[":
            i += 1
            continue

        start = i + 1
        if start < n and pattern[start] in "!^":
            start += 1

        close = pattern.find("]", start)
        if close == -1:
            raise DiscoveryError(
                f"Malformed glob pattern {pattern}: unclosed '[' at position {i}",
                path=pattern,
            )
        if close == start:
            raise DiscoveryError(
                f"Malformed glob pattern {pattern}: empty character class at position {i}",
                path=pattern,
            )

        members = pattern[start:close]
        if members.startswith("-") or members.endswith("-"):
            raise DiscoveryError(
                f"Malformed glob pattern {pattern}: incomplete range at position {i}",
                path=pattern,
            )
        i = close + 1


def normalize_key_content(content: bytes) -> bytes:
    """Ensure content ends with a newline so entries never merge."""
    if not content.endswith(b"\n"):
        return content + b"\n"
    return content


class KeyAggregator:
    """
    Build a lab authorized_keys file from the host's public keys.

    Both source conventions are injectable so the aggregator can run
    against any directory, not only the real home directory.

    Example:
        >>> aggregator = KeyAggregator()
        >>> result = aggregator.build("/labs/demo/authorized_keys")
        >>> print(result.bytes_written)
    """

    def __init__(
        self,
        pub_keys_glob: str = DEFAULT_PUB_KEYS_GLOB,
        authorized_keys_path: str | Path | None = DEFAULT_AUTHORIZED_KEYS_PATH,
        prune_stale: bool = False,
    ):
        """
        Args:
            pub_keys_glob: Shell-style glob matching public key files
            authorized_keys_path: Existing authorized_keys file to include
                when present (None to skip)
            prune_stale: Remove an existing destination when no sources
                are found, instead of leaving it in place
        """
        self.pub_keys_glob = pub_keys_glob
        self.authorized_keys_path = authorized_keys_path
        self.prune_stale = prune_stale

    def discover_sources(self) -> list[KeySource]:
        """
        Find key sources: sorted glob matches, then authorized_keys if present.

        Returns:
            list[KeySource]: Sources in the order they will be concatenated

        Raises:
            DiscoveryError: If the glob pattern is malformed
        """
        try:
            pattern = str(resolve_path(self.pub_keys_glob))
        except ValueError as e:
            raise DiscoveryError(
                f"Malformed glob pattern {self.pub_keys_glob!r}: {e}",
                path=self.pub_keys_glob,
                cause=e,
            ) from e
        validate_glob_pattern(pattern)

        # Dot-files count as keys too, e.g. ~/.ssh/.work.pub
        matches = glob(pattern, include_hidden=True)
        sources = [KeySource(path=Path(p)) for p in sorted(matches)]

        if self.authorized_keys_path:
            authz_path = resolve_path(self.authorized_keys_path)
            if file_exists(authz_path):
                logger.debug(f"{authz_path} found, adding the public keys it contains")
                sources.append(KeySource(path=authz_path, kind=SOURCE_KIND_AUTHORIZED_KEYS))

        return sources

    def build(self, destination: str | Path) -> AggregationResult:
        """
        Build the authorized_keys file at destination.

        Args:
            destination: Output file path (parent directory must exist)

        Returns:
            AggregationResult: What was written. ``written`` is False when
            no sources were found, in which case nothing is created.

        Raises:
            DiscoveryError: If the glob pattern is malformed
            ReadError: If any source cannot be read
            WriteError: If the destination cannot be written
            FileModeError: If the destination mode cannot be set
        """
        destination = resolve_path(destination)
        sources = self.discover_sources()

        if not sources:
            logger.debug("No public keys found")
            result = AggregationResult(destination=destination)
            if self.prune_stale and destination.exists():
                result.removed_stale = self._remove_stale(destination)
            return result

        logger.debug(f"Found public key files: {[str(s.path) for s in sources]}")

        blob = self._read_sources(sources)
        self._write(destination, blob)

        logger.info(f"Wrote {len(sources)} key source(s) to {destination}")
        return AggregationResult(
            destination=destination,
            sources=sources,
            bytes_written=len(blob),
            written=True,
        )

    def _read_sources(self, sources: list[KeySource]) -> bytes:
        """Read and concatenate all sources, failing on the first unreadable one."""
        chunks = []
        for source in sources:
            try:
                content = source.path.read_bytes()
            except OSError as e:
                raise ReadError(
                    f"Failed reading the file {source.path}: {e}", path=source.path, cause=e
                ) from e
            chunks.append(normalize_key_content(content))
        return b"".join(chunks)

    def _write(self, destination: Path, blob: bytes) -> None:
        try:
            create_file(destination, blob)
        except OSError as e:
            raise WriteError(
                f"Failed writing {destination}: {e}", path=destination, cause=e
            ) from e

        # Readable by any user on the node, regardless of umask
        try:
            os.chmod(destination, AUTHORIZED_KEYS_MODE)
        except OSError as e:
            raise FileModeError(
                f"Wrote {destination} but failed to set mode "
                f"{oct(AUTHORIZED_KEYS_MODE)}: {e}",
                path=destination,
                cause=e,
            ) from e

    def _remove_stale(self, destination: Path) -> bool:
        try:
            destination.unlink()
        except OSError as e:
            raise WriteError(
                f"Failed removing stale {destination}: {e}", path=destination, cause=e
            ) from e
        logger.info(f"No public keys found, removed stale {destination}")
        return True


def build_authorized_keys_file(
    destination: str | Path,
    pub_keys_glob: str = DEFAULT_PUB_KEYS_GLOB,
    authorized_keys_path: str | Path | None = DEFAULT_AUTHORIZED_KEYS_PATH,
    prune_stale: bool = False,
) -> AggregationResult:
    """
    Build an authorized_keys file (convenience function).

    Example:
        >>> from labkeys.modules.authorized_keys import build_authorized_keys_file
        >>> build_authorized_keys_file("/labs/demo/authorized_keys")
    """
    aggregator = KeyAggregator(
        pub_keys_glob=pub_keys_glob,
        authorized_keys_path=authorized_keys_path,
        prune_stale=prune_stale,
    )
    return aggregator.build(destination)
