"""labkeys modules - Self-contained bricks with clear contracts

- Path Utilities: Resolve ~ and $VAR paths, check and create files
- Authorized Keys: Discover public keys and build the lab authorized_keys file
"""

from . import authorized_keys, path_utils

__all__ = ["authorized_keys", "path_utils"]
