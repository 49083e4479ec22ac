"""labkeys - authorized_keys aggregation for lab nodes

Philosophy:
- Ruthless simplicity
- Brick architecture (self-contained modules)
- Fail fast, never write a partial file

labkeys collects the SSH public keys found on a lab host into a single
authorized_keys file that the lab's provisioning step injects into nodes,
so operators can SSH into them with their existing keys.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
