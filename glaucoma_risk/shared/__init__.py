"""Shared utilities"""

from .hashing import canonicalize, canonical_hash
from .admin_auth import verify_admin_key

__all__ = [
    "canonicalize",
    "canonical_hash",
    "verify_admin_key",
]
