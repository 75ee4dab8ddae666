"""
Hosted backend access (PostgREST tables + RPC).
"""

from .client import (
    BackendClient,
    BackendError,
    BackendAuthError,
    BackendNotFoundError,
    BackendValidationError,
    build_order,
    in_filter,
)

__all__ = [
    "BackendClient",
    "BackendError",
    "BackendAuthError",
    "BackendNotFoundError",
    "BackendValidationError",
    "build_order",
    "in_filter",
]
