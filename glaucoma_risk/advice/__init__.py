"""
Advice Table

Score range -> risk level -> advice text, editable by administrators.
"""

from .models import AdviceEntry
from .store import (
    AdviceStore,
    AdviceCache,
    AdviceUnavailable,
    AdviceWriteError,
    parse_advice_row,
)

__all__ = [
    "AdviceEntry",
    "AdviceStore",
    "AdviceCache",
    "AdviceUnavailable",
    "AdviceWriteError",
    "parse_advice_row",
]
