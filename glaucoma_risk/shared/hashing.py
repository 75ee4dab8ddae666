"""
Canonical Hashing
=================
Stable JSON digests used to audit scoring runs.

Two scoring runs over the same answers, catalog and advice table must produce
the same digests, so the audit block of an assessment can prove which inputs
produced which result.
"""

import hashlib
import json
from typing import Any, Iterable

# Keys that change between otherwise identical records
VOLATILE_FIELDS = frozenset([
    "created_at",
    "updated_at",
    "created_by",
])


def canonicalize(obj: Any, exclude: Iterable[str] = VOLATILE_FIELDS) -> str:
    """
    Serialize to canonical JSON: sorted keys, no whitespace, volatile keys dropped.

    Pydantic models are dumped in JSON mode first.
    """
    excluded = frozenset(exclude)

    def _clean(o: Any) -> Any:
        if hasattr(o, "model_dump"):
            o = o.model_dump(mode="json")
        if isinstance(o, dict):
            return {
                str(k): _clean(v)
                for k, v in o.items()
                if k not in excluded
            }
        if isinstance(o, (list, tuple)):
            return [_clean(i) for i in o]
        return o

    return json.dumps(_clean(obj), sort_keys=True, separators=(",", ":"), ensure_ascii=True)


def canonical_hash(obj: Any, exclude: Iterable[str] = VOLATILE_FIELDS) -> str:
    """Return "sha256:<hex>" for the canonical form of obj."""
    digest = hashlib.sha256(canonicalize(obj, exclude).encode("utf-8")).hexdigest()
    return f"sha256:{digest}"
