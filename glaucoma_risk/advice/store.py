"""
Advice Store

Reads and writes the risk_assessment_advice table.

Cache contract:
- Reads are served from AdviceCache while it is warm and not expired.
- Every write through this store invalidates the cache, whether or not the
  backend accepted the write.
- Nothing else invalidates or mutates the cache.
"""

import time
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from glaucoma_risk.backend import BackendClient, BackendError
from glaucoma_risk.config import RiskThresholds, DEFAULT_THRESHOLDS

from .models import AdviceEntry

logger = logging.getLogger(__name__)

ADVICE_TABLE = "risk_assessment_advice"


class AdviceUnavailable(Exception):
    """The advice table could not be fetched from the backend."""
    pass


class AdviceWriteError(Exception):
    """An advice write was rejected or failed."""
    pass


class AdviceCache:
    """
    In-memory holder for the last advice table read.

    ttl_seconds <= 0 disables caching (every get() is a miss).

    Every invalidate() starts a new generation. A put() tagged with an older
    generation is dropped, so a read that started before a write cannot
    refill the cache with rows from before that write.
    """

    def __init__(self, ttl_seconds: float = 300.0):
        self.ttl_seconds = ttl_seconds
        self._entries: Optional[List[AdviceEntry]] = None
        self._stored_at: float = 0.0
        self._generation = 0

    def get(self) -> Optional[List[AdviceEntry]]:
        if self._entries is None or self.ttl_seconds <= 0:
            return None
        if time.monotonic() - self._stored_at > self.ttl_seconds:
            logger.debug("Advice cache expired")
            self._entries = None
            return None
        return list(self._entries)

    @property
    def generation(self) -> int:
        return self._generation

    def put(self, entries: List[AdviceEntry], generation: Optional[int] = None) -> None:
        if self.ttl_seconds <= 0:
            return
        if generation is not None and generation != self._generation:
            logger.debug(f"Discarding advice read from generation {generation} (now {self._generation})")
            return
        self._entries = list(entries)
        self._stored_at = time.monotonic()

    def invalidate(self) -> None:
        self._entries = None
        self._generation += 1

    @property
    def is_warm(self) -> bool:
        return self.get() is not None


def parse_advice_row(row: Dict[str, Any], thresholds: RiskThresholds = DEFAULT_THRESHOLDS) -> Optional[AdviceEntry]:
    """
    Build an AdviceEntry from a table row.

    Rows written before the risk_level column existed get a level derived
    from min_score. Invalid rows are dropped (None) and logged.
    """
    data = dict(row)
    if not str(data.get("risk_level") or "").strip() and data.get("min_score") is not None:
        try:
            data["risk_level"] = thresholds.classify(int(data["min_score"])).value
        except (TypeError, ValueError):
            pass
    if data.get("advice") is None:
        data["advice"] = ""

    try:
        return AdviceEntry(**{k: data.get(k) for k in ("id", "min_score", "max_score", "risk_level", "advice")})
    except ValidationError as e:
        logger.warning(f"Dropping advice row {row.get('id')}: {e.error_count()} validation error(s)")
        return None


class AdviceStore:
    """
    Access to the advice table with an explicit invalidate-on-write cache.
    """

    def __init__(
        self,
        client: BackendClient,
        thresholds: RiskThresholds = DEFAULT_THRESHOLDS,
        cache: Optional[AdviceCache] = None,
    ):
        self.client = client
        self.thresholds = thresholds
        self.cache = cache if cache is not None else AdviceCache()

    async def load_advice_table(self) -> List[AdviceEntry]:
        """
        Advice rows ordered by min_score.

        Raises:
            AdviceUnavailable: backend read failed
        """
        cached = self.cache.get()
        if cached is not None:
            logger.debug(f"Advice cache hit ({len(cached)} rows)")
            return cached

        generation = self.cache.generation
        try:
            rows = await self.client.select(ADVICE_TABLE, order=[("min_score", True)])
        except BackendError as e:
            logger.error(f"Advice fetch failed: {e}")
            raise AdviceUnavailable(f"Advice table unavailable: {e}") from e

        entries = []
        for row in rows:
            if not isinstance(row, dict):
                continue
            entry = parse_advice_row(row, self.thresholds)
            if entry is not None:
                entries.append(entry)

        self.cache.put(entries, generation)
        logger.info(f"Loaded {len(entries)} advice rows")
        return list(entries)

    async def upsert_advice(self, entry: AdviceEntry) -> AdviceEntry:
        """
        Update the row with entry.id, or insert/merge on risk_level when no id is given.

        Raises:
            AdviceWriteError: backend rejected the write
        """
        try:
            if entry.id:
                rows = await self.client.update(ADVICE_TABLE, entry.to_row(), filters={"id": f"eq.{entry.id}"})
                if not rows:
                    raise AdviceWriteError(f"Advice row {entry.id} not found")
                stored = rows[0]
            else:
                stored = await self.client.upsert(ADVICE_TABLE, entry.to_row(), on_conflict="risk_level")
        except BackendError as e:
            logger.error(f"Advice write failed: {e}")
            raise AdviceWriteError(f"Advice write failed: {e}") from e
        finally:
            self.cache.invalidate()

        saved = parse_advice_row(stored, self.thresholds)
        if saved is None:
            raise AdviceWriteError("Backend returned an invalid advice row")
        logger.info(f"Saved advice for {saved.risk_level} ({saved.min_score}-{saved.max_score})")
        return saved

    async def delete_advice(self, advice_id: str) -> bool:
        """
        Delete one advice row. Returns False when no row had that id.

        Raises:
            AdviceWriteError: backend rejected the delete
        """
        try:
            rows = await self.client.delete(ADVICE_TABLE, filters={"id": f"eq.{advice_id}"})
        except BackendError as e:
            logger.error(f"Advice delete failed: {e}")
            raise AdviceWriteError(f"Advice delete failed: {e}") from e
        finally:
            self.cache.invalidate()

        logger.info(f"Deleted advice row {advice_id}: {bool(rows)}")
        return bool(rows)
