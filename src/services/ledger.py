"""Job ledger: the cache-backed index of outstanding transcription batches."""

import json
import logging
from typing import Optional

from pydantic import ValidationError

from src.schemas.schemas import TranscriptionBatch
from src.services.cache import Cache

logger = logging.getLogger(__name__)

ACTIVE_INDEX_KEY = "transcription:jobs:list"
BATCH_KEY_PREFIX = "transcription:job:"

DEFAULT_TTL_SECONDS = 24 * 60 * 60


def batch_key(batch_id: str) -> str:
    """Cache key of a batch record."""
    return f"{BATCH_KEY_PREFIX}{batch_id}"


class TranscriptionLedger:
    """
    Typed repository over two cache conventions:

    - ``transcription:jobs:list`` holds a JSON array of active batch IDs
    - ``transcription:job:{batchId}`` holds one serialized ``TranscriptionBatch``

    The two keys are not updated atomically. Readers must tolerate an index
    entry without a record (and the reverse) and treat it as nothing to do.
    """

    def __init__(self, cache: Cache, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self._cache = cache
        self._ttl = ttl_seconds

    # ---- batch records ----

    async def save(self, batch: TranscriptionBatch) -> None:
        """Write the batch record, then append its ID to the active index."""
        await self._cache.set(batch_key(batch.batch_id), batch.to_json(), self._ttl)
        await self.add(batch.batch_id)

    async def load(self, batch_id: str) -> Optional[TranscriptionBatch]:
        """Return the batch record, or None if it is missing or unreadable."""
        raw = await self._cache.get(batch_key(batch_id))
        if not raw:
            return None
        try:
            return TranscriptionBatch.model_validate_json(raw)
        except ValidationError as e:
            logger.error(f"Error decoding batch {batch_id}: {e}")
            return None

    async def delete(self, batch_id: str) -> None:
        await self._cache.delete(batch_key(batch_id))

    async def exists(self, batch_id: str) -> bool:
        return await self._cache.exists(batch_key(batch_id))

    # ---- active index ----

    async def list_active(self) -> list[str]:
        """Active batch IDs in insertion order; a corrupt index reads as empty."""
        raw = await self._cache.get(ACTIVE_INDEX_KEY)
        if not raw:
            return []
        try:
            ids = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error(f"Error decoding job list: {e}")
            return []
        if not isinstance(ids, list):
            logger.error(f"Job list has unexpected type {type(ids).__name__}, ignoring")
            return []
        return [str(i) for i in ids if i]

    async def add(self, batch_id: str) -> None:
        ids = await self.list_active()
        if batch_id in ids:
            return
        ids.append(batch_id)
        await self._write_index(ids)

    async def remove(self, batch_id: str) -> None:
        ids = await self.list_active()
        if batch_id not in ids:
            return
        await self._write_index([i for i in ids if i != batch_id])

    async def _write_index(self, ids: list[str]) -> None:
        if not ids:
            await self._cache.delete(ACTIVE_INDEX_KEY)
            return
        await self._cache.set(ACTIVE_INDEX_KEY, json.dumps(ids), self._ttl)

    # ---- queries ----

    async def find_by_tenant(self, tenant_id: str) -> Optional[TranscriptionBatch]:
        """First active batch owned by the tenant; orphan index entries are skipped."""
        for batch_id in await self.list_active():
            batch = await self.load(batch_id)
            if batch is not None and batch.tenant_id == tenant_id:
                return batch
        return None

    async def finish(self, batch_id: str) -> None:
        """Drop a fully reconciled batch: record first, then its index entry."""
        await self.delete(batch_id)
        await self.remove(batch_id)
