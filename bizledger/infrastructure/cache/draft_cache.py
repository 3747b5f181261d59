import logging

import redis.asyncio as redis
from pydantic import ValidationError

from bizledger.core.config import settings
from bizledger.domain.models.document import Document

logger = logging.getLogger("draft_cache")


class DraftCache:
    """Documents being edited, stored as JSON under ``draft:<id>``."""

    def __init__(self, client: redis.Redis, ttl_seconds: int | None = None):
        self._r = client
        self._ttl = ttl_seconds or settings.DRAFT_TTL_SECONDS

    def _key(self, draft_id: str) -> str:
        return f"draft:{draft_id}"

    async def get(self, draft_id: str) -> Document | None:
        raw = await self._r.get(self._key(draft_id))
        if not raw:
            return None
        try:
            return Document.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable draft %s", draft_id)
            return None

    async def save(self, doc: Document) -> None:
        await self._r.set(self._key(doc.id), doc.model_dump_json(), ex=self._ttl)

    async def delete(self, draft_id: str) -> None:
        await self._r.delete(self._key(draft_id))
