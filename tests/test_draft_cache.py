"""Tests for Redis-backed draft storage."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from bizledger.domain.models.document import ESTIMATE
from bizledger.domain.services.document_editor import add_line, new_document
from bizledger.infrastructure.cache.draft_cache import DraftCache


def _redis():
    store = {}
    redis = MagicMock()
    redis.get = AsyncMock(side_effect=lambda key: store.get(key))

    async def _set(key, value, ex=None):
        store[key] = value

    async def _delete(key):
        store.pop(key, None)

    redis.set = AsyncMock(side_effect=_set)
    redis.delete = AsyncMock(side_effect=_delete)
    return redis, store


def test_save_and_load_round_trip(event_loop):
    redis, store = _redis()
    cache = DraftCache(redis, ttl_seconds=60)
    doc = new_document(ESTIMATE, "co-1", document_id="d-1", jurisdiction_from="Goa", document_date=date(2025, 1, 1))
    doc = add_line(doc, description="Service", unit_price=Decimal("99.99"))

    event_loop.run_until_complete(cache.save(doc))
    assert "draft:d-1" in store
    assert redis.set.call_args.kwargs["ex"] == 60

    loaded = event_loop.run_until_complete(cache.get("d-1"))
    assert loaded == doc


def test_missing_draft(event_loop):
    redis, _ = _redis()
    assert event_loop.run_until_complete(DraftCache(redis).get("nope")) is None


def test_unreadable_draft_is_discarded(event_loop):
    redis, store = _redis()
    store["draft:d-1"] = '{"id": "d-1"}'
    assert event_loop.run_until_complete(DraftCache(redis).get("d-1")) is None


def test_delete(event_loop):
    redis, store = _redis()
    store["draft:d-1"] = "{}"
    event_loop.run_until_complete(DraftCache(redis).delete("d-1"))
    assert "draft:d-1" not in store
