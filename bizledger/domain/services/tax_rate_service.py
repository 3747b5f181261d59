# bizledger/domain/services/tax_rate_service.py
"""
Company GST rate lookup with layered resolution.

Resolution order:
1. Redis (hot cache, TAX_RATE_CACHE_TTL)
2. Backend ``tax_rates`` table (active IGST / CGST / SGST rows)
3. Configured default (DEFAULT_GST_RATE, cannot fail)

Also finds (or creates) the IGST / CGST / SGST rate rows that per-line tax
allocations point at when a document is persisted.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Iterable

import redis.asyncio as aioredis

from bizledger.core.config import settings
from bizledger.domain.models.tax import StandardRateIds
from bizledger.domain.models.tax_rate_config import CompanyTaxRates
from bizledger.infrastructure.external.backend_client import BackendClient

logger = logging.getLogger("tax_rate_service")

_REDIS_KEY_PREFIX = "tax_rate:"
_GST_HEADS = ("IGST", "CGST", "SGST")


def default_company_rates(company_id: str) -> CompanyTaxRates:
    """Hardcoded fallback: the configured default nominal rate, no backend rows."""
    return CompanyTaxRates(
        company_id=company_id,
        nominal_rate=settings.DEFAULT_GST_RATE,
        source="hardcoded",
    )


def _rows_by_name(rows: list[dict]) -> dict[str, list[dict]]:
    by_name: dict[str, list[dict]] = {name: [] for name in _GST_HEADS}
    for row in rows:
        name = row.get("name")
        if name in by_name:
            by_name[name].append({"id": row.get("id"), "rate": Decimal(str(row.get("rate", 0)))})
    return by_name


def _nominal_candidates(by_name: dict[str, list[dict]]) -> list[Decimal]:
    """Every nominal rate the rows can express: IGST@r, or a CGST@c + SGST@c pair."""
    candidates = {row["rate"] for row in by_name["IGST"]}
    sgst_rates = {row["rate"] for row in by_name["SGST"]}
    candidates.update(row["rate"] * 2 for row in by_name["CGST"] if row["rate"] in sgst_rates)
    # Zero-rated rows exist for exempt lines; they never set the company rate.
    return sorted(rate for rate in candidates if rate > 0)


def _nominal_from_rows(by_name: dict[str, list[dict]], company_id: str = "") -> Decimal | None:
    """
    Pick the company's nominal rate from its active rows.

    Independent of row order. The configured default wins when the rows
    support it. Otherwise a rate backed by a full IGST + CGST + SGST set is
    preferred over one-off rows created for single lines. Anything still
    ambiguous returns None and the caller falls back to the default.
    """
    candidates = _nominal_candidates(by_name)
    if settings.DEFAULT_GST_RATE in candidates:
        return settings.DEFAULT_GST_RATE
    complete = [rate for rate in candidates if len(_rows_for_nominal(by_name, rate)) == len(_GST_HEADS)]
    for tier in (complete, candidates):
        if len(tier) == 1:
            return tier[0]
    if candidates:
        logger.warning(
            "Company %s has active rows for several GST rates %s; using the default",
            company_id, [str(rate) for rate in candidates],
        )
    return None


def _rows_for_nominal(by_name: dict[str, list[dict]], nominal: Decimal) -> dict[str, dict]:
    wanted = {"IGST": nominal, "CGST": nominal / 2, "SGST": nominal / 2}
    chosen: dict[str, dict] = {}
    for name, rate in wanted.items():
        for row in by_name[name]:
            if row["rate"] == rate:
                chosen[name] = row
                break
    return chosen


class TaxRateService:
    """Layered resolution: Redis -> backend -> configured default."""

    def __init__(self, backend: BackendClient, redis_client: aioredis.Redis | None = None) -> None:
        self._backend = backend
        self._redis = redis_client

    @staticmethod
    def _key(company_id: str) -> str:
        return f"{_REDIS_KEY_PREFIX}{company_id}"

    # ---- Layer 1: Redis (hot cache) ----

    async def _get_from_redis(self, company_id: str) -> dict | None:
        if self._redis is None:
            return None
        raw = await self._redis.get(self._key(company_id))
        if raw:
            return json.loads(raw)
        return None

    async def _set_in_redis(self, company_id: str, data: dict) -> None:
        if self._redis is None:
            return
        await self._redis.set(
            self._key(company_id), json.dumps(data, default=str), ex=settings.TAX_RATE_CACHE_TTL,
        )

    async def invalidate(self, company_id: str) -> None:
        if self._redis is not None:
            await self._redis.delete(self._key(company_id))

    # ---- Layer 2: backend ----

    async def _get_from_backend(self, company_id: str) -> CompanyTaxRates | None:
        rows = await self._backend.select(
            "tax_rates",
            {"company_id": company_id, "is_active": True, "name": list(_GST_HEADS)},
            columns="id,name,rate",
            order="name,rate,id",
        )
        by_name = _rows_by_name(rows)
        nominal = _nominal_from_rows(by_name, company_id)
        if nominal is None:
            return None
        return CompanyTaxRates(
            company_id=company_id,
            nominal_rate=nominal,
            rows=_rows_for_nominal(by_name, nominal),
            source="backend",
        )

    # ---- Public API ----

    async def get_company_rates(self, company_id: str) -> CompanyTaxRates:
        """
        Layered resolution for a company's GST rates.

        Never raises; always returns a usable CompanyTaxRates.
        """
        # Layer 1: Redis
        try:
            cached = await self._get_from_redis(company_id)
            if cached:
                logger.debug("Tax rates cache HIT (Redis) for company %s", company_id)
                return CompanyTaxRates.from_dict(cached)
        except Exception:
            logger.warning("Redis failed for tax rates of company %s, trying backend", company_id)

        # Layer 2: backend
        try:
            rates = await self._get_from_backend(company_id)
            if rates:
                try:
                    await self._set_in_redis(company_id, rates.to_dict())
                except Exception:
                    logger.warning("Could not re-warm Redis for company %s", company_id)
                return rates
        except Exception:
            logger.warning("Backend failed for tax rates of company %s, using default", company_id)

        # Layer 3: configured default
        logger.info("Using default GST rate %s for company %s", settings.DEFAULT_GST_RATE, company_id)
        return default_company_rates(company_id)

    async def get_nominal_rate(self, company_id: str) -> Decimal:
        return (await self.get_company_rates(company_id)).nominal_rate

    async def get_or_create_rate_ids(
        self,
        company_id: str,
        nominal_rate: Decimal,
        heads: Iterable[str] | None = None,
    ) -> StandardRateIds:
        """
        Ids of the active IGST@rate, CGST@rate/2 and SGST@rate/2 rows, creating any
        that are missing. Raises BackendError if the backend cannot be reached.

        ``heads`` limits the lookup to those names; heads left out stay None.
        """
        half = nominal_rate / 2
        wanted = {"IGST": nominal_rate, "CGST": half, "SGST": half}
        if heads is not None:
            heads = set(heads)
            wanted = {name: rate for name, rate in wanted.items() if name in heads}
        if not wanted:
            return StandardRateIds()

        existing = await self._backend.select(
            "tax_rates",
            {"company_id": company_id, "is_active": True, "name": list(wanted)},
            columns="id,name,rate",
            order="name,rate,id",
        )
        ids: dict[str, str | None] = {name: None for name in _GST_HEADS}
        for row in existing:
            name = row.get("name")
            if name in wanted and ids[name] is None and Decimal(str(row.get("rate", 0))) == wanted[name]:
                ids[name] = row.get("id")

        missing = [
            {"company_id": company_id, "name": name, "rate": float(rate)}
            for name, rate in wanted.items()
            if ids[name] is None
        ]
        if missing:
            logger.info("Creating %d missing tax rate rows for company %s", len(missing), company_id)
            for row in await self._backend.insert("tax_rates", missing):
                name = row.get("name")
                if name in ids and ids[name] is None:
                    ids[name] = row.get("id")
            await self.invalidate(company_id)

        return StandardRateIds(igst=ids["IGST"], cgst=ids["CGST"], sgst=ids["SGST"])


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_service: TaxRateService | None = None


def get_tax_rate_service() -> TaxRateService:
    """Get the singleton TaxRateService instance."""
    global _service
    if _service is None:
        from bizledger.infrastructure.cache.redis_client import get_redis_client
        from bizledger.infrastructure.external.backend_client import get_backend_client

        _service = TaxRateService(get_backend_client(), get_redis_client())
    return _service
