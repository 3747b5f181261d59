# bizledger/api/v1/routes/tax.py
"""GST computation and company rate lookup."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from bizledger.api.v1.deps import get_company_id, tax_rate_service
from bizledger.api.v1.envelope import ok
from bizledger.api.v1.schemas.tax import TaxComputeRequest
from bizledger.core.config import settings
from bizledger.domain.services.tax_engine import classify_supply, compute_tax
from bizledger.domain.services.tax_rate_service import TaxRateService

logger = logging.getLogger("api.v1.tax")

router = APIRouter(prefix="/tax", tags=["Tax"])


@router.post("/compute", response_model=dict)
async def compute(body: TaxComputeRequest):
    """Split one line amount into IGST or CGST + SGST."""
    rate = body.nominal_rate if body.nominal_rate is not None else settings.DEFAULT_GST_RATE
    breakdown = compute_tax(body.line_total, body.jurisdiction_from, body.jurisdiction_to, rate)
    return ok(data={
        "regime": classify_supply(body.jurisdiction_from, body.jurisdiction_to),
        "nominal_rate": rate,
        **breakdown.model_dump(),
    })


@router.get("/rates", response_model=dict)
async def company_rates(
    company_id: str = Depends(get_company_id),
    rates: TaxRateService = Depends(tax_rate_service),
):
    """The company's nominal GST rate and where it was resolved from."""
    resolved = await rates.get_company_rates(company_id)
    return ok(data=resolved.to_dict())
