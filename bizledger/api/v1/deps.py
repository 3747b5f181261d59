# bizledger/api/v1/deps.py
"""
FastAPI dependencies for the v1 API layer.

Authentication happens upstream; the caller's tenant arrives in the
``X-Company-Id`` header and every draft/report call is scoped to it.
"""

from __future__ import annotations

import logging

from fastapi import Header, HTTPException, status

from bizledger.domain.services.document_service import DocumentService, get_document_service
from bizledger.domain.services.report_service import ReportService, get_report_service
from bizledger.domain.services.tax_rate_service import TaxRateService, get_tax_rate_service

logger = logging.getLogger("api.v1.deps")


async def get_company_id(x_company_id: str | None = Header(None)) -> str:
    """Raises HTTP 400 when the tenant header is missing or blank."""
    if not x_company_id or not x_company_id.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing X-Company-Id header",
        )
    return x_company_id.strip()


def document_service() -> DocumentService:
    return get_document_service()


def report_service() -> ReportService:
    return get_report_service()


def tax_rate_service() -> TaxRateService:
    return get_tax_rate_service()
