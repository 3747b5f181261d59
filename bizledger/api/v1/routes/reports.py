# bizledger/api/v1/routes/reports.py
"""Balance sheet, trial balance, profit & loss and account ledger."""

from __future__ import annotations

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status

from bizledger.api.v1.deps import get_company_id, report_service
from bizledger.api.v1.envelope import ok
from bizledger.domain.services.ledger_view import balance_sheet_view, financial_year_range, profit_and_loss_view
from bizledger.domain.services.report_service import ReportService

logger = logging.getLogger("api.v1.reports")

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/balance-sheet", response_model=dict)
async def balance_sheet(
    as_of: date | None = Query(default=None, description="Defaults to today"),
    expanded: list[str] | None = Query(default=None, description="Account ids to expand"),
    expand_all: bool = Query(default=False),
    company_id: str = Depends(get_company_id),
    reports: ReportService = Depends(report_service),
):
    """An unbalanced sheet is still a 200; see ``balance_check``."""
    data = await reports.balance_sheet(company_id, as_of or date.today())
    return ok(data=balance_sheet_view(data, expanded=set(expanded or []), expand_all=expand_all))


@router.get("/trial-balance", response_model=dict)
async def trial_balance(
    as_of: date | None = Query(default=None, description="Defaults to today"),
    company_id: str = Depends(get_company_id),
    reports: ReportService = Depends(report_service),
):
    rows, totals = await reports.trial_balance(company_id, as_of or date.today())
    return ok(data={
        "rows": [r.model_dump() for r in rows],
        "totals": totals.to_dict(),
    })


@router.get("/profit-and-loss", response_model=dict)
async def profit_and_loss(
    start: date | None = Query(default=None, description="Defaults to April 1 of the current financial year"),
    end: date | None = Query(default=None, description="Defaults to today"),
    company_id: str = Depends(get_company_id),
    reports: ReportService = Depends(report_service),
):
    default_start, default_end = financial_year_range()
    start = start or default_start
    end = end or default_end
    if end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end must not be before start")
    data = await reports.profit_and_loss(company_id, start, end)
    return ok(data=profit_and_loss_view(data, start, end))


@router.get("/accounts/{account_id}/ledger", response_model=dict)
async def account_ledger(
    account_id: str,
    start: date = Query(...),
    end: date = Query(...),
    company_id: str = Depends(get_company_id),
    reports: ReportService = Depends(report_service),
):
    if end < start:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="end must not be before start")
    entries = await reports.account_ledger(company_id, account_id, start, end)
    return ok(data=[e.model_dump() for e in entries])
