"""Balance sheet, trial balance, profit & loss and account ledger fetched from the backend."""

from __future__ import annotations

import logging
from datetime import date

from pydantic import ValidationError

from bizledger.domain.models.ledger import (
    BalanceSheetData,
    LedgerEntry,
    ProfitAndLossData,
    TrialBalanceRow,
    TrialBalanceTotals,
)
from bizledger.domain.services.ledger_view import trial_balance_totals
from bizledger.infrastructure.external.backend_client import BackendClient, BackendError, ensure_company_record

logger = logging.getLogger("report_service")


class ReportService:
    def __init__(self, backend: BackendClient) -> None:
        self._backend = backend

    async def balance_sheet(self, company_id: str, as_of: date) -> BalanceSheetData | None:
        """None when the backend has nothing for this date."""
        try:
            data = await self._backend.rpc(
                "generate_detailed_balance_sheet_statement",
                {"p_company_id": company_id, "p_as_of_date": as_of.isoformat()},
            )
        except BackendError:
            logger.exception("Fetching balance sheet for company %s as of %s failed", company_id, as_of)
            raise
        if not data:
            return None
        try:
            return BalanceSheetData.model_validate(data)
        except ValidationError as exc:
            raise BackendError("Balance sheet response has an unexpected shape", response=data) from exc

    async def trial_balance(
        self, company_id: str, as_of: date,
    ) -> tuple[list[TrialBalanceRow], TrialBalanceTotals]:
        try:
            data = await self._backend.rpc(
                "generate_trial_balance",
                {"p_company_id": company_id, "p_as_of_date": as_of.isoformat()},
            )
        except BackendError:
            logger.exception("Fetching trial balance for company %s as of %s failed", company_id, as_of)
            raise
        rows = [TrialBalanceRow.model_validate(r) for r in data or []]
        totals = trial_balance_totals(rows)
        if not totals.is_balanced:
            logger.info(
                "Trial balance for company %s as of %s is off by %s", company_id, as_of, totals.difference,
            )
        return rows, totals

    async def profit_and_loss(self, company_id: str, start: date, end: date) -> ProfitAndLossData | None:
        """Trading and P&L for the period; None when the backend has nothing for it."""
        try:
            data = await self._backend.rpc(
                "generate_detailed_trading_and_pl_statement",
                {
                    "p_company_id": company_id,
                    "p_start_date": start.isoformat(),
                    "p_end_date": end.isoformat(),
                },
            )
        except BackendError:
            logger.exception("Fetching profit and loss for company %s (%s to %s) failed", company_id, start, end)
            raise
        if not data:
            return None
        try:
            return ProfitAndLossData.model_validate(data)
        except ValidationError as exc:
            raise BackendError("Profit and loss response has an unexpected shape", response=data) from exc

    async def account_ledger(
        self, company_id: str, account_id: str, start: date, end: date,
    ) -> list[LedgerEntry]:
        await ensure_company_record(self._backend, "accounts", account_id, company_id)
        try:
            data = await self._backend.rpc(
                "get_account_ledger",
                {
                    "p_account_id": account_id,
                    "p_start_date": start.isoformat(),
                    "p_end_date": end.isoformat(),
                },
            )
        except BackendError:
            logger.exception("Fetching ledger for account %s failed", account_id)
            raise
        return [LedgerEntry.model_validate(r) for r in data or []]


_service: ReportService | None = None


def get_report_service() -> ReportService:
    global _service
    if _service is None:
        from bizledger.infrastructure.external.backend_client import get_backend_client

        _service = ReportService(get_backend_client())
    return _service
