"""Tests for report fetching."""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from bizledger.domain.services.report_service import ReportService
from bizledger.infrastructure.external.backend_client import BackendError, RecordNotFoundError


def _backend(result=None, error=None, owned=True):
    backend = MagicMock()
    backend.rpc = AsyncMock(return_value=result, side_effect=error)
    backend.select = AsyncMock(return_value=[{"id": "acc-1"}] if owned else [])
    return backend


def test_balance_sheet_parsed(event_loop):
    backend = _backend({
        "asOfDate": "2025-03-31",
        "assets": {"cash": {"accountId": "a1", "accountName": "Cash", "total": 100}},
        "liabilities": {},
        "equity": {"share_capital": {"accountId": "e1", "accountName": "Capital", "total": 100}},
    })
    data = event_loop.run_until_complete(ReportService(backend).balance_sheet("co-1", date(2025, 3, 31)))
    assert data.as_of_date == date(2025, 3, 31)
    assert data.assets["cash"].total == Decimal("100")
    backend.rpc.assert_awaited_once_with(
        "generate_detailed_balance_sheet_statement",
        {"p_company_id": "co-1", "p_as_of_date": "2025-03-31"},
    )


def test_balance_sheet_empty_is_none(event_loop):
    data = event_loop.run_until_complete(ReportService(_backend(None)).balance_sheet("co-1", date(2025, 3, 31)))
    assert data is None


def test_balance_sheet_backend_error_propagates(event_loop):
    with pytest.raises(BackendError):
        event_loop.run_until_complete(
            ReportService(_backend(error=BackendError("boom"))).balance_sheet("co-1", date(2025, 3, 31))
        )


def test_trial_balance_totals(event_loop):
    backend = _backend([
        {"account_id": "1", "account_name": "Cash", "closing_debit": 700, "closing_credit": 0},
        {"account_id": "2", "account_name": "Sales", "closing_debit": 0, "closing_credit": 700},
    ])
    rows, totals = event_loop.run_until_complete(ReportService(backend).trial_balance("co-1", date(2025, 3, 31)))
    assert len(rows) == 2
    assert totals.total_debits == Decimal("700")
    assert totals.is_balanced is True


def test_account_ledger(event_loop):
    backend = _backend([
        {"entry_date": "2025-01-02", "narration": "Opening", "debit": 500, "credit": None, "running_balance": 500},
        {"entry_date": "2025-01-05", "narration": "Payment", "debit": None, "credit": 200, "running_balance": 300},
    ])
    entries = event_loop.run_until_complete(
        ReportService(backend).account_ledger("co-1", "acc-1", date(2025, 1, 1), date(2025, 1, 31))
    )
    assert [e.running_balance for e in entries] == [Decimal("500"), Decimal("300")]
    backend.rpc.assert_awaited_once_with(
        "get_account_ledger",
        {"p_account_id": "acc-1", "p_start_date": "2025-01-01", "p_end_date": "2025-01-31"},
    )
    backend.select.assert_awaited_once_with("accounts", {"id": "acc-1", "company_id": "co-1"}, columns="id")


def test_account_ledger_of_another_company_is_not_found(event_loop):
    backend = _backend([{"entry_date": "2025-01-02", "running_balance": 500}], owned=False)
    with pytest.raises(RecordNotFoundError):
        event_loop.run_until_complete(
            ReportService(backend).account_ledger("co-2", "acc-1", date(2025, 1, 1), date(2025, 1, 31))
        )
    backend.rpc.assert_not_called()


def test_profit_and_loss_parsed(event_loop):
    backend = _backend({
        "tradingAccount": {
            "sales": {"total": 250000, "accounts": [
                {"accountId": "s1", "accountCode": "4000", "accountName": "Sales", "amount": 250000},
            ]},
            "costOfGoodsSold": {"total": 150000, "accounts": []},
            "directExpenses": {"total": 20000, "accounts": []},
        },
        "grossProfit": 80000,
        "profitLossAccount": {
            "otherIncome": {"total": 5000, "accounts": []},
            "totalIncome": 85000,
            "indirectExpenses": {
                "employeeBenefits": {"total": 40000, "accounts": []},
                "financeCosts": {"total": 2000, "accounts": []},
                "depreciationAmortization": {"total": 3000, "accounts": []},
                "otherExpenses": {"total": 5000, "accounts": []},
            },
            "totalIndirectExpenses": 50000,
        },
        "profitBeforeTax": 35000,
    })
    data = event_loop.run_until_complete(
        ReportService(backend).profit_and_loss("co-1", date(2024, 4, 1), date(2025, 3, 31))
    )
    assert data.gross_profit == Decimal("80000")
    assert data.trading_account.sales.accounts[0].account_code == "4000"
    assert data.profit_loss_account.indirect_expenses.employee_benefits.total == Decimal("40000")
    assert data.profit_before_tax == Decimal("35000")
    backend.rpc.assert_awaited_once_with(
        "generate_detailed_trading_and_pl_statement",
        {"p_company_id": "co-1", "p_start_date": "2024-04-01", "p_end_date": "2025-03-31"},
    )


def test_profit_and_loss_empty_is_none(event_loop):
    data = event_loop.run_until_complete(
        ReportService(_backend(None)).profit_and_loss("co-1", date(2024, 4, 1), date(2025, 3, 31))
    )
    assert data is None


def test_profit_and_loss_bad_shape_is_backend_error(event_loop):
    with pytest.raises(BackendError):
        event_loop.run_until_complete(
            ReportService(_backend({"grossProfit": "lots"})).profit_and_loss(
                "co-1", date(2024, 4, 1), date(2025, 3, 31),
            )
        )
