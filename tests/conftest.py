"""Shared test fixtures for the bizledger test suite."""

import asyncio
from decimal import Decimal

import pytest

from bizledger.domain.models.ledger import BalanceSheetData


@pytest.fixture(scope="session")
def event_loop():
    """Use a single event loop for the entire test session."""
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def counterparty_details() -> dict:
    """A customer record as the backend returns it, state only on the billing address."""
    return {
        "id": "cust-1",
        "name": "XYZ Enterprises",
        "gstin": "27AADCB2230M1ZP",
        "billing_state": "Maharashtra",
    }


@pytest.fixture
def unbalanced_sheet() -> BalanceSheetData:
    """Assets 5,00,000 against liabilities 3,00,000 and equity 1,99,500."""
    return BalanceSheetData.model_validate({
        "asOfDate": "2025-03-31",
        "assets": {
            "current_assets": {
                "accountId": "a-1",
                "accountCode": "1100",
                "accountName": "Current Assets",
                "total": Decimal("500000"),
                "accounts": [
                    {"accountId": "a-1-1", "accountName": "Cash", "total": Decimal("200000")},
                    {"accountId": "a-1-2", "accountName": "Bank", "total": Decimal("300000")},
                ],
            },
            "fixed_assets": {"accountId": "a-2", "accountName": "Fixed Assets", "total": Decimal("0")},
        },
        "liabilities": {
            "current_liabilities": {
                "accountId": "l-1",
                "accountName": "Current Liabilities",
                "total": Decimal("300000"),
            },
        },
        "equity": {
            "share_capital": {"accountId": "e-1", "accountName": "Share Capital", "total": Decimal("150000")},
            "reserves_and_surplus": {"accountId": "e-2", "accountName": "Reserves", "total": Decimal("49500")},
            "current_period_profit": None,
        },
    })
