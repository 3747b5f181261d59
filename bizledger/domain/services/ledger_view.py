# bizledger/domain/services/ledger_view.py
"""
Balance-sheet, trial-balance and profit & loss views over backend-computed balances.

Node totals are taken as given (the backend rolls children up); the only
thing checked here is the accounting identity

    Assets = Liabilities + Equity      (within BALANCE_TOLERANCE)

An unbalanced sheet is a result, not an error: it is reported with the
difference and never adjusted.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping

from bizledger.core.config import settings
from bizledger.domain.models.ledger import (
    ZERO,
    AccountGroup,
    BalanceCheck,
    BalanceSheetData,
    BalanceSheetNode,
    EquitySection,
    ProfitAndLossData,
    ReportRow,
    TrialBalanceRow,
    TrialBalanceTotals,
    format_inr,
)

logger = logging.getLogger("ledger_view")

# View states
LOADING = "loading"
EMPTY = "empty"
READY = "ready"


def _sum_nodes(nodes: Iterable[BalanceSheetNode | None]) -> Decimal:
    return sum((node.total for node in nodes if node is not None), ZERO)


def verify_balance(
    assets: Mapping[str, BalanceSheetNode],
    liabilities: Mapping[str, BalanceSheetNode],
    equity: EquitySection,
    tolerance: Decimal | None = None,
) -> BalanceCheck:
    """Check Assets = Liabilities + Equity. Equity is exactly its three named buckets."""
    tolerance = settings.BALANCE_TOLERANCE if tolerance is None else tolerance

    total_assets = _sum_nodes(assets.values())
    total_liabilities = _sum_nodes(liabilities.values())
    total_equity = _sum_nodes(
        (equity.share_capital, equity.reserves_and_surplus, equity.current_period_profit)
    )
    total_le = total_liabilities + total_equity
    difference = abs(total_assets - total_le)

    return BalanceCheck(
        total_assets=total_assets,
        total_liabilities=total_liabilities,
        total_equity=total_equity,
        total_liabilities_and_equity=total_le,
        is_balanced=difference < tolerance,
        difference=difference,
    )


def visible_entries(
    nodes: Mapping[str, BalanceSheetNode | None],
) -> list[tuple[str, BalanceSheetNode]]:
    """Entries to display: zero-total (and missing) nodes are hidden, still counted in sums."""
    return [(key, node) for key, node in nodes.items() if node is not None and node.total != 0]


def build_rows(
    node: BalanceSheetNode,
    expanded: set[str] | None = None,
    expand_all: bool = False,
    level: int = 0,
) -> ReportRow:
    """
    Turn a node into a display row, recursing into children of expanded nodes.

    A node is expanded when ``expand_all`` is set or its account id is in
    ``expanded``. Each level down adds one step of indentation.
    """
    expanded = expanded or set()
    has_children = bool(node.accounts)
    is_open = has_children and (expand_all or (node.account_id is not None and node.account_id in expanded))

    row = ReportRow(
        label=node.account_name,
        amount=node.total,
        level=level,
        account_id=node.account_id,
        account_code=node.account_code,
        has_children=has_children,
        expanded=is_open,
        is_debit=node.total < 0,
    )
    if is_open:
        row.children = [
            build_rows(child, expanded, expand_all, level + 1)
            for child in node.accounts
        ]
    return row


def _section(
    title: str,
    nodes: Mapping[str, BalanceSheetNode | None],
    total: Decimal,
    expanded: set[str] | None,
    expand_all: bool,
) -> dict[str, Any]:
    entries = visible_entries(nodes)
    return {
        "title": title,
        "total": total,
        "rows": [build_rows(node, expanded, expand_all).to_dict() for _, node in entries],
        # A subtotal row is only worth showing when there is more than one entry
        "show_subtotal": len(entries) > 1,
    }


def balance_sheet_view(
    data: BalanceSheetData | None,
    is_loading: bool = False,
    expanded: set[str] | None = None,
    expand_all: bool = False,
) -> dict[str, Any]:
    """Full balance-sheet presentation: loading / empty / ready."""
    if is_loading:
        return {"state": LOADING}
    if data is None:
        return {"state": EMPTY, "message": "No balance sheet data found for the selected date."}

    check = verify_balance(data.assets, data.liabilities, data.equity)
    if not check.is_balanced:
        logger.info(
            "Balance sheet as of %s is unbalanced by %s (assets=%s, liabilities+equity=%s)",
            data.as_of_date, check.difference, check.total_assets, check.total_liabilities_and_equity,
        )

    return {
        "state": READY,
        "as_of_date": data.as_of_date,
        "assets": _section("Assets", data.assets, check.total_assets, expanded, expand_all),
        "liabilities": _section(
            "Liabilities", data.liabilities, check.total_liabilities, expanded, expand_all,
        ),
        "equity": _section("Equity", data.equity.buckets(), check.total_equity, expanded, expand_all),
        "balance_check": check.to_dict(),
    }


def trial_balance_totals(
    rows: Iterable[TrialBalanceRow],
    tolerance: Decimal | None = None,
) -> TrialBalanceTotals:
    """Debits vs credits across all closing balances."""
    tolerance = settings.BALANCE_TOLERANCE if tolerance is None else tolerance
    total_debits = ZERO
    total_credits = ZERO
    for row in rows:
        total_debits += row.closing_debit
        total_credits += row.closing_credit
    difference = total_debits - total_credits
    return TrialBalanceTotals(
        total_debits=total_debits,
        total_credits=total_credits,
        is_balanced=abs(difference) < tolerance,
        difference=difference,
    )


# ---------------------------------------------------------------------------
# Trading and Profit & Loss
# ---------------------------------------------------------------------------

def financial_year_range(today: date | None = None) -> tuple[date, date]:
    """April 1 of the current Indian financial year through ``today``."""
    today = today or date.today()
    start_year = today.year if today.month >= 4 else today.year - 1
    return date(start_year, 4, 1), today


def _group(label: str, group: AccountGroup) -> dict[str, Any]:
    return {
        "label": label,
        "total": group.total,
        "display_total": format_inr(group.total),
        "accounts": [
            {
                "account_id": a.account_id,
                "account_code": a.account_code,
                "account_name": a.account_name,
                "amount": a.amount,
            }
            for a in group.accounts
        ],
    }


def _outcome(amount: Decimal, profit: str, loss: str) -> dict[str, Any]:
    # Zero counts as a profit
    is_profit = amount >= 0
    return {
        "amount": amount,
        "is_profit": is_profit,
        "label": profit if is_profit else loss,
        "display_amount": format_inr(abs(amount)),
    }


def profit_and_loss_view(
    data: ProfitAndLossData | None,
    start: date | None = None,
    end: date | None = None,
    is_loading: bool = False,
) -> dict[str, Any]:
    """Trading account, P&L account and headline figures: loading / empty / ready."""
    if is_loading:
        return {"state": LOADING}
    if data is None:
        return {"state": EMPTY, "message": "No profit & loss data found for the selected period."}

    trading = data.trading_account
    pl = data.profit_loss_account
    indirect = pl.indirect_expenses
    return {
        "state": READY,
        "start_date": start,
        "end_date": end,
        "trading_account": {
            "sales": _group("Sales", trading.sales),
            "cost_of_goods_sold": _group("Cost of Goods Sold", trading.cost_of_goods_sold),
            "direct_expenses": _group("Direct Expenses", trading.direct_expenses),
            "gross_result": _outcome(data.gross_profit, "Gross Profit", "Gross Loss"),
        },
        "profit_loss_account": {
            "other_income": _group("Other Income", pl.other_income),
            "total_income": pl.total_income,
            "indirect_expenses": [
                _group("Employee Benefits Expense", indirect.employee_benefits),
                _group("Finance Costs", indirect.finance_costs),
                _group("Depreciation & Amortization", indirect.depreciation_amortization),
                _group("Other Expenses", indirect.other_expenses),
            ],
            "total_indirect_expenses": pl.total_indirect_expenses,
        },
        "summary": {
            "gross_profit": data.gross_profit,
            "total_income": pl.total_income,
            "profit_before_tax": data.profit_before_tax,
            "net_result": _outcome(data.profit_before_tax, "Net Profit", "Net Loss"),
        },
    }
