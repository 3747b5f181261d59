"""Tests for balance-sheet, trial-balance and profit & loss views."""

from datetime import date
from decimal import Decimal

from bizledger.domain.models.ledger import (
    BalanceSheetNode,
    EquitySection,
    ProfitAndLossData,
    TrialBalanceRow,
    format_inr,
)
from bizledger.domain.services.ledger_view import (
    EMPTY,
    LOADING,
    READY,
    balance_sheet_view,
    build_rows,
    financial_year_range,
    profit_and_loss_view,
    trial_balance_totals,
    verify_balance,
    visible_entries,
)


def _node(name: str, total: str, children=None) -> BalanceSheetNode:
    return BalanceSheetNode(account_id=name.lower(), account_name=name, total=Decimal(total), accounts=children or [])


class TestVerifyBalance:
    def test_unbalanced_by_five_hundred(self, unbalanced_sheet):
        check = verify_balance(unbalanced_sheet.assets, unbalanced_sheet.liabilities, unbalanced_sheet.equity)
        assert check.total_assets == Decimal("500000")
        assert check.total_liabilities_and_equity == Decimal("499500")
        assert check.difference == Decimal("500")
        assert check.is_balanced is False

    def test_within_tolerance_is_balanced(self):
        check = verify_balance(
            {"a": _node("A", "100.005")},
            {"l": _node("L", "60")},
            EquitySection(share_capital=_node("E", "40")),
        )
        assert check.is_balanced is True

    def test_at_tolerance_is_not_balanced(self):
        check = verify_balance(
            {"a": _node("A", "100.01")},
            {"l": _node("L", "100")},
            EquitySection(),
        )
        assert check.is_balanced is False

    def test_missing_equity_buckets_count_as_zero(self):
        check = verify_balance({"a": _node("A", "10")}, {"l": _node("L", "10")}, EquitySection())
        assert check.total_equity == 0
        assert check.is_balanced is True


class TestRows:
    def test_zero_entries_hidden(self, unbalanced_sheet):
        keys = [k for k, _ in visible_entries(unbalanced_sheet.assets)]
        assert keys == ["current_assets"]

    def test_none_entries_hidden(self, unbalanced_sheet):
        keys = [k for k, _ in visible_entries(unbalanced_sheet.equity.buckets())]
        assert keys == ["share_capital", "reserves_and_surplus"]

    def test_collapsed_by_default(self, unbalanced_sheet):
        row = build_rows(unbalanced_sheet.assets["current_assets"])
        assert row.has_children is True
        assert row.expanded is False
        assert row.children == []

    def test_expanded_children_are_indented(self, unbalanced_sheet):
        row = build_rows(unbalanced_sheet.assets["current_assets"], expanded={"a-1"})
        assert row.expanded is True
        assert [c.level for c in row.children] == [1, 1]
        assert [c.label for c in row.children] == ["Cash", "Bank"]

    def test_expand_all_recurses(self):
        tree = _node("Root", "30", [_node("Mid", "30", [_node("Leaf", "30")])])
        row = build_rows(tree, expand_all=True)
        assert row.children[0].children[0].level == 2

    def test_negative_balance_is_debit(self):
        row = build_rows(_node("Overdraft", "-1500"))
        assert row.is_debit is True
        assert row.to_dict()["display_amount"] == "₹1,500.00 (Dr)"


class TestBalanceSheetView:
    def test_loading(self):
        assert balance_sheet_view(None, is_loading=True) == {"state": LOADING}

    def test_empty(self):
        assert balance_sheet_view(None)["state"] == EMPTY

    def test_ready(self, unbalanced_sheet):
        view = balance_sheet_view(unbalanced_sheet)
        assert view["state"] == READY
        assert view["balance_check"]["is_balanced"] is False
        assert view["balance_check"]["difference"] == Decimal("500")
        assert len(view["assets"]["rows"]) == 1
        assert view["assets"]["show_subtotal"] is False
        assert view["equity"]["show_subtotal"] is True
        # Hidden zero entries still count towards the total
        assert view["assets"]["total"] == Decimal("500000")


class TestTrialBalance:
    def test_balanced(self):
        rows = [
            TrialBalanceRow(account_id="1", account_name="Cash", closing_debit=Decimal("1000")),
            TrialBalanceRow(account_id="2", account_name="Capital", closing_credit=Decimal("1000")),
        ]
        totals = trial_balance_totals(rows)
        assert totals.is_balanced is True
        assert totals.difference == 0

    def test_difference_is_signed(self):
        rows = [
            TrialBalanceRow(account_id="1", closing_debit=Decimal("900")),
            TrialBalanceRow(account_id="2", closing_credit=Decimal("1000")),
        ]
        totals = trial_balance_totals(rows)
        assert totals.is_balanced is False
        assert totals.difference == Decimal("-100")


class TestProfitAndLoss:
    def test_financial_year_starts_in_april(self):
        assert financial_year_range(date(2025, 3, 31)) == (date(2024, 4, 1), date(2025, 3, 31))
        assert financial_year_range(date(2025, 4, 1)) == (date(2025, 4, 1), date(2025, 4, 1))
        assert financial_year_range(date(2025, 1, 10))[0] == date(2024, 4, 1)

    def test_loading_and_empty(self):
        assert profit_and_loss_view(None, is_loading=True) == {"state": LOADING}
        view = profit_and_loss_view(None)
        assert view["state"] == EMPTY
        assert view["message"] == "No profit & loss data found for the selected period."

    def test_net_loss(self):
        data = ProfitAndLossData.model_validate({
            "tradingAccount": {"sales": {"total": 100000, "accounts": []}},
            "grossProfit": 30000,
            "profitLossAccount": {
                "totalIncome": 30000,
                "indirectExpenses": {"employeeBenefits": {"total": 42500, "accounts": []}},
                "totalIndirectExpenses": 42500,
            },
            "profitBeforeTax": -12500,
        })
        view = profit_and_loss_view(data, date(2024, 4, 1), date(2025, 3, 31))
        assert view["state"] == READY
        assert view["trading_account"]["gross_result"]["label"] == "Gross Profit"
        net = view["summary"]["net_result"]
        assert net["is_profit"] is False
        assert net["label"] == "Net Loss"
        assert net["display_amount"] == "₹12,500.00"
        expenses = view["profit_loss_account"]["indirect_expenses"]
        assert [e["label"] for e in expenses] == [
            "Employee Benefits Expense", "Finance Costs", "Depreciation & Amortization", "Other Expenses",
        ]
        assert expenses[0]["total"] == Decimal("42500")

    def test_break_even_is_a_profit(self):
        view = profit_and_loss_view(ProfitAndLossData())
        assert view["summary"]["net_result"]["label"] == "Net Profit"
        assert view["trading_account"]["sales"]["accounts"] == []


class TestFormatInr:
    def test_indian_grouping(self):
        assert format_inr(Decimal("123456.78")) == "₹1,23,456.78"
        assert format_inr(Decimal("12345678")) == "₹1,23,45,678.00"
        assert format_inr(Decimal("999")) == "₹999.00"
