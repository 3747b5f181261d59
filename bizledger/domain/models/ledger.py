"""Read-side accounting reports as the backend returns them."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

ZERO = Decimal("0")


class BalanceSheetNode(BaseModel):
    """One account (or account group) in the balance-sheet tree."""

    model_config = ConfigDict(populate_by_name=True)

    account_id: str | None = Field(default=None, alias="accountId")
    account_code: str | None = Field(default=None, alias="accountCode")
    account_name: str = Field(default="", alias="accountName")
    total: Decimal = Field(default=ZERO)
    accounts: list[BalanceSheetNode] = Field(default_factory=list)


class EquitySection(BaseModel):
    share_capital: BalanceSheetNode | None = None
    reserves_and_surplus: BalanceSheetNode | None = None
    current_period_profit: BalanceSheetNode | None = None

    def buckets(self) -> dict[str, BalanceSheetNode | None]:
        return {
            "share_capital": self.share_capital,
            "reserves_and_surplus": self.reserves_and_surplus,
            "current_period_profit": self.current_period_profit,
        }


class BalanceSheetData(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    as_of_date: date | None = Field(default=None, alias="asOfDate")
    assets: dict[str, BalanceSheetNode] = Field(default_factory=dict)
    liabilities: dict[str, BalanceSheetNode] = Field(default_factory=dict)
    equity: EquitySection = Field(default_factory=EquitySection)


class AccountAmount(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    account_id: str | None = Field(default=None, alias="accountId")
    account_code: str | None = Field(default=None, alias="accountCode")
    account_name: str = Field(default="", alias="accountName")
    amount: Decimal = Field(default=ZERO)


class AccountGroup(BaseModel):
    """A P&L line: its total plus the accounts that make it up."""

    total: Decimal = Field(default=ZERO)
    accounts: list[AccountAmount] = Field(default_factory=list)


class TradingAccount(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    sales: AccountGroup = Field(default_factory=AccountGroup)
    cost_of_goods_sold: AccountGroup = Field(default_factory=AccountGroup, alias="costOfGoodsSold")
    direct_expenses: AccountGroup = Field(default_factory=AccountGroup, alias="directExpenses")


class IndirectExpenses(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    employee_benefits: AccountGroup = Field(default_factory=AccountGroup, alias="employeeBenefits")
    finance_costs: AccountGroup = Field(default_factory=AccountGroup, alias="financeCosts")
    depreciation_amortization: AccountGroup = Field(
        default_factory=AccountGroup, alias="depreciationAmortization",
    )
    other_expenses: AccountGroup = Field(default_factory=AccountGroup, alias="otherExpenses")


class ProfitLossAccount(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    other_income: AccountGroup = Field(default_factory=AccountGroup, alias="otherIncome")
    total_income: Decimal = Field(default=ZERO, alias="totalIncome")
    indirect_expenses: IndirectExpenses = Field(default_factory=IndirectExpenses, alias="indirectExpenses")
    total_indirect_expenses: Decimal = Field(default=ZERO, alias="totalIndirectExpenses")


class ProfitAndLossData(BaseModel):
    """Trading and Profit & Loss statement for a period, as computed by the backend."""

    model_config = ConfigDict(populate_by_name=True)

    trading_account: TradingAccount = Field(default_factory=TradingAccount, alias="tradingAccount")
    gross_profit: Decimal = Field(default=ZERO, alias="grossProfit")
    profit_loss_account: ProfitLossAccount = Field(
        default_factory=ProfitLossAccount, alias="profitLossAccount",
    )
    profit_before_tax: Decimal = Field(default=ZERO, alias="profitBeforeTax")


class TrialBalanceRow(BaseModel):
    account_id: str
    account_code: str | None = None
    account_name: str = ""
    closing_debit: Decimal = Field(default=ZERO)
    closing_credit: Decimal = Field(default=ZERO)


class LedgerEntry(BaseModel):
    entry_date: date
    narration: str | None = None
    debit: Decimal | None = None
    credit: Decimal | None = None
    running_balance: Decimal = Field(default=ZERO)


@dataclass
class BalanceCheck:
    """Result of checking Assets = Liabilities + Equity."""

    total_assets: Decimal = ZERO
    total_liabilities: Decimal = ZERO
    total_equity: Decimal = ZERO
    total_liabilities_and_equity: Decimal = ZERO
    is_balanced: bool = True
    difference: Decimal = ZERO

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_assets": self.total_assets,
            "total_liabilities": self.total_liabilities,
            "total_equity": self.total_equity,
            "total_liabilities_and_equity": self.total_liabilities_and_equity,
            "is_balanced": self.is_balanced,
            "difference": self.difference,
        }


@dataclass
class TrialBalanceTotals:
    total_debits: Decimal = ZERO
    total_credits: Decimal = ZERO
    is_balanced: bool = True
    # Signed: debits minus credits
    difference: Decimal = ZERO

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_debits": self.total_debits,
            "total_credits": self.total_credits,
            "is_balanced": self.is_balanced,
            "difference": self.difference,
        }


@dataclass
class ReportRow:
    """A flattened, display-ready balance-sheet row."""

    label: str
    amount: Decimal
    level: int = 0
    account_id: str | None = None
    account_code: str | None = None
    has_children: bool = False
    expanded: bool = False
    is_debit: bool = False
    children: list[ReportRow] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "label": self.label,
            "amount": self.amount,
            "display_amount": format_inr(self.amount),
            "level": self.level,
            "account_id": self.account_id,
            "account_code": self.account_code,
            "has_children": self.has_children,
            "expanded": self.expanded,
            "is_debit": self.is_debit,
            "children": [c.to_dict() for c in self.children],
        }


def format_inr(amount: Decimal) -> str:
    """``₹1,23,456.78`` with a ``(Dr)`` suffix for negative balances."""
    value = abs(amount).quantize(Decimal("0.01"))
    whole, frac = f"{value:.2f}".split(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    text = f"₹{whole}.{frac}"
    if amount < 0:
        text += " (Dr)"
    return text
