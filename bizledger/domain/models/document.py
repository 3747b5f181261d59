# bizledger/domain/models/document.py
"""
Financial documents: invoices, estimates, purchase bills and purchase orders.

All four share one shape. They differ only in the counterparty role
(customer vs supplier), the meaning of the secondary date, how the backend
numbers them and which RPC persists them; ``DOCUMENT_KINDS`` holds those
differences so the rest of the code stays kind-agnostic.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from bizledger.domain.models.tax import ZERO, TaxBreakdown

INVOICE = "invoice"
ESTIMATE = "estimate"
BILL = "bill"
PURCHASE_ORDER = "purchase_order"


@dataclass(frozen=True)
class DocumentKind:
    counterparty_role: str          # "customer" | "supplier"
    param_stem: str                 # p_<stem>_number / p_<stem>_date in submit RPCs
    secondary_date_label: str       # due_date / expiry_date / expected_delivery_date
    numbering_type: str             # p_document_type for generate_next_document_number
    number_prefix: str
    submit_rpc: str
    submit_statuses: tuple[str, ...]
    jurisdiction_to_label: str      # place_of_supply / supplier_state


DOCUMENT_KINDS: dict[str, DocumentKind] = {
    INVOICE: DocumentKind(
        counterparty_role="customer",
        param_stem="invoice",
        secondary_date_label="due_date",
        numbering_type="SALES_INVOICE",
        number_prefix="INV",
        submit_rpc="submit_sales_invoice",
        submit_statuses=("draft", "sent"),
        jurisdiction_to_label="place_of_supply",
    ),
    ESTIMATE: DocumentKind(
        counterparty_role="customer",
        param_stem="estimate",
        secondary_date_label="expiry_date",
        numbering_type="ESTIMATE",
        number_prefix="EST",
        submit_rpc="submit_estimate",
        submit_statuses=("draft", "sent"),
        jurisdiction_to_label="place_of_supply",
    ),
    BILL: DocumentKind(
        counterparty_role="supplier",
        param_stem="bill",
        secondary_date_label="due_date",
        numbering_type="purchase_bill",
        number_prefix="BILL",
        submit_rpc="submit_purchase_bill",
        submit_statuses=("draft", "submitted"),
        jurisdiction_to_label="place_of_supply",
    ),
    PURCHASE_ORDER: DocumentKind(
        counterparty_role="supplier",
        param_stem="po",
        secondary_date_label="expected_delivery_date",
        numbering_type="PURCHASE_ORDER",
        number_prefix="PO",
        submit_rpc="submit_purchase_order",
        submit_statuses=("draft", "sent"),
        jurisdiction_to_label="supplier_state",
    ),
}


class DocumentLine(BaseModel):
    id: str
    product_id: str = ""
    description: str = ""
    quantity: Decimal = Field(default=Decimal("1"))
    unit_price: Decimal = Field(default=ZERO)
    hsn_sac_code: str = ""
    # Product-specific GST rate; falls back to the document's nominal rate
    tax_rate: Decimal | None = None
    line_total: Decimal = Field(default=ZERO)
    tax: TaxBreakdown = Field(default_factory=TaxBreakdown)


class DocumentTotals(BaseModel):
    subtotal: Decimal = Field(default=ZERO)
    total_igst: Decimal = Field(default=ZERO)
    total_cgst: Decimal = Field(default=ZERO)
    total_sgst: Decimal = Field(default=ZERO)
    total_tax: Decimal = Field(default=ZERO)
    total_amount: Decimal = Field(default=ZERO)


class Document(BaseModel):
    """A document being edited. Totals are always in sync with ``lines``."""

    id: str
    kind: str
    company_id: str
    counterparty_id: str = ""
    document_date: date | None = None
    secondary_date: date | None = None
    # company_state
    jurisdiction_from: str = ""
    # place_of_supply (sales) / supplier_state (purchase orders)
    jurisdiction_to: str = ""
    nominal_rate: Decimal = Field(default=Decimal("18"))
    lines: list[DocumentLine] = Field(default_factory=list)

    subtotal: Decimal = Field(default=ZERO)
    total_igst: Decimal = Field(default=ZERO)
    total_cgst: Decimal = Field(default=ZERO)
    total_sgst: Decimal = Field(default=ZERO)
    total_tax: Decimal = Field(default=ZERO)
    total_amount: Decimal = Field(default=ZERO)

    status: str = "draft"
    notes: str | None = None
    terms_and_conditions: str | None = None
    # Supplier's own bill number, entered by hand on purchase bills
    reference_number: str | None = None

    @property
    def kind_rules(self) -> DocumentKind:
        return DOCUMENT_KINDS[self.kind]

    @property
    def totals(self) -> DocumentTotals:
        return DocumentTotals(
            subtotal=self.subtotal,
            total_igst=self.total_igst,
            total_cgst=self.total_cgst,
            total_sgst=self.total_sgst,
            total_tax=self.total_tax,
            total_amount=self.total_amount,
        )


class SubmissionResult(BaseModel):
    document_id: str
    document_number: str
    status: str
    number_fallback_used: bool = False
