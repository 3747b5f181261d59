# bizledger/api/v1/schemas/documents.py
"""Request schemas for draft editing and submission endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field


class LineIn(BaseModel):
    """A line item as typed into the editor."""

    product_id: str | None = None
    description: str | None = None
    quantity: Decimal | None = None
    unit_price: Decimal | None = None
    hsn_sac_code: str | None = None
    tax_rate: Decimal | None = Field(default=None, description="Overrides the document's GST rate")


class TotalsRequest(BaseModel):
    """Stateless recompute: lines plus the two states that decide the regime."""

    jurisdiction_from: str | None = None
    jurisdiction_to: str | None = None
    nominal_rate: Decimal | None = None
    lines: list[LineIn] = Field(default_factory=list)


class DraftCreate(BaseModel):
    # Looked up from the company record when omitted
    company_state: str | None = None
    document_date: date | None = None


class DraftHeaderUpdate(BaseModel):
    counterparty_id: str | None = None
    # Loose customer/supplier record; its state becomes the place of supply
    counterparty_details: dict[str, Any] | None = None
    document_date: date | None = None
    secondary_date: date | None = None
    nominal_rate: Decimal | None = None
    notes: str | None = None
    terms_and_conditions: str | None = None
    reference_number: str | None = None


class JurisdictionUpdate(BaseModel):
    jurisdiction_from: str | None = None
    jurisdiction_to: str | None = None


class SubmitRequest(BaseModel):
    status: str | None = Field(default=None, description="e.g. draft / sent / submitted")
