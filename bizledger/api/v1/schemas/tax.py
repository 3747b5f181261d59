"""Request schemas for the GST computation endpoints."""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field


class TaxComputeRequest(BaseModel):
    """One line amount to split into IGST / CGST / SGST."""

    line_total: Decimal
    jurisdiction_from: str | None = Field(default=None, description="Seller's state")
    jurisdiction_to: str | None = Field(default=None, description="Place of supply / supplier state")
    # Falls back to the configured default rate
    nominal_rate: Decimal | None = None
