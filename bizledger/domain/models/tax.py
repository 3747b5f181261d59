from decimal import Decimal

from pydantic import BaseModel, Field

ZERO = Decimal("0")

# Supply classification
INTRA_STATE = "intra_state"
INTER_STATE = "inter_state"
UNDETERMINED = "undetermined"


class TaxBreakdown(BaseModel):
    """GST split for a single line. Rates are percentages, amounts are rupees."""

    igst_rate: Decimal = Field(default=ZERO)
    igst_amount: Decimal = Field(default=ZERO)
    cgst_rate: Decimal = Field(default=ZERO)
    cgst_amount: Decimal = Field(default=ZERO)
    sgst_rate: Decimal = Field(default=ZERO)
    sgst_amount: Decimal = Field(default=ZERO)
    total_tax_amount: Decimal = Field(default=ZERO)

    @property
    def regime(self) -> str:
        if self.igst_amount > 0:
            return INTER_STATE
        if self.cgst_amount > 0 or self.sgst_amount > 0:
            return INTRA_STATE
        return UNDETERMINED


class StandardRateIds(BaseModel):
    """Backend ``tax_rates`` row ids used when allocating line taxes."""

    igst: str | None = None
    cgst: str | None = None
    sgst: str | None = None


class LineTax(BaseModel):
    """One per-line tax allocation row as the backend stores it."""

    tax_rate_id: str
    tax_amount: Decimal
