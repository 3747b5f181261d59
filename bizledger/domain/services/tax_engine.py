# bizledger/domain/services/tax_engine.py
"""
GST rule engine.

Decides the supply regime from the seller's state and the place of supply,
then splits a nominal GST rate:

  * same state      -> CGST + SGST, each at half the nominal rate
  * different state -> IGST at the full nominal rate
  * either unknown  -> nothing computed yet (zero breakdown)

State names are compared literally (case- and whitespace-sensitive).
The nominal rate itself comes from the tax-rate service; this module never
looks rates up.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from bizledger.domain.models.tax import (
    INTER_STATE,
    INTRA_STATE,
    UNDETERMINED,
    ZERO,
    LineTax,
    StandardRateIds,
    TaxBreakdown,
)

_PAISA = Decimal("0.01")
_HUNDRED = Decimal("100")
_TWO = Decimal("2")


class InvalidAmountError(ValueError):
    """Raised for NaN, infinite or negative line amounts."""


def _round(amount: Decimal) -> Decimal:
    return amount.quantize(_PAISA, rounding=ROUND_HALF_UP)


def _to_decimal(value, what: str) -> Decimal:
    if isinstance(value, Decimal):
        d = value
    else:
        try:
            d = Decimal(str(value))
        except (InvalidOperation, TypeError, ValueError):
            raise InvalidAmountError(f"{what} is not a number: {value!r}") from None
    if not d.is_finite():
        raise InvalidAmountError(f"{what} must be finite, got {value!r}")
    if d < 0:
        raise InvalidAmountError(f"{what} must be >= 0, got {value!r}")
    return d


def classify_supply(jurisdiction_from: str | None, jurisdiction_to: str | None) -> str:
    """Return INTRA_STATE, INTER_STATE or UNDETERMINED for a pair of states."""
    if not jurisdiction_from or not jurisdiction_to:
        return UNDETERMINED
    if jurisdiction_from == jurisdiction_to:
        return INTRA_STATE
    return INTER_STATE


def compute_tax(
    line_total,
    jurisdiction_from: str | None,
    jurisdiction_to: str | None,
    nominal_rate=Decimal("18"),
) -> TaxBreakdown:
    """
    Compute the GST breakdown for one line.

    Raises InvalidAmountError for a non-finite or negative ``line_total`` or
    ``nominal_rate``. A zero line total yields a zero breakdown.
    """
    amount = _to_decimal(line_total, "line_total")
    rate = _to_decimal(nominal_rate, "nominal_rate")
    if rate > _HUNDRED:
        raise InvalidAmountError(f"nominal_rate must be <= 100, got {nominal_rate!r}")

    regime = classify_supply(jurisdiction_from, jurisdiction_to)

    if regime == INTER_STATE:
        igst = _round(amount * rate / _HUNDRED)
        return TaxBreakdown(
            igst_rate=rate,
            igst_amount=igst,
            total_tax_amount=igst,
        )

    if regime == INTRA_STATE:
        half_rate = rate / _TWO
        half = _round(amount * half_rate / _HUNDRED)
        return TaxBreakdown(
            cgst_rate=half_rate,
            cgst_amount=half,
            sgst_rate=half_rate,
            sgst_amount=half,
            total_tax_amount=half + half,
        )

    return TaxBreakdown()


def line_taxes(breakdown: TaxBreakdown, rate_ids: StandardRateIds) -> list[LineTax]:
    """
    Per-line tax allocation rows for persistence.

    One row per non-zero component whose backend rate id is known.
    """
    rows: list[LineTax] = []
    for rate_id, amount in (
        (rate_ids.igst, breakdown.igst_amount),
        (rate_ids.cgst, breakdown.cgst_amount),
        (rate_ids.sgst, breakdown.sgst_amount),
    ):
        if amount > ZERO and rate_id:
            rows.append(LineTax(tax_rate_id=rate_id, tax_amount=amount))
    return rows
