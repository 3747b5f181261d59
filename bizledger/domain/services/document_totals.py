# bizledger/domain/services/document_totals.py
"""Document-level totals folded from line items."""

from __future__ import annotations

from typing import Iterable

from bizledger.domain.models.document import DocumentLine, DocumentTotals
from bizledger.domain.models.tax import ZERO


def recalculate_totals(lines: Iterable[DocumentLine]) -> DocumentTotals:
    """
    Single pass over ``lines``:

      subtotal     = sum(line_total)
      total_<head> = sum(line.tax.<head>_amount)   for IGST / CGST / SGST
      total_tax    = total_igst + total_cgst + total_sgst
      total_amount = subtotal + total_tax

    Pure: the same lines always give the same totals. No lines -> all zero.
    """
    subtotal = ZERO
    total_igst = ZERO
    total_cgst = ZERO
    total_sgst = ZERO

    for line in lines:
        subtotal += line.line_total
        total_igst += line.tax.igst_amount
        total_cgst += line.tax.cgst_amount
        total_sgst += line.tax.sgst_amount

    total_tax = total_igst + total_cgst + total_sgst
    return DocumentTotals(
        subtotal=subtotal,
        total_igst=total_igst,
        total_cgst=total_cgst,
        total_sgst=total_sgst,
        total_tax=total_tax,
        total_amount=subtotal + total_tax,
    )
