# bizledger/domain/services/document_editor.py
"""
Draft editing as pure updates.

Every function takes a ``Document`` and returns a new one; nothing is mutated
in place. Each edit recomputes the affected line(s) through the tax engine and
re-aggregates the totals before returning, so a returned document is always
internally consistent.

Jurisdiction and nominal-rate edits re-run *every* line (full recompute).
"""

from __future__ import annotations

import logging
import uuid
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from typing import Any, Callable

from bizledger.core.config import settings
from bizledger.domain.models.document import (
    BILL,
    ESTIMATE,
    INVOICE,
    DOCUMENT_KINDS,
    Document,
    DocumentLine,
)
from bizledger.domain.models.tax import TaxBreakdown
from bizledger.domain.services.document_totals import recalculate_totals
from bizledger.domain.services.gstin_state import state_from_gstin
from bizledger.domain.services.tax_engine import InvalidAmountError, compute_tax

logger = logging.getLogger("document_editor")

_LINE_FIELDS = {"product_id", "description", "quantity", "unit_price", "hsn_sac_code", "tax_rate"}
_HEADER_FIELDS = {"secondary_date", "notes", "terms_and_conditions", "reference_number"}


class UnknownDocumentKindError(ValueError):
    pass


class LineNotFoundError(KeyError):
    pass


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _default_secondary_date(kind: str, document_date: date | None) -> date | None:
    if document_date is None:
        return None
    if kind in (INVOICE, BILL):
        return document_date + timedelta(days=settings.INVOICE_DUE_DAYS)
    if kind == ESTIMATE:
        return document_date + timedelta(days=settings.ESTIMATE_EXPIRY_DAYS)
    return None


def _check_non_negative(name: str, value: Any) -> Decimal:
    try:
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except InvalidOperation:
        raise InvalidAmountError(f"{name} is not a number: {value!r}") from None
    if not d.is_finite() or d < 0:
        raise InvalidAmountError(f"{name} must be a non-negative number, got {value!r}")
    return d


def _recompute_line(line: DocumentLine, doc: Document) -> DocumentLine:
    line_total = line.quantity * line.unit_price
    if line_total > 0:
        rate = line.tax_rate if line.tax_rate is not None else doc.nominal_rate
        tax = compute_tax(line_total, doc.jurisdiction_from, doc.jurisdiction_to, rate)
    else:
        tax = TaxBreakdown()
    return line.model_copy(update={"line_total": line_total, "tax": tax})


def _with_lines(doc: Document, lines: list[DocumentLine], **changes: Any) -> Document:
    totals = recalculate_totals(lines)
    return doc.model_copy(update={**changes, "lines": lines, **totals.model_dump()})


def _recompute_all(doc: Document) -> Document:
    return _with_lines(doc, [_recompute_line(line, doc) for line in doc.lines])


def _find_line(doc: Document, line_id: str) -> int:
    for idx, line in enumerate(doc.lines):
        if line.id == line_id:
            return idx
    raise LineNotFoundError(line_id)


def resolve_counterparty_state(details: dict[str, Any] | None) -> str | None:
    """
    Pull a state name out of loosely-shaped counterparty details.

    Looks at ``state``, ``billing_state`` and ``customerDetails.state`` in that
    order, then falls back to the GSTIN prefix.
    """
    if not isinstance(details, dict):
        return None
    nested = details.get("customerDetails")
    nested_state = nested.get("state") if isinstance(nested, dict) else None
    state = details.get("state") or details.get("billing_state") or nested_state
    if state:
        return str(state)
    return state_from_gstin(details.get("gstin"))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def new_document(
    kind: str,
    company_id: str,
    *,
    document_id: str | None = None,
    jurisdiction_from: str = "",
    nominal_rate: Decimal | None = None,
    document_date: date | None = None,
) -> Document:
    if kind not in DOCUMENT_KINDS:
        raise UnknownDocumentKindError(kind)
    document_date = document_date or date.today()
    return Document(
        id=document_id or uuid.uuid4().hex,
        kind=kind,
        company_id=company_id,
        document_date=document_date,
        secondary_date=_default_secondary_date(kind, document_date),
        jurisdiction_from=jurisdiction_from or "",
        nominal_rate=nominal_rate if nominal_rate is not None else settings.DEFAULT_GST_RATE,
    )


def add_line(doc: Document, **fields: Any) -> Document:
    unknown = set(fields) - _LINE_FIELDS
    if unknown:
        raise ValueError(f"Unknown line fields: {sorted(unknown)}")
    for name in ("quantity", "unit_price"):
        if fields.get(name) is not None:
            fields[name] = _check_non_negative(name, fields[name])
    if fields.get("tax_rate") is not None:
        fields["tax_rate"] = _check_non_negative("tax_rate", fields["tax_rate"])
    fields = {k: v for k, v in fields.items() if v is not None}
    line = DocumentLine(id=f"temp-{uuid.uuid4().hex[:12]}", **fields)
    return _with_lines(doc, [*doc.lines, _recompute_line(line, doc)])


def remove_line(doc: Document, line_id: str) -> Document:
    idx = _find_line(doc, line_id)
    return _with_lines(doc, doc.lines[:idx] + doc.lines[idx + 1:])


def update_line(doc: Document, line_id: str, **changes: Any) -> Document:
    unknown = set(changes) - _LINE_FIELDS
    if unknown:
        raise ValueError(f"Unknown line fields: {sorted(unknown)}")
    for name in ("quantity", "unit_price"):
        if name in changes:
            changes[name] = _check_non_negative(name, changes[name])
    if changes.get("tax_rate") is not None:
        changes["tax_rate"] = _check_non_negative("tax_rate", changes["tax_rate"])

    idx = _find_line(doc, line_id)
    lines = list(doc.lines)
    lines[idx] = _recompute_line(lines[idx].model_copy(update=changes), doc)
    return _with_lines(doc, lines)


def set_jurisdiction(
    doc: Document,
    jurisdiction_from: str | None = None,
    jurisdiction_to: str | None = None,
) -> Document:
    """Change company state and/or place of supply; re-taxes every line."""
    updated = doc.model_copy(update={
        "jurisdiction_from": doc.jurisdiction_from if jurisdiction_from is None else jurisdiction_from,
        "jurisdiction_to": doc.jurisdiction_to if jurisdiction_to is None else jurisdiction_to,
    })
    return _recompute_all(updated)


def set_nominal_rate(doc: Document, rate: Decimal) -> Document:
    rate = _check_non_negative("nominal_rate", rate)
    return _recompute_all(doc.model_copy(update={"nominal_rate": rate}))


def set_counterparty(
    doc: Document,
    counterparty_id: str,
    details: dict[str, Any] | None = None,
) -> Document:
    """
    Select the customer/supplier. The state found in its details becomes the
    place of supply; without one the place of supply is cleared, so a state
    left over from the previous counterparty is never submitted.
    """
    state = resolve_counterparty_state(details)
    updated = doc.model_copy(update={"counterparty_id": counterparty_id})
    return set_jurisdiction(updated, jurisdiction_to=state or "")


def set_document_date(doc: Document, value: date) -> Document:
    """Set the document date; an empty secondary date is auto-filled from it."""
    secondary = doc.secondary_date or _default_secondary_date(doc.kind, value)
    return doc.model_copy(update={"document_date": value, "secondary_date": secondary})


def update_header(doc: Document, **changes: Any) -> Document:
    unknown = set(changes) - _HEADER_FIELDS
    if unknown:
        raise ValueError(f"Unknown header fields: {sorted(unknown)}")
    return doc.model_copy(update=changes)


EDITS: dict[str, Callable[..., Document]] = {
    "add_line": add_line,
    "remove_line": remove_line,
    "update_line": update_line,
    "set_jurisdiction": set_jurisdiction,
    "set_nominal_rate": set_nominal_rate,
    "set_counterparty": set_counterparty,
    "set_document_date": set_document_date,
    "update_header": update_header,
}


def apply_edit(doc: Document, action: str, **payload: Any) -> Document:
    """Dispatch a named edit; the single entry point used by the draft service."""
    try:
        edit = EDITS[action]
    except KeyError:
        raise ValueError(f"Unknown edit action: {action}") from None
    logger.debug("Applying %s to draft %s", action, doc.id)
    return edit(doc, **payload)


def validate_for_submission(doc: Document) -> list[str]:
    """Return user-facing problems that block submission (empty list = OK)."""
    errors: list[str] = []
    role = doc.kind_rules.counterparty_role

    if not doc.counterparty_id:
        errors.append(f"Please select a {role}")
    if not doc.jurisdiction_from:
        errors.append("Company state is required")
    if not doc.jurisdiction_to:
        errors.append(f"{doc.kind_rules.jurisdiction_to_label.replace('_', ' ').capitalize()} is required")
    if not doc.lines:
        errors.append("Please add at least one line item")

    for line in doc.lines:
        if not line.description.strip():
            errors.append("All line items must have a description")
            break
    for line in doc.lines:
        if line.quantity <= 0:
            errors.append("All line items must have a positive quantity")
            break
    for line in doc.lines:
        if line.unit_price < 0:
            errors.append("Unit price cannot be negative")
            break

    return errors
