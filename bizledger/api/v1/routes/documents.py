# bizledger/api/v1/routes/documents.py
"""
Invoice / estimate / bill / purchase-order drafts.

A draft is created per document kind, edited line by line (every edit
returns the recomputed draft) and finally submitted to the backend.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from bizledger.api.v1.deps import document_service, get_company_id
from bizledger.api.v1.envelope import ok
from bizledger.api.v1.schemas.documents import (
    DraftCreate,
    DraftHeaderUpdate,
    JurisdictionUpdate,
    LineIn,
    SubmitRequest,
    TotalsRequest,
)
from bizledger.domain.models.document import BILL, ESTIMATE, INVOICE, PURCHASE_ORDER, Document
from bizledger.domain.services.document_editor import add_line, new_document, set_jurisdiction
from bizledger.domain.services.document_service import DocumentService
from bizledger.domain.services.tax_engine import classify_supply

logger = logging.getLogger("api.v1.documents")

router = APIRouter(tags=["Documents"])

_KIND_SLUGS = {
    "invoices": INVOICE,
    "estimates": ESTIMATE,
    "bills": BILL,
    "purchase-orders": PURCHASE_ORDER,
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _kind_from_slug(slug: str) -> str:
    kind = _KIND_SLUGS.get(slug)
    if kind is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Unknown document kind '{slug}'. Expected one of: {', '.join(_KIND_SLUGS)}",
        )
    return kind


def _draft_out(doc: Document) -> dict:
    data = doc.model_dump(mode="json")
    data["regime"] = classify_supply(doc.jurisdiction_from, doc.jurisdiction_to)
    return data


# ---------------------------------------------------------------------------
# Stateless totals
# ---------------------------------------------------------------------------

@router.post("/documents/totals", response_model=dict)
async def compute_totals(body: TotalsRequest):
    """Recompute lines and totals without creating a draft."""
    doc = new_document(INVOICE, "", jurisdiction_from=body.jurisdiction_from or "", nominal_rate=body.nominal_rate)
    doc = set_jurisdiction(doc, jurisdiction_to=body.jurisdiction_to or "")
    for line in body.lines:
        doc = add_line(doc, **line.model_dump())
    return ok(data={
        "lines": [line.model_dump(mode="json") for line in doc.lines],
        "totals": doc.totals.model_dump(mode="json"),
    })


# ---------------------------------------------------------------------------
# Draft lifecycle
# ---------------------------------------------------------------------------

@router.post("/documents/{kind}/drafts", response_model=dict, status_code=status.HTTP_201_CREATED)
async def create_draft(
    kind: str,
    body: DraftCreate | None = None,
    company_id: str = Depends(get_company_id),
    svc: DocumentService = Depends(document_service),
):
    body = body or DraftCreate()
    doc = await svc.create_draft(
        _kind_from_slug(kind), company_id,
        company_state=body.company_state, document_date=body.document_date,
    )
    return ok(data=_draft_out(doc))


@router.get("/drafts/{draft_id}", response_model=dict)
async def get_draft(
    draft_id: str,
    company_id: str = Depends(get_company_id),
    svc: DocumentService = Depends(document_service),
):
    return ok(data=_draft_out(await svc.get_draft(draft_id, company_id)))


@router.delete("/drafts/{draft_id}", response_model=dict)
async def discard_draft(
    draft_id: str,
    company_id: str = Depends(get_company_id),
    svc: DocumentService = Depends(document_service),
):
    await svc.discard_draft(draft_id, company_id)
    return ok(message="Draft discarded")


@router.patch("/drafts/{draft_id}", response_model=dict)
async def update_draft_header(
    draft_id: str,
    body: DraftHeaderUpdate,
    company_id: str = Depends(get_company_id),
    svc: DocumentService = Depends(document_service),
):
    """Counterparty, dates, rate and free-text fields. Only fields sent are touched."""
    changes = body.model_dump(exclude_unset=True)
    doc = await svc.get_draft(draft_id, company_id)

    if changes.get("counterparty_id") is not None:
        doc = await svc.edit_draft(
            draft_id, company_id, "set_counterparty",
            counterparty_id=changes["counterparty_id"],
            details=changes.get("counterparty_details"),
        )
    if changes.get("document_date") is not None:
        doc = await svc.edit_draft(draft_id, company_id, "set_document_date", value=changes["document_date"])
    if changes.get("nominal_rate") is not None:
        doc = await svc.edit_draft(draft_id, company_id, "set_nominal_rate", rate=changes["nominal_rate"])

    header = {
        k: changes[k]
        for k in ("secondary_date", "notes", "terms_and_conditions", "reference_number")
        if k in changes
    }
    if header:
        doc = await svc.edit_draft(draft_id, company_id, "update_header", **header)
    return ok(data=_draft_out(doc))


@router.put("/drafts/{draft_id}/jurisdiction", response_model=dict)
async def update_jurisdiction(
    draft_id: str,
    body: JurisdictionUpdate,
    company_id: str = Depends(get_company_id),
    svc: DocumentService = Depends(document_service),
):
    """Change company state and/or place of supply; every line is re-taxed."""
    doc = await svc.edit_draft(
        draft_id, company_id, "set_jurisdiction",
        jurisdiction_from=body.jurisdiction_from, jurisdiction_to=body.jurisdiction_to,
    )
    return ok(data=_draft_out(doc))


@router.post("/drafts/{draft_id}/refresh-rate", response_model=dict)
async def refresh_rate(
    draft_id: str,
    company_id: str = Depends(get_company_id),
    svc: DocumentService = Depends(document_service),
):
    """Re-resolve the company's GST rate. A superseded lookup returns the current draft unchanged."""
    doc = await svc.refresh_nominal_rate(draft_id, company_id)
    if doc is None:
        doc = await svc.get_draft(draft_id, company_id)
        return ok(data=_draft_out(doc), message="Superseded by a newer rate lookup")
    return ok(data=_draft_out(doc))


# ---------------------------------------------------------------------------
# Lines
# ---------------------------------------------------------------------------

@router.post("/drafts/{draft_id}/lines", response_model=dict, status_code=status.HTTP_201_CREATED)
async def add_draft_line(
    draft_id: str,
    body: LineIn,
    company_id: str = Depends(get_company_id),
    svc: DocumentService = Depends(document_service),
):
    doc = await svc.edit_draft(draft_id, company_id, "add_line", **body.model_dump())
    return ok(data=_draft_out(doc))


@router.patch("/drafts/{draft_id}/lines/{line_id}", response_model=dict)
async def update_draft_line(
    draft_id: str,
    line_id: str,
    body: LineIn,
    company_id: str = Depends(get_company_id),
    svc: DocumentService = Depends(document_service),
):
    # An explicit null tax_rate clears the per-line override; other nulls are ignored
    changes = {
        k: v for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k == "tax_rate"
    }
    doc = await svc.edit_draft(draft_id, company_id, "update_line", line_id=line_id, **changes)
    return ok(data=_draft_out(doc))


@router.delete("/drafts/{draft_id}/lines/{line_id}", response_model=dict)
async def remove_draft_line(
    draft_id: str,
    line_id: str,
    company_id: str = Depends(get_company_id),
    svc: DocumentService = Depends(document_service),
):
    doc = await svc.edit_draft(draft_id, company_id, "remove_line", line_id=line_id)
    return ok(data=_draft_out(doc))


# ---------------------------------------------------------------------------
# Submission & conversion
# ---------------------------------------------------------------------------

@router.post("/drafts/{draft_id}/submit", response_model=dict)
async def submit_draft(
    draft_id: str,
    body: SubmitRequest | None = None,
    company_id: str = Depends(get_company_id),
    svc: DocumentService = Depends(document_service),
):
    result = await svc.submit(draft_id, company_id, status=body.status if body else None)
    message = "Submitted"
    if result.number_fallback_used:
        message = "Submitted with a temporary document number"
    return ok(data=result.model_dump(), message=message)


@router.post("/documents/estimates/{estimate_id}/convert", response_model=dict)
async def convert_estimate(
    estimate_id: str,
    company_id: str = Depends(get_company_id),
    svc: DocumentService = Depends(document_service),
):
    invoice_id = await svc.convert_estimate_to_invoice(company_id, estimate_id)
    return ok(data={"invoice_id": invoice_id}, message="Estimate converted to invoice")


@router.post("/documents/purchase-orders/{po_id}/convert", response_model=dict)
async def convert_purchase_order(
    po_id: str,
    company_id: str = Depends(get_company_id),
    svc: DocumentService = Depends(document_service),
):
    bill_id = await svc.convert_po_to_bill(company_id, po_id)
    return ok(data={"bill_id": bill_id}, message="Purchase order converted to bill")
