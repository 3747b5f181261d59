# bizledger/domain/services/document_service.py
"""
Draft lifecycle for invoices, estimates, purchase bills and purchase orders.

Drafts live in Redis while being edited. Every edit goes through the pure
editor (``apply_edit``) so the stored draft is always recomputed. Submission
validates the draft, resolves the GST rate rows each line's tax points at,
numbers the document and hands it to the backend's submit RPC.
"""

from __future__ import annotations

import logging
import time
from datetime import date
from decimal import Decimal
from typing import Any

from bizledger.domain.models.document import BILL, Document, DocumentLine, SubmissionResult
from bizledger.domain.models.tax import StandardRateIds
from bizledger.domain.services.document_editor import (
    apply_edit,
    new_document,
    set_nominal_rate,
    validate_for_submission,
)
from bizledger.domain.services.request_sequencer import RequestSequencer
from bizledger.domain.services.tax_engine import line_taxes
from bizledger.domain.services.tax_rate_service import TaxRateService
from bizledger.infrastructure.cache.draft_cache import DraftCache
from bizledger.infrastructure.external.backend_client import BackendClient, BackendError, ensure_company_record

logger = logging.getLogger("document_service")


class DraftNotFoundError(LookupError):
    pass


class DocumentValidationError(ValueError):
    """Submission blocked; ``errors`` holds the user-facing messages."""

    def __init__(self, errors: list[str]):
        super().__init__("; ".join(errors))
        self.errors = errors


def _money(value: Decimal) -> float:
    return float(value)


def fallback_document_number(doc: Document, now_ms: int | None = None) -> str:
    """Client-side number used when the backend sequence is unavailable."""
    ms = now_ms if now_ms is not None else int(time.time() * 1000)
    if doc.kind == BILL:
        day = (doc.document_date or date.today()).strftime("%Y%m%d")
        return f"BILL/{day}/{str(ms)[-6:]}"
    return f"{doc.kind_rules.number_prefix}-{ms}"


def _extract_id(result: Any, stem: str) -> str | None:
    """Submit/convert RPCs return either a bare id or ``{"<stem>_id": ...}``."""
    if isinstance(result, list):
        result = result[0] if result else None
    if isinstance(result, dict):
        for key in (f"{stem}_id", "id"):
            if result.get(key):
                return str(result[key])
        for key, value in result.items():
            if key.endswith("_id") and value:
                return str(value)
        return None
    if result:
        return str(result)
    return None


def _effective_rate(line: DocumentLine, doc: Document) -> Decimal:
    return line.tax_rate if line.tax_rate is not None else doc.nominal_rate


def _charged_heads(line: DocumentLine) -> set[str]:
    tax = line.tax
    return {
        name
        for name, amount in (("IGST", tax.igst_amount), ("CGST", tax.cgst_amount), ("SGST", tax.sgst_amount))
        if amount > 0
    }


def _line_payload(line: DocumentLine, rate_ids: StandardRateIds) -> dict[str, Any]:
    return {
        "product_id": line.product_id or None,
        "description": line.description,
        "quantity": _money(line.quantity),
        "unit_price": _money(line.unit_price),
        "line_total": _money(line.line_total),
        "hsn_sac_code": line.hsn_sac_code or None,
        "line_taxes": [
            {"tax_rate_id": t.tax_rate_id, "tax_amount": _money(t.tax_amount)}
            for t in line_taxes(line.tax, rate_ids)
        ],
    }


class DocumentService:
    def __init__(
        self,
        drafts: DraftCache,
        rates: TaxRateService,
        backend: BackendClient,
        sequencer: RequestSequencer | None = None,
    ) -> None:
        self._drafts = drafts
        self._rates = rates
        self._backend = backend
        self._sequencer = sequencer or RequestSequencer()

    # ---- Drafts ----

    async def _company_state(self, company_id: str) -> str:
        try:
            rows = await self._backend.select("companies", {"id": company_id}, columns="state")
        except BackendError:
            logger.warning("Could not load state for company %s; starting draft without it", company_id)
            return ""
        if rows and rows[0].get("state"):
            return str(rows[0]["state"])
        return ""

    async def create_draft(
        self,
        kind: str,
        company_id: str,
        company_state: str | None = None,
        document_date: date | None = None,
    ) -> Document:
        if company_state is None:
            company_state = await self._company_state(company_id)
        nominal = await self._rates.get_nominal_rate(company_id)
        doc = new_document(
            kind,
            company_id,
            jurisdiction_from=company_state,
            nominal_rate=nominal,
            document_date=document_date,
        )
        await self._drafts.save(doc)
        logger.debug("Created %s draft %s for company %s", kind, doc.id, company_id)
        return doc

    async def get_draft(self, draft_id: str, company_id: str) -> Document:
        doc = await self._drafts.get(draft_id)
        if doc is None or doc.company_id != company_id:
            raise DraftNotFoundError(draft_id)
        return doc

    async def edit_draft(self, draft_id: str, company_id: str, action: str, **payload: Any) -> Document:
        doc = await self.get_draft(draft_id, company_id)
        doc = apply_edit(doc, action, **payload)
        await self._drafts.save(doc)
        return doc

    async def refresh_nominal_rate(self, draft_id: str, company_id: str) -> Document | None:
        """
        Re-resolve the company's GST rate and re-tax the draft with it.

        Returns None when a newer refresh for the same draft was started while
        this one was waiting on the lookup; its result is dropped.
        """
        await self.get_draft(draft_id, company_id)
        token = self._sequencer.issue(draft_id)
        try:
            rate = await self._rates.get_nominal_rate(company_id)
            if not self._sequencer.is_current(draft_id, token):
                logger.debug("Dropping stale rate lookup for draft %s", draft_id)
                return None
            # Re-read: other edits may have landed while the lookup was pending.
            doc = set_nominal_rate(await self.get_draft(draft_id, company_id), rate)
            await self._drafts.save(doc)
            return doc
        finally:
            self._sequencer.release(draft_id, token)

    async def discard_draft(self, draft_id: str, company_id: str) -> None:
        await self.get_draft(draft_id, company_id)
        await self._drafts.delete(draft_id)

    # ---- Numbering ----

    async def generate_document_number(self, doc: Document) -> tuple[str, bool]:
        """Returns ``(number, fallback_used)``."""
        doc_date = doc.document_date or date.today()
        try:
            number = await self._backend.rpc(
                "generate_next_document_number",
                {
                    "p_company_id": doc.company_id,
                    "p_document_type": doc.kind_rules.numbering_type,
                    "p_date": doc_date.isoformat(),
                },
            )
        except BackendError as exc:
            logger.warning("Document numbering failed for %s (%s); using fallback", doc.kind, exc)
            number = None
        if isinstance(number, str) and number:
            return number, False
        return fallback_document_number(doc), True

    # ---- Submission ----

    def _submit_params(
        self, doc: Document, number: str, status: str, lines: list[dict[str, Any]],
    ) -> dict[str, Any]:
        rules = doc.kind_rules
        stem = rules.param_stem
        return {
            "p_company_id": doc.company_id,
            f"p_{rules.counterparty_role}_id": doc.counterparty_id,
            f"p_{stem}_number": number,
            f"p_{stem}_date": doc.document_date.isoformat() if doc.document_date else None,
            f"p_{rules.secondary_date_label}": doc.secondary_date.isoformat() if doc.secondary_date else None,
            f"p_{rules.jurisdiction_to_label}": doc.jurisdiction_to,
            "p_company_state": doc.jurisdiction_from,
            "p_status": status,
            "p_notes": doc.notes,
            "p_terms_and_conditions": doc.terms_and_conditions,
            "p_subtotal": _money(doc.subtotal),
            "p_total_igst": _money(doc.total_igst),
            "p_total_cgst": _money(doc.total_cgst),
            "p_total_sgst": _money(doc.total_sgst),
            "p_total_tax": _money(doc.total_tax),
            "p_total_amount": _money(doc.total_amount),
            "p_lines": lines,
        }

    async def _rate_ids_by_rate(self, doc: Document) -> dict[Decimal, StandardRateIds]:
        """Rate row ids per effective line rate, only for heads some line actually charges."""
        needed: dict[Decimal, set[str]] = {}
        for line in doc.lines:
            heads = _charged_heads(line)
            if heads:
                needed.setdefault(_effective_rate(line, doc), set()).update(heads)
        ids: dict[Decimal, StandardRateIds] = {}
        for rate, heads in needed.items():
            ids[rate] = await self._rates.get_or_create_rate_ids(doc.company_id, rate, heads=heads)
        return ids

    async def submit(self, draft_id: str, company_id: str, status: str | None = None) -> SubmissionResult:
        doc = await self.get_draft(draft_id, company_id)
        rules = doc.kind_rules
        status = status or rules.submit_statuses[-1]

        errors = validate_for_submission(doc)
        if status not in rules.submit_statuses:
            errors.append(f"Status must be one of: {', '.join(rules.submit_statuses)}")
        if errors:
            raise DocumentValidationError(errors)

        rate_ids = await self._rate_ids_by_rate(doc)
        lines = [
            _line_payload(line, rate_ids.get(_effective_rate(line, doc), StandardRateIds()))
            for line in doc.lines
        ]

        if doc.kind == BILL and doc.reference_number:
            number, fallback_used = doc.reference_number, False
        else:
            number, fallback_used = await self.generate_document_number(doc)

        try:
            result = await self._backend.rpc(
                rules.submit_rpc, self._submit_params(doc, number, status, lines),
            )
        except BackendError:
            logger.exception("Submitting %s draft %s failed", doc.kind, draft_id)
            raise

        document_id = _extract_id(result, rules.param_stem)
        if document_id is None:
            raise BackendError(f"{rules.submit_rpc} returned no document id", response=result)

        await self._drafts.delete(draft_id)
        logger.info(
            "Submitted %s %s (%s) for company %s, total %s",
            doc.kind, number, document_id, company_id, doc.total_amount,
        )
        return SubmissionResult(
            document_id=document_id,
            document_number=number,
            status=status,
            number_fallback_used=fallback_used,
        )

    # ---- Conversions ----

    async def _convert(self, rpc_name: str, params: dict[str, Any], stem: str) -> str:
        try:
            result = await self._backend.rpc(rpc_name, params)
        except BackendError:
            logger.exception("%s failed for %s", rpc_name, params)
            raise
        new_id = _extract_id(result, stem)
        if new_id is None:
            raise BackendError(f"{rpc_name} returned no id", response=result)
        logger.info("%s created %s %s", rpc_name, stem, new_id)
        return new_id

    async def convert_estimate_to_invoice(self, company_id: str, estimate_id: str) -> str:
        await ensure_company_record(self._backend, "estimates", estimate_id, company_id)
        return await self._convert("create_invoice_from_estimate", {"p_estimate_id": estimate_id}, "invoice")

    async def convert_po_to_bill(self, company_id: str, po_id: str) -> str:
        await ensure_company_record(self._backend, "purchase_orders", po_id, company_id)
        return await self._convert("create_bill_from_po", {"p_po_id": po_id}, "bill")


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

_service: DocumentService | None = None


def get_document_service() -> DocumentService:
    global _service
    if _service is None:
        from bizledger.domain.services.tax_rate_service import get_tax_rate_service
        from bizledger.infrastructure.cache.redis_client import get_redis_client
        from bizledger.infrastructure.external.backend_client import get_backend_client

        _service = DocumentService(
            drafts=DraftCache(get_redis_client()),
            rates=get_tax_rate_service(),
            backend=get_backend_client(),
        )
    return _service
