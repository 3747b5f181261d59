# bizledger/domain/models/tax_rate_config.py
"""
Company GST rate configuration.

CompanyTaxRates: the nominal GST rate a company charges by default, plus the
backend ``tax_rates`` rows it was resolved from.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any


@dataclass
class CompanyTaxRates:
    """Resolved GST rates for one company."""

    company_id: str = ""
    nominal_rate: Decimal = Decimal("18")
    # Active backend rows by name: {"IGST": {"id": ..., "rate": ...}, ...}
    rows: dict[str, dict[str, Any]] = field(default_factory=dict)

    # Metadata
    source: str = "hardcoded"  # "hardcoded", "backend"

    # ---- serialization ----

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a JSON-safe dict for Redis storage."""
        return {
            "company_id": self.company_id,
            "nominal_rate": str(self.nominal_rate),
            "rows": {
                name: {"id": row.get("id"), "rate": str(row.get("rate"))}
                for name, row in self.rows.items()
            },
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompanyTaxRates:
        """Reconstruct from a stored JSON dict."""
        rows = {
            name: {"id": row.get("id"), "rate": Decimal(str(row.get("rate", "0")))}
            for name, row in (data.get("rows") or {}).items()
        }
        return cls(
            company_id=data.get("company_id", ""),
            nominal_rate=Decimal(str(data.get("nominal_rate", "18"))),
            rows=rows,
            source=data.get("source", "hardcoded"),
        )
