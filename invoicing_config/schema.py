"""
InvoicingConfig schema.

Frozen dataclasses the YAML configuration sets are parsed into. A set
describes one jurisdiction: its currency, VAT rates, and the FODEC, stamp
duty and withholding defaults applied to new documents.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

from invoicing_engines.totals import (
    DocumentTotalsConfig,
    FodecSetting,
    StampDutySetting,
    WithholdingScope,
    WithholdingSetting,
)
from invoicing_kernel.domain.documents import DocumentKind
from invoicing_kernel.logging_config import get_logger

logger = get_logger("config.schema")


class TaxUsage(str, Enum):
    """Which side of the business a VAT rate may be used on."""

    SALES = "sales"
    PURCHASES = "purchases"
    BOTH = "both"


# Documents issued to customers; the rest are purchases
_SALES_KINDS = frozenset({
    DocumentKind.QUOTE,
    DocumentKind.SALES_INVOICE,
    DocumentKind.INTERNAL_INVOICE,
    DocumentKind.DELIVERY_NOTE,
})


def usage_for_kind(kind: DocumentKind) -> TaxUsage:
    return TaxUsage.SALES if DocumentKind(kind) in _SALES_KINDS else TaxUsage.PURCHASES


@dataclass(frozen=True)
class ConfigScope:
    """Scope of applicability for a configuration set."""

    jurisdiction: str
    currency: str
    effective_from: date
    effective_to: date | None = None


@dataclass(frozen=True)
class VatRateDef:
    """One VAT code a line may carry."""

    code: str
    rate_pct: Decimal
    label: str = ""
    applies_to: TaxUsage = TaxUsage.BOTH
    active: bool = True

    def applies(self, usage: TaxUsage) -> bool:
        return self.applies_to == TaxUsage.BOTH or self.applies_to == usage


@dataclass(frozen=True)
class FodecDefaults:
    rate_pct: Decimal = Decimal("1")
    enabled_for: tuple[DocumentKind, ...] = ()


@dataclass(frozen=True)
class StampDutyDefaults:
    amount: Decimal = Decimal("1.000")
    enabled_for: tuple[DocumentKind, ...] = ()


@dataclass(frozen=True)
class WithholdingDefaults:
    enabled: bool = False
    rate_pct: Decimal = Decimal("0")
    applies_to: WithholdingScope = WithholdingScope.ALL


@dataclass(frozen=True)
class InvoicingConfig:
    """
    A parsed, immutable configuration set.

    Obtain it through ``invoicing_config.get_active_config()``.
    """

    config_id: str
    version: int
    scope: ConfigScope
    vat_rates: tuple[VatRateDef, ...]
    default_vat_code: str
    default_vat_pct: Decimal
    fodec: FodecDefaults = field(default_factory=FodecDefaults)
    stamp_duty: StampDutyDefaults = field(default_factory=StampDutyDefaults)
    withholding: WithholdingDefaults = field(default_factory=WithholdingDefaults)
    checksum: str = ""

    @property
    def currency(self) -> str:
        return self.scope.currency

    def vat_rate(self, code: str) -> VatRateDef | None:
        code = code.upper().strip()
        return next((r for r in self.vat_rates if r.code == code), None)

    def resolve_vat_pct(
        self,
        tax_code: str | None,
        usage: TaxUsage | str = TaxUsage.SALES,
        product_tax_code: str | None = None,
    ) -> Decimal:
        """
        VAT percentage for a line.

        The code is looked up in order: the line's own code, then the code
        of the product the line sells, then the default code. An unknown,
        inactive or inapplicable code falls back to the default percentage.
        """
        usage = TaxUsage(usage)
        code = tax_code or product_tax_code or self.default_vat_code
        rate = self.vat_rate(code)
        if rate is not None and rate.active and rate.applies(usage):
            return rate.rate_pct

        logger.warning("vat_code_fallback", extra={
            "tax_code": code,
            "usage": usage.value,
            "fallback_pct": str(self.default_vat_pct),
        })
        return self.default_vat_pct

    def totals_config_for(self, kind: DocumentKind | str, **overrides: Any) -> DocumentTotalsConfig:
        """
        Default totals settings for a new document of ``kind``.

        ``overrides`` replace fields of the resulting DocumentTotalsConfig
        (e.g. ``global_discount_pct=Decimal("5")``).
        """
        kind = DocumentKind(kind)
        config = DocumentTotalsConfig(
            currency=self.currency,
            fodec=FodecSetting(
                enabled=kind in self.fodec.enabled_for,
                rate_pct=self.fodec.rate_pct,
            ),
            stamp_duty=StampDutySetting(
                enabled=kind in self.stamp_duty.enabled_for,
                amount=self.stamp_duty.amount,
            ),
            withholding=WithholdingSetting(
                enabled=self.withholding.enabled,
                rate_pct=self.withholding.rate_pct,
                applies_to=self.withholding.applies_to,
            ),
            vat_deductible=usage_for_kind(kind) == TaxUsage.PURCHASES,
        )
        if overrides:
            config = replace(config, **overrides)
        return config
