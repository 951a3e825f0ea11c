"""
Totals Engine - Compute the monetary breakdown of a commercial document.

Cascade (order is load-bearing):

    line HT -> line discount -> line net -> global discount -> net HT
        -> FODEC -> VAT (per line) -> stamp duty -> grand total TTC
        -> withholding (informational, never changes TTC)

Pure functions with no I/O. Every reported figure is rounded to 3 places
half-up; the cascade itself runs at full Decimal precision so rounding
never compounds.

Usage:
    from decimal import Decimal
    from invoicing_engines.totals import (
        DocumentLine, DocumentTotalsConfig, StampDutySetting, compute_totals,
    )

    breakdown = compute_totals(
        [DocumentLine("Widget", 2, "50", vat_pct=19)],
        DocumentTotalsConfig(stamp_duty=StampDutySetting(enabled=True)),
    )
    print(breakdown.grand_total_ttc)  # Money: 120.000 TND
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum

from invoicing_engines.tracer import traced_engine
from invoicing_kernel.domain.currency import CurrencyRegistry
from invoicing_kernel.domain.monetary import (
    ZERO,
    clamp_non_negative,
    clamp_percent,
    percent_to_rate,
    to_decimal,
)
from invoicing_kernel.domain.values import Money
from invoicing_kernel.logging_config import get_logger

logger = get_logger("engines.totals")


def _coerce(instance: object, *names: str) -> None:
    for name in names:
        object.__setattr__(instance, name, to_decimal(getattr(instance, name)))


@dataclass(frozen=True)
class DocumentLine:
    """
    One priced line of a document.

    Numbers are coerced to Decimal on construction. Out-of-range values are
    accepted here and clamped by the engine. ``is_service`` marks a line as
    a service rather than goods; it only matters for service-scoped
    withholding.
    """

    designation: str
    quantity: Decimal
    unit_price_ht: Decimal
    line_discount_pct: Decimal = Decimal("0")
    vat_pct: Decimal = Decimal("0")
    is_service: bool = False

    def __post_init__(self) -> None:
        _coerce(self, "quantity", "unit_price_ht", "line_discount_pct", "vat_pct")


@dataclass(frozen=True)
class FodecSetting:
    """Parafiscal surcharge on the post-global-discount HT base."""

    enabled: bool = False
    rate_pct: Decimal = Decimal("1")

    def __post_init__(self) -> None:
        _coerce(self, "rate_pct")


@dataclass(frozen=True)
class StampDutySetting:
    """Flat amount added once per document."""

    enabled: bool = False
    amount: Decimal = Decimal("1.000")

    def __post_init__(self) -> None:
        _coerce(self, "amount")


class WithholdingScope(str, Enum):
    """Documents withholding applies to."""

    ALL = "all"
    SERVICES = "services"  # only when every line is a service


@dataclass(frozen=True)
class WithholdingSetting:
    """Tax withheld at source by the payer, computed on net HT."""

    enabled: bool = False
    rate_pct: Decimal = Decimal("0")
    applies_to: WithholdingScope = WithholdingScope.ALL

    def __post_init__(self) -> None:
        _coerce(self, "rate_pct")
        object.__setattr__(self, "applies_to", WithholdingScope(self.applies_to))

    def applies(self, lines: Sequence[DocumentLine]) -> bool:
        if not self.enabled:
            return False
        if self.applies_to == WithholdingScope.SERVICES:
            return bool(lines) and all(line.is_service for line in lines)
        return True


@dataclass(frozen=True)
class DocumentTotalsConfig:
    """
    Document-level settings applied on top of the lines.

    ``vat_deductible`` is set for purchase documents: their VAT is
    recoverable in full and reported as deductible VAT.

    Immutable; the engine never mutates it.
    """

    global_discount_pct: Decimal = Decimal("0")
    fodec: FodecSetting = field(default_factory=FodecSetting)
    stamp_duty: StampDutySetting = field(default_factory=StampDutySetting)
    currency: str = "TND"
    withholding: WithholdingSetting = field(default_factory=WithholdingSetting)
    vat_deductible: bool = False

    def __post_init__(self) -> None:
        _coerce(self, "global_discount_pct")
        object.__setattr__(self, "currency", CurrencyRegistry.validate(self.currency))

    @classmethod
    def create(
        cls,
        currency: str = "TND",
        global_discount_pct: Decimal | int | str = 0,
        fodec_enabled: bool = False,
        fodec_rate_pct: Decimal | int | str = 1,
        stamp_duty_enabled: bool = False,
        stamp_duty_amount: Decimal | int | str = "1.000",
        withholding_enabled: bool = False,
        withholding_rate_pct: Decimal | int | str = 0,
        withholding_applies_to: WithholdingScope | str = WithholdingScope.ALL,
        vat_deductible: bool = False,
    ) -> DocumentTotalsConfig:
        """Build a config from flat values."""
        return cls(
            global_discount_pct=to_decimal(global_discount_pct),
            fodec=FodecSetting(fodec_enabled, to_decimal(fodec_rate_pct)),
            stamp_duty=StampDutySetting(stamp_duty_enabled, to_decimal(stamp_duty_amount)),
            currency=currency,
            withholding=WithholdingSetting(
                withholding_enabled,
                to_decimal(withholding_rate_pct),
                WithholdingScope(withholding_applies_to),
            ),
            vat_deductible=vat_deductible,
        )


@dataclass(frozen=True)
class LineTotals:
    """Per-line figures of the cascade, in input order."""

    index: int
    designation: str
    ht_before_discount: Money
    discount_amount: Money
    net_ht: Money
    net_after_global_discount: Money
    fodec_share: Money
    vat_base: Money
    vat_pct: Decimal
    vat_amount: Money
    total_ttc: Money
    deductible_vat: Money


@dataclass(frozen=True)
class VatSummaryLine:
    """VAT base and amount for one rate."""

    vat_pct: Decimal
    base: Money
    amount: Money


@dataclass(frozen=True)
class TotalsBreakdown:
    """
    Complete totals of a document.

    Immutable and recomputable from the lines and config it came from;
    never authoritative on its own.
    """

    currency: str
    ht_before_line_discount: Money
    line_discount_total: Money
    ht_after_line_discount: Money
    global_discount_amount: Money
    net_ht: Money
    fodec_amount: Money
    vat_total: Money
    stamp_duty_amount: Money
    grand_total_ttc: Money
    withholding_amount: Money
    net_payable: Money
    deductible_vat_total: Money
    lines: tuple[LineTotals, ...] = ()
    vat_summary: tuple[VatSummaryLine, ...] = ()

    @property
    def line_count(self) -> int:
        return len(self.lines)

    def as_amounts(self) -> dict[str, Decimal]:
        """Document-level figures as plain Decimals, keyed by field name."""
        return {
            "ht_before_line_discount": self.ht_before_line_discount.amount,
            "line_discount_total": self.line_discount_total.amount,
            "ht_after_line_discount": self.ht_after_line_discount.amount,
            "global_discount_amount": self.global_discount_amount.amount,
            "net_ht": self.net_ht.amount,
            "fodec_amount": self.fodec_amount.amount,
            "vat_total": self.vat_total.amount,
            "stamp_duty_amount": self.stamp_duty_amount.amount,
            "grand_total_ttc": self.grand_total_ttc.amount,
            "withholding_amount": self.withholding_amount.amount,
            "net_payable": self.net_payable.amount,
            "deductible_vat_total": self.deductible_vat_total.amount,
        }


@dataclass(frozen=True)
class _LineFigures:
    # Full-precision intermediates for one line
    line_ht: Decimal
    line_net: Decimal
    net_after_global: Decimal
    fodec_share: Decimal
    vat_base: Decimal
    vat_pct: Decimal
    vat: Decimal


class TotalsEngine:
    """
    Compute document totals.

    Pure - no I/O, no database access, no clock. Never raises for
    well-formed input: malformed numbers are clamped and logged at WARNING.
    """

    @traced_engine("totals", "1.0", fingerprint_fields=("lines", "config"))
    def compute(
        self,
        lines: Sequence[DocumentLine],
        config: DocumentTotalsConfig,
    ) -> TotalsBreakdown:
        """
        Compute the breakdown for ``lines`` under ``config``.

        Args:
            lines: Document lines in display order. Zero lines are kept.
            config: Global discount, FODEC, stamp duty, withholding, currency.

        Returns:
            TotalsBreakdown with every figure rounded to 3 places.
        """
        t0 = time.monotonic()
        logger.info("totals_computation_started", extra={
            "line_count": len(lines),
            "currency": config.currency,
            "global_discount_pct": str(config.global_discount_pct),
            "fodec_enabled": config.fodec.enabled,
            "stamp_duty_enabled": config.stamp_duty.enabled,
        })

        global_pct = self._clamped_percent(config.global_discount_pct, "global_discount_pct")
        global_factor = Decimal("1") - percent_to_rate(global_pct)

        fodec_rate = ZERO
        if config.fodec.enabled:
            fodec_rate = percent_to_rate(self._clamped_amount(config.fodec.rate_pct, "fodec.rate_pct"))

        figures = [
            self._line_figures(index, line, global_factor, fodec_rate)
            for index, line in enumerate(lines)
        ]

        ht_before = sum((f.line_ht for f in figures), ZERO)
        ht_after = sum((f.line_net for f in figures), ZERO)
        global_discount = ht_after * percent_to_rate(global_pct)
        net_ht = ht_after - global_discount
        fodec_amount = net_ht * fodec_rate
        vat_total = sum((f.vat for f in figures), ZERO)

        stamp = ZERO
        if config.stamp_duty.enabled:
            stamp = self._clamped_amount(config.stamp_duty.amount, "stamp_duty.amount")

        grand_total = net_ht + fodec_amount + vat_total + stamp

        withholding = ZERO
        if config.withholding.applies(lines):
            withholding_rate = self._clamped_amount(config.withholding.rate_pct, "withholding.rate_pct")
            withholding = net_ht * percent_to_rate(withholding_rate)

        # purchase VAT is recoverable in full
        deductible_share = Decimal("1") if config.vat_deductible else ZERO

        currency = config.currency

        def money(value: Decimal) -> Money:
            return Money.of(value, currency).round()

        breakdown = TotalsBreakdown(
            currency=currency,
            ht_before_line_discount=money(ht_before),
            line_discount_total=money(ht_before - ht_after),
            ht_after_line_discount=money(ht_after),
            global_discount_amount=money(global_discount),
            net_ht=money(net_ht),
            fodec_amount=money(fodec_amount),
            vat_total=money(vat_total),
            stamp_duty_amount=money(stamp),
            grand_total_ttc=money(grand_total),
            withholding_amount=money(withholding),
            net_payable=money(grand_total - withholding),
            deductible_vat_total=money(vat_total * deductible_share),
            lines=tuple(
                LineTotals(
                    index=index,
                    designation=line.designation,
                    ht_before_discount=money(f.line_ht),
                    discount_amount=money(f.line_ht - f.line_net),
                    net_ht=money(f.line_net),
                    net_after_global_discount=money(f.net_after_global),
                    fodec_share=money(f.fodec_share),
                    vat_base=money(f.vat_base),
                    vat_pct=f.vat_pct,
                    vat_amount=money(f.vat),
                    total_ttc=money(f.vat_base + f.vat),
                    deductible_vat=money(f.vat * deductible_share),
                )
                for index, (line, f) in enumerate(zip(lines, figures))
            ),
            vat_summary=self._vat_summary(figures, currency),
        )

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("totals_computation_completed", extra={
            "line_count": len(lines),
            "net_ht": str(breakdown.net_ht.amount),
            "vat_total": str(breakdown.vat_total.amount),
            "grand_total_ttc": str(breakdown.grand_total_ttc.amount),
            "currency": currency,
            "duration_ms": duration_ms,
        })

        return breakdown

    def _line_figures(
        self,
        index: int,
        line: DocumentLine,
        global_factor: Decimal,
        fodec_rate: Decimal,
    ) -> _LineFigures:
        quantity = self._clamped_amount(line.quantity, "quantity", index)
        price = self._clamped_amount(line.unit_price_ht, "unit_price_ht", index)
        discount_pct = self._clamped_percent(line.line_discount_pct, "line_discount_pct", index)
        vat_pct = self._clamped_amount(line.vat_pct, "vat_pct", index)

        line_ht = quantity * price
        line_net = line_ht * (Decimal("1") - percent_to_rate(discount_pct))
        net_after_global = line_net * global_factor
        fodec_share = net_after_global * fodec_rate
        vat_base = net_after_global + fodec_share
        vat = vat_base * percent_to_rate(vat_pct)

        return _LineFigures(
            line_ht=line_ht,
            line_net=line_net,
            net_after_global=net_after_global,
            fodec_share=fodec_share,
            vat_base=vat_base,
            vat_pct=vat_pct,
            vat=vat,
        )

    def _vat_summary(
        self,
        figures: Sequence[_LineFigures],
        currency: str,
    ) -> tuple[VatSummaryLine, ...]:
        bases: dict[Decimal, Decimal] = {}
        amounts: dict[Decimal, Decimal] = {}
        for f in figures:
            # Decimal("19") and Decimal("19.0") are equal and hash alike
            bases[f.vat_pct] = bases.get(f.vat_pct, ZERO) + f.vat_base
            amounts[f.vat_pct] = amounts.get(f.vat_pct, ZERO) + f.vat
        return tuple(
            VatSummaryLine(
                vat_pct=rate,
                base=Money.of(bases[rate], currency).round(),
                amount=Money.of(amounts[rate], currency).round(),
            )
            for rate in sorted(bases)
        )

    def _clamped_amount(self, value: Decimal, field_name: str, line_index: int | None = None) -> Decimal:
        clamped = clamp_non_negative(value)
        if clamped != value:
            self._log_clamp(field_name, value, clamped, line_index)
        return clamped

    def _clamped_percent(self, value: Decimal, field_name: str, line_index: int | None = None) -> Decimal:
        clamped = clamp_percent(value)
        if clamped != value:
            self._log_clamp(field_name, value, clamped, line_index)
        return clamped

    @staticmethod
    def _log_clamp(field_name: str, value: Decimal, clamped: Decimal, line_index: int | None) -> None:
        logger.warning("totals_input_clamped", extra={
            "field": field_name,
            "line_index": line_index,
            "original_value": str(value),
            "clamped_value": str(clamped),
        })


_default_engine = TotalsEngine()


def compute_totals(
    lines: Sequence[DocumentLine],
    config: DocumentTotalsConfig,
) -> TotalsBreakdown:
    """Module-level convenience for ``TotalsEngine().compute``."""
    return _default_engine.compute(lines, config)
