"""
Tests for TotalsEngine.

Covers the discount -> FODEC -> VAT -> stamp duty cascade, per-line and
per-rate figures, withholding, rounding at report time only, and defensive
clamping of malformed lines.
"""

from decimal import Decimal

import pytest

from invoicing_engines.totals import (
    DocumentLine,
    DocumentTotalsConfig,
    FodecSetting,
    StampDutySetting,
    TotalsEngine,
    WithholdingScope,
    WithholdingSetting,
    compute_totals,
)
from invoicing_kernel.domain.values import Money
from invoicing_kernel.exceptions import InvalidCurrencyError


def tnd(amount) -> Money:
    return Money.of(str(amount), "TND")


class TestDiscountComposition:

    def setup_method(self):
        self.engine = TotalsEngine()

    def test_line_and_global_discounts_compose_multiplicatively(self):
        lines = [DocumentLine("Item", quantity=1, unit_price_ht=100, line_discount_pct=10)]
        config = DocumentTotalsConfig.create(global_discount_pct=10)

        result = self.engine.compute(lines, config)

        assert result.net_ht == tnd("81")
        assert result.net_ht != tnd("80")
        assert result.line_discount_total == tnd("10")
        assert result.ht_after_line_discount == tnd("90")
        assert result.global_discount_amount == tnd("9")

    def test_global_discount_spread_over_line_vat_bases(self):
        lines = [
            DocumentLine("A", 1, 100, vat_pct=19),
            DocumentLine("B", 1, 100, vat_pct=7),
        ]
        config = DocumentTotalsConfig.create(global_discount_pct=50)

        result = self.engine.compute(lines, config)

        assert result.lines[0].vat_base == tnd("50")
        assert result.lines[1].vat_base == tnd("50")
        assert result.vat_total == tnd("13.000")  # 9.5 + 3.5


class TestFodec:

    def setup_method(self):
        self.engine = TotalsEngine()

    def test_fodec_feeds_vat_base(self):
        lines = [DocumentLine("Machine", 1, 100, vat_pct=19)]
        config = DocumentTotalsConfig.create(
            fodec_enabled=True, fodec_rate_pct=1,
            stamp_duty_enabled=True, stamp_duty_amount=1,
        )

        result = self.engine.compute(lines, config)

        assert result.net_ht == tnd("100")
        assert result.fodec_amount == tnd("1")
        assert result.lines[0].vat_base == tnd("101")
        assert result.vat_total == tnd("19.19")
        assert result.grand_total_ttc == tnd("121.19")

    def test_fodec_disabled_leaves_vat_base_at_net(self):
        lines = [DocumentLine("Machine", 1, 100, vat_pct=19)]
        config = DocumentTotalsConfig(fodec=FodecSetting(enabled=False, rate_pct=Decimal("1")))

        result = self.engine.compute(lines, config)

        assert result.fodec_amount == tnd("0")
        assert result.vat_total == tnd("19")

    def test_fodec_computed_after_global_discount(self):
        lines = [DocumentLine("Machine", 1, 200, vat_pct=0)]
        config = DocumentTotalsConfig.create(
            global_discount_pct=50, fodec_enabled=True, fodec_rate_pct=1,
        )

        result = self.engine.compute(lines, config)

        assert result.fodec_amount == tnd("1")
        assert result.lines[0].fodec_share == tnd("1")


class TestEndToEnd:

    def setup_method(self):
        self.engine = TotalsEngine()
        self.lines = [
            DocumentLine("Consulting", quantity=2, unit_price_ht=50, vat_pct=19),
            DocumentLine("Licence", quantity=1, unit_price_ht=200, line_discount_pct=5, vat_pct=19),
        ]
        self.config = DocumentTotalsConfig(stamp_duty=StampDutySetting(enabled=True, amount=Decimal("1")))

    def test_document_level_figures(self):
        result = self.engine.compute(self.lines, self.config)

        assert result.as_amounts() == {
            "ht_before_line_discount": Decimal("300.000"),
            "line_discount_total": Decimal("10.000"),
            "ht_after_line_discount": Decimal("290.000"),
            "global_discount_amount": Decimal("0.000"),
            "net_ht": Decimal("290.000"),
            "fodec_amount": Decimal("0.000"),
            "vat_total": Decimal("55.100"),
            "stamp_duty_amount": Decimal("1.000"),
            "grand_total_ttc": Decimal("346.100"),
            "withholding_amount": Decimal("0.000"),
            "net_payable": Decimal("346.100"),
            "deductible_vat_total": Decimal("0.000"),
        }

    def test_per_line_figures(self):
        result = self.engine.compute(self.lines, self.config)

        first, second = result.lines
        assert first.index == 0
        assert first.designation == "Consulting"
        assert first.ht_before_discount == tnd("100")
        assert first.discount_amount == tnd("0")
        assert first.vat_amount == tnd("19")
        assert first.total_ttc == tnd("119")

        assert second.ht_before_discount == tnd("200")
        assert second.discount_amount == tnd("10")
        assert second.net_ht == tnd("190")
        assert second.vat_amount == tnd("36.1")
        assert second.total_ttc == tnd("226.1")

    def test_reported_amounts_have_three_places(self):
        result = self.engine.compute(self.lines, self.config)

        assert str(result.grand_total_ttc.amount) == "346.100"
        assert result.grand_total_ttc.currency.code == "TND"

    def test_module_level_function_matches_engine(self):
        assert compute_totals(self.lines, self.config) == self.engine.compute(self.lines, self.config)

    def test_idempotent(self):
        first = self.engine.compute(self.lines, self.config)
        second = self.engine.compute(self.lines, self.config)
        assert first == second
        assert repr(first) == repr(second)


class TestStampDuty:

    def setup_method(self):
        self.engine = TotalsEngine()

    def test_empty_document_carries_only_stamp_duty(self):
        result = self.engine.compute([], DocumentTotalsConfig.create(stamp_duty_enabled=True))

        assert result.line_count == 0
        assert result.net_ht == tnd("0")
        assert result.vat_total == tnd("0")
        assert result.stamp_duty_amount == tnd("1.000")
        assert result.grand_total_ttc == tnd("1.000")
        assert result.vat_summary == ()

    def test_empty_document_without_stamp_is_all_zero(self):
        result = self.engine.compute([], DocumentTotalsConfig())

        assert all(value == Decimal("0") for value in result.as_amounts().values())

    def test_stamp_duty_independent_of_prices(self):
        config = DocumentTotalsConfig.create(stamp_duty_enabled=True, stamp_duty_amount="0.600")
        lines = [DocumentLine("A", 3, "12.5", vat_pct=19)]
        doubled = [DocumentLine("A", 3, "25", vat_pct=19)]

        assert (
            self.engine.compute(lines, config).stamp_duty_amount
            == self.engine.compute(doubled, config).stamp_duty_amount
            == tnd("0.600")
        )


class TestLines:

    def setup_method(self):
        self.engine = TotalsEngine()

    def test_zero_lines_keep_their_slot(self):
        lines = [
            DocumentLine("A", 1, 10, vat_pct=19),
            DocumentLine("Free sample", 0, 10, vat_pct=19),
            DocumentLine("C", 1, 0, vat_pct=19),
        ]

        result = self.engine.compute(lines, DocumentTotalsConfig())

        assert result.line_count == 3
        assert [line.index for line in result.lines] == [0, 1, 2]
        assert result.lines[1].designation == "Free sample"
        assert result.lines[1].total_ttc == tnd("0")

    def test_vat_summary_groups_by_rate(self):
        lines = [
            DocumentLine("A", 1, 100, vat_pct=19),
            DocumentLine("B", 1, 50, vat_pct=7),
            DocumentLine("C", 1, 10, vat_pct="19.0"),
        ]

        result = self.engine.compute(lines, DocumentTotalsConfig())

        assert [row.vat_pct for row in result.vat_summary] == [Decimal("7"), Decimal("19")]
        seven, nineteen = result.vat_summary
        assert seven.base == tnd("50")
        assert seven.amount == tnd("3.5")
        assert nineteen.base == tnd("110")
        assert nineteen.amount == tnd("20.9")

    def test_rounding_applies_to_reported_fields_only(self):
        lines = [
            DocumentLine("A", 1, "0.0004"),
            DocumentLine("B", 1, "0.0004"),
        ]

        result = self.engine.compute(lines, DocumentTotalsConfig())

        assert result.lines[0].net_ht == tnd("0.000")
        assert result.lines[1].net_ht == tnd("0.000")
        assert result.net_ht == tnd("0.001")

    def test_half_up_rounding(self):
        result = self.engine.compute([DocumentLine("A", 3, "0.3335")], DocumentTotalsConfig())

        assert result.net_ht == tnd("1.001")

    def test_other_currency(self):
        result = self.engine.compute(
            [DocumentLine("A", 1, 10, vat_pct=20)],
            DocumentTotalsConfig.create(currency="EUR"),
        )

        assert result.currency == "EUR"
        assert result.grand_total_ttc == Money.of("12", "EUR")


class TestWithholding:

    def setup_method(self):
        self.engine = TotalsEngine()
        self.lines = [
            DocumentLine("Consulting", 2, 50, vat_pct=19),
            DocumentLine("Licence", 1, 200, line_discount_pct=5, vat_pct=19),
        ]

    def test_withholding_is_informational(self):
        config = DocumentTotalsConfig(
            stamp_duty=StampDutySetting(enabled=True),
            withholding=WithholdingSetting(enabled=True, rate_pct=Decimal("1.5")),
        )

        result = self.engine.compute(self.lines, config)

        assert result.withholding_amount == tnd("4.35")
        assert result.grand_total_ttc == tnd("346.1")
        assert result.net_payable == tnd("341.75")

    def test_disabled_withholding_ignores_rate(self):
        config = DocumentTotalsConfig.create(withholding_enabled=False, withholding_rate_pct=25)

        result = self.engine.compute(self.lines, config)

        assert result.withholding_amount == tnd("0")
        assert result.net_payable == result.grand_total_ttc

    def test_service_scope_applies_when_every_line_is_a_service(self):
        lines = [
            DocumentLine("Consulting", 2, 50, vat_pct=19, is_service=True),
            DocumentLine("Support", 1, 200, line_discount_pct=5, vat_pct=19, is_service=True),
        ]
        config = DocumentTotalsConfig.create(
            withholding_enabled=True, withholding_rate_pct="1.5", withholding_applies_to="services",
        )

        result = self.engine.compute(lines, config)

        assert result.withholding_amount == tnd("4.35")
        assert result.net_payable == tnd("340.75")

    def test_service_scope_skipped_when_goods_are_present(self):
        lines = [
            DocumentLine("Consulting", 2, 50, vat_pct=19, is_service=True),
            DocumentLine("Licence", 1, 200, line_discount_pct=5, vat_pct=19),
        ]
        config = DocumentTotalsConfig.create(
            withholding_enabled=True, withholding_rate_pct="1.5", withholding_applies_to="services",
        )

        result = self.engine.compute(lines, config)

        assert result.withholding_amount == tnd("0")
        assert result.net_payable == result.grand_total_ttc

    def test_all_scope_ignores_line_kind(self):
        config = DocumentTotalsConfig(
            withholding=WithholdingSetting(
                enabled=True, rate_pct=Decimal("1.5"), applies_to=WithholdingScope.ALL,
            ),
        )

        result = self.engine.compute(self.lines, config)

        assert result.withholding_amount == tnd("4.35")

    def test_unknown_scope_rejected(self):
        with pytest.raises(ValueError):
            WithholdingSetting(enabled=True, applies_to="goods")


class TestDeductibleVat:

    def setup_method(self):
        self.engine = TotalsEngine()
        self.lines = [
            DocumentLine("Steel", 2, 50, vat_pct=19),
            DocumentLine("Transport", 1, 200, line_discount_pct=5, vat_pct=7),
        ]

    def test_purchase_vat_fully_deductible(self):
        result = self.engine.compute(self.lines, DocumentTotalsConfig.create(vat_deductible=True))

        assert [line.deductible_vat for line in result.lines] == [tnd("19"), tnd("13.3")]
        assert result.deductible_vat_total == tnd("32.3")
        assert result.deductible_vat_total == result.vat_total

    def test_sales_vat_not_deductible(self):
        result = self.engine.compute(self.lines, DocumentTotalsConfig())

        assert all(line.deductible_vat == tnd("0") for line in result.lines)
        assert result.deductible_vat_total == tnd("0")

    def test_deductible_vat_leaves_totals_unchanged(self):
        purchase = self.engine.compute(self.lines, DocumentTotalsConfig.create(vat_deductible=True))
        sale = self.engine.compute(self.lines, DocumentTotalsConfig())

        assert purchase.grand_total_ttc == sale.grand_total_ttc
        assert purchase.net_payable == sale.net_payable


class TestClamping:

    def setup_method(self):
        self.engine = TotalsEngine()

    def test_negative_quantity_contributes_zero(self, captured_logs):
        lines = [
            DocumentLine("Return", -2, 50, vat_pct=19),
            DocumentLine("A", 1, 10, vat_pct=0),
        ]

        result = self.engine.compute(lines, DocumentTotalsConfig())

        assert result.lines[0].ht_before_discount == tnd("0")
        assert result.net_ht == tnd("10")
        warnings = [r for r in captured_logs() if r["message"] == "totals_input_clamped"]
        assert len(warnings) == 1
        assert warnings[0]["field"] == "quantity"
        assert warnings[0]["line_index"] == 0
        assert warnings[0]["original_value"] == "-2"
        assert warnings[0]["level"] == "WARNING"

    def test_discount_over_hundred_clamped(self):
        result = self.engine.compute(
            [DocumentLine("A", 1, 100, line_discount_pct=150, vat_pct=19)],
            DocumentTotalsConfig(),
        )

        assert result.net_ht == tnd("0")
        assert result.line_discount_total == tnd("100")
        assert result.vat_total == tnd("0")

    def test_negative_global_discount_clamped(self):
        result = self.engine.compute(
            [DocumentLine("A", 1, 100)],
            DocumentTotalsConfig.create(global_discount_pct=-10),
        )

        assert result.net_ht == tnd("100")

    def test_negative_rates_and_stamp_clamped(self, captured_logs):
        config = DocumentTotalsConfig.create(
            fodec_enabled=True, fodec_rate_pct=-1,
            stamp_duty_enabled=True, stamp_duty_amount=-1,
            withholding_enabled=True, withholding_rate_pct=-5,
        )

        result = self.engine.compute([DocumentLine("A", 1, 100, vat_pct=-19)], config)

        assert result.fodec_amount == tnd("0")
        assert result.vat_total == tnd("0")
        assert result.stamp_duty_amount == tnd("0")
        assert result.withholding_amount == tnd("0")
        assert result.grand_total_ttc == tnd("100")
        fields = {r["field"] for r in captured_logs() if r["message"] == "totals_input_clamped"}
        assert fields == {"fodec.rate_pct", "stamp_duty.amount", "withholding.rate_pct", "vat_pct"}

    def test_vat_rate_above_hundred_is_kept(self):
        result = self.engine.compute([DocumentLine("A", 1, 10, vat_pct=150)], DocumentTotalsConfig())

        assert result.vat_total == tnd("15")

    def test_well_formed_input_logs_no_warning(self, captured_logs):
        self.engine.compute([DocumentLine("A", 1, 10, vat_pct=19)], DocumentTotalsConfig())

        assert not [r for r in captured_logs() if r["level"] == "WARNING"]


class TestInputsAndLogging:

    def test_numbers_coerced_to_decimal(self):
        line = DocumentLine("A", 2, 0.1, line_discount_pct="5", vat_pct=None)

        assert line.quantity == Decimal("2")
        assert line.unit_price_ht == Decimal("0.1")
        assert line.line_discount_pct == Decimal("5")
        assert line.vat_pct == Decimal("0")

    def test_non_numeric_line_rejected(self):
        with pytest.raises(ValueError):
            DocumentLine("A", "two", 10)

    @pytest.mark.parametrize("code", ["QAR", "INR", "LBP", "XOF"])
    def test_less_common_iso_currency_carried_through(self, code):
        result = compute_totals(
            [DocumentLine("x", 1, "10", vat_pct=19)],
            DocumentTotalsConfig(currency=code),
        )

        assert result.currency == code
        assert result.grand_total_ttc == Money.of("11.9", code)

    def test_junk_currency_rejected(self):
        with pytest.raises(InvalidCurrencyError):
            DocumentTotalsConfig(currency="ZZZ")

    def test_config_defaults(self):
        config = DocumentTotalsConfig()

        assert config.currency == "TND"
        assert config.fodec == FodecSetting(enabled=False, rate_pct=Decimal("1"))
        assert config.stamp_duty.amount == Decimal("1.000")
        assert config.withholding.enabled is False

    def test_start_completion_and_trace_logged(self, captured_logs):
        compute_totals([DocumentLine("A", 1, 10, vat_pct=19)], DocumentTotalsConfig())

        logs = captured_logs()
        messages = [r["message"] for r in logs]
        assert "totals_computation_started" in messages
        assert "totals_computation_completed" in messages
        trace = next(r for r in logs if r["message"] == "INVOICING_ENGINE_TRACE")
        assert trace["engine_name"] == "totals"
        assert len(trace["input_fingerprint"]) == 16
        completed = next(r for r in logs if r["message"] == "totals_computation_completed")
        assert completed["grand_total_ttc"] == "11.900"
