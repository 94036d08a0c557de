"""
Tests for tax rule selection and tax line computation.

Covers thresholds, category tags, compounding, fixed amounts in a foreign
currency, seller-borne withholdings and application order.
"""

from decimal import Decimal

import pytest

from conftest import MARCH_1, make_snapshot, make_vat
from marketplace_engines.tax import compute_tax_lines, select_applicable_tax_rules
from marketplace_kernel.domain.rules import TaxBearer, TaxKind
from marketplace_kernel.exceptions import ExchangeRateNotFoundError


def _stamp_duty(**overrides):
    fields = dict(
        rule_id="NG-STAMP-001",
        name="Stamp Duty",
        kind="stamp_duty",
        rate="50.00",
        is_fixed=True,
        threshold=Decimal("10000.00"),
        currency="NGN",
    )
    fields.update(overrides)
    return make_vat(**fields)


def _withholding(**overrides):
    fields = dict(
        rule_id="NG-WHT-001",
        name="Withholding Tax",
        kind="withholding_tax",
        rate="5",
        borne_by="seller",
        applies_to=("services", "artisan"),
    )
    fields.update(overrides)
    return make_vat(**fields)


class TestSelectApplicableTaxRules:

    def setup_method(self):
        self.rules = (make_vat(), _stamp_duty(), _withholding())

    def _select(self, subtotal, **kwargs):
        return select_applicable_tax_rules(
            self.rules,
            country="NG",
            at=MARCH_1,
            subtotal=subtotal,
            currency="NGN",
            **kwargs,
        )

    def test_threshold_excludes_small_orders(self):
        # 10,000.00 NGN threshold = 1,000,000 kobo
        ids = [r.rule_id for r in self._select(999_999)]
        assert "NG-STAMP-001" not in ids

    def test_threshold_is_inclusive(self):
        ids = [r.rule_id for r in self._select(1_000_000)]
        assert "NG-STAMP-001" in ids

    def test_tagged_rule_needs_matching_category(self):
        assert "NG-WHT-001" not in [r.rule_id for r in self._select(10000)]
        assert "NG-WHT-001" in [
            r.rule_id for r in self._select(10000, category="services")
        ]

    def test_user_type_tag(self):
        ids = [r.rule_id for r in self._select(10000, user_type="artisan")]
        assert "NG-WHT-001" in ids

    def test_other_country_gets_nothing(self):
        rules = select_applicable_tax_rules(
            self.rules, country="GH", at=MARCH_1, subtotal=10000, currency="NGN"
        )
        assert rules == ()

    def test_sorted_by_rule_id(self):
        ids = [r.rule_id for r in self._select(2_000_000, category="services")]
        assert ids == sorted(ids)

    def test_threshold_in_foreign_currency(self):
        # 10 USD threshold = 15,000 NGN = 1,500,000 kobo
        rules = (_stamp_duty(threshold=Decimal("10"), currency="USD", rate="1"),)
        below = select_applicable_tax_rules(
            rules, "NG", MARCH_1, 1_499_999, "NGN", snapshot=make_snapshot()
        )
        at_threshold = select_applicable_tax_rules(
            rules, "NG", MARCH_1, 1_500_000, "NGN", snapshot=make_snapshot()
        )
        assert below == ()
        assert len(at_threshold) == 1


class TestComputeTaxLines:

    def test_percentage(self):
        taxes, withholdings = compute_tax_lines(
            rules=(make_vat(),), subtotal=10000, currency="NGN"
        )
        assert withholdings == ()
        assert len(taxes) == 1
        line = taxes[0]
        assert line.amount == 750
        assert line.taxable_amount == 10000
        assert line.kind is TaxKind.VAT

    def test_fixed_amount(self):
        taxes, _ = compute_tax_lines(rules=(_stamp_duty(),), subtotal=0, currency="NGN")
        assert taxes[0].amount == 5000
        assert taxes[0].is_fixed

    def test_fixed_amount_converted(self):
        rule = _stamp_duty(rate="1", currency="USD", threshold=None)
        taxes, _ = compute_tax_lines(
            rules=(rule,), subtotal=10000, currency="NGN", snapshot=make_snapshot()
        )
        assert taxes[0].amount == 150000

    def test_fixed_amount_missing_rate(self):
        rule = _stamp_duty(currency="GHS", threshold=None)
        with pytest.raises(ExchangeRateNotFoundError):
            compute_tax_lines(
                rules=(rule,), subtotal=10000, currency="NGN", snapshot=make_snapshot()
            )

    def test_compound_rule_taxes_prior_taxes(self):
        levy = make_vat(rule_id="NG-VAT-002", name="Levy", rate="10", is_compound=True)
        taxes, _ = compute_tax_lines(rules=(levy, make_vat()), subtotal=10000, currency="NGN")
        assert [t.rule_id for t in taxes] == ["NG-VAT-001", "NG-VAT-002"]
        assert taxes[1].taxable_amount == 10750
        assert taxes[1].amount == 1075

    def test_compound_rule_applied_first_uses_subtotal(self):
        levy = make_vat(rule_id="NG-AAA-001", name="Levy", rate="10", is_compound=True)
        taxes, _ = compute_tax_lines(rules=(make_vat(), levy), subtotal=10000, currency="NGN")
        assert taxes[0].rule_id == "NG-AAA-001"
        assert taxes[0].amount == 1000

    def test_non_compound_rules_use_subtotal(self):
        second = make_vat(rule_id="NG-VAT-002", rate="2")
        taxes, _ = compute_tax_lines(rules=(make_vat(), second), subtotal=10000, currency="NGN")
        assert taxes[1].taxable_amount == 10000
        assert taxes[1].amount == 200

    def test_withholding_separated(self):
        taxes, withholdings = compute_tax_lines(
            rules=(make_vat(), _withholding()), subtotal=10000, currency="NGN"
        )
        assert [t.rule_id for t in taxes] == ["NG-VAT-001"]
        assert withholdings[0].amount == 500
        assert withholdings[0].borne_by is TaxBearer.SELLER

    def test_withholding_not_in_compound_base(self):
        levy = make_vat(rule_id="NG-ZZZ-001", rate="10", is_compound=True)
        taxes, _ = compute_tax_lines(
            rules=(_withholding(), levy), subtotal=10000, currency="NGN"
        )
        assert taxes[0].taxable_amount == 10000

    def test_no_rules(self):
        assert compute_tax_lines(rules=(), subtotal=10000, currency="NGN") == ((), ())

    def test_to_dict(self):
        taxes, _ = compute_tax_lines(rules=(make_vat(),), subtotal=10000, currency="NGN")
        data = taxes[0].to_dict()
        assert data["rate"] == "7.5"
        assert data["kind"] == "vat"
        assert data["borne_by"] == "payer"
        assert data["amount"] == 750

    def test_logs_completion(self, captured_logs):
        compute_tax_lines(rules=(make_vat(),), subtotal=10000, currency="NGN")
        completed = [r for r in captured_logs() if r["message"] == "tax_calculation_completed"]
        assert completed[0]["tax_total"] == 750
