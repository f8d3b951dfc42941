"""Tests for promotion resolution and order totals."""

import pytest
from datetime import datetime
from decimal import Decimal

from conftest import make_ctx, make_line, make_promotion
from pos_pricing.services.domain import (
    AppliedDiscount,
    ConditionKind,
    DiscountType,
    PromotionCatalog,
    PromotionType,
    RewardKind,
    Weekday,
)
from pos_pricing.services.errors import InvalidCartLineError, InvalidRateError
from pos_pricing.services.pricing import (
    compute_order_totals,
    compute_totals,
    resolve,
    select_best_promotion,
)


def scenario_a_cart():
    return [make_line("l1", "s1", quantity=2, price="11.50", rate="0.15")]


def buys_quantity(qty, **overrides):
    fields = dict(
        promotion_type=PromotionType.ADVANCED,
        basic_discount_type=None,
        basic_discount_value=None,
        condition_kind=ConditionKind.BUYS_QUANTITY,
        condition_qty=qty,
        reward_kind=RewardKind.DISCOUNT_ON_ORDER,
        reward_discount_type=DiscountType.PERCENT,
        reward_discount_value=Decimal("20"),
    )
    fields.update(overrides)
    return make_promotion(**fields)


class TestScenarios:

    def test_a_tax_inclusive_line(self):
        totals = compute_order_totals(PromotionCatalog(), make_ctx(), scenario_a_cart())
        assert totals.net == Decimal("20.00")
        assert totals.vat == Decimal("3.00")
        assert totals.gross == Decimal("23.00")
        assert totals.discount_total == Decimal("0.00")
        assert totals.gross_after_discount == Decimal("23.00")
        assert totals.applied_promotion_id is None

    def test_b_basic_percent_order_discount(self):
        catalog = PromotionCatalog(promotions=[make_promotion(id="ten")])
        totals = compute_order_totals(catalog, make_ctx(), scenario_a_cart())
        assert totals.discount_total == Decimal("2.30")
        assert totals.gross_after_discount == Decimal("20.70")
        assert totals.net_after_discount == Decimal("18.00")
        assert totals.vat_after_discount == Decimal("2.70")
        assert totals.applied_promotion_id == "ten"
        assert str(totals.discount_total) == "2.30"

    def test_c_quantity_condition_not_met(self):
        promo = buys_quantity(3, product_size_ids={"s1"})
        catalog = PromotionCatalog(promotions=[promo])
        totals = compute_order_totals(catalog, make_ctx(), scenario_a_cart())
        assert totals.discount_total == Decimal("0.00")
        assert totals.applied_promotion_id is None

    def test_d_highest_priority_wins(self):
        catalog = PromotionCatalog(promotions=[
            make_promotion(id="low", priority=5, basic_discount_value=Decimal("50")),
            make_promotion(id="high", priority=10),
        ])
        totals = compute_order_totals(catalog, make_ctx(), scenario_a_cart())
        assert totals.applied_promotion_id == "high"
        assert totals.discount_total == Decimal("2.30")

    def test_d_tie_goes_to_smallest_id(self):
        catalog = PromotionCatalog(promotions=[
            make_promotion(id="b", priority=10),
            make_promotion(id="a", priority=10),
        ])
        totals = compute_order_totals(catalog, make_ctx(), scenario_a_cart())
        assert totals.applied_promotion_id == "a"


class TestResolver:

    def test_null_priority_counts_as_zero(self):
        best = select_best_promotion([
            make_promotion(id="a", priority=None),
            make_promotion(id="b", priority=1),
        ])
        assert best.id == "b"

    def test_negative_priority_below_null(self):
        best = select_best_promotion([
            make_promotion(id="a", priority=-1),
            make_promotion(id="b", priority=None),
        ])
        assert best.id == "b"

    def test_no_candidates(self):
        applied = resolve([], scenario_a_cart())
        assert applied.promotion_id is None
        assert applied.discount_total == 0

    def test_unsatisfied_higher_priority_loses(self):
        applied = resolve([
            buys_quantity(10, id="big", priority=100),
            make_promotion(id="small", priority=1),
        ], scenario_a_cart())
        assert applied.promotion_id == "small"

    def test_only_one_promotion_applied(self):
        promos = [make_promotion(id=str(i), priority=i % 3) for i in range(10)]
        applied = resolve(promos, scenario_a_cart())
        assert applied.promotion_id == "2"
        assert applied.discount_total == Decimal("2.3")

    def test_discount_never_exceeds_subtotal(self):
        promos = [make_promotion(basic_discount_type=DiscountType.VALUE, basic_discount_value=Decimal("999"))]
        applied = resolve(promos, scenario_a_cart())
        assert applied.discount_total == Decimal("23.00")

    def test_malformed_condition_skipped(self):
        broken = buys_quantity(None, id="broken", priority=9)
        applied = resolve([broken, make_promotion(id="ok")], scenario_a_cart())
        assert applied.promotion_id == "ok"


class TestComputeTotals:

    def test_mixed_tax_rates(self):
        cart = scenario_a_cart() + [make_line("l2", "s2", quantity=1, price="10.50", rate="5")]
        totals = compute_totals(cart)
        assert totals.gross == Decimal("33.50")
        assert totals.net == Decimal("30.00")
        assert totals.vat == Decimal("3.50")

    def test_modifiers_always_in_totals(self):
        cart = [make_line(quantity=2, price="10.00", modifier="1.50", rate="0")]
        assert compute_totals(cart).gross == Decimal("23.00")

    def test_discounted_vat_never_larger(self):
        cart = [make_line(quantity=3, price="0.05", rate="0.15")]
        totals = compute_totals(cart, AppliedDiscount("p", Decimal("0.01")))
        assert totals.vat_after_discount <= totals.vat
        assert totals.net_after_discount + totals.vat_after_discount == totals.gross_after_discount

    def test_discount_clamped_to_gross(self):
        totals = compute_totals(scenario_a_cart(), AppliedDiscount("p", Decimal("50")))
        assert totals.discount_total == Decimal("23.00")
        assert totals.gross_after_discount == Decimal("0.00")
        assert totals.net_after_discount == Decimal("0.00")
        assert totals.vat_after_discount == Decimal("0.00")

    @pytest.mark.parametrize("price,qty,rate,discount", [
        ("11.50", 2, "0.15", "2.30"),
        ("9.99", 3, "0.15", "1.333"),
        ("0.07", 7, "0.05", "0.035"),
        ("125.00", 1, "15", "0"),
        ("3.33", 3, "0", "0.999"),
    ])
    def test_invariants(self, price, qty, rate, discount):
        cart = [make_line(quantity=qty, price=price, rate=rate)]
        totals = compute_totals(cart, AppliedDiscount("p", Decimal(discount)))
        assert totals.net + totals.vat == totals.gross
        assert totals.gross_after_discount == totals.gross - totals.discount_total
        assert totals.net_after_discount + totals.vat_after_discount == totals.gross_after_discount
        assert totals.discount_total >= 0
        assert totals.gross_after_discount >= 0
        assert totals.vat_after_discount >= 0
        for value in (totals.net, totals.vat, totals.gross, totals.discount_total):
            assert value == value.quantize(Decimal("0.01"))

    def test_affected_lines_carried(self):
        totals = compute_totals(scenario_a_cart(), AppliedDiscount("p", Decimal("1"), ("l1",)))
        assert totals.affected_line_ids == ("l1",)


class TestComputeOrderTotals:

    def test_idempotent(self):
        catalog = PromotionCatalog(promotions=[
            make_promotion(id="a", priority=3),
            buys_quantity(2, id="b", priority=4),
        ])
        cart = scenario_a_cart()
        first = compute_order_totals(catalog, make_ctx(), cart)
        second = compute_order_totals(catalog, make_ctx(), cart)
        assert first == second
        assert first.applied_promotion_id == "b"
        assert str(first.discount_total) == str(second.discount_total) == "4.60"

    def test_empty_cart_flagged(self):
        catalog = PromotionCatalog(promotions=[make_promotion()])
        totals = compute_order_totals(catalog, make_ctx(), [])
        assert totals.empty_cart
        assert totals.gross == Decimal("0.00")
        assert totals.discount_total == Decimal("0.00")
        assert totals.applied_promotion_id is None

    def test_ineligible_promotions_ignored(self):
        catalog = PromotionCatalog(promotions=[
            make_promotion(id="mon", days={Weekday.MON}, priority=10),
            make_promotion(id="other", branch_ids={"b9"}, priority=10),
        ])
        totals = compute_order_totals(catalog, make_ctx(datetime(2026, 10, 16, 12, 0)), scenario_a_cart())
        assert totals.applied_promotion_id is None

    def test_malformed_promotion_does_not_break_checkout(self):
        catalog = PromotionCatalog(promotions=[
            make_promotion(id="bad", start_time="late", priority=99),
            make_promotion(id="good"),
        ])
        totals = compute_order_totals(catalog, make_ctx(), scenario_a_cart())
        assert totals.applied_promotion_id == "good"

    @pytest.mark.parametrize("broken", [
        dict(start_time="²:00"),
        dict(end_time="١٢:00"),
        dict(basic_discount_value=Decimal("NaN")),
        dict(basic_discount_value=Decimal("Infinity")),
    ])
    def test_non_ascii_time_or_non_finite_amount_is_skipped(self, broken):
        catalog = PromotionCatalog(promotions=[
            make_promotion(id="bad", priority=99, **broken),
            make_promotion(id="good"),
        ])
        totals = compute_order_totals(catalog, make_ctx(), scenario_a_cart())
        assert totals.applied_promotion_id == "good"
        assert totals.discount_total == Decimal("2.30")

    @pytest.mark.parametrize("line", [
        make_line(quantity=0),
        make_line(quantity=-1),
        make_line(price="-1.00"),
        make_line(modifier="-0.50"),
    ])
    def test_bad_line_is_fatal(self, line):
        with pytest.raises(InvalidCartLineError):
            compute_order_totals(PromotionCatalog(), make_ctx(), [line])

    def test_non_integer_quantity_is_fatal(self):
        with pytest.raises(InvalidCartLineError) as exc:
            compute_order_totals(PromotionCatalog(), make_ctx(), [make_line(line_id="x", quantity=1.5)])
        assert exc.value.line_id == "x"

    def test_negative_tax_rate_is_fatal(self):
        with pytest.raises(InvalidRateError):
            compute_order_totals(PromotionCatalog(), make_ctx(), [make_line(rate="-0.15")])


class TestCatalogTaxRates:

    def test_explicit_rate_wins(self):
        catalog = PromotionCatalog(tax_rates={"1": Decimal("5")}, default_tax_rate=Decimal("15"))
        assert catalog.tax_rate(tax_id="1", explicit=Decimal("0.10")) == Decimal("0.10")

    def test_tax_lookup(self):
        catalog = PromotionCatalog(tax_rates={"1": Decimal("5")}, default_tax_rate=Decimal("15"))
        assert catalog.tax_rate(tax_id="1") == Decimal("0.05")

    def test_default(self):
        catalog = PromotionCatalog(default_tax_rate=Decimal("15"))
        assert catalog.tax_rate(tax_id="missing") == Decimal("0.15")
        assert catalog.tax_rate() == Decimal("0.15")
