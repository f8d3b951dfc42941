import logging
from decimal import Decimal
from typing import Iterable, List, Optional, Sequence

from pos_pricing.services.domain import (
    NO_DISCOUNT,
    AppliedDiscount,
    CartLine,
    OrderContext,
    OrderTotals,
    Promotion,
    PromotionCatalog,
)
from pos_pricing.services.eligibility import eligible_promotions
from pos_pricing.services.errors import InvalidCartLineError, MalformedPromotionError
from pos_pricing.services.money import ZERO, decompose, normalize_rate, round_money, rounded_split, sum_splits
from pos_pricing.services.rewards import reward, satisfies

logger = logging.getLogger(__name__)


def _selection_key(promo: Promotion):
    # Highest priority first (null == 0), then smallest id
    return (-promo.effective_priority, promo.id)


def qualifying_promotions(candidates: Iterable[Promotion], cart: Sequence[CartLine]) -> List[Promotion]:
    """Candidates whose trigger condition holds for the cart"""
    result = []
    for promo in candidates:
        try:
            if satisfies(promo, cart):
                result.append(promo)
            else:
                logger.debug("Promotion %s condition not met", promo.id)
        except MalformedPromotionError as exc:
            logger.warning("Skipping malformed promotion %s: %s", exc.promotion_id, exc.reason)
    return result


def select_best_promotion(promotions: Iterable[Promotion]) -> Optional[Promotion]:
    """
    Promotions never stack: the single winner is the one with the highest
    priority; ties go to the smallest id so the choice is stable.
    """
    promotions = list(promotions)
    if not promotions:
        return None
    return min(promotions, key=_selection_key)


def resolve(candidates: Iterable[Promotion], cart: Sequence[CartLine]) -> AppliedDiscount:
    """Pick the applicable promotion among eligible candidates and compute its discount"""
    best = select_best_promotion(qualifying_promotions(candidates, cart))
    if best is None:
        return NO_DISCOUNT

    granted = reward(best, cart)
    return AppliedDiscount(
        promotion_id=best.id,
        discount_total=granted.discount_total,
        affected_line_ids=granted.affected_line_ids,
    )


def validate_cart(cart: Sequence[CartLine]) -> None:
    """A bad line means upstream data is broken: refuse to price the order at all"""
    for line in cart:
        if isinstance(line.quantity, bool) or not isinstance(line.quantity, int) or line.quantity < 1:
            raise InvalidCartLineError(line.line_id, f"quantity must be an integer >= 1, got {line.quantity!r}")
        if not line.unit_price_gross.is_finite() or line.unit_price_gross < 0:
            raise InvalidCartLineError(line.line_id, "unit_price_gross must be >= 0")
        if not line.modifier_price_gross.is_finite() or line.modifier_price_gross < 0:
            raise InvalidCartLineError(line.line_id, "modifier_price_gross must be >= 0")
        normalize_rate(line.tax_rate)


def empty_totals() -> OrderTotals:
    zero = round_money(ZERO)
    return OrderTotals(
        net=zero,
        vat=zero,
        gross=zero,
        discount_total=zero,
        gross_after_discount=zero,
        net_after_discount=zero,
        vat_after_discount=zero,
        empty_cart=True,
    )


def compute_totals(cart: Sequence[CartLine], applied: AppliedDiscount = NO_DISCOUNT) -> OrderTotals:
    """
    Sum per-line tax splits, take the discount off the gross, and scale the
    net/VAT split of the discounted order by the same ratio. Rounds once.
    """
    if not cart:
        return empty_totals()

    total = sum_splits(decompose(line.gross, line.tax_rate) for line in cart)

    discount = min(max(applied.discount_total, ZERO), total.gross)
    after = total.gross - discount
    if total.gross > ZERO:
        net_after = total.net * after / total.gross
    else:
        net_after = ZERO

    before = rounded_split(total)
    gross_r, net_r, vat_r = before.gross, before.net, before.vat

    discount_r = round_money(discount)
    after_r = gross_r - discount_r
    net_after_r = min(round_money(net_after), after_r)
    vat_after_r = after_r - net_after_r
    if vat_after_r > vat_r:
        vat_after_r = vat_r
        net_after_r = after_r - vat_r

    return OrderTotals(
        net=net_r,
        vat=vat_r,
        gross=gross_r,
        discount_total=discount_r,
        gross_after_discount=after_r,
        net_after_discount=net_after_r,
        vat_after_discount=vat_after_r,
        applied_promotion_id=applied.promotion_id,
        affected_line_ids=applied.affected_line_ids,
    )


def compute_order_totals(
    catalog: PromotionCatalog,
    ctx: OrderContext,
    cart: Sequence[CartLine],
) -> OrderTotals:
    """
    Price an order against a catalog snapshot.

    Raises InvalidCartLineError / InvalidRateError for bad cart data.
    Malformed promotions are skipped, never fatal.
    """
    cart = tuple(cart)
    validate_cart(cart)

    if not cart:
        logger.debug("Empty cart for branch %s", ctx.branch_id)
        return empty_totals()

    candidates = eligible_promotions(catalog.promotions, ctx)
    applied = resolve(candidates, cart)
    return compute_totals(cart, applied)


def discount_ratio(totals: OrderTotals) -> Decimal:
    """Share of the gross taken off by the applied discount"""
    if totals.gross <= ZERO:
        return ZERO
    return totals.discount_total / totals.gross
