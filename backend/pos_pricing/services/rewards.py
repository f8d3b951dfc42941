from decimal import Decimal
from typing import List, Sequence

from pos_pricing.services.domain import (
    CartLine,
    ConditionKind,
    DiscountType,
    Promotion,
    PromotionType,
    Reward,
    RewardKind,
)
from pos_pricing.services.errors import MalformedPromotionError
from pos_pricing.services.money import HUNDRED, ZERO


def matched_lines(promotion: Promotion, cart: Sequence[CartLine]) -> List[CartLine]:
    """Lines inside the promotion's product scope; empty scope matches the whole cart"""
    if promotion.is_order_wide:
        return list(cart)
    return [line for line in cart if line.product_size_id in promotion.product_size_ids]


def line_amount(line: CartLine, include_modifiers: bool) -> Decimal:
    """Gross amount a line contributes to a promotion's spend/discount base"""
    amount = line.unit_price_gross * line.quantity
    if include_modifiers:
        amount += line.modifier_price_gross * line.quantity
    return amount


def subtotal(lines: Sequence[CartLine], include_modifiers: bool) -> Decimal:
    return sum((line_amount(line, include_modifiers) for line in lines), ZERO)


def satisfies(promotion: Promotion, cart: Sequence[CartLine]) -> bool:
    """Trigger condition of an ADVANCED promotion. BASIC promotions have none."""
    if promotion.promotion_type != PromotionType.ADVANCED:
        return True

    lines = matched_lines(promotion, cart)

    if promotion.condition_kind == ConditionKind.BUYS_QUANTITY:
        if promotion.condition_qty is None:
            raise MalformedPromotionError(promotion.id, "condition_qty is required")
        return sum(line.quantity for line in lines) >= promotion.condition_qty

    if promotion.condition_kind == ConditionKind.SPENDS_AMOUNT:
        if promotion.condition_spend is None:
            raise MalformedPromotionError(promotion.id, "condition_spend is required")
        return subtotal(lines, promotion.include_modifiers) >= promotion.condition_spend

    raise MalformedPromotionError(promotion.id, f"unknown condition_kind {promotion.condition_kind!r}")


def calculate_discount(base: Decimal, discount_type: DiscountType, value: Decimal) -> Decimal:
    """Percent or flat-value discount on a base, clamped to [0, base]"""
    if discount_type == DiscountType.PERCENT:
        discount = base * value / HUNDRED
    elif discount_type == DiscountType.VALUE:
        discount = value
    else:
        raise ValueError(f"Unknown discount type: {discount_type!r}")
    return _clamp(discount, base)


def _clamp(discount: Decimal, base: Decimal) -> Decimal:
    if base <= ZERO:
        return ZERO
    return min(max(discount, ZERO), base)


def _line_ids(lines: Sequence[CartLine]):
    return tuple(line.line_id for line in lines)


def reward(promotion: Promotion, cart: Sequence[CartLine]) -> Reward:
    """Discount a qualifying promotion grants on this cart (unrounded)"""
    include = promotion.include_modifiers
    scoped = matched_lines(promotion, cart)

    if promotion.promotion_type == PromotionType.BASIC:
        lines = list(cart) if promotion.is_order_wide else scoped
        base = subtotal(lines, include)
        discount = calculate_discount(base, promotion.basic_discount_type, promotion.basic_discount_value)
        return Reward(discount_total=discount, affected_line_ids=_line_ids(lines))

    kind = promotion.reward_kind

    if kind == RewardKind.DISCOUNT_ON_ORDER:
        base = subtotal(cart, include)
        discount = calculate_discount(base, promotion.reward_discount_type, promotion.reward_discount_value)
        return Reward(discount_total=discount, affected_line_ids=_line_ids(cart))

    if kind == RewardKind.DISCOUNT_ON_PRODUCT:
        base = subtotal(scoped, include)
        discount = calculate_discount(base, promotion.reward_discount_type, promotion.reward_discount_value)
        return Reward(discount_total=discount, affected_line_ids=_line_ids(scoped))

    if kind == RewardKind.PAY_FIXED_AMOUNT:
        base = subtotal(scoped, include)
        discount = _clamp(base - promotion.reward_fixed_amount, base)
        return Reward(discount_total=discount, affected_line_ids=_line_ids(scoped))

    raise MalformedPromotionError(promotion.id, f"unknown reward_kind {kind!r}")
