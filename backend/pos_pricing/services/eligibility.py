import logging
from typing import Iterable, List

from pos_pricing.services.domain import (
    ConditionKind,
    DiscountType,
    OrderContext,
    Promotion,
    PromotionType,
    RewardKind,
)
from pos_pricing.services.errors import MalformedPromotionError
from pos_pricing.services.schedule import is_within_window

logger = logging.getLogger(__name__)

BASIC_FIELDS = ("basic_discount_type", "basic_discount_value")
ADVANCED_FIELDS = (
    "condition_kind", "condition_qty", "condition_spend",
    "reward_kind", "reward_discount_type", "reward_discount_value", "reward_fixed_amount",
)


def _populated(promotion: Promotion, names) -> List[str]:
    return [name for name in names if getattr(promotion, name) is not None]


def _require(promotion: Promotion, name: str) -> None:
    if getattr(promotion, name) is None:
        raise MalformedPromotionError(promotion.id, f"{name} is required")


def _check_non_negative(promotion: Promotion, names) -> None:
    for name in names:
        value = getattr(promotion, name)
        if value is None:
            continue
        if not value.is_finite() or value < 0:
            raise MalformedPromotionError(promotion.id, f"{name} must be a finite amount >= 0")


def validate_promotion(promotion: Promotion) -> None:
    """
    Exactly one of the BASIC / ADVANCED field groups must be populated, and it
    must match ``promotion_type``. Raises MalformedPromotionError otherwise.
    """
    if promotion.promotion_type == PromotionType.BASIC:
        if _populated(promotion, ADVANCED_FIELDS):
            raise MalformedPromotionError(promotion.id, "BASIC promotion carries ADVANCED fields")
        _require(promotion, "basic_discount_type")
        _require(promotion, "basic_discount_value")
        if promotion.basic_discount_type not in tuple(DiscountType):
            raise MalformedPromotionError(promotion.id, "unknown basic_discount_type")

    elif promotion.promotion_type == PromotionType.ADVANCED:
        if _populated(promotion, BASIC_FIELDS):
            raise MalformedPromotionError(promotion.id, "ADVANCED promotion carries BASIC fields")

        _require(promotion, "condition_kind")
        if promotion.condition_kind == ConditionKind.BUYS_QUANTITY:
            _require(promotion, "condition_qty")
        elif promotion.condition_kind == ConditionKind.SPENDS_AMOUNT:
            _require(promotion, "condition_spend")
        else:
            raise MalformedPromotionError(promotion.id, "unknown condition_kind")

        _require(promotion, "reward_kind")
        if promotion.reward_kind in (RewardKind.DISCOUNT_ON_ORDER, RewardKind.DISCOUNT_ON_PRODUCT):
            _require(promotion, "reward_discount_type")
            _require(promotion, "reward_discount_value")
            if promotion.reward_discount_type not in tuple(DiscountType):
                raise MalformedPromotionError(promotion.id, "unknown reward_discount_type")
        elif promotion.reward_kind == RewardKind.PAY_FIXED_AMOUNT:
            _require(promotion, "reward_fixed_amount")
        else:
            raise MalformedPromotionError(promotion.id, "unknown reward_kind")

    else:
        raise MalformedPromotionError(promotion.id, f"unknown promotion_type {promotion.promotion_type!r}")

    if promotion.condition_qty is not None and promotion.condition_qty < 0:
        raise MalformedPromotionError(promotion.id, "condition_qty must be >= 0")
    _check_non_negative(promotion, (
        "basic_discount_value", "condition_spend",
        "reward_discount_value", "reward_fixed_amount",
    ))


def eligible(promotion: Promotion, ctx: OrderContext) -> bool:
    """
    Does the promotion apply to this branch, order type and moment?

    Mismatches return False. Malformed promotion data raises
    MalformedPromotionError; callers treat that as ineligible.
    """
    validate_promotion(promotion)

    if not promotion.is_active:
        return False
    if not promotion.days or not promotion.order_types:
        return False
    if ctx.branch_id not in promotion.branch_ids:
        return False
    if ctx.order_type not in promotion.order_types:
        return False
    if not is_within_window(promotion, ctx):
        return False
    if promotion.customer_tag_ids and not (promotion.customer_tag_ids & ctx.customer_tag_ids):
        return False
    return True


def eligible_promotions(promotions: Iterable[Promotion], ctx: OrderContext) -> List[Promotion]:
    """Filter a catalog down to the promotions eligible for the order context"""
    result = []
    for promo in promotions:
        try:
            ok = eligible(promo, ctx)
        except MalformedPromotionError as exc:
            logger.warning("Skipping malformed promotion %s: %s", exc.promotion_id, exc.reason)
            continue
        if ok:
            result.append(promo)
        else:
            logger.debug("Promotion %s not eligible for branch %s", promo.id, ctx.branch_id)
    return result
