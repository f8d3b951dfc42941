"""
Catalog snapshot loading.

Reads promotion and tax rows once per pricing call and turns them into the
engine's immutable value types. Rows that cannot be converted are logged and
left out of the snapshot instead of failing checkout.
"""
import logging
from decimal import Decimal
from typing import List, Optional, Type

from sqlmodel import Session, select

from pos_pricing.models.promotion import (
    Promotion as PromotionRow,
    PromotionBranch,
)
from pos_pricing.models.tax import Tax
from pos_pricing.services.domain import (
    ConditionKind,
    DiscountType,
    OrderType,
    Promotion,
    PromotionCatalog,
    PromotionType,
    RewardKind,
    Weekday,
)
from pos_pricing.services.errors import InvalidRateError, MalformedPromotionError
from pos_pricing.services.money import normalize_rate

logger = logging.getLogger(__name__)


def split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [token.strip() for token in value.split(",") if token.strip()]


def _parse_enum(promotion_id: str, enum_cls: Type, value, field: str):
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        raise MalformedPromotionError(promotion_id, f"unknown {field} {value!r}")


def promotion_from_row(row: PromotionRow) -> Promotion:
    """Convert a stored promotion (CSV sets, link tables) into a Promotion value"""
    pid = row.id
    return Promotion(
        id=pid,
        name=row.name,
        start_date=row.start_date,
        end_date=row.end_date,
        start_time=row.start_time_mins,
        end_time=row.end_time_mins,
        days=[_parse_enum(pid, Weekday, d, "weekday") for d in split_csv(row.days_csv)],
        order_types=[
            _parse_enum(pid, OrderType, t, "order type") for t in split_csv(row.order_types_csv)
        ],
        branch_ids=[b.branch_id for b in row.branches],
        product_size_ids=[p.product_size_id for p in row.products],
        customer_tag_ids=[t.tag_id for t in row.customer_tags],
        is_active=row.is_active,
        priority=row.priority,
        include_modifiers=row.include_modifiers,
        promotion_type=_parse_enum(pid, PromotionType, row.promotion_type, "promotion_type"),
        basic_discount_type=_parse_enum(pid, DiscountType, row.basic_discount_type, "basic_discount_type"),
        basic_discount_value=row.basic_discount_value,
        condition_kind=_parse_enum(pid, ConditionKind, row.condition_kind, "condition_kind"),
        condition_qty=row.condition_qty,
        condition_spend=row.condition_spend,
        reward_kind=_parse_enum(pid, RewardKind, row.reward_kind, "reward_kind"),
        reward_discount_type=_parse_enum(pid, DiscountType, row.reward_discount_type, "reward_discount_type"),
        reward_discount_value=row.reward_discount_value,
        reward_fixed_amount=row.reward_fixed_amount,
    )


def get_promotion_rows(db: Session, branch_id: Optional[str] = None, active_only: bool = True) -> List[PromotionRow]:
    stmt = select(PromotionRow)
    if active_only:
        stmt = stmt.where(PromotionRow.is_active == True)
    if branch_id is not None:
        stmt = stmt.join(PromotionBranch).where(PromotionBranch.branch_id == branch_id)
    stmt = stmt.order_by(PromotionRow.created_at)
    return list(db.exec(stmt).all())


def get_tax_rates(db: Session) -> dict:
    """Active taxes keyed by id (as string), rates normalized to fractions"""
    rates = {}
    for tax in db.exec(select(Tax).where(Tax.is_active == True).order_by(Tax.id)).all():
        try:
            rates[str(tax.id)] = normalize_rate(tax.rate)
        except InvalidRateError:
            logger.warning("Skipping tax %s with invalid rate %r", tax.id, tax.rate)
    return rates


def load_catalog(db: Session, default_tax_rate: Decimal, branch_id: Optional[str] = None) -> PromotionCatalog:
    """
    Snapshot of the active promotions (optionally only those linked to a
    branch) and active taxes. The first active tax becomes the default rate;
    ``default_tax_rate`` is the fallback when none exists.
    """
    promotions = []
    for row in get_promotion_rows(db, branch_id=branch_id):
        try:
            promotions.append(promotion_from_row(row))
        except MalformedPromotionError as exc:
            logger.warning("Skipping promotion row %s: %s", exc.promotion_id, exc.reason)

    tax_rates = get_tax_rates(db)
    default_rate = next(iter(tax_rates.values()), None)
    if default_rate is None:
        default_rate = normalize_rate(default_tax_rate)

    return PromotionCatalog(
        promotions=tuple(promotions),
        tax_rates=tax_rates,
        default_tax_rate=default_rate,
    )
