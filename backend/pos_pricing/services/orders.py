import logging
from datetime import datetime, timezone
from fastapi import HTTPException
from sqlmodel import Session

from pos_pricing.core.config import settings
from pos_pricing.schemas.pricing import QuoteRequest, OrderTotalsResponse
from pos_pricing.services.catalog import load_catalog
from pos_pricing.services.domain import CartLine, OrderContext, OrderTotals, PromotionCatalog
from pos_pricing.services.errors import PricingError
from pos_pricing.services.pricing import compute_order_totals, discount_ratio

logger = logging.getLogger(__name__)


def build_context(data: QuoteRequest, now: datetime = None) -> OrderContext:
    """Order context in the branch's local clock"""
    placed_at = data.placed_at or now or datetime.now(timezone.utc)
    return OrderContext.at(
        branch_id=data.branch_id,
        order_type=data.order_type,
        instant=placed_at,
        tz=settings.branch_tz,
        customer_tag_ids=data.customer_tag_ids,
    )


def build_cart(data: QuoteRequest, catalog: PromotionCatalog) -> list:
    cart = []
    for index, line in enumerate(data.lines):
        cart.append(CartLine(
            line_id=line.line_id or str(index),
            product_size_id=line.product_size_id,
            quantity=line.quantity,
            unit_price_gross=line.unit_price_gross,
            tax_rate=catalog.tax_rate(tax_id=line.tax_id, explicit=line.tax_rate),
            modifier_ids=tuple(line.modifier_ids),
            modifier_price_gross=line.modifier_price_gross,
        ))
    return cart


def build_totals_response(totals: OrderTotals) -> OrderTotalsResponse:
    discount_percent = None
    if totals.applied_promotion_id:
        discount_percent = int(discount_ratio(totals) * 100)

    return OrderTotalsResponse(
        currency=settings.CURRENCY,
        net=totals.net,
        vat=totals.vat,
        gross=totals.gross,
        discount_total=totals.discount_total,
        gross_after_discount=totals.gross_after_discount,
        net_after_discount=totals.net_after_discount,
        vat_after_discount=totals.vat_after_discount,
        discount_percent=discount_percent,
        applied_promotion_id=totals.applied_promotion_id,
        affected_line_ids=list(totals.affected_line_ids),
        empty_cart=totals.empty_cart,
    )


def price_order(db: Session, data: QuoteRequest) -> OrderTotalsResponse:
    """Price an order draft against the current catalog"""
    try:
        catalog = load_catalog(db, settings.DEFAULT_VAT_RATE, branch_id=data.branch_id)
        ctx = build_context(data)
        cart = build_cart(data, catalog)
        totals = compute_order_totals(catalog, ctx, cart)
    except PricingError as exc:
        logger.error("Unable to price order for branch %s: %s", data.branch_id, exc)
        raise HTTPException(status_code=422, detail="Unable to price this order")

    logger.info(
        "Priced order branch=%s type=%s promotion=%s gross=%s discount=%s",
        ctx.branch_id, ctx.order_type.value, totals.applied_promotion_id,
        totals.gross, totals.discount_total,
    )
    return build_totals_response(totals)
