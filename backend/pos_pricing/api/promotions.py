from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import func
from sqlmodel import Session, select
from typing import List
from datetime import date, datetime, timezone

from pos_pricing.api.deps import get_db
from pos_pricing.core.config import settings
from pos_pricing.models.promotion import Promotion
from pos_pricing.schemas.promotion import PromotionListItem, PromotionListResponse, PromotionDetail, ActivePromotion
from pos_pricing.services.catalog import load_catalog, split_csv
from pos_pricing.services.domain import OrderContext, OrderType
from pos_pricing.services.eligibility import eligible_promotions
from pos_pricing.services.schedule import promotion_status, format_time_of_day

router = APIRouter(prefix="/api/promotions", tags=["promotions"])


def branch_today() -> date:
    return datetime.now(settings.branch_tz).date()


# === Lookups ===

@router.get("/active", response_model=List[ActivePromotion])
def list_active_promotions(
    branch_id: str,
    order_type: OrderType,
    db: Session = Depends(get_db)
):
    """Promotions a new order at this branch would be eligible for right now"""
    catalog = load_catalog(db, settings.DEFAULT_VAT_RATE, branch_id=branch_id)
    ctx = OrderContext.at(branch_id, order_type, datetime.now(timezone.utc), settings.branch_tz)
    promos = eligible_promotions(catalog.promotions, ctx)
    promos.sort(key=lambda p: (-p.effective_priority, p.id))

    return [
        ActivePromotion(id=p.id, name=p.name, priority=p.priority, promotion_type=p.promotion_type)
        for p in promos
    ]


# === Admin read ===

@router.get("/", response_model=PromotionListResponse)
def list_promotions(
    skip: int = Query(0, ge=0),
    take: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """Promotions with their lifecycle status"""
    total = db.exec(select(func.count()).select_from(Promotion)).one()
    stmt = select(Promotion).order_by(Promotion.created_at).offset(skip).limit(take)
    today = branch_today()

    items = [
        PromotionListItem(
            id=p.id,
            name=p.name,
            is_active=p.is_active,
            start_date=p.start_date,
            end_date=p.end_date,
            priority=p.priority,
            status=promotion_status(p, today),
            branch_ids=[b.branch_id for b in p.branches],
        )
        for p in db.exec(stmt).all()
    ]
    return PromotionListResponse(items=items, total=total, take=take, skip=skip)


@router.get("/{promotion_id}", response_model=PromotionDetail)
def get_promotion(
    promotion_id: str,
    db: Session = Depends(get_db)
):
    promo = db.get(Promotion, promotion_id)
    if not promo:
        raise HTTPException(status_code=404, detail="Promotion not found")

    return PromotionDetail(
        **promo.model_dump(exclude={"start_time_mins", "end_time_mins", "days_csv", "order_types_csv"}),
        status=promotion_status(promo, branch_today()),
        start_time=format_time_of_day(promo.start_time_mins),
        end_time=format_time_of_day(promo.end_time_mins),
        days=split_csv(promo.days_csv),
        order_types=split_csv(promo.order_types_csv),
        branch_ids=[b.branch_id for b in promo.branches],
        product_size_ids=[p.product_size_id for p in promo.products],
        customer_tag_ids=[t.tag_id for t in promo.customer_tags],
    )
