from fastapi import APIRouter, Depends
from sqlmodel import Session

from pos_pricing.api.deps import get_db
from pos_pricing.schemas.pricing import QuoteRequest, OrderTotalsResponse
from pos_pricing.services.orders import price_order

router = APIRouter(prefix="/api/pricing", tags=["pricing"])


@router.post("/quote", response_model=OrderTotalsResponse)
def quote_order(
    data: QuoteRequest,
    db: Session = Depends(get_db)
):
    """Totals for an order draft, with the winning promotion applied"""
    return price_order(db, data)
