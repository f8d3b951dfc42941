from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from decimal import Decimal

from pos_pricing.services.domain import OrderType


class QuoteLine(BaseModel):
    line_id: Optional[str] = None
    product_size_id: str
    quantity: int = Field(ge=1)
    unit_price_gross: Decimal = Field(ge=0)
    # 0.15 or 15; falls back to tax_id, then to the catalog default
    tax_rate: Optional[Decimal] = Field(default=None, ge=0)
    tax_id: Optional[str] = None
    modifier_ids: List[str] = []
    modifier_price_gross: Decimal = Field(default=Decimal("0"), ge=0)


class QuoteRequest(BaseModel):
    branch_id: str
    order_type: OrderType
    placed_at: Optional[datetime] = None
    customer_tag_ids: List[str] = []
    lines: List[QuoteLine] = []


class OrderTotalsResponse(BaseModel):
    currency: str
    net: Decimal
    vat: Decimal
    gross: Decimal
    discount_total: Decimal
    gross_after_discount: Decimal
    net_after_discount: Decimal
    vat_after_discount: Decimal
    discount_percent: Optional[int] = None
    applied_promotion_id: Optional[str] = None
    affected_line_ids: List[str] = []
    empty_cart: bool = False
