from pydantic import BaseModel
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

from pos_pricing.services.domain import (
    PromotionType,
    DiscountType,
    ConditionKind,
    RewardKind,
)
from pos_pricing.services.schedule import PromotionStatus


class PromotionListItem(BaseModel):
    id: str
    name: str
    is_active: bool
    start_date: date
    end_date: date
    priority: Optional[int] = None
    status: PromotionStatus
    branch_ids: List[str] = []


class PromotionListResponse(BaseModel):
    items: List[PromotionListItem]
    total: int
    take: int
    skip: int


class PromotionDetail(BaseModel):
    id: str
    name: str
    name_localized: Optional[str] = None
    is_active: bool
    status: PromotionStatus

    start_date: date
    end_date: date
    start_time: Optional[str] = None  # "HH:MM"
    end_time: Optional[str] = None
    days: List[str] = []
    order_types: List[str] = []

    priority: Optional[int] = None
    include_modifiers: bool
    promotion_type: PromotionType

    basic_discount_type: Optional[DiscountType] = None
    basic_discount_value: Optional[Decimal] = None

    condition_kind: Optional[ConditionKind] = None
    condition_qty: Optional[int] = None
    condition_spend: Optional[Decimal] = None
    reward_kind: Optional[RewardKind] = None
    reward_discount_type: Optional[DiscountType] = None
    reward_discount_value: Optional[Decimal] = None
    reward_fixed_amount: Optional[Decimal] = None

    branch_ids: List[str] = []
    product_size_ids: List[str] = []
    customer_tag_ids: List[str] = []

    created_at: datetime
    updated_at: datetime


class ActivePromotion(BaseModel):
    id: str
    name: str
    priority: Optional[int] = None
    promotion_type: PromotionType
