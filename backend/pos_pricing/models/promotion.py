from sqlmodel import SQLModel, Field, Relationship
from typing import Optional, List
from datetime import date, datetime
from decimal import Decimal

from pos_pricing.services.domain import (
    PromotionType,
    DiscountType,
    ConditionKind,
    RewardKind,
)

ALL_DAYS_CSV = "SUN,MON,TUE,WED,THU,FRI,SAT"
ALL_ORDER_TYPES_CSV = "DINE_IN,PICKUP,DELIVERY,DRIVE_THRU"


class Promotion(SQLModel, table=True):
    __tablename__ = "promotions"

    id: str = Field(primary_key=True)
    name: str
    name_localized: Optional[str] = None
    is_active: bool = Field(default=True)

    # Inclusive, branch-local dates
    start_date: date
    end_date: date
    # Minutes since midnight; end < start wraps past midnight
    start_time_mins: int = Field(default=0)
    end_time_mins: int = Field(default=1439)

    days_csv: str = Field(default=ALL_DAYS_CSV)
    order_types_csv: str = Field(default=ALL_ORDER_TYPES_CSV)

    priority: Optional[int] = None  # Higher wins; null counts as 0
    include_modifiers: bool = Field(default=False)

    promotion_type: PromotionType = Field(default=PromotionType.BASIC)

    # BASIC
    basic_discount_type: Optional[DiscountType] = None
    basic_discount_value: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)

    # ADVANCED
    condition_kind: Optional[ConditionKind] = None
    condition_qty: Optional[int] = None
    condition_spend: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    reward_kind: Optional[RewardKind] = None
    reward_discount_type: Optional[DiscountType] = None
    reward_discount_value: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    reward_fixed_amount: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships
    branches: List["PromotionBranch"] = Relationship(back_populates="promotion")
    products: List["PromotionProduct"] = Relationship(back_populates="promotion")
    customer_tags: List["PromotionCustomerTag"] = Relationship(back_populates="promotion")


class PromotionBranch(SQLModel, table=True):
    __tablename__ = "promotion_branches"

    promotion_id: str = Field(foreign_key="promotions.id", primary_key=True)
    branch_id: str = Field(primary_key=True)

    promotion: Optional[Promotion] = Relationship(back_populates="branches")


class PromotionProduct(SQLModel, table=True):
    __tablename__ = "promotion_products"

    promotion_id: str = Field(foreign_key="promotions.id", primary_key=True)
    product_size_id: str = Field(primary_key=True)

    promotion: Optional[Promotion] = Relationship(back_populates="products")


class PromotionCustomerTag(SQLModel, table=True):
    __tablename__ = "promotion_customer_tags"

    promotion_id: str = Field(foreign_key="promotions.id", primary_key=True)
    tag_id: str = Field(primary_key=True)

    promotion: Optional[Promotion] = Relationship(back_populates="customer_tags")
