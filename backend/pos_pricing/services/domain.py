"""
Immutable value types the pricing engine works on.

Everything here is built once at the boundary (catalog loader, API schemas)
and never mutated afterwards, so one snapshot can be priced from any number
of request threads.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timezone, tzinfo
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Tuple, Union

from pos_pricing.services.money import ZERO, Number, normalize_rate, to_decimal


class Weekday(str, Enum):
    SUN = "SUN"
    MON = "MON"
    TUE = "TUE"
    WED = "WED"
    THU = "THU"
    FRI = "FRI"
    SAT = "SAT"

    @classmethod
    def of(cls, day: date) -> "Weekday":
        # date.weekday(): Monday == 0
        return _WEEKDAYS_FROM_MONDAY[day.weekday()]


_WEEKDAYS_FROM_MONDAY = (
    Weekday.MON, Weekday.TUE, Weekday.WED, Weekday.THU,
    Weekday.FRI, Weekday.SAT, Weekday.SUN,
)


class OrderType(str, Enum):
    DINE_IN = "DINE_IN"
    PICKUP = "PICKUP"
    DELIVERY = "DELIVERY"
    DRIVE_THRU = "DRIVE_THRU"


class PromotionType(str, Enum):
    BASIC = "BASIC"
    ADVANCED = "ADVANCED"


class DiscountType(str, Enum):
    VALUE = "VALUE"
    PERCENT = "PERCENT"


class ConditionKind(str, Enum):
    BUYS_QUANTITY = "BUYS_QUANTITY"
    SPENDS_AMOUNT = "SPENDS_AMOUNT"


class RewardKind(str, Enum):
    DISCOUNT_ON_ORDER = "DISCOUNT_ON_ORDER"
    DISCOUNT_ON_PRODUCT = "DISCOUNT_ON_PRODUCT"
    PAY_FIXED_AMOUNT = "PAY_FIXED_AMOUNT"


def _freeze(obj, name: str, values: Iterable) -> None:
    object.__setattr__(obj, name, frozenset(values or ()))


def _decimal_or_none(value) -> Optional[Decimal]:
    return None if value is None else to_decimal(value)


@dataclass(frozen=True)
class Promotion:
    id: str
    name: str
    start_date: date
    end_date: date
    # Minutes since midnight, or "HH:MM" as stored by older records
    start_time: Union[int, str] = 0
    end_time: Union[int, str] = 1439
    days: FrozenSet[Weekday] = field(default_factory=frozenset)
    order_types: FrozenSet[OrderType] = field(default_factory=frozenset)
    branch_ids: FrozenSet[str] = field(default_factory=frozenset)
    product_size_ids: FrozenSet[str] = field(default_factory=frozenset)
    customer_tag_ids: FrozenSet[str] = field(default_factory=frozenset)
    is_active: bool = True
    priority: Optional[int] = None
    include_modifiers: bool = False
    promotion_type: PromotionType = PromotionType.BASIC

    basic_discount_type: Optional[DiscountType] = None
    basic_discount_value: Optional[Decimal] = None

    condition_kind: Optional[ConditionKind] = None
    condition_qty: Optional[int] = None
    condition_spend: Optional[Decimal] = None
    reward_kind: Optional[RewardKind] = None
    reward_discount_type: Optional[DiscountType] = None
    reward_discount_value: Optional[Decimal] = None
    reward_fixed_amount: Optional[Decimal] = None

    def __post_init__(self):
        for name in ("days", "order_types", "branch_ids", "product_size_ids", "customer_tag_ids"):
            _freeze(self, name, getattr(self, name))
        for name in (
            "basic_discount_value", "condition_spend",
            "reward_discount_value", "reward_fixed_amount",
        ):
            object.__setattr__(self, name, _decimal_or_none(getattr(self, name)))

    @property
    def effective_priority(self) -> int:
        return self.priority if self.priority is not None else 0

    @property
    def is_order_wide(self) -> bool:
        return not self.product_size_ids


@dataclass(frozen=True)
class OrderContext:
    """Where, how and when an order is placed, with the branch-local clock resolved"""
    branch_id: str
    order_type: OrderType
    instant: datetime
    local_date: date
    weekday: Weekday
    minute_of_day: int
    customer_tag_ids: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self):
        _freeze(self, "customer_tag_ids", self.customer_tag_ids)

    @classmethod
    def at(
        cls,
        branch_id: str,
        order_type: OrderType,
        instant: datetime,
        tz: tzinfo,
        customer_tag_ids: Iterable[str] = (),
    ) -> "OrderContext":
        """Resolve local date, weekday and time of day of an instant in the branch's zone"""
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        local = instant.astimezone(tz)
        return cls(
            branch_id=branch_id,
            order_type=OrderType(order_type),
            instant=instant.astimezone(timezone.utc),
            local_date=local.date(),
            weekday=Weekday.of(local.date()),
            minute_of_day=local.hour * 60 + local.minute,
            customer_tag_ids=frozenset(customer_tag_ids),
        )


@dataclass(frozen=True)
class CartLine:
    line_id: str
    product_size_id: str
    quantity: int
    unit_price_gross: Decimal
    tax_rate: Decimal
    modifier_ids: Tuple[str, ...] = ()
    # Per unit, tax-inclusive
    modifier_price_gross: Decimal = ZERO

    def __post_init__(self):
        object.__setattr__(self, "unit_price_gross", to_decimal(self.unit_price_gross))
        object.__setattr__(self, "modifier_price_gross", to_decimal(self.modifier_price_gross))
        object.__setattr__(self, "tax_rate", to_decimal(self.tax_rate))
        object.__setattr__(self, "modifier_ids", tuple(self.modifier_ids or ()))

    @property
    def gross(self) -> Decimal:
        """Full tax-inclusive amount the customer pays for this line"""
        return (self.unit_price_gross + self.modifier_price_gross) * self.quantity


@dataclass(frozen=True)
class PromotionCatalog:
    """Snapshot of the catalog taken once per pricing call"""
    promotions: Tuple[Promotion, ...] = ()
    tax_rates: Dict[str, Decimal] = field(default_factory=dict)
    default_tax_rate: Decimal = Decimal("0.15")

    def __post_init__(self):
        object.__setattr__(self, "promotions", tuple(self.promotions))
        object.__setattr__(
            self, "tax_rates", {str(k): normalize_rate(v) for k, v in self.tax_rates.items()}
        )
        object.__setattr__(self, "default_tax_rate", normalize_rate(self.default_tax_rate))

    def tax_rate(self, tax_id: Optional[str] = None, explicit: Optional[Number] = None) -> Decimal:
        """Explicit rate, then the tax lookup, then the catalog default"""
        if explicit is not None:
            return normalize_rate(explicit)
        if tax_id is not None and str(tax_id) in self.tax_rates:
            return self.tax_rates[str(tax_id)]
        return self.default_tax_rate


@dataclass(frozen=True)
class Reward:
    discount_total: Decimal
    affected_line_ids: Tuple[str, ...] = ()


@dataclass(frozen=True)
class AppliedDiscount:
    promotion_id: Optional[str] = None
    discount_total: Decimal = ZERO
    affected_line_ids: Tuple[str, ...] = ()


NO_DISCOUNT = AppliedDiscount()


@dataclass(frozen=True)
class OrderTotals:
    """Order amounts rounded to the cent; gross values are tax-inclusive"""
    net: Decimal
    vat: Decimal
    gross: Decimal
    discount_total: Decimal
    gross_after_discount: Decimal
    net_after_discount: Decimal
    vat_after_discount: Decimal
    applied_promotion_id: Optional[str] = None
    affected_line_ids: Tuple[str, ...] = ()
    empty_cart: bool = False
