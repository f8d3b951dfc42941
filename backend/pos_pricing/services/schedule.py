"""
Promotion calendar logic.

Two separate notions live here:

* ``promotion_status`` is the coarse, admin-facing lifecycle derived from the
  active flag and the date range only.
* ``is_within_window`` is the fine check used when pricing an order: date
  range, weekday set and time-of-day window, including windows that run past
  midnight (22:00-02:00 opened on Friday still covers Saturday 01:30).
"""
from datetime import date, timedelta
from enum import Enum
from typing import Optional, Union

from pos_pricing.services.domain import OrderContext, Promotion, Weekday
from pos_pricing.services.errors import MalformedPromotionError

MINUTES_PER_DAY = 24 * 60


class PromotionStatus(str, Enum):
    INACTIVE = "INACTIVE"
    EXPIRED = "EXPIRED"
    SCHEDULED = "SCHEDULED"
    ACTIVE = "ACTIVE"


def parse_time_of_day(value: Union[int, str], promotion_id: Optional[str] = None) -> int:
    """"HH:MM" (or an int already in minutes) -> minutes since midnight"""
    if isinstance(value, bool):
        raise MalformedPromotionError(promotion_id, f"invalid time of day {value!r}")

    if isinstance(value, int):
        minutes = value
    elif isinstance(value, str):
        parts = value.strip().split(":")
        if len(parts) != 2 or not all(p.isascii() and p.isdigit() for p in parts):
            raise MalformedPromotionError(promotion_id, f"unparseable time of day {value!r}")
        hours, mins = int(parts[0]), int(parts[1])
        if hours > 23 or mins > 59:
            raise MalformedPromotionError(promotion_id, f"time of day out of range {value!r}")
        minutes = hours * 60 + mins
    else:
        raise MalformedPromotionError(promotion_id, f"invalid time of day {value!r}")

    if not 0 <= minutes < MINUTES_PER_DAY:
        raise MalformedPromotionError(promotion_id, f"time of day out of range {value!r}")
    return minutes


def format_time_of_day(minutes: Optional[int]) -> Optional[str]:
    if minutes is None:
        return None
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def promotion_status(promotion: Promotion, today: date) -> PromotionStatus:
    if not promotion.is_active:
        return PromotionStatus.INACTIVE
    if promotion.end_date < today:
        return PromotionStatus.EXPIRED
    if promotion.start_date > today:
        return PromotionStatus.SCHEDULED
    return PromotionStatus.ACTIVE


def _day_open(promotion: Promotion, day: date) -> bool:
    """Can a window be opened on this local day?"""
    return (
        promotion.start_date <= day <= promotion.end_date
        and Weekday.of(day) in promotion.days
    )


def is_within_window(promotion: Promotion, ctx: OrderContext) -> bool:
    start = parse_time_of_day(promotion.start_time, promotion.id)
    end = parse_time_of_day(promotion.end_time, promotion.id)
    now = ctx.minute_of_day
    today = ctx.local_date

    if start <= end:
        return _day_open(promotion, today) and start <= now <= end

    # Window wraps past midnight: the evening part belongs to today,
    # the early-morning part to the window opened the day before.
    if now >= start:
        return _day_open(promotion, today)
    if now <= end:
        return _day_open(promotion, today - timedelta(days=1))
    return False
