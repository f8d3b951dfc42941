from typing import Optional


class PricingError(Exception):
    """Base error for anything that prevents an order from being priced"""


class InvalidRateError(PricingError, ValueError):
    """Tax rate is negative or not a finite number"""

    def __init__(self, rate):
        self.rate = rate
        super().__init__(f"Invalid tax rate: {rate!r}")


class MalformedPromotionError(PricingError):
    """Promotion data cannot be evaluated (bad time, bad enum token, broken field group)"""

    def __init__(self, promotion_id: Optional[str], reason: str):
        self.promotion_id = promotion_id
        self.reason = reason
        super().__init__(f"Promotion {promotion_id}: {reason}")


class InvalidCartLineError(PricingError, ValueError):
    """Cart line carries a negative amount or a non-positive quantity"""

    def __init__(self, line_id: Optional[str], reason: str):
        self.line_id = line_id
        self.reason = reason
        super().__init__(f"Cart line {line_id}: {reason}")
