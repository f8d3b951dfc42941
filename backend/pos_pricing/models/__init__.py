from .promotion import Promotion, PromotionBranch, PromotionProduct, PromotionCustomerTag
from .tax import Tax

__all__ = [
    "Promotion", "PromotionBranch", "PromotionProduct", "PromotionCustomerTag",
    "Tax",
]
