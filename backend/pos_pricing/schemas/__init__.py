from .promotion import PromotionListItem, PromotionListResponse, PromotionDetail, ActivePromotion
from .pricing import QuoteLine, QuoteRequest, OrderTotalsResponse

__all__ = [
    "PromotionListItem", "PromotionListResponse", "PromotionDetail", "ActivePromotion",
    "QuoteLine", "QuoteRequest", "OrderTotalsResponse",
]
