"""
Typed count deltas applied to category metrics
"""
from dataclasses import dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class MetricsDelta:
    """Signed change in directly assigned products and auctions"""

    product: int = 0
    auction: int = 0

    @classmethod
    def for_item(cls, kind: str, sign: int = 1) -> "MetricsDelta":
        """+1/-1 for one product or auction"""
        if kind == "product":
            return cls(product=sign)
        if kind == "auction":
            return cls(auction=sign)
        raise ValueError(f"Unknown item kind: {kind}")

    @property
    def items(self) -> int:
        return self.product + self.auction

    @property
    def is_zero(self) -> bool:
        return self.product == 0 and self.auction == 0

    def __neg__(self) -> "MetricsDelta":
        return MetricsDelta(product=-self.product, auction=-self.auction)

    def total_increments(self, model: Any) -> Dict[str, Any]:
        """Column increments applied to every ancestor of the target"""
        return {
            "total_product_count": model.total_product_count + self.product,
            "total_auction_count": model.total_auction_count + self.auction,
            "total_item_count": model.total_item_count + self.items,
        }

    def own_increments(self, model: Any) -> Dict[str, Any]:
        """Column increments applied to the target itself (own and total)"""
        return {
            "product_count": model.product_count + self.product,
            "auction_count": model.auction_count + self.auction,
            **self.total_increments(model),
        }
