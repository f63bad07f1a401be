"""
Merchant catalog schema and matching results.
"""

from typing import Optional, List, Any
from pydantic import Field

from invoicing.schemas.base import CamelModel


class CatalogProduct(CamelModel):
    """A product from the merchant's catalog."""
    id: Optional[str] = None
    name: str
    sku: Optional[str] = None
    unit_price: float = Field(ge=0.0)
    category: Optional[str] = None
    alternative_names: List[str] = Field(default_factory=list)


class CatalogMatch(CamelModel):
    """Result of matching one order line against the catalog."""
    item_index: int
    item_name: Optional[str] = None
    product: Optional[CatalogProduct] = None
    match_type: str = "not_matched"  # exact_sku, exact_name, fuzzy_name, not_matched
    similarity: float = Field(default=0.0, ge=0.0, le=1.0)
    price_filled: bool = False


class CatalogEnrichment(CamelModel):
    """Order lines after catalog lookup, plus how each line was matched."""
    items: List[Any] = Field(default_factory=list)
    matches: List[CatalogMatch] = Field(default_factory=list)

    @property
    def unmatched(self) -> List[CatalogMatch]:
        return [m for m in self.matches if m.match_type == "not_matched"]
