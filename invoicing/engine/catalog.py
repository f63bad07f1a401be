"""
Merchant catalog lookup.

Order messages often name a product without a price ("lolly 13pcs").
Lines are matched against the merchant catalog, exact SKU or name first and
then fuzzy name matching, and a missing unit price is filled from the
matched product. Prices already stated on a line are never overwritten.
"""

import copy
import json
from collections.abc import Mapping
from typing import Any, List, Optional, Sequence, Tuple

from pydantic import BaseModel
from rapidfuzz import fuzz

from invoicing.config import Config, get_config
from invoicing.engine.line_items import get_item_field
from invoicing.schemas.catalog import CatalogEnrichment, CatalogMatch, CatalogProduct
from invoicing.utils.logging import setup_logging


logger = setup_logging(__name__)


def load_catalog_from_file(catalog_file: str) -> List[CatalogProduct]:
    """Load catalog products from a JSON file (a list, or {"products": [...]})."""
    try:
        with open(catalog_file, 'r') as f:
            catalog_data = json.load(f)

        if isinstance(catalog_data, Mapping):
            catalog_data = catalog_data.get("products", [])

        products = [CatalogProduct.model_validate(product) for product in catalog_data]

        logger.info(f"Loaded {len(products)} catalog products from {catalog_file}")
        return products

    except FileNotFoundError:
        logger.warning(f"Catalog file not found: {catalog_file}. Using empty catalog.")
        return []


def _normalize(text: Optional[str]) -> str:
    return " ".join((text or "").upper().split())


def match_item_to_catalog(
    item_name: Optional[str],
    item_sku: Optional[str],
    catalog: Sequence[CatalogProduct],
    threshold: float,
) -> Tuple[Optional[CatalogProduct], float, str]:
    """
    Find the catalog product for one order line.

    Returns:
        (product, similarity, match_type). product is None when nothing
        reaches the threshold.
    """
    # STEP 1: exact SKU
    if item_sku:
        for product in catalog:
            if product.sku and _normalize(product.sku) == _normalize(item_sku):
                return product, 1.0, "exact_sku"

    name = _normalize(item_name)
    if not name:
        return None, 0.0, "not_matched"

    # STEP 2: exact name or alternative name
    for product in catalog:
        names = [product.name, *product.alternative_names]
        if any(_normalize(candidate) == name for candidate in names):
            return product, 1.0, "exact_name"

    # STEP 3: fuzzy name, best score wins
    best_product, best_score = None, 0.0
    for product in catalog:
        for candidate in [product.name, *product.alternative_names]:
            score = fuzz.token_set_ratio(name, _normalize(candidate)) / 100.0
            if score > best_score:
                best_product, best_score = product, score

    if best_product is not None and best_score >= threshold:
        return best_product, best_score, "fuzzy_name"

    return None, best_score, "not_matched"


def enrich_items_with_catalog(
    items: Sequence[Any],
    catalog: Sequence[CatalogProduct],
    config: Optional[Config] = None,
) -> CatalogEnrichment:
    """Match every line against the catalog and fill in missing unit prices."""
    config = config or get_config()
    enriched_items = []
    matches = []

    for index, item in enumerate(items):
        if isinstance(item, BaseModel):
            line = item.model_dump(by_alias=True, exclude_none=True)
        elif isinstance(item, Mapping):
            line = copy.deepcopy(dict(item))
        else:
            # Left for the calculator to reject
            enriched_items.append(item)
            matches.append(CatalogMatch(item_index=index))
            continue

        item_name = get_item_field(line, "productName", "name", "description")
        product, similarity, match_type = match_item_to_catalog(
            item_name,
            get_item_field(line, "sku"),
            catalog,
            config.CATALOG_MATCH_THRESHOLD,
        )

        price_filled = False
        if product is not None:
            if get_item_field(line, "unitPrice", "unit_price") is None:
                line["unitPrice"] = product.unit_price
                line.pop("unit_price", None)
                price_filled = True
            if not line.get("sku") and product.sku:
                line["sku"] = product.sku
        else:
            logger.debug(f"No catalog match for line {index}: {item_name!r} (best {similarity:.2f})")

        enriched_items.append(line)
        matches.append(
            CatalogMatch(
                item_index=index,
                item_name=item_name,
                product=product,
                match_type=match_type,
                similarity=similarity,
                price_filled=price_filled,
            )
        )

    return CatalogEnrichment(items=enriched_items, matches=matches)
