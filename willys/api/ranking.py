"""Preference-based filtering and ordering of search results.

All functions are pure: they never mutate their inputs and always return new
lists, so ranking the same results twice gives the same output.

Compare prices come from the shop as display strings such as "49,80 kr".
They are parsed to floats here; anything unparseable or non-finite counts
as 0.
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

from willys.api.models import Product, SearchPreferences
from willys.core.config import RankingConfig

SORT_CHEAPEST = "cheapest"
SORT_BEST_VALUE = "best_value"
SORT_HIGHEST_QUALITY = "highest_quality"

CURRENCY_SUFFIX = " kr"


def parse_compare_price(price: str) -> float:
    """Parse "49,80 kr" style prices. Returns 0.0 when unparseable."""
    if price.endswith(CURRENCY_SUFFIX):
        price = price[: -len(CURRENCY_SUFFIX)]
    try:
        value = float(price.replace(",", "."))
    except ValueError:
        return 0.0
    return value if math.isfinite(value) else 0.0


def calculate_value_score(product: Product, config: Optional[RankingConfig] = None) -> float:
    """Score used by the best_value sort (higher is better).

    - value_numerator / compare price, if the price is positive
    - quality_bonus for each product label matching a quality label
      (one bonus per product label at most)
    - savings_weight * savings amount, if positive
    """
    if config is None:
        config = RankingConfig()

    score = 0.0

    compare_price = parse_compare_price(product.compare_price)
    if compare_price > 0:
        score += config.value_numerator / compare_price

    quality_labels = [q.lower() for q in config.quality_labels]
    for label in product.labels:
        label_lower = label.lower()
        if any(quality in label_lower for quality in quality_labels):
            score += config.quality_bonus

    if product.savings_amount is not None and product.savings_amount > 0:
        score += product.savings_amount * config.savings_weight

    return score


def _has_required_labels(product: Product, required: Sequence[str]) -> bool:
    labels = [label.lower() for label in product.labels]
    return all(any(req in label for label in labels) for req in required)


def filter_products(products: Sequence[Product], prefs: SearchPreferences) -> list[Product]:
    """Drop products over the unit price ceiling or missing required labels."""
    required = [label.lower() for label in prefs.required_labels]

    filtered = []
    for product in products:
        if prefs.max_price_per_unit > 0:
            if parse_compare_price(product.compare_price) > prefs.max_price_per_unit:
                continue
        if required and not _has_required_labels(product, required):
            continue
        filtered.append(product)

    return filtered


def sort_products(
    products: Sequence[Product],
    prefs: SearchPreferences,
    config: Optional[RankingConfig] = None,
) -> list[Product]:
    """Order products by ``prefs.sort_by``. Unknown modes keep the input order."""
    if prefs.sort_by == SORT_CHEAPEST:
        return sorted(products, key=lambda p: parse_compare_price(p.compare_price))

    if prefs.sort_by == SORT_BEST_VALUE:
        return sorted(products, key=lambda p: calculate_value_score(p, config), reverse=True)

    if prefs.sort_by == SORT_HIGHEST_QUALITY:
        return sorted(
            products,
            key=lambda p: (-len(p.labels), parse_compare_price(p.compare_price)),
        )

    return list(products)


def rank_products(
    products: Sequence[Product],
    prefs: Optional[SearchPreferences],
    config: Optional[RankingConfig] = None,
) -> list[Product]:
    """Filter then sort. Without preferences the raw order is returned."""
    if prefs is None:
        return list(products)
    return sort_products(filter_products(products, prefs), prefs, config)
