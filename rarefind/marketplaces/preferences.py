"""Saved search preferences merged into ad-hoc searches."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence
    from decimal import Decimal

    from rarefind.marketplaces.base import SearchParams


@dataclass(frozen=True, slots=True)
class SearchPreference:
    """
    A user's saved search preference.

    Attributes:
        name: Display name.
        is_active: Inactive preferences are ignored.
        keywords: Default keywords.
        categories: Preferred categories; only the first is used.
        min_price: Default minimum price.
        max_price: Default maximum price.
    """

    name: str = ""
    is_active: bool = True
    keywords: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    min_price: Decimal | None = None
    max_price: Decimal | None = None


def apply_preference_filters(
    params: SearchParams,
    preferences: Sequence[SearchPreference] | None,
) -> SearchParams:
    """
    Fill unset search fields from the first active preference.

    Values the caller set always win. A preferred price bound that would
    contradict the caller's bound is dropped.

    Args:
        params: Caller's search parameters.
        preferences: Saved preferences, in priority order.

    Returns:
        The merged parameters (``params`` itself when nothing applies).
    """
    active = [p for p in preferences or () if p.is_active]
    if not active:
        return params

    preference = active[0]
    min_price = params.min_price if params.min_price is not None else preference.min_price
    max_price = params.max_price if params.max_price is not None else preference.max_price
    if min_price is not None and max_price is not None and min_price > max_price:
        min_price, max_price = params.min_price, params.max_price

    return replace(
        params,
        keywords=params.keywords or preference.keywords,
        category=params.category or (preference.categories[0] if preference.categories else None),
        min_price=min_price,
        max_price=max_price,
    )
