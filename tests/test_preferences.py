"""Tests for saved search preferences."""

from __future__ import annotations

from decimal import Decimal

from rarefind.marketplaces.base import SearchParams
from rarefind.marketplaces.preferences import SearchPreference, apply_preference_filters


class TestApplyPreferenceFilters:
    """Tests for apply_preference_filters."""

    def test_no_preferences(self) -> None:
        """Without preferences the parameters are unchanged."""
        params = SearchParams(keywords=("leica",))

        assert apply_preference_filters(params, None) is params
        assert apply_preference_filters(params, []) is params

    def test_inactive_preferences_ignored(self) -> None:
        """Inactive preferences should never apply."""
        params = SearchParams()
        preference = SearchPreference(is_active=False, keywords=("ignored",))

        assert apply_preference_filters(params, [preference]) is params

    def test_fills_unset_fields(self) -> None:
        """Unset fields should come from the first active preference."""
        preference = SearchPreference(
            keywords=("vintage", "camera"),
            categories=("Collectible", "Antique"),
            min_price=Decimal("50"),
            max_price=Decimal("500"),
        )

        merged = apply_preference_filters(SearchParams(limit=20), [preference])

        assert merged.keywords == ("vintage", "camera")
        assert merged.category == "Collectible"
        assert merged.min_price == Decimal("50")
        assert merged.max_price == Decimal("500")
        assert merged.limit == 20

    def test_caller_values_win(self) -> None:
        """Fields set by the caller should not be overridden."""
        params = SearchParams(
            keywords=("leica",),
            category="Cameras",
            min_price=Decimal("100"),
            max_price=Decimal("200"),
        )
        preference = SearchPreference(
            keywords=("nikon",),
            categories=("Lenses",),
            min_price=Decimal("1"),
            max_price=Decimal("2"),
        )

        assert apply_preference_filters(params, [preference]) == params

    def test_first_active_preference_wins(self) -> None:
        """Only the first active preference should apply."""
        preferences = [
            SearchPreference(name="old", is_active=False, categories=("Old",)),
            SearchPreference(name="first", categories=("First",)),
            SearchPreference(name="second", categories=("Second",)),
        ]

        merged = apply_preference_filters(SearchParams(), preferences)

        assert merged.category == "First"

    def test_contradicting_price_bound_dropped(self) -> None:
        """A preferred bound that contradicts the caller's is not applied."""
        params = SearchParams(max_price=Decimal("20"))
        preference = SearchPreference(min_price=Decimal("50"))

        merged = apply_preference_filters(params, [preference])

        assert merged.min_price is None
        assert merged.max_price == Decimal("20")
