"""Tests for the covariate lookup tables."""

from __future__ import annotations

import dataclasses

import pytest

from schoolter.services.enrichment.covariates import (
    KENT_DISTRICTS,
    LONDON_BOROUGHS,
    Covariates,
    is_kent_area,
)


class TestAreaTier:
    def test_known_tiers(self, covariates):
        assert covariates.area_tier("Westminster") == 1
        assert covariates.area_tier("Bromley") == 2
        assert covariates.area_tier("Hackney") == 3
        assert covariates.area_tier("Barking and Dagenham") == 4
        assert covariates.area_tier("Thanet") == 4

    def test_unknown_area_defaults_to_three(self, covariates):
        assert covariates.area_tier("Milton Keynes") == 3
        assert covariates.area_tier("") == 3
        assert covariates.area_tier(None) == 3

    def test_every_target_area_has_a_tier(self, covariates):
        for area in (*LONDON_BOROUGHS, *KENT_DISTRICTS):
            assert area in covariates.area_tiers

    def test_tier_bonus(self):
        assert [Covariates.tier_bonus(t) for t in (1, 2, 3, 4)] == [15, 10, 5, 0]


class TestRatingMultiplier:
    def test_ordering(self, covariates):
        m = covariates.rating_multiplier
        assert m("Outstanding") > m("Good") > m("N/A") > m("Requires Improvement") > m("Inadequate")

    def test_default(self, covariates):
        assert covariates.rating_multiplier("Unknown") == 1.0
        assert covariates.rating_multiplier(None) == 1.0


class TestAreaCategory:
    def test_categories(self, covariates):
        assert covariates.area_category("Newham") == "inner_diverse"
        assert covariates.area_category("Camden") == "central_affluent"
        assert covariates.area_category("Bexley") == "outer_suburban"
        assert covariates.area_category("Canterbury") == "kent"
        assert covariates.area_category("Medway") == "kent"
        assert covariates.area_category("Nowhere") == "default"

    def test_kent_detection(self):
        assert is_kent_area("Sevenoaks")
        assert is_kent_area("Kent")
        assert not is_kent_area("Bromley")


class TestImmutability:
    def test_tables_are_read_only(self, covariates):
        with pytest.raises(TypeError):
            covariates.area_tiers["Bromley"] = 4

    def test_context_is_frozen(self, covariates):
        with pytest.raises(dataclasses.FrozenInstanceError):
            covariates.reference_year = 2024

    def test_data_year(self):
        assert Covariates(reference_year=2024).data_year == "2024"
