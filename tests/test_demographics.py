"""Tests for the synthetic demographics generator."""

from __future__ import annotations

import pytest

from schoolter.schemas.school import Phase, Sector
from schoolter.services.enrichment.demographics import generate_demographics, normalise_ethnicities
from schoolter.services.enrichment.prng import SeededRandom


class TestNormaliseEthnicities:
    """The five buckets always sum to exactly 100."""

    def test_other_absorbs_remainder(self):
        result = normalise_ethnicities(
            {"whitebritish": 40, "asian": 20, "black": 15, "mixed": 10, "other": 99}, floor=2
        )
        assert result.other == 15
        assert result.total == 100

    def test_floor_takes_from_largest(self):
        result = normalise_ethnicities(
            {"whitebritish": 60, "asian": 30, "black": 10, "mixed": 5, "other": 0}, floor=2
        )
        assert result.other == 2
        assert result.whitebritish == 53
        assert result.asian == 30
        assert result.total == 100

    def test_tie_takes_from_first_largest(self):
        result = normalise_ethnicities(
            {"whitebritish": 40, "asian": 40, "black": 15, "mixed": 10, "other": 0}, floor=1
        )
        assert result.whitebritish == 34
        assert result.asian == 40
        assert result.total == 100

    def test_zero_floor_allows_zero_other(self):
        result = normalise_ethnicities(
            {"whitebritish": 80, "asian": 8, "black": 5, "mixed": 7, "other": 3}, floor=0
        )
        assert result.other == 0
        assert result.total == 100


@pytest.mark.parametrize("urn", [str(100000 + i * 1009) for i in range(20)])
@pytest.mark.parametrize(
    "borough", ["Tower Hamlets", "Westminster", "Bromley", "Thanet", "Medway", "Somewhere Else"]
)
def test_demographic_bounds(make_school, covariates, urn, borough):
    demo = generate_demographics(make_school(urn=urn, borough=borough), SeededRandom(int(urn)), covariates)
    assert 0 <= demo.fsm_percent <= 100
    assert 0 <= demo.eal_percent <= 100
    assert 0 <= demo.sen_percent <= 100
    assert demo.ethnicities.total == 100
    assert min(demo.ethnicities.model_dump().values()) >= 0


class TestGeneratedDemographics:
    def test_private_school_has_no_fsm(self, make_school, covariates):
        school = make_school(sector=Sector.PRIVATE, funding_type="Independent")
        assert generate_demographics(school, SeededRandom(1), covariates).fsm_percent == 0.0

    def test_private_fsm_still_consumes_draw(self, make_school, covariates):
        state_rng, private_rng = SeededRandom(9), SeededRandom(9)
        state = generate_demographics(make_school(), state_rng, covariates)
        private = generate_demographics(make_school(sector=Sector.PRIVATE), private_rng, covariates)
        assert state_rng.draws == private_rng.draws
        assert state.eal_percent == private.eal_percent

    def test_special_school_sen(self, make_school, covariates):
        demo = generate_demographics(make_school(phase=Phase.SPECIAL), SeededRandom(5), covariates)
        assert 85 <= demo.sen_percent <= 100

    def test_kent_eal_range(self, make_school, covariates):
        demo = generate_demographics(make_school(borough="Thanet", region="Kent"), SeededRandom(5), covariates)
        assert 3 <= demo.eal_percent <= 15

    def test_outer_suburban_fsm_range(self, bromley_primary, covariates):
        demo = generate_demographics(bromley_primary, SeededRandom(101600), covariates)
        assert 10 <= demo.fsm_percent <= 25
