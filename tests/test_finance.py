"""Tests for the synthetic finance generator."""

from __future__ import annotations

import pytest

from schoolter.schemas.school import Phase, Sector
from schoolter.services.enrichment.finance import generate_finances
from schoolter.services.enrichment.prng import SeededRandom


class TestGenerateFinances:
    def test_reference_primary_per_pupil_range(self, bromley_primary, covariates):
        """Tier 2 adds two 200 GBP steps to the 4200-5000 primary range."""
        for seed in range(50):
            finances = generate_finances(bromley_primary, SeededRandom(seed), covariates)
            assert 4600 <= finances.per_pupil_funding <= 5400
            assert finances.total_income == finances.per_pupil_funding * 450

    def test_unknown_roll(self, make_school, covariates):
        rng = SeededRandom(1)
        assert generate_finances(make_school(pupils=0), rng, covariates) is None
        assert rng.draws == 0

    def test_minimum_teachers(self, make_school, covariates):
        finances = generate_finances(make_school(pupils=10), SeededRandom(3), covariates)
        assert finances.teacher_count == 3
        assert finances.pupil_teacher_ratio == 3.3

    def test_private_fees(self, make_school, covariates):
        school = make_school(sector=Sector.PRIVATE, funding_type="Independent", phase=Phase.SECONDARY)
        finances = generate_finances(school, SeededRandom(8), covariates)
        assert 18400 <= finances.per_pupil_funding <= 28400

    def test_private_primary_fees(self, make_school, covariates):
        school = make_school(sector=Sector.PRIVATE, funding_type="Independent")
        finances = generate_finances(school, SeededRandom(8), covariates)
        assert 14400 <= finances.per_pupil_funding <= 20400


@pytest.mark.parametrize("pupils", [15, 90, 450, 1234, 2100])
@pytest.mark.parametrize("phase", list(Phase))
def test_ratio_matches_teacher_count(make_school, covariates, pupils, phase):
    finances = generate_finances(make_school(pupils=pupils, phase=phase), SeededRandom(pupils), covariates)
    assert finances.teacher_count >= 3
    assert finances.pupil_teacher_ratio == round(pupils / finances.teacher_count, 1)
