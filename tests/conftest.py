"""Shared pytest fixtures for the Schoolter pipeline test suite."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from schoolter.config import Settings
from schoolter.schemas.school import Phase, SchoolRecord, Sector
from schoolter.services.enrichment.covariates import Covariates

# ---------------------------------------------------------------------------
# Test data helpers
# ---------------------------------------------------------------------------


def _base_school_fields() -> dict:
    """Fields of the reference school: a Good state primary in Bromley with 450 pupils."""
    return {
        "urn": "101600",
        "name": "Bromley Primary School",
        "borough": "Bromley",
        "region": "London",
        "phase": Phase.PRIMARY,
        "gender": "Mixed",
        "sector": Sector.STATE,
        "funding_type": "Maintained",
        "pupils": 450,
        "age_range": "4-11",
        "postcode": "BR1 1AA",
        "address": "High Street, Bromley",
        "ofsted_rating": "Good",
    }


def _create_test_schools() -> list[SchoolRecord]:
    """A spread of phases, sectors, ratings and areas."""
    base = _base_school_fields()
    return [
        SchoolRecord(**base),
        SchoolRecord(
            **{
                **base,
                "urn": "886000",
                "name": "Dartford Grammar School",
                "borough": "Dartford",
                "region": "Kent",
                "phase": Phase.SECONDARY,
                "gender": "Boys",
                "funding_type": "Grammar",
                "pupils": 1400,
                "has_sixth_form": True,
                "age_range": "11-18",
                "ofsted_rating": "Outstanding",
            }
        ),
        SchoolRecord(
            **{
                **base,
                "urn": "101200",
                "name": "Westminster Hall School",
                "borough": "Westminster",
                "phase": Phase.ALL_THROUGH,
                "sector": Sector.PRIVATE,
                "funding_type": "Independent",
                "pupils": 900,
                "has_sixth_form": True,
                "age_range": "3-18",
                "ofsted_rating": "N/A",
                "website": "https://www.westminsterhall.org.uk",
            }
        ),
        SchoolRecord(
            **{
                **base,
                "urn": "100300",
                "name": "Hackney Children's Centre Nursery",
                "borough": "Hackney",
                "phase": Phase.NURSERY,
                "pupils": 80,
                "age_range": "2-5",
                "ofsted_rating": "Outstanding",
            }
        ),
        SchoolRecord(
            **{
                **base,
                "urn": "100400",
                "name": "Tower Hamlets Special School",
                "borough": "Tower Hamlets",
                "phase": Phase.SPECIAL,
                "pupils": 0,
                "age_range": "4-19",
                "ofsted_rating": "Requires Improvement",
            }
        ),
        SchoolRecord(
            **{
                **base,
                "urn": "136500",
                "name": "St Mary's Catholic Sixth Form College",
                "borough": "Thanet",
                "region": "Kent",
                "phase": Phase.SIXTEEN_PLUS,
                "religious_character": "Roman Catholic",
                "funding_type": "Academy",
                "pupils": 600,
                "has_sixth_form": True,
                "age_range": "16-19",
                "ofsted_rating": "Inadequate",
            }
        ),
    ]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def covariates() -> Covariates:
    return Covariates(reference_year=2023)


@pytest.fixture()
def make_school() -> Callable[..., SchoolRecord]:
    """Factory building the reference school with field overrides."""

    def _make(**overrides) -> SchoolRecord:
        return SchoolRecord(**{**_base_school_fields(), **overrides})

    return _make


@pytest.fixture()
def bromley_primary(make_school) -> SchoolRecord:
    return make_school()


@pytest.fixture()
def test_schools() -> list[SchoolRecord]:
    return _create_test_schools()


@pytest.fixture()
def settings(tmp_path) -> Settings:
    """Settings pointing every path into a temporary directory."""
    return Settings(
        SQLITE_PATH=str(tmp_path / "schoolter.db"),
        GIAS_CSV_PATH=str(tmp_path / "seeds" / "gias_establishments.csv"),
        OUTPUT_DIR=str(tmp_path / "public" / "data"),
        CACHE_DIR=str(tmp_path / "cache"),
        PIPELINE_LOG_PATH=str(tmp_path / "pipeline.log"),
        FETCH_TIMEOUT_SECONDS=1.0,
        FETCH_DELAY_SECONDS=0.0,
    )
