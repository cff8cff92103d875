"""Synthetic admissions generator.

Models intake capacity, demand, catchment shrinkage, oversubscription
criteria, appeals and open days for a single school.
"""

from __future__ import annotations

import math

from schoolter.schemas.school import (
    AdmissionCriterion,
    Admissions,
    Appeals,
    Applications,
    Catchment,
    CatchmentYear,
    OpenDay,
    Phase,
    SchoolRecord,
)
from schoolter.services.enrichment.covariates import DEFAULT_PUPILS, Covariates, is_kent_area
from schoolter.services.enrichment.prng import SeededRandom

# ---------------------------------------------------------------------------
# Model constants
# ---------------------------------------------------------------------------

MIN_CAPACITY = 10
OVERSUBSCRIPTION_TOLERANCE = 1.05
TIER_DEMAND_SLOPE = -0.08
KENT_RADIUS_FACTOR = 2.5

POPULAR_DEMAND = (2.0, 4.5)
STANDARD_DEMAND = (0.7, 2.4)

# Base catchment radius in km
BASE_RADIUS_KM: dict[Phase, float] = {
    Phase.PRIMARY: 0.8,
    Phase.SECONDARY: 2.5,
    Phase.ALL_THROUGH: 2.0,
    Phase.SPECIAL: 5.0,
    Phase.SIXTEEN_PLUS: 4.0,
}

OPEN_DAY_MONTHS = ("September", "October", "November")
OPEN_DAY_TIMES = ("9:30am", "10:00am", "2:00pm", "6:00pm")
OPEN_DAY_TYPES = ("Open Morning", "Open Evening", "Tour")

SECONDARY_DEADLINE_PHASES = frozenset({Phase.SECONDARY, Phase.ALL_THROUGH, Phase.SIXTEEN_PLUS})


def year_groups(phase: Phase, has_sixth_form: bool) -> int:
    """Number of year groups a school of *phase* teaches."""
    if phase == Phase.SECONDARY:
        return 7 if has_sixth_form else 5
    if phase == Phase.ALL_THROUGH:
        return 14 if has_sixth_form else 12
    if phase == Phase.PRIMARY:
        return 7
    if phase == Phase.SPECIAL:
        return 12
    if phase == Phase.SIXTEEN_PLUS:
        return 2
    return 1


def intake_capacity(school: SchoolRecord) -> int:
    """Places per year group, never fewer than :data:`MIN_CAPACITY`."""
    pupils = school.pupils if school.pupils > 0 else DEFAULT_PUPILS[school.phase]
    return max(MIN_CAPACITY, math.floor(pupils / year_groups(school.phase, school.has_sixth_form)))


def build_criteria(school: SchoolRecord) -> list[AdmissionCriterion]:
    """Oversubscription criteria in priority order.

    Faith goes in before Distance, Aptitude straight after Looked After
    Children; priorities are then the final list positions.
    """
    rules: list[tuple[str, str]] = [
        ("Looked After Children", "Children in care or previously in care"),
        ("Siblings", "Children with siblings at the school"),
        ("Distance", "Proximity to school (straight line)"),
    ]
    if school.religious_character:
        rules.insert(2, ("Faith", f"Regular worship attendance ({school.religious_character})"))
    if school.is_grammar:
        rules.insert(1, ("Aptitude", "11+ examination performance"))
    return [
        AdmissionCriterion(priority=position, category=category, description=description)
        for position, (category, description) in enumerate(rules, start=1)
    ]


def _split_preferences(rng: SeededRandom, total: int) -> Applications:
    first = min(total, round(total * rng.next_float(0.5, 0.7, 2)))
    second = min(total - first, round(total * rng.next_float(0.15, 0.25, 2)))
    return Applications(total=total, first=first, second=second, third=total - first - second)


def _open_days(rng: SeededRandom, year: int) -> list[OpenDay]:
    days: list[OpenDay] = []
    for month in OPEN_DAY_MONTHS:
        day = rng.next_int(5, 25)
        days.append(
            OpenDay(
                date=f"{day} {month} {year}",
                time=rng.pick(OPEN_DAY_TIMES),
                type=rng.pick(OPEN_DAY_TYPES),
            )
        )
    return days


def _deadline(phase: Phase, reference_year: int) -> str:
    if phase in SECONDARY_DEADLINE_PHASES:
        return f"31 October {reference_year + 1}"
    return f"15 January {reference_year + 2}"


def generate_admissions(school: SchoolRecord, rng: SeededRandom, covariates: Covariates) -> Admissions:
    """Generate the admissions sub-record for *school*.

    Parameters
    ----------
    school:
        Base school record.
    rng:
        The school's random stream.
    covariates:
        Shared lookup tables.

    Returns
    -------
    Admissions
        Applications always sum to the total; ``last_distance_offered`` is
        set exactly when the school is oversubscribed.
    """
    reference_year = covariates.reference_year
    tier = covariates.area_tier(school.borough)
    multiplier = covariates.rating_multiplier(school.ofsted_rating)
    demand = multiplier * (1 + (tier - 1) * TIER_DEMAND_SLOPE)
    popular = school.ofsted_rating == "Outstanding" or school.is_grammar

    capacity = intake_capacity(school)
    low, high = POPULAR_DEMAND if popular else STANDARD_DEMAND
    total = round(capacity * rng.next_float(low, high, 2) * demand)
    applications = _split_preferences(rng, total)
    oversubscribed = total > capacity * OVERSUBSCRIPTION_TOLERANCE

    if school.phase == Phase.NURSERY:
        # No catchment model: an oversubscribed nursery still reports a walking distance
        nearest = rng.next_float(0.3, 1.0, 2)
        return Admissions(
            year=covariates.data_year,
            capacity=capacity,
            applications=applications,
            oversubscribed=oversubscribed,
            last_distance_offered=nearest if oversubscribed else None,
            open_days=_open_days(rng, reference_year + 1),
            application_deadline=_deadline(school.phase, reference_year),
        )

    base_radius = BASE_RADIUS_KM[school.phase]
    if is_kent_area(school.borough) or school.region == "Kent":
        base_radius *= KENT_RADIUS_FACTOR
    official_radius = rng.next_float(base_radius * 0.8, base_radius * 1.5, 2)
    shrink = rng.next_float(0.35, 0.9, 2)
    effective_radius = round(official_radius * shrink, 2) if oversubscribed else official_radius

    history = []
    for year in range(reference_year - 2, reference_year + 1):
        history.append(
            CatchmentYear(
                year=str(year),
                last_distance=rng.next_float(effective_radius * 0.8, effective_radius * 1.2, 3),
                offers=round(capacity * rng.next_float(0.95, 1.05, 2)),
            )
        )

    lodged = rng.next_int(20, 80) if popular else rng.next_int(5, 25)
    appeals = Appeals(lodged=lodged, successful=rng.next_int(0, min(10, lodged)))

    return Admissions(
        year=covariates.data_year,
        capacity=capacity,
        applications=applications,
        oversubscribed=oversubscribed,
        last_distance_offered=effective_radius if oversubscribed else None,
        catchment=Catchment(
            official_radius=official_radius,
            effective_radius=effective_radius,
            history=history,
        ),
        criteria=build_criteria(school),
        appeals=appeals,
        open_days=_open_days(rng, reference_year + 1),
        application_deadline=_deadline(school.phase, reference_year),
    )
