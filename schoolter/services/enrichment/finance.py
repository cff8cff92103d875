"""Synthetic school finance generator."""

from __future__ import annotations

from schoolter.schemas.school import Finances, Phase, SchoolRecord
from schoolter.services.enrichment.covariates import Covariates
from schoolter.services.enrichment.prng import SeededRandom

# Per-pupil funding ranges (GBP) before the area tier adjustment
STATE_PER_PUPIL: dict[Phase, tuple[int, int]] = {
    Phase.PRIMARY: (4200, 5000),
    Phase.SECONDARY: (5200, 6200),
    Phase.ALL_THROUGH: (4800, 5800),
    Phase.SPECIAL: (15000, 25000),
    Phase.NURSERY: (3800, 4600),
    Phase.SIXTEEN_PLUS: (4800, 5800),
}
PRIVATE_PRIMARY_FEES = (14000, 20000)
PRIVATE_FEES = (18000, 28000)

TIER_FUNDING_STEP = 200

STATE_PUPIL_TEACHER_RATIO: dict[Phase, tuple[float, float]] = {
    Phase.PRIMARY: (18.0, 26.0),
    Phase.SECONDARY: (14.0, 20.0),
    Phase.ALL_THROUGH: (15.0, 21.0),
    Phase.SPECIAL: (5.0, 9.0),
    Phase.NURSERY: (8.0, 13.0),
    Phase.SIXTEEN_PLUS: (15.0, 22.0),
}
PRIVATE_PRIMARY_RATIO = (10.0, 15.0)
PRIVATE_RATIO = (8.0, 12.0)

MIN_TEACHERS = 3


def _ranges(school: SchoolRecord) -> tuple[tuple[int, int], tuple[float, float]]:
    if school.is_private:
        if school.phase == Phase.PRIMARY:
            return PRIVATE_PRIMARY_FEES, PRIVATE_PRIMARY_RATIO
        return PRIVATE_FEES, PRIVATE_RATIO
    return STATE_PER_PUPIL[school.phase], STATE_PUPIL_TEACHER_RATIO[school.phase]


def generate_finances(school: SchoolRecord, rng: SeededRandom, covariates: Covariates) -> Finances | None:
    """Generate income and staffing figures.

    Returns ``None`` when the pupil count is unknown.  The stored ratio is
    recomputed from the rounded teacher count so the two always agree.
    """
    if school.pupils <= 0:
        return None

    funding_range, ratio_range = _ranges(school)
    tier = covariates.area_tier(school.borough)
    per_pupil = rng.next_int(*funding_range) + (4 - tier) * TIER_FUNDING_STEP

    drawn_ratio = rng.next_float(*ratio_range)
    teachers = max(MIN_TEACHERS, round(school.pupils / drawn_ratio))

    return Finances(
        total_income=per_pupil * school.pupils,
        per_pupil_funding=per_pupil,
        teacher_count=teachers,
        pupil_teacher_ratio=round(school.pupils / teachers, 1),
    )
