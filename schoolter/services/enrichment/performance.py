"""Synthetic performance generator (KS2 / KS4 / KS5).

Every metric follows the same shape: draw a baseline within a plausible
state-school range, add the area tier bonus and any selective/private boost,
scale by the Ofsted rating multiplier, then clamp to the metric's valid range.
Which blocks exist is decided by phase alone.
"""

from __future__ import annotations

from schoolter.schemas.school import (
    AllThroughPerformance,
    KS2Block,
    KS2Progress,
    KS4Block,
    KS5Block,
    KS5Destinations,
    NoPerformance,
    Phase,
    PrimaryPerformance,
    SchoolRecord,
    SecondaryPerformance,
    SubjectExpected,
)
from schoolter.services.enrichment.covariates import Covariates
from schoolter.services.enrichment.prng import SeededRandom

KS2_PHASES = frozenset({Phase.PRIMARY, Phase.ALL_THROUGH, Phase.SPECIAL})
KS4_PHASES = frozenset({Phase.SECONDARY, Phase.ALL_THROUGH, Phase.SIXTEEN_PLUS})

GRAMMAR_BOOST = 12
PRIVATE_BOOST_RANGE = (8, 15)

# Average GCSE grade (9-1) baseline ranges
KS4_SUBJECTS: dict[str, tuple[float, float]] = {
    "english": (4.0, 6.0),
    "maths": (4.0, 6.0),
    "science": (3.8, 5.8),
    "history": (4.0, 5.8),
    "geography": (4.0, 5.8),
    "languages": (3.5, 5.5),
    "art": (4.5, 6.2),
    "music": (4.5, 6.2),
    "pe": (4.5, 6.0),
    "computing": (4.0, 5.8),
    "drama": (4.5, 6.2),
    "business": (4.0, 5.6),
}

# Average A level points per entry (E = 10 ... A* = 60) baseline ranges
KS5_SUBJECTS: dict[str, tuple[float, float]] = {
    "maths": (28.0, 40.0),
    "furtherMaths": (32.0, 44.0),
    "english": (28.0, 38.0),
    "physics": (26.0, 40.0),
    "chemistry": (26.0, 40.0),
    "biology": (26.0, 40.0),
    "history": (28.0, 38.0),
    "geography": (28.0, 38.0),
    "economics": (28.0, 40.0),
    "psychology": (26.0, 36.0),
    "art": (30.0, 40.0),
    "languages": (28.0, 38.0),
    "computerScience": (26.0, 40.0),
}

ATTAINMENT8_MAX = 90.0
PROGRESS8_LIMIT = 3.0
KS2_PROGRESS_LIMIT = 5.0
GCSE_GRADE_RANGE = (1.0, 9.0)
A_LEVEL_POINTS_RANGE = (10.0, 60.0)
KS5_APS_MAX = 60.0


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def _percent(value: float) -> int:
    return int(_clamp(round(value), 0, 100))


class _Scaler:
    """Applies ``(base + tier bonus + boost) * multiplier`` to raw draws."""

    def __init__(self, tier_bonus: int, boost: int, multiplier: float) -> None:
        self.tier_bonus = tier_bonus
        self.boost = boost
        self.multiplier = multiplier

    def percent(self, base: float) -> int:
        return _percent((base + self.tier_bonus + self.boost) * self.multiplier)

    def scaled(self, base: float, divisor: float, lo: float, hi: float, decimals: int = 1) -> float:
        """Scale a point score whose units are *divisor* times smaller than a percentage."""
        value = (base + (self.tier_bonus + self.boost) / divisor) * self.multiplier
        return round(_clamp(value, lo, hi), decimals)

    def shifted(self, base: float, divisor: float, limit: float, decimals: int = 1) -> float:
        """Shift a signed value-added score, which the multiplier must not flip."""
        value = base + (self.tier_bonus + self.boost) * self.multiplier / divisor
        return round(_clamp(value, -limit, limit), decimals)


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


def _ks2_block(rng: SeededRandom, scale: _Scaler) -> KS2Block:
    reading = SubjectExpected(
        expected=scale.percent(rng.next_int(55, 70)),
        greater_depth=scale.percent(rng.next_int(10, 25)),
    )
    writing = SubjectExpected(
        expected=scale.percent(rng.next_int(50, 68)),
        greater_depth=scale.percent(rng.next_int(5, 20)),
    )
    maths = SubjectExpected(
        expected=scale.percent(rng.next_int(55, 70)),
        greater_depth=scale.percent(rng.next_int(10, 25)),
    )
    gps = SubjectExpected(expected=scale.percent(rng.next_int(58, 72)))

    # Meeting the combined standard requires meeting each subject standard
    combined = min(
        scale.percent(rng.next_int(45, 60)),
        reading.expected,
        writing.expected,
        maths.expected,
    )

    progress = KS2Progress(
        reading=scale.shifted(rng.next_float(-1.5, 1.5), 10, KS2_PROGRESS_LIMIT),
        writing=scale.shifted(rng.next_float(-1.5, 1.5), 10, KS2_PROGRESS_LIMIT),
        maths=scale.shifted(rng.next_float(-1.5, 1.5), 10, KS2_PROGRESS_LIMIT),
    )
    return KS2Block(
        reading=reading,
        writing=writing,
        maths=maths,
        gps=gps,
        combined=combined,
        progress=progress,
    )


def _ks4_block(rng: SeededRandom, scale: _Scaler) -> KS4Block:
    attainment8 = scale.scaled(rng.next_float(35.0, 48.0), 1, 0.0, ATTAINMENT8_MAX)
    progress8 = scale.shifted(rng.next_float(-0.6, 0.4, 2), 30, PROGRESS8_LIMIT, decimals=2)
    ebacc_entry = scale.percent(rng.next_int(20, 45))
    ebacc_avg = scale.scaled(rng.next_float(3.2, 4.5, 2), 10, 0.0, 9.0, decimals=2)
    grade5_en_ma = scale.percent(rng.next_int(30, 50))

    lo, hi = GCSE_GRADE_RANGE
    subjects = {
        subject: scale.scaled(rng.next_float(low, high), 10, lo, hi)
        for subject, (low, high) in KS4_SUBJECTS.items()
    }
    return KS4Block(
        attainment8=attainment8,
        progress8=progress8,
        ebacc_entry=ebacc_entry,
        ebacc_avg=ebacc_avg,
        grade5_en_ma=grade5_en_ma,
        subjects=subjects,
    )


def _destinations(rng: SeededRandom, scale: _Scaler, selective: bool) -> KS5Destinations:
    university = scale.percent(rng.next_int(50, 75))
    russell_group = min(scale.percent(rng.next_int(10, 30)), university)
    oxbridge_draw = rng.next_int(5, 25) if selective else rng.next_int(0, 8)
    oxbridge = min(oxbridge_draw, russell_group)
    apprenticeships = rng.next_int(5, 20)
    employment = rng.next_int(2, 15)

    excess = university + apprenticeships + employment - 100
    if excess > 0:
        cut = min(apprenticeships, excess)
        apprenticeships -= cut
        employment -= min(employment, excess - cut)

    return KS5Destinations(
        university=university,
        russell_group=russell_group,
        oxbridge=oxbridge,
        apprenticeships=apprenticeships,
        employment=employment,
    )


def _ks5_block(rng: SeededRandom, scale: _Scaler, selective: bool) -> KS5Block:
    avg_point_score = scale.scaled(rng.next_float(28.0, 36.0), 2, 0.0, KS5_APS_MAX)
    aab_or_higher = scale.percent(rng.next_int(8, 25))

    lo, hi = A_LEVEL_POINTS_RANGE
    subjects = {
        subject: scale.scaled(rng.next_float(low, high), 3, lo, hi)
        for subject, (low, high) in KS5_SUBJECTS.items()
    }
    return KS5Block(
        avg_point_score=avg_point_score,
        aab_or_higher=aab_or_higher,
        subjects=subjects,
        destinations=_destinations(rng, scale, selective),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def generate_performance(
    school: SchoolRecord,
    rng: SeededRandom,
    covariates: Covariates,
) -> NoPerformance | PrimaryPerformance | SecondaryPerformance | AllThroughPerformance:
    """Generate the performance sub-record for *school*.

    Parameters
    ----------
    school:
        Base school record.
    rng:
        The school's random stream; draws are consumed in KS2, KS4, KS5 order.
    covariates:
        Shared lookup tables.

    Returns
    -------
    Performance
        A record tagged by phase category.  Blocks the phase does not sit
        (e.g. KS4 for a primary) are ``None``; Nursery schools get no blocks.
    """
    year = covariates.data_year
    if school.phase not in KS2_PHASES and school.phase not in KS4_PHASES:
        return NoPerformance(year=year)

    boost = 0
    if school.is_private:
        boost += rng.next_int(*PRIVATE_BOOST_RANGE)
    if school.is_grammar:
        boost += GRAMMAR_BOOST

    scale = _Scaler(
        tier_bonus=covariates.tier_bonus(covariates.area_tier(school.borough)),
        boost=boost,
        multiplier=covariates.rating_multiplier(school.ofsted_rating),
    )
    selective = school.is_grammar or school.is_private

    ks2 = _ks2_block(rng, scale) if school.phase in KS2_PHASES else None
    ks4 = _ks4_block(rng, scale) if school.phase in KS4_PHASES else None
    ks5 = _ks5_block(rng, scale, selective) if ks4 is not None and school.has_sixth_form else None

    if ks2 is not None and ks4 is not None:
        return AllThroughPerformance(year=year, ks2=ks2, ks4=ks4, ks5=ks5)
    if ks2 is not None:
        return PrimaryPerformance(year=year, ks2=ks2)
    return SecondaryPerformance(year=year, ks4=ks4, ks5=ks5)
