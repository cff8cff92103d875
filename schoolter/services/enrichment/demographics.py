"""Synthetic pupil demographics generator."""

from __future__ import annotations

from schoolter.schemas.school import Demographics, Ethnicities, Phase, SchoolRecord
from schoolter.services.enrichment.covariates import (
    CENTRAL_AFFLUENT,
    DEFAULT_CATEGORY,
    INNER_DIVERSE,
    KENT,
    OUTER_SUBURBAN,
    Covariates,
)
from schoolter.services.enrichment.prng import SeededRandom

# Free school meals baseline by affluence tier
FSM_BASE = {1: 8, 2: 15, 3: 25, 4: 35}

EAL_RANGE: dict[str, tuple[float, float]] = {
    INNER_DIVERSE: (35.0, 70.0),
    CENTRAL_AFFLUENT: (30.0, 55.0),
    OUTER_SUBURBAN: (10.0, 30.0),
    KENT: (3.0, 15.0),
    DEFAULT_CATEGORY: (15.0, 60.0),
}

SEN_RANGE = (8.0, 20.0)
SPECIAL_SEN_RANGE = (85.0, 100.0)

ETHNICITY_KEYS = ("whitebritish", "asian", "black", "mixed", "other")

# Integer draw ranges per bucket, plus the floor applied to "other" after normalising
ETHNICITY_RANGES: dict[str, dict[str, tuple[int, int]]] = {
    INNER_DIVERSE: {
        "whitebritish": (10, 35), "asian": (15, 45), "black": (15, 35), "mixed": (5, 12), "other": (3, 12),
    },
    CENTRAL_AFFLUENT: {
        "whitebritish": (30, 55), "asian": (8, 20), "black": (5, 15), "mixed": (8, 15), "other": (5, 15),
    },
    OUTER_SUBURBAN: {
        "whitebritish": (45, 75), "asian": (5, 20), "black": (4, 15), "mixed": (5, 10), "other": (2, 8),
    },
    KENT: {
        "whitebritish": (75, 92), "asian": (2, 8), "black": (1, 5), "mixed": (2, 6), "other": (0, 4),
    },
    DEFAULT_CATEGORY: {
        "whitebritish": (30, 70), "asian": (5, 30), "black": (5, 25), "mixed": (5, 15), "other": (2, 10),
    },
}

OTHER_FLOOR = {
    INNER_DIVERSE: 2,
    CENTRAL_AFFLUENT: 2,
    OUTER_SUBURBAN: 1,
    KENT: 0,
    DEFAULT_CATEGORY: 1,
}


def normalise_ethnicities(drawn: dict[str, int], floor: int) -> Ethnicities:
    """Make the five buckets sum to exactly 100.

    The whole deficit or surplus goes into ``other``.  If that would take
    ``other`` below *floor* it is held at the floor and the overshoot is
    taken from the largest remaining bucket.
    """
    values = dict(drawn)
    main_keys = ETHNICITY_KEYS[:-1]
    values["other"] = 100 - sum(values[key] for key in main_keys)
    if values["other"] < floor:
        excess = floor - values["other"]
        values["other"] = floor
        largest = max(main_keys, key=lambda key: values[key])
        values[largest] -= excess
    return Ethnicities(**values)


def generate_demographics(school: SchoolRecord, rng: SeededRandom, covariates: Covariates) -> Demographics:
    """Generate FSM, EAL, SEN percentages and the ethnicity breakdown."""
    tier = covariates.area_tier(school.borough)
    category = covariates.area_category(school.borough)

    fsm_base = FSM_BASE.get(tier, FSM_BASE[3])
    fsm = max(0.0, rng.next_float(fsm_base - 5, fsm_base + 10))
    if school.is_private:
        fsm = 0.0

    eal = rng.next_float(*EAL_RANGE[category])
    sen = rng.next_float(*(SPECIAL_SEN_RANGE if school.phase == Phase.SPECIAL else SEN_RANGE))

    ranges = ETHNICITY_RANGES[category]
    drawn = {key: rng.next_int(*ranges[key]) for key in ETHNICITY_KEYS}

    return Demographics(
        fsm_percent=fsm,
        eal_percent=eal,
        sen_percent=sen,
        ethnicities=normalise_ethnicities(drawn, OTHER_FLOOR[category]),
    )
