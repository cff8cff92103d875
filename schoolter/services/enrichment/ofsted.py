"""Synthetic inspection history and Parent View survey generator."""

from __future__ import annotations

import datetime

from schoolter.schemas.school import NOT_APPLICABLE, OFSTED_RATINGS, OfstedHistory, SchoolRecord
from schoolter.services.enrichment.covariates import Covariates
from schoolter.services.enrichment.prng import SeededRandom

REPORT_URL_TEMPLATE = "https://reports.ofsted.gov.uk/provider/21/{urn}"

# Ordinal shift from the previous inspection to the current one, skewed to "no change"
RATING_SHIFTS = (-2, -1, 0, 1, 2)
RATING_SHIFT_WEIGHTS = (0.05, 0.2, 0.5, 0.2, 0.05)

# Parent View questions in reporting order with their baseline agreement ranges
PARENT_VIEW_QUESTIONS: tuple[tuple[str, tuple[int, int]], ...] = (
    ("recommend", (70, 98)),
    ("happy", (75, 98)),
    ("safe", (85, 100)),
    ("wellBehaved", (70, 95)),
    ("bullying", (60, 90)),
    ("wellLedManaged", (70, 95)),
    ("progress", (70, 95)),
    ("informed", (65, 92)),
)
PARENT_VIEW_FLOOR = 20
PARENT_VIEW_CEILING = 100


def generate_ofsted_history(school: SchoolRecord, rng: SeededRandom, covariates: Covariates) -> OfstedHistory:
    """Generate the inspection history for *school*.

    Private schools (inspected by other bodies) and schools without a valid
    rating get ``rating="N/A"`` and no history; no draws are consumed.
    """
    if school.is_private or school.ofsted_rating not in OFSTED_RATINGS:
        return OfstedHistory(rating=NOT_APPLICABLE)

    current = OFSTED_RATINGS.index(school.ofsted_rating)
    shift = rng.weighted_pick(RATING_SHIFTS, RATING_SHIFT_WEIGHTS)
    previous = max(0, min(len(OFSTED_RATINGS) - 1, current + shift))

    year = rng.next_int(covariates.reference_year - 4, covariates.reference_year)
    month = rng.next_int(1, 12)
    day = rng.next_int(1, 28)
    inspection_date = datetime.date(year, month, day)
    previous_date = datetime.date(year - rng.next_int(2, 5), month, day)

    multiplier = covariates.rating_multiplier(school.ofsted_rating)
    answered = rng.next_int(5, len(PARENT_VIEW_QUESTIONS))
    parent_view = {}
    for question, (low, high) in PARENT_VIEW_QUESTIONS[:answered]:
        value = round(rng.next_int(low, high) * multiplier)
        parent_view[question] = max(PARENT_VIEW_FLOOR, min(PARENT_VIEW_CEILING, value))

    return OfstedHistory(
        rating=school.ofsted_rating,
        inspection_date=inspection_date,
        previous_rating=OFSTED_RATINGS[previous],
        previous_date=previous_date,
        report_url=REPORT_URL_TEMPLATE.format(urn=school.urn),
        parent_view=parent_view,
    )
