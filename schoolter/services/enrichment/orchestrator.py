"""Enrichment orchestrator.

Runs the six synthetic generators for each school in a fixed order on one
seeded stream, then (depending on the mode) asks a :class:`RealDataSource`
for real Ofsted, performance and contact facts and overlays whatever comes
back.  Real-data failures never abort a run: they are logged and the
synthetic value stands.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import TypeVar

import httpx

from schoolter.agents.source import RealDataSource
from schoolter.schemas.facts import ContactFacts, OfstedFacts, PerformanceFacts
from schoolter.schemas.school import OFSTED_RATINGS, EnrichedSchool, OfstedHistory, SchoolRecord
from schoolter.services.enrichment.admissions import generate_admissions
from schoolter.services.enrichment.contact import generate_contact
from schoolter.services.enrichment.covariates import Covariates
from schoolter.services.enrichment.demographics import generate_demographics
from schoolter.services.enrichment.finance import generate_finances
from schoolter.services.enrichment.ofsted import generate_ofsted_history
from schoolter.services.enrichment.performance import generate_performance
from schoolter.services.enrichment.prng import SeededRandom, seed_from_urn

logger = logging.getLogger(__name__)

T = TypeVar("T")

REAL = "real"
SYNTHETIC = "synthetic"

FIELD_GROUPS = ("performance", "admissions", "demographics", "ofsted", "contact", "finances")

# InvalidURL is not an HTTPError; OSError covers the disk cache
_FETCH_ERRORS = (httpx.HTTPError, httpx.InvalidURL, OSError, RuntimeError, ValueError, asyncio.TimeoutError)


class EnrichmentMode(str, Enum):
    QUICK = "quick"
    ENRICH = "enrich"
    FULL = "full"

    @property
    def fetches_facts(self) -> bool:
        return self is not EnrichmentMode.QUICK

    @property
    def fetches_contact(self) -> bool:
        return self is EnrichmentMode.FULL


@dataclass
class EnrichmentOutcome:
    """An enriched school plus where each field group came from."""

    school: EnrichedSchool
    provenance: dict[str, str] = field(default_factory=lambda: dict.fromkeys(FIELD_GROUPS, SYNTHETIC))


# ---------------------------------------------------------------------------
# Synthetic pass
# ---------------------------------------------------------------------------


def synthesize(school: SchoolRecord, covariates: Covariates) -> EnrichedSchool:
    """Attach every synthetic sub-record to *school*.

    One stream per school, consumed in the order performance, admissions,
    demographics, ofsted, contact, finances.
    """
    rng = SeededRandom(seed_from_urn(school.urn, school.id))
    performance = generate_performance(school, rng, covariates)
    admissions = generate_admissions(school, rng, covariates)
    demographics = generate_demographics(school, rng, covariates)
    ofsted = generate_ofsted_history(school, rng, covariates)
    contact = generate_contact(school, rng, covariates)
    finances = generate_finances(school, rng, covariates)
    logger.debug("Synthesised urn=%s with %d draws", school.urn, rng.draws)

    return EnrichedSchool(
        **school.model_dump(include=set(SchoolRecord.model_fields)),
        performance=performance,
        admissions=admissions,
        demographics=demographics,
        ofsted=ofsted,
        contact=contact,
        finances=finances,
    )


# ---------------------------------------------------------------------------
# Real-fact overlays
# ---------------------------------------------------------------------------


def _years_before(day: datetime.date, years: int) -> datetime.date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:  # 29 February
        return day.replace(year=day.year - years, day=28)


def apply_ofsted_facts(school: EnrichedSchool, facts: OfstedFacts) -> EnrichedSchool:
    """Replace the current judgement with a real one, keeping synthetic history.

    A real inspection date moves the previous inspection with it, keeping the
    synthetic gap in years.
    """
    if facts.rating not in OFSTED_RATINGS:
        return school

    history = school.ofsted or OfstedHistory(rating=facts.rating)
    update: dict[str, object] = {"rating": facts.rating}
    if facts.inspection_date is not None:
        update["inspection_date"] = facts.inspection_date
        if history.inspection_date is not None and history.previous_date is not None:
            gap = history.inspection_date.year - history.previous_date.year
            update["previous_date"] = _years_before(facts.inspection_date, gap)
    if facts.report_url:
        update["report_url"] = facts.report_url
    return school.model_copy(update={"ofsted_rating": facts.rating, "ofsted": history.model_copy(update=update)})


def apply_performance_facts(school: EnrichedSchool, facts: PerformanceFacts) -> EnrichedSchool:
    """Overlay published headline measures onto the synthetic blocks."""
    performance = school.performance
    if performance is None:
        return school

    update: dict[str, object] = {}
    if performance.ks2 is not None and facts.ks2_combined_expected is not None:
        ks2 = performance.ks2
        combined = facts.ks2_combined_expected
        # Meeting the combined standard implies meeting each subject standard
        subjects = {
            name: getattr(ks2, name).model_copy(update={"expected": max(getattr(ks2, name).expected, combined)})
            for name in ("reading", "writing", "maths")
        }
        update["ks2"] = ks2.model_copy(update={"combined": combined, **subjects})
    if performance.ks4 is not None:
        ks4_update = {}
        if facts.attainment8 is not None:
            ks4_update["attainment8"] = facts.attainment8
        if facts.progress8 is not None:
            ks4_update["progress8"] = facts.progress8
        if ks4_update:
            update["ks4"] = performance.ks4.model_copy(update=ks4_update)

    if not update:
        return school
    return school.model_copy(update={"performance": performance.model_copy(update=update)})


def apply_contact_facts(school: EnrichedSchool, facts: ContactFacts) -> EnrichedSchool:
    if school.contact is None:
        return school
    update = {key: value for key, value in facts.model_dump().items() if value}
    if not update:
        return school
    return school.model_copy(update={"contact": school.contact.model_copy(update=update)})


# ---------------------------------------------------------------------------
# Orchestrator
# ---------------------------------------------------------------------------


class EnrichmentOrchestrator:
    """Enrich schools sequentially, optionally overlaying real facts.

    Parameters
    ----------
    covariates:
        Shared lookup tables.
    mode:
        ``quick`` (synthetic only), ``enrich`` (real Ofsted and performance)
        or ``full`` (additionally website contact details).
    source:
        Real-data provider; required unless *mode* is ``quick``.
    timeout:
        Seconds allowed for each individual fetch.
    delay:
        Seconds to wait between schools while real fetching is enabled.
    """

    def __init__(
        self,
        covariates: Covariates,
        mode: EnrichmentMode = EnrichmentMode.QUICK,
        source: RealDataSource | None = None,
        timeout: float = 10.0,
        delay: float = 1.0,
    ) -> None:
        if mode.fetches_facts and source is None:
            raise ValueError(f"mode {mode.value!r} needs a real-data source")
        self.covariates = covariates
        self.mode = mode
        self.source = source
        self.timeout = timeout
        self.delay = delay
        self._logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    async def enrich(self, school: SchoolRecord) -> EnrichmentOutcome:
        """Enrich a single school."""
        outcome = EnrichmentOutcome(school=synthesize(school, self.covariates))
        if not self.mode.fetches_facts or self.source is None:
            return outcome

        ofsted = await self._attempt("ofsted", school, self.source.fetch_ofsted)
        if ofsted is not None and ofsted.rating in OFSTED_RATINGS:
            outcome.school = apply_ofsted_facts(outcome.school, ofsted)
            outcome.provenance["ofsted"] = REAL

        performance = await self._attempt("performance", school, self.source.fetch_performance)
        if performance is not None and not performance.is_empty():
            outcome.school = apply_performance_facts(outcome.school, performance)
            outcome.provenance["performance"] = REAL

        if self.mode.fetches_contact:
            contact = await self._attempt("contact", school, self.source.fetch_contact)
            if contact is not None and not contact.is_empty():
                outcome.school = apply_contact_facts(outcome.school, contact)
                outcome.provenance["contact"] = REAL

        return outcome

    async def enrich_all(self, schools: Iterable[SchoolRecord]) -> list[EnrichmentOutcome]:
        """Enrich *schools* one after another, pausing between them when fetching."""
        outcomes: list[EnrichmentOutcome] = []
        for index, school in enumerate(schools):
            if index and self.mode.fetches_facts and self.delay > 0:
                await asyncio.sleep(self.delay)
            outcomes.append(await self.enrich(school))
            if (index + 1) % 500 == 0:
                self._logger.info("Enriched %d schools", index + 1)
        self._logger.info("Enriched %d schools (mode=%s)", len(outcomes), self.mode.value)
        return outcomes

    async def _attempt(
        self,
        label: str,
        school: SchoolRecord,
        fetch: Callable[[SchoolRecord], Awaitable[T | None]],
    ) -> T | None:
        try:
            return await asyncio.wait_for(fetch(school), timeout=self.timeout)
        except asyncio.TimeoutError:
            self._logger.warning("Timed out fetching %s for urn=%s; using synthetic data", label, school.urn)
        except _FETCH_ERRORS as exc:
            self._logger.warning(
                "Failed to fetch %s for urn=%s (%s); using synthetic data", label, school.urn, exc
            )
        return None


def summarize_provenance(outcomes: Iterable[EnrichmentOutcome]) -> dict[str, dict[str, int]]:
    """Count real vs synthetic values per field group."""
    summary = {group: {REAL: 0, SYNTHETIC: 0} for group in FIELD_GROUPS}
    for outcome in outcomes:
        for group, origin in outcome.provenance.items():
            summary[group][origin] += 1
    return summary
