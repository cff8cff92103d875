"""End-to-end pipeline: extract, stage, enrich, write."""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass
from pathlib import Path

from schoolter.agents.source import AgentSource
from schoolter.config import Settings
from schoolter.db.store import SchoolStore
from schoolter.pipeline.export import JSON_FILENAME, load_previous_artifact, write_outputs
from schoolter.schemas.school import SchoolRecord
from schoolter.services.enrichment import (
    Covariates,
    EnrichmentMode,
    EnrichmentOrchestrator,
    EnrichmentOutcome,
    summarize_provenance,
)
from schoolter.services.gov_data import GIASService, InputDataError

logger = logging.getLogger(__name__)

INPUT_GIAS = "gias"
INPUT_ARTIFACT = "artifact"


@dataclass
class PipelineResult:
    """Summary of a completed run."""

    mode: EnrichmentMode
    input_source: str
    count: int
    sources: dict[str, dict[str, int]]
    js_path: Path
    json_path: Path


def _previous_artifact(settings: Settings) -> list[SchoolRecord]:
    return load_previous_artifact(Path(settings.OUTPUT_DIR) / JSON_FILENAME)


def load_input(settings: Settings) -> tuple[list[SchoolRecord], str]:
    """Return the base records and where they came from.

    The establishments CSV is preferred (downloaded when absent); the
    previously generated ``schools.json`` is the fallback, both when the CSV
    is unusable and when it yields fewer than ``GIAS_MIN_SCHOOLS`` schools.

    Raises
    ------
    InputDataError
        If neither input can be read.
    """
    service = GIASService(csv_path=settings.GIAS_CSV_PATH, cache_ttl_hours=settings.GIAS_CACHE_TTL_HOURS)
    try:
        schools = service.extract()
    except InputDataError as csv_error:
        logger.warning("%s; falling back to previous artifact", csv_error)
        try:
            return _previous_artifact(settings), INPUT_ARTIFACT
        except InputDataError as artifact_error:
            raise InputDataError(f"No usable input: {csv_error}; {artifact_error}") from artifact_error

    if len(schools) >= settings.GIAS_MIN_SCHOOLS:
        return schools, INPUT_GIAS

    logger.warning(
        "Only %d schools in %s (minimum %d); trying previous artifact",
        len(schools),
        service.csv_path,
        settings.GIAS_MIN_SCHOOLS,
    )
    try:
        return _previous_artifact(settings), INPUT_ARTIFACT
    except InputDataError as artifact_error:
        if not schools:
            raise InputDataError(f"No schools in the target areas found in {service.csv_path}") from artifact_error
        logger.warning("No previous artifact (%s); keeping the %d extracted schools", artifact_error, len(schools))
    return schools, INPUT_GIAS


async def enrich_schools(
    schools: list[SchoolRecord],
    mode: EnrichmentMode,
    settings: Settings,
    covariates: Covariates,
) -> list[EnrichmentOutcome]:
    if not mode.fetches_facts:
        return await EnrichmentOrchestrator(covariates, mode=mode).enrich_all(schools)

    async with AgentSource(settings) as source:
        orchestrator = EnrichmentOrchestrator(
            covariates,
            mode=mode,
            source=source,
            timeout=settings.FETCH_TIMEOUT_SECONDS,
            delay=settings.FETCH_DELAY_SECONDS,
        )
        return await orchestrator.enrich_all(schools)


async def run_pipeline(mode: EnrichmentMode, settings: Settings) -> PipelineResult:
    """Run the whole pipeline once and replace the output snapshot.

    Raises
    ------
    InputDataError
        If no input data could be read.  The failure is recorded in the run
        log before being re-raised.
    """
    started_at = datetime.datetime.now()
    store = SchoolStore(settings.SQLITE_PATH)

    try:
        extracted, input_source = load_input(settings)
    except InputDataError as exc:
        store.record_run(
            mode=mode.value,
            started_at=started_at,
            input_source="none",
            record_count=0,
            status="failed",
            error=str(exc),
        )
        raise
    logger.info("Loaded %d schools from %s", len(extracted), input_source)

    store.replace_snapshot(extracted)
    schools = store.load_schools()

    covariates = Covariates(reference_year=settings.REFERENCE_YEAR)
    outcomes = await enrich_schools(schools, mode, settings, covariates)
    sources = summarize_provenance(outcomes)

    js_path, json_path = write_outputs([outcome.school for outcome in outcomes], settings.OUTPUT_DIR, sources)
    store.record_run(
        mode=mode.value,
        started_at=started_at,
        input_source=input_source,
        record_count=len(outcomes),
        source_summary=sources,
    )
    return PipelineResult(
        mode=mode,
        input_source=input_source,
        count=len(outcomes),
        sources=sources,
        js_path=js_path,
        json_path=json_path,
    )
