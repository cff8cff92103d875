from schoolter.services.enrichment.covariates import Covariates
from schoolter.services.enrichment.orchestrator import (
    EnrichmentMode,
    EnrichmentOrchestrator,
    EnrichmentOutcome,
    summarize_provenance,
    synthesize,
)
from schoolter.services.enrichment.prng import SeededRandom, seed_from_urn

__all__ = [
    "Covariates",
    "EnrichmentMode",
    "EnrichmentOrchestrator",
    "EnrichmentOutcome",
    "SeededRandom",
    "seed_from_urn",
    "summarize_provenance",
    "synthesize",
]
