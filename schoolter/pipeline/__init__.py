"""Schoolter data pipeline: extract, stage, enrich and export.

Run with ``python -m schoolter.pipeline --mode {quick,enrich,full}``.
"""

from schoolter.pipeline.export import load_previous_artifact, write_outputs
from schoolter.pipeline.run import PipelineResult, run_pipeline

__all__ = ["PipelineResult", "load_previous_artifact", "run_pipeline", "write_outputs"]
