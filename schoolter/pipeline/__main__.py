"""CLI for the Schoolter data pipeline.

Usage::

    # Synthetic enrichment only (default)
    python -m schoolter.pipeline

    # Also fetch real Ofsted judgements and headline performance
    python -m schoolter.pipeline --mode enrich

    # Also scrape school websites for contact details
    python -m schoolter.pipeline --mode full

Paths and fetch timings come from configuration (environment / .env).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from schoolter.config import get_settings
from schoolter.pipeline.run import run_pipeline
from schoolter.services.enrichment import EnrichmentMode
from schoolter.services.gov_data import InputDataError

logger = logging.getLogger("schoolter.pipeline")

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def _setup_logging(log_path: str) -> None:
    logging.basicConfig(level=logging.INFO, format=_LOG_FORMAT)

    path = Path(log_path).resolve()
    root = logging.getLogger()
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and Path(handler.baseFilename) == path:
            return
    path.parent.mkdir(parents=True, exist_ok=True)
    file_handler = logging.FileHandler(path, encoding="utf-8")
    file_handler.setFormatter(logging.Formatter(_LOG_FORMAT))
    root.addHandler(file_handler)


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="python -m schoolter.pipeline",
        description="Extract, enrich and export the Schoolter schools dataset.",
    )
    parser.add_argument(
        "--mode",
        choices=[mode.value for mode in EnrichmentMode],
        default=EnrichmentMode.QUICK.value,
        help="quick: synthetic only; enrich: real Ofsted + performance; full: also website contact details.",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = get_settings()
    _setup_logging(settings.PIPELINE_LOG_PATH)
    mode = EnrichmentMode(args.mode)

    print("Schoolter - Data Pipeline")
    print(f"  Mode:   {mode.value}")
    print(f"  Output: {settings.OUTPUT_DIR}")

    logger.info("=== Pipeline started (mode=%s) ===", mode.value)
    try:
        result = asyncio.run(run_pipeline(mode, settings))
    except InputDataError as exc:
        logger.error("Pipeline aborted: %s", exc)
        print(f"\n  ERROR: {exc}")
        return 1

    print(f"\n{'=' * 60}")
    print(f"  Input:   {result.input_source}")
    print(f"  Schools: {result.count}")
    for group, counts in result.sources.items():
        print(f"  {group:<13} real={counts['real']:<6} synthetic={counts['synthetic']}")
    print(f"  Wrote {result.js_path} and {result.json_path}")
    print(f"{'=' * 60}")
    logger.info("=== Pipeline completed ===")
    return 0


if __name__ == "__main__":
    sys.exit(main())
