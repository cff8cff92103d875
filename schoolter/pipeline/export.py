"""Output writer for the generated frontend dataset.

Writes ``schools.js`` (loadable as a browser global or a CommonJS module) and
``schools.json`` side by side.  Both are a pure function of the records and
the source summary apart from the generation timestamp.
"""

from __future__ import annotations

import datetime
import json
import logging
from collections.abc import Sequence
from pathlib import Path

from pydantic import ValidationError

from schoolter.schemas.school import EnrichedSchool, SchoolRecord
from schoolter.services.gov_data.base import InputDataError

logger = logging.getLogger(__name__)

JS_FILENAME = "schools.js"
JSON_FILENAME = "schools.json"
JS_GLOBAL = "SCHOOLS_DATA"


def serialise_schools(schools: Sequence[EnrichedSchool]) -> list[dict]:
    """Convert records to plain dicts with camelCase keys."""
    return [school.model_dump(mode="json", by_alias=True) for school in schools]


def describe_sources(sources: dict[str, dict[str, int]]) -> str:
    """One-line source mix, e.g. ``ofsted: 40 real / 60 synthetic; ...``."""
    if not sources:
        return "synthetic only"
    return "; ".join(
        f"{group}: {counts.get('real', 0)} real / {counts.get('synthetic', 0)} synthetic"
        for group, counts in sources.items()
    )


def render_js(records: list[dict], sources: dict[str, dict[str, int]], generated_at: str) -> str:
    body = json.dumps(records, indent=2, ensure_ascii=False)
    return (
        "/**\n"
        " * Schoolter schools dataset, generated by the data pipeline\n"
        f" * Generated: {generated_at}\n"
        f" * Total schools: {len(records)}\n"
        f" * Sources: {describe_sources(sources)}\n"
        " */\n"
        f"const {JS_GLOBAL} = {body};\n"
        "\n"
        "if (typeof window !== 'undefined') {\n"
        f"  window.{JS_GLOBAL} = {JS_GLOBAL};\n"
        "}\n"
        "if (typeof module !== 'undefined') {\n"
        f"  module.exports = {JS_GLOBAL};\n"
        "}\n"
    )


def render_json(records: list[dict], sources: dict[str, dict[str, int]], generated_at: str) -> str:
    document = {
        "generatedAt": generated_at,
        "count": len(records),
        "sources": sources,
        "schools": records,
    }
    return json.dumps(document, indent=2, ensure_ascii=False) + "\n"


def write_outputs(
    schools: Sequence[EnrichedSchool],
    output_dir: str | Path,
    sources: dict[str, dict[str, int]],
    generated_at: datetime.datetime | None = None,
) -> tuple[Path, Path]:
    """Write both artifacts into *output_dir* and return their paths."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    stamp = (generated_at or datetime.datetime.now(datetime.timezone.utc)).isoformat(timespec="seconds")
    records = serialise_schools(schools)

    js_path = output_dir / JS_FILENAME
    js_path.write_text(render_js(records, sources, stamp), encoding="utf-8")
    logger.info("Wrote %d schools to %s", len(records), js_path)

    json_path = output_dir / JSON_FILENAME
    json_path.write_text(render_json(records, sources, stamp), encoding="utf-8")
    logger.info("Wrote JSON to %s", json_path)
    return js_path, json_path


def load_previous_artifact(path: str | Path) -> list[SchoolRecord]:
    """Load base records from a previously written ``schools.json``.

    Enrichment sub-records in the file are ignored; they are regenerated.

    Raises
    ------
    InputDataError
        If the file is missing, is not valid JSON, or holds no valid records.
    """
    path = Path(path)
    if not path.exists():
        raise InputDataError(f"Previous artifact not found: {path}")
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise InputDataError(f"Could not read previous artifact {path}: {exc}") from exc

    entries = document.get("schools") if isinstance(document, dict) else None
    if not entries:
        raise InputDataError(f"Previous artifact {path} contains no schools")
    try:
        return [SchoolRecord.model_validate(entry) for entry in entries]
    except ValidationError as exc:
        raise InputDataError(f"Previous artifact {path} has invalid records: {exc}") from exc
