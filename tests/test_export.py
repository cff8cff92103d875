"""Tests for the artifact writer and the previous-artifact loader."""

from __future__ import annotations

import datetime
import json

import pytest

from schoolter.pipeline import load_previous_artifact, write_outputs
from schoolter.pipeline.export import describe_sources
from schoolter.services.enrichment import synthesize
from schoolter.services.gov_data import InputDataError

STAMP = datetime.datetime(2024, 3, 1, 12, 0, tzinfo=datetime.timezone.utc)
SOURCES = {"ofsted": {"real": 2, "synthetic": 4}, "performance": {"real": 0, "synthetic": 6}}


@pytest.fixture()
def enriched(test_schools, covariates):
    return [synthesize(school, covariates) for school in test_schools]


class TestWriteOutputs:
    def test_writes_both_files(self, tmp_path, enriched):
        js_path, json_path = write_outputs(enriched, tmp_path / "out", SOURCES, generated_at=STAMP)
        assert js_path.name == "schools.js"
        assert json_path.name == "schools.json"
        assert js_path.exists() and json_path.exists()

    def test_json_document(self, tmp_path, enriched):
        _, json_path = write_outputs(enriched, tmp_path, SOURCES, generated_at=STAMP)
        document = json.loads(json_path.read_text(encoding="utf-8"))

        assert document["generatedAt"] == "2024-03-01T12:00:00+00:00"
        assert document["count"] == len(enriched)
        assert document["sources"] == SOURCES
        first = document["schools"][0]
        assert first["urn"] == "101600"
        assert first["ofstedRating"] == "Good"
        assert "hasSixthForm" in first
        assert first["performance"]["stage"] == "primary"
        assert "perPupilFunding" in first["finances"]
        assert "lastDistanceOffered" in first["admissions"]

    def test_js_module(self, tmp_path, enriched):
        js_path, json_path = write_outputs(enriched, tmp_path, SOURCES, generated_at=STAMP)
        text = js_path.read_text(encoding="utf-8")

        assert text.startswith("/**\n")
        assert " * Generated: 2024-03-01T12:00:00+00:00\n" in text
        assert f" * Total schools: {len(enriched)}\n" in text
        assert "ofsted: 2 real / 4 synthetic" in text
        assert "window.SCHOOLS_DATA = SCHOOLS_DATA;" in text
        assert "module.exports = SCHOOLS_DATA;" in text

        start = text.index("const SCHOOLS_DATA = ") + len("const SCHOOLS_DATA = ")
        end = text.index(";\n\nif (typeof window")
        records = json.loads(text[start:end])
        assert records == json.loads(json_path.read_text(encoding="utf-8"))["schools"]

    def test_identical_apart_from_timestamp(self, tmp_path, enriched):
        write_outputs(enriched, tmp_path / "a", SOURCES, generated_at=STAMP)
        write_outputs(enriched, tmp_path / "b", SOURCES, generated_at=STAMP)
        write_outputs(enriched, tmp_path / "c", SOURCES, generated_at=STAMP + datetime.timedelta(days=1))

        a = (tmp_path / "a" / "schools.js").read_text(encoding="utf-8")
        b = (tmp_path / "b" / "schools.js").read_text(encoding="utf-8")
        c = (tmp_path / "c" / "schools.js").read_text(encoding="utf-8")
        assert a == b
        differing = [line for line_a, line in zip(a.splitlines(), c.splitlines()) if line_a != line]
        assert differing == [" * Generated: 2024-03-02T12:00:00+00:00"]

    def test_non_ascii_names_are_kept(self, tmp_path, make_school, covariates):
        school = synthesize(make_school(name="St Thérèse Primary"), covariates)
        js_path, _ = write_outputs([school], tmp_path, {}, generated_at=STAMP)
        assert "St Thérèse Primary" in js_path.read_text(encoding="utf-8")

    def test_describe_sources_empty(self):
        assert describe_sources({}) == "synthetic only"


class TestLoadPreviousArtifact:
    def test_round_trip(self, tmp_path, enriched, test_schools):
        _, json_path = write_outputs(enriched, tmp_path, SOURCES, generated_at=STAMP)
        loaded = load_previous_artifact(json_path)
        assert [school.urn for school in loaded] == [school.urn for school in test_schools]
        assert loaded[0] == test_schools[0]

    def test_missing_file(self, tmp_path):
        with pytest.raises(InputDataError):
            load_previous_artifact(tmp_path / "schools.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "schools.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(InputDataError):
            load_previous_artifact(path)

    def test_no_schools(self, tmp_path):
        path = tmp_path / "schools.json"
        path.write_text(json.dumps({"schools": []}), encoding="utf-8")
        with pytest.raises(InputDataError):
            load_previous_artifact(path)

    def test_invalid_records(self, tmp_path):
        path = tmp_path / "schools.json"
        path.write_text(json.dumps({"schools": [{"name": "No URN"}]}), encoding="utf-8")
        with pytest.raises(InputDataError):
            load_previous_artifact(path)
