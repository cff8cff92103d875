"""GIAS (Get Information About Schools) extraction.

Reads the DfE establishments CSV with Polars, keeps open establishments in
the London boroughs and Kent (including Medway), and maps each row onto a
:class:`~schoolter.schemas.school.SchoolRecord`.  Coordinates come from
latitude/longitude columns when present, otherwise from the OSGB36
easting/northing pair.

Data source: https://get-information-schools.service.gov.uk/Downloads
The CSV is published daily at a predictable URL.
"""

from __future__ import annotations

import logging
from datetime import date, timedelta
from pathlib import Path

import polars as pl

from schoolter.agents.ofsted import normalize_rating
from schoolter.config import get_settings
from schoolter.schemas.school import NOT_APPLICABLE, Phase, SchoolRecord, Sector
from schoolter.services.enrichment.covariates import KENT_DISTRICTS, LONDON_BOROUGHS
from schoolter.services.gov_data.base import BaseGovDataService, InputDataError
from schoolter.services.gov_data.geo import osgb36_to_wgs84

logger = logging.getLogger(__name__)

__all__ = ["GIASService", "extract_schools", "map_phase", "osgb36_to_wgs84", "resolve_area"]


class Col:
    """Header names in the GIAS establishments export."""

    URN = "URN"
    NAME = "EstablishmentName"
    TYPE = "TypeOfEstablishment (name)"
    TYPE_GROUP = "EstablishmentTypeGroup (name)"
    STATUS = "EstablishmentStatus (name)"
    LA = "LA (name)"
    DISTRICT = "DistrictAdministrative (name)"
    POSTCODE = "Postcode"
    EASTING = "Easting"
    NORTHING = "Northing"
    LATITUDE = "Latitude"
    LONGITUDE = "Longitude"
    GENDER = "Gender (name)"
    RELIGION = "ReligiousCharacter (name)"
    LOW_AGE = "StatutoryLowAge"
    HIGH_AGE = "StatutoryHighAge"
    OFSTED_RATING = "OfstedRating (name)"
    PHASE = "PhaseOfEducation (name)"
    ADMISSIONS_POLICY = "AdmissionsPolicy (name)"
    SIXTH_FORM = "OfficialSixthForm (name)"
    PUPILS = "NumberOfPupils"
    WEBSITE = "SchoolWebsite"
    ADDRESS = ("Street", "Locality", "Address3", "Town")


_PRIVATE_TYPE_GROUPS = frozenset({"Independent schools", "Independent special schools"})
_OPEN_STATUSES = frozenset({"Open", "Open, but proposed to close"})
_NO_FAITH = frozenset({"", "none", "does not apply", "not applicable"})

# Checked in order
_PHASE_KEYWORDS: tuple[tuple[tuple[str, ...], Phase], ...] = (
    (("nursery",), Phase.NURSERY),
    (("all-through", "all through"), Phase.ALL_THROUGH),
    (("16 plus", "post-16"), Phase.SIXTEEN_PLUS),
    (("primary",), Phase.PRIMARY),
    (("secondary",), Phase.SECONDARY),
)

_LONDON_LOOKUP = {name.lower(): name for name in LONDON_BOROUGHS}
_KENT_LOOKUP = {name.lower(): name for name in KENT_DISTRICTS}

_ENCODINGS = ("cp1252", "utf-8-sig", "utf-8", "latin-1")


# ---------------------------------------------------------------------------
# Field mapping
# ---------------------------------------------------------------------------


def _cell(row: dict[str, str], column: str) -> str:
    return (row.get(column) or "").strip()


def _number(row: dict[str, str], column: str) -> float | None:
    try:
        return float(_cell(row, column))
    except ValueError:
        return None


def _whole(row: dict[str, str], column: str) -> int | None:
    value = _number(row, column)
    return None if value is None else int(value)


def _gender(raw: str) -> str:
    lowered = raw.lower()
    if lowered.startswith("boy"):
        return "Boys"
    if lowered.startswith("girl"):
        return "Girls"
    return "Mixed"


def _faith(raw: str) -> str | None:
    return None if raw.lower() in _NO_FAITH else raw


def resolve_area(row: dict[str, str]) -> tuple[str, str] | None:
    """Return ``(borough, region)`` for target-area rows, else ``None``.

    Kent schools are reported under their district rather than the county.
    """
    la = _cell(row, Col.LA).lower()
    if la in _LONDON_LOOKUP:
        return _LONDON_LOOKUP[la], "London"
    if la == "medway":
        return "Medway", "Kent"
    if la == "kent":
        return _KENT_LOOKUP.get(_cell(row, Col.DISTRICT).lower(), "Kent"), "Kent"
    return None


def map_phase(phase_raw: str, type_raw: str, low_age: int | None, high_age: int | None) -> Phase | None:
    """Map the GIAS phase onto :class:`Phase`.

    "Not applicable" phases (special schools, most independents) are
    resolved from the establishment type and then the statutory age range.
    """
    phase_lower = phase_raw.strip().lower()
    for needles, phase in _PHASE_KEYWORDS:
        if any(needle in phase_lower for needle in needles):
            return phase

    if "special" in type_raw.lower():
        return Phase.SPECIAL
    if low_age is None or high_age is None:
        return None
    if high_age <= 5:
        return Phase.NURSERY
    if high_age <= 11:
        return Phase.PRIMARY
    if low_age >= 16:
        return Phase.SIXTEEN_PLUS
    if low_age <= 7 and high_age >= 16:
        return Phase.ALL_THROUGH
    return Phase.SECONDARY


def _is_private(row: dict[str, str]) -> bool:
    if _cell(row, Col.TYPE_GROUP) in _PRIVATE_TYPE_GROUPS:
        return True
    establishment = _cell(row, Col.TYPE).lower()
    return "independent" in establishment or "non-maintained" in establishment


def map_funding_type(row: dict[str, str], private: bool) -> str:
    if private:
        return "Independent"
    if _cell(row, Col.ADMISSIONS_POLICY).lower() == "selective":
        return "Grammar"
    establishment = _cell(row, Col.TYPE).lower()
    if "free school" in establishment:
        return "Free School"
    if "academy" in establishment:
        return "Academy"
    return "Maintained"


def _coordinates(row: dict[str, str]) -> tuple[float | None, float | None]:
    lat, lng = _number(row, Col.LATITUDE), _number(row, Col.LONGITUDE)
    if not (lat and lng):
        easting, northing = _number(row, Col.EASTING), _number(row, Col.NORTHING)
        if not (easting and northing and easting > 0 and northing > 0):
            return None, None
        lat, lng = osgb36_to_wgs84(easting, northing)
    return round(lat, 6), round(lng, 6)


def row_to_school(row: dict[str, str]) -> SchoolRecord | None:
    """Convert a GIAS CSV row to a SchoolRecord, or ``None`` if it is out of scope."""
    urn, name = _cell(row, Col.URN), _cell(row, Col.NAME)
    if _cell(row, Col.STATUS) not in _OPEN_STATUSES or not urn or not name:
        return None
    area = resolve_area(row)
    if area is None:
        return None

    low_age, high_age = _whole(row, Col.LOW_AGE), _whole(row, Col.HIGH_AGE)
    phase = map_phase(_cell(row, Col.PHASE), _cell(row, Col.TYPE), low_age, high_age)
    if phase is None:
        return None

    private = _is_private(row)
    lat, lng = _coordinates(row)
    sixth_form = _cell(row, Col.SIXTH_FORM).lower()

    return SchoolRecord(
        urn=urn,
        name=name,
        borough=area[0],
        region=area[1],
        phase=phase,
        gender=_gender(_cell(row, Col.GENDER)),
        religious_character=_faith(_cell(row, Col.RELIGION)),
        sector=Sector.PRIVATE if private else Sector.STATE,
        funding_type=map_funding_type(row, private),
        pupils=_whole(row, Col.PUPILS) or 0,
        has_sixth_form=sixth_form == "yes" or "has a sixth form" in sixth_form,
        age_range="" if low_age is None or high_age is None else f"{low_age}-{high_age}",
        postcode=_cell(row, Col.POSTCODE),
        address=", ".join(part for part in (_cell(row, column) for column in Col.ADDRESS) if part),
        lat=lat,
        lng=lng,
        ofsted_rating=normalize_rating(_cell(row, Col.OFSTED_RATING)) or NOT_APPLICABLE,
        website=_cell(row, Col.WEBSITE) or None,
    )


# ---------------------------------------------------------------------------
# CSV reading
# ---------------------------------------------------------------------------


def read_gias_csv(path: Path) -> list[dict[str, str]]:
    """Read the GIAS CSV with Polars, handling encoding variants.

    Raises
    ------
    InputDataError
        If the file is missing or cannot be decoded with any known encoding.
    """
    if not path.exists():
        raise InputDataError(f"GIAS CSV not found: {path}")

    for encoding in _ENCODINGS:
        try:
            df = pl.read_csv(
                path,
                encoding=encoding,
                infer_schema_length=0,
                null_values=[""],
                truncate_ragged_lines=True,
            )
        except (pl.exceptions.PolarsError, UnicodeDecodeError) as exc:
            logger.debug("Could not read %s as %s: %s", path, encoding, exc)
            continue
        return [{k: (v if v is not None else "") for k, v in row.items()} for row in df.iter_rows(named=True)]
    raise InputDataError(f"Could not decode {path} with any known encoding")


def extract_schools(path: Path) -> list[SchoolRecord]:
    """Read *path* and return the in-scope schools, first row winning per URN."""
    rows = read_gias_csv(path)
    if rows and Col.URN not in rows[0]:
        raise InputDataError(f"{path} has no {Col.URN!r} column")
    logger.info("Total rows in CSV: %d", len(rows))

    schools: list[SchoolRecord] = []
    seen: set[str] = set()
    skipped = 0
    for row in rows:
        school = row_to_school(row)
        if school is None:
            skipped += 1
            continue
        if school.urn in seen:
            logger.debug("Duplicate URN %s ignored", school.urn)
            continue
        seen.add(school.urn)
        schools.append(school)

    geo_count = sum(1 for s in schools if s.lat is not None)
    logger.info("Mapped %d schools (%d skipped as closed/out of area), %d with coordinates", len(schools), skipped, geo_count)
    return schools


# ---------------------------------------------------------------------------
# GIASService
# ---------------------------------------------------------------------------


class GIASService(BaseGovDataService):
    """Locate (or download) the GIAS CSV and extract school records.

    Usage::

        service = GIASService()
        schools = service.extract()
    """

    def __init__(
        self,
        csv_path: Path | str | None = None,
        cache_dir: Path | str | None = None,
        cache_ttl_hours: int | None = None,
        **kwargs,
    ) -> None:
        settings = get_settings()
        self.csv_path = Path(csv_path or settings.GIAS_CSV_PATH)
        super().__init__(
            cache_dir=cache_dir or self.csv_path.parent,
            cache_ttl_hours=cache_ttl_hours or settings.GIAS_CACHE_TTL_HOURS,
            **kwargs,
        )
        self._url_template = settings.GIAS_CSV_URL_TEMPLATE

    def _build_csv_urls(self) -> list[str]:
        """Build download URLs for today and yesterday (fallback)."""
        today = date.today().strftime("%Y%m%d")
        yesterday = (date.today() - timedelta(days=1)).strftime("%Y%m%d")
        return [
            self._url_template.format(date=today),
            self._url_template.format(date=yesterday),
        ]

    def download_csv(self, force: bool = False) -> Path:
        """Download the latest GIAS CSV into the configured location."""
        return self.first_available(self._build_csv_urls(), self.csv_path, force=force)

    def locate_csv(self) -> Path:
        """Return the local CSV, downloading it first when it is absent.

        Raises
        ------
        InputDataError
            If the file is absent and cannot be downloaded.
        """
        if self.csv_path.exists():
            return self.csv_path
        self._logger.info("GIAS CSV not found at %s; downloading", self.csv_path)
        try:
            return self.download_csv()
        except RuntimeError as exc:
            raise InputDataError(f"GIAS CSV unavailable: {exc}") from exc

    def extract(self) -> list[SchoolRecord]:
        csv_path = self.locate_csv()
        self._logger.info("Reading GIAS CSV: %s", csv_path)
        return extract_schools(csv_path)
