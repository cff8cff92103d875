from __future__ import annotations

import datetime
from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

OFSTED_RATINGS = ("Outstanding", "Good", "Requires Improvement", "Inadequate")
NOT_APPLICABLE = "N/A"


class Phase(str, Enum):
    NURSERY = "Nursery"
    PRIMARY = "Primary"
    SECONDARY = "Secondary"
    ALL_THROUGH = "All-Through"
    SPECIAL = "Special"
    SIXTEEN_PLUS = "16-Plus"


class Sector(str, Enum):
    STATE = "State"
    PRIVATE = "Private"


class SchemaModel(BaseModel):
    """Base model: snake_case in Python, camelCase in the generated artifact."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------------------------------------------------------------------------
# Base school record
# ---------------------------------------------------------------------------


class SchoolRecord(SchemaModel):
    """Canonical school entity, one per physical establishment."""

    id: int | None = None
    urn: str
    name: str
    borough: str
    region: str = "London"
    phase: Phase
    gender: str = "Mixed"
    religious_character: str | None = None
    sector: Sector = Sector.STATE
    funding_type: str = "Maintained"
    pupils: int = 0
    has_sixth_form: bool = False
    age_range: str = ""
    postcode: str = ""
    address: str = ""
    lat: float | None = None
    lng: float | None = None
    ofsted_rating: str = NOT_APPLICABLE
    website: str | None = None

    @property
    def is_private(self) -> bool:
        return self.sector == Sector.PRIVATE

    @property
    def is_grammar(self) -> bool:
        return self.funding_type == "Grammar"


# ---------------------------------------------------------------------------
# Performance (tagged by phase category)
# ---------------------------------------------------------------------------


class SubjectExpected(SchemaModel):
    expected: int
    greater_depth: int | None = None


class KS2Progress(SchemaModel):
    reading: float
    writing: float
    maths: float


class KS2Block(SchemaModel):
    """Key Stage 2 (end of primary) results."""

    reading: SubjectExpected
    writing: SubjectExpected
    maths: SubjectExpected
    gps: SubjectExpected
    combined: int
    progress: KS2Progress


class KS4Block(SchemaModel):
    """Key Stage 4 (GCSE) results. Subject values are average grades on the 9-1 scale."""

    attainment8: float
    progress8: float
    ebacc_entry: int
    ebacc_avg: float
    grade5_en_ma: int
    subjects: dict[str, float]


class KS5Destinations(SchemaModel):
    university: int
    russell_group: int
    oxbridge: int
    apprenticeships: int
    employment: int


class KS5Block(SchemaModel):
    """Key Stage 5 (A level) results. Subject values are average points per entry."""

    avg_point_score: float
    aab_or_higher: int
    subjects: dict[str, float]
    destinations: KS5Destinations


class NoPerformance(SchemaModel):
    year: str
    stage: Literal["none"] = "none"
    ks2: None = None
    ks4: None = None
    ks5: None = None


class PrimaryPerformance(SchemaModel):
    year: str
    stage: Literal["primary"] = "primary"
    ks2: KS2Block
    ks4: None = None
    ks5: None = None


class SecondaryPerformance(SchemaModel):
    year: str
    stage: Literal["secondary"] = "secondary"
    ks2: None = None
    ks4: KS4Block
    ks5: KS5Block | None = None


class AllThroughPerformance(SchemaModel):
    year: str
    stage: Literal["all_through"] = "all_through"
    ks2: KS2Block
    ks4: KS4Block
    ks5: KS5Block | None = None


Performance = Annotated[
    Union[NoPerformance, PrimaryPerformance, SecondaryPerformance, AllThroughPerformance],
    Field(discriminator="stage"),
]


# ---------------------------------------------------------------------------
# Admissions
# ---------------------------------------------------------------------------


class Applications(SchemaModel):
    total: int
    first: int
    second: int
    third: int


class CatchmentYear(SchemaModel):
    year: str
    last_distance: float
    offers: int


class Catchment(SchemaModel):
    official_radius: float
    effective_radius: float
    history: list[CatchmentYear] = []


class AdmissionCriterion(SchemaModel):
    priority: int
    category: str
    description: str


class Appeals(SchemaModel):
    lodged: int
    successful: int


class OpenDay(SchemaModel):
    date: str
    time: str
    type: str


class Admissions(SchemaModel):
    year: str
    capacity: int
    applications: Applications
    oversubscribed: bool
    last_distance_offered: float | None = None
    catchment: Catchment | None = None
    criteria: list[AdmissionCriterion] = []
    appeals: Appeals | None = None
    open_days: list[OpenDay] = []
    application_deadline: str


# ---------------------------------------------------------------------------
# Demographics
# ---------------------------------------------------------------------------


class Ethnicities(SchemaModel):
    whitebritish: int
    asian: int
    black: int
    mixed: int
    other: int

    @property
    def total(self) -> int:
        return self.whitebritish + self.asian + self.black + self.mixed + self.other


class Demographics(SchemaModel):
    fsm_percent: float
    eal_percent: float
    sen_percent: float
    ethnicities: Ethnicities


# ---------------------------------------------------------------------------
# Inspection history, contact, finances
# ---------------------------------------------------------------------------


class OfstedHistory(SchemaModel):
    rating: str
    inspection_date: datetime.date | None = None
    previous_rating: str | None = None
    previous_date: datetime.date | None = None
    report_url: str | None = None
    parent_view: dict[str, int] | None = None


class Contact(SchemaModel):
    phone: str
    email: str
    headteacher: str
    website: str | None = None


class Finances(SchemaModel):
    total_income: int
    per_pupil_funding: int
    teacher_count: int
    pupil_teacher_ratio: float


# ---------------------------------------------------------------------------
# Enriched record
# ---------------------------------------------------------------------------


class EnrichedSchool(SchoolRecord):
    """A school record with every enrichment sub-record attached."""

    performance: Performance | None = None
    admissions: Admissions | None = None
    demographics: Demographics | None = None
    ofsted: OfstedHistory | None = None
    contact: Contact | None = None
    finances: Finances | None = None
