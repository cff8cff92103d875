from __future__ import annotations

import datetime

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Declarative base for the staging tables."""


class SchoolRow(Base):
    """Base school record as extracted, one row per URN."""

    __tablename__ = "schools"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    urn: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    borough: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    region: Mapped[str] = mapped_column(String(20), nullable=False)
    phase: Mapped[str] = mapped_column(String(20), nullable=False)
    gender: Mapped[str] = mapped_column(String(10), nullable=False, default="Mixed")
    religious_character: Mapped[str | None] = mapped_column(String(100), nullable=True)
    sector: Mapped[str] = mapped_column(String(10), nullable=False, default="State")
    funding_type: Mapped[str] = mapped_column(String(30), nullable=False)
    pupils: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    has_sixth_form: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    age_range: Mapped[str] = mapped_column(String(10), nullable=False, default="")
    postcode: Mapped[str] = mapped_column(String(10), nullable=False, default="")
    address: Mapped[str] = mapped_column(Text, nullable=False, default="")
    lat: Mapped[float | None] = mapped_column(Float, nullable=True)
    lng: Mapped[float | None] = mapped_column(Float, nullable=True)
    ofsted_rating: Mapped[str] = mapped_column(String(30), nullable=False, default="N/A")
    website: Mapped[str | None] = mapped_column(String(500), nullable=True)

    def __repr__(self) -> str:
        return f"<SchoolRow(urn={self.urn!r}, name={self.name!r}, borough={self.borough!r})>"


class PipelineRun(Base):
    """One row per pipeline execution."""

    __tablename__ = "pipeline_runs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    mode: Mapped[str] = mapped_column(String(10), nullable=False)
    started_at: Mapped[datetime.datetime] = mapped_column(DateTime, nullable=False)
    finished_at: Mapped[datetime.datetime | None] = mapped_column(DateTime, nullable=True)
    input_source: Mapped[str] = mapped_column(String(20), nullable=False)  # gias / artifact
    record_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    source_summary: Mapped[str | None] = mapped_column(Text, nullable=True)  # JSON
    status: Mapped[str] = mapped_column(String(10), nullable=False)  # ok / failed
    error: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<PipelineRun(id={self.id}, mode={self.mode!r}, status={self.status!r})>"
