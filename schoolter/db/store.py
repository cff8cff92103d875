"""SQLite staging store for base school records and the run log."""

from __future__ import annotations

import datetime
import json
import logging
from collections.abc import Iterable
from pathlib import Path

from sqlalchemy import create_engine, delete, select
from sqlalchemy.orm import Session

from schoolter.db.models import Base, PipelineRun, SchoolRow
from schoolter.schemas.school import SchoolRecord

logger = logging.getLogger(__name__)

_RECORD_COLUMNS = tuple(name for name in SchoolRecord.model_fields if name != "id")


class SchoolStore:
    """Holds the current snapshot of base school records.

    Each pipeline run replaces the whole snapshot; ids handed out by
    :meth:`load_schools` are positional, not the table's primary keys.

    Parameters
    ----------
    db_path:
        Path to the SQLite file; created along with its tables if missing.
    """

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.engine = create_engine(f"sqlite:///{self.db_path}", echo=False)
        Base.metadata.create_all(self.engine)
        self._logger = logging.getLogger(f"{__name__}.{type(self).__name__}")

    def replace_snapshot(self, schools: Iterable[SchoolRecord]) -> int:
        """Delete every stored school and insert *schools* in one transaction."""
        rows = [SchoolRow(**school.model_dump(mode="json", include=set(_RECORD_COLUMNS))) for school in schools]

        with Session(self.engine) as session, session.begin():
            session.execute(delete(SchoolRow))
            session.add_all(rows)

        self._logger.info("Staged %d schools in %s", len(rows), self.db_path)
        return len(rows)

    def load_schools(self) -> list[SchoolRecord]:
        """Return the snapshot ordered by name then URN, with ids 1..n."""
        with Session(self.engine) as session:
            rows = session.scalars(select(SchoolRow).order_by(SchoolRow.name, SchoolRow.urn)).all()
            return [
                SchoolRecord(id=index, **{column: getattr(row, column) for column in _RECORD_COLUMNS})
                for index, row in enumerate(rows, start=1)
            ]

    def record_run(
        self,
        mode: str,
        started_at: datetime.datetime,
        input_source: str,
        record_count: int,
        source_summary: dict | None = None,
        status: str = "ok",
        error: str | None = None,
    ) -> PipelineRun:
        """Append a row to the pipeline run log."""
        run = PipelineRun(
            mode=mode,
            started_at=started_at,
            finished_at=datetime.datetime.now(),
            input_source=input_source,
            record_count=record_count,
            source_summary=json.dumps(source_summary, sort_keys=True) if source_summary is not None else None,
            status=status,
            error=error,
        )
        with Session(self.engine, expire_on_commit=False) as session, session.begin():
            session.add(run)
        return run

    def runs(self) -> list[PipelineRun]:
        with Session(self.engine, expire_on_commit=False) as session:
            return list(session.scalars(select(PipelineRun).order_by(PipelineRun.id)).all())
