"""Facts returned by real-data sources.

Every field is optional: a source fills in what it could find and the
orchestrator overlays only the non-empty values onto the synthetic record.
"""

from __future__ import annotations

import datetime

from pydantic import BaseModel


class OfstedFacts(BaseModel):
    rating: str
    inspection_date: datetime.date | None = None
    report_url: str | None = None


class PerformanceFacts(BaseModel):
    ks2_combined_expected: int | None = None
    attainment8: float | None = None
    progress8: float | None = None

    def is_empty(self) -> bool:
        return self.ks2_combined_expected is None and self.attainment8 is None and self.progress8 is None


class ContactFacts(BaseModel):
    phone: str | None = None
    email: str | None = None
    headteacher: str | None = None

    def is_empty(self) -> bool:
        return self.phone is None and self.email is None and self.headteacher is None
