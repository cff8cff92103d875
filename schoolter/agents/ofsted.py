"""Ofsted report-page agent.

Fetches a school's provider page on the Ofsted reports site and extracts the
headline judgement and the date of the latest inspection.  Anything that
cannot be read yields ``None`` and the synthetic history is kept.
"""

from __future__ import annotations

import logging
import re
from datetime import date, datetime

from bs4 import BeautifulSoup

from schoolter.agents.base_agent import BaseAgent
from schoolter.schemas.facts import OfstedFacts
from schoolter.schemas.school import SchoolRecord

logger = logging.getLogger(__name__)

_DEFAULT_BASE = "https://reports.ofsted.gov.uk"

_DATE_FORMATS = ("%d %B %Y", "%d %b %Y", "%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y")

_DATE = r"(\d{1,2} [A-Z][a-z]+ \d{4}|\d{4}-\d{2}-\d{2}|\d{1,2}/\d{1,2}/\d{4})"
_DATE_PATTERN = re.compile(rf"\b{_DATE}\b")
_INSPECTION_DATE_PATTERN = re.compile(
    rf"(?:inspection date|date of inspection|inspected on|latest inspection)[:\s]*{_DATE}",
    re.IGNORECASE,
)
_JUDGEMENT_PATTERN = re.compile(
    r"(?:overall effectiveness|overall judgement|rating)[:\s]*"
    r"(outstanding|good|requires improvement|inadequate)",
    re.IGNORECASE,
)

# (grade, keywords, rating); first match wins
_RATING_KEYS = (
    ("1", ("outstanding",), "Outstanding"),
    ("2", ("good",), "Good"),
    ("3", ("improvement",), "Requires Improvement"),
    ("4", ("inadequate", "serious weaknesses"), "Inadequate"),
)


def normalize_rating(rating_raw: str) -> str | None:
    """Map a raw judgement (text or 1-4 grade) onto the standard ratings."""
    raw = rating_raw.strip().lower()
    for grade, keywords, rating in _RATING_KEYS:
        if raw == grade or any(keyword in raw for keyword in keywords):
            return rating
    return None


def parse_date(date_str: str) -> date | None:
    """Parse a date in any of the formats the report pages use."""
    value = date_str.strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            pass
    logger.debug("Unrecognised date %r", value)
    return None


class OfstedAgent(BaseAgent):
    """Read the current Ofsted judgement for a school from its report page.

    Parameters
    ----------
    base_url:
        Root of the Ofsted reports site.
    **kwargs:
        Passed through to :class:`BaseAgent`.
    """

    def __init__(self, base_url: str = _DEFAULT_BASE, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    def report_url(self, urn: str) -> str:
        return f"{self.base_url}/provider/21/{urn}"

    async def fetch(self, school: SchoolRecord) -> OfstedFacts | None:
        url = self.report_url(school.urn)
        html = await self.fetch_page(url)
        facts = self.parse_report(self.parse_html(html))
        if facts is None:
            self._logger.debug("No judgement found on %s", url)
            return None
        return facts.model_copy(update={"report_url": url})

    def parse_report(self, soup: BeautifulSoup) -> OfstedFacts | None:
        """Extract the judgement and inspection date from a report page.

        Strategy 1 looks for an element whose class mentions ``rating`` or
        ``judgement``; strategy 2 falls back to a labelled phrase in the text.
        """
        rating: str | None = None
        for elem in soup.find_all(class_=re.compile(r"rating|judgement|grade", re.IGNORECASE)):
            rating = normalize_rating(elem.get_text(" ", strip=True))
            if rating:
                break

        text = self.page_text(soup)
        if rating is None:
            match = _JUDGEMENT_PATTERN.search(text)
            if match:
                rating = normalize_rating(match.group(1))
        if rating is None:
            return None

        inspection_date: date | None = None
        time_tag = soup.find("time", attrs={"datetime": True})
        if time_tag is not None:
            inspection_date = parse_date(str(time_tag["datetime"])[:10])
        if inspection_date is None:
            match = _INSPECTION_DATE_PATTERN.search(text) or _DATE_PATTERN.search(text)
            if match:
                inspection_date = parse_date(match.group(1))

        return OfstedFacts(rating=rating, inspection_date=inspection_date)
