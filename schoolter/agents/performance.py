"""School performance tables agent.

Reads the headline measures (KS2 combined expected standard, Attainment 8,
Progress 8) from a school's page on the DfE performance tables service.
"""

from __future__ import annotations

import logging
import re

from bs4 import BeautifulSoup

from schoolter.agents.base_agent import BaseAgent
from schoolter.schemas.facts import PerformanceFacts
from schoolter.schemas.school import SchoolRecord

logger = logging.getLogger(__name__)

_DEFAULT_BASE = "https://www.compare-school-performance.service.gov.uk"

_NUMBER = r"(-?\d+(?:\.\d+)?)"

_KS2_COMBINED_PATTERN = re.compile(
    r"expected standard in reading, writing and maths\D{0,40}?" + _NUMBER + r"\s*%",
    re.IGNORECASE,
)
_ATTAINMENT8_PATTERN = re.compile(r"attainment 8 score\D{0,20}?" + _NUMBER, re.IGNORECASE)
_PROGRESS8_PATTERN = re.compile(r"progress 8 score\D{0,20}?" + _NUMBER, re.IGNORECASE)


def _first_number(pattern: re.Pattern[str], text: str) -> float | None:
    match = pattern.search(text)
    if match is None:
        return None
    return float(match.group(1))


class PerformanceAgent(BaseAgent):
    """Collect headline performance measures for a school by URN."""

    def __init__(self, base_url: str = _DEFAULT_BASE, **kwargs) -> None:
        super().__init__(**kwargs)
        self.base_url = base_url.rstrip("/")

    def school_url(self, urn: str) -> str:
        return f"{self.base_url}/school/{urn}"

    async def fetch(self, school: SchoolRecord) -> PerformanceFacts | None:
        html = await self.fetch_page(self.school_url(school.urn))
        facts = self.parse_measures(self.parse_html(html))
        if facts.is_empty():
            return None
        return facts

    def parse_measures(self, soup: BeautifulSoup) -> PerformanceFacts:
        """Pull the headline measures out of the page text.

        Values outside their valid ranges are discarded rather than clamped.
        """
        text = self.page_text(soup)

        combined = _first_number(_KS2_COMBINED_PATTERN, text)
        if combined is not None and not 0 <= combined <= 100:
            combined = None
        attainment8 = _first_number(_ATTAINMENT8_PATTERN, text)
        if attainment8 is not None and not 0 <= attainment8 <= 90:
            attainment8 = None
        progress8 = _first_number(_PROGRESS8_PATTERN, text)
        if progress8 is not None and not -3 <= progress8 <= 3:
            progress8 = None

        return PerformanceFacts(
            ks2_combined_expected=round(combined) if combined is not None else None,
            attainment8=attainment8,
            progress8=progress8,
        )
