"""School website agent.

Scrapes a school's own website for a phone number, a contact email address
and the headteacher's name.  Tries the homepage first and then a handful of
common contact page paths.
"""

from __future__ import annotations

import logging
import re

import httpx
from bs4 import BeautifulSoup

from schoolter.agents.base_agent import BaseAgent
from schoolter.schemas.facts import ContactFacts
from schoolter.schemas.school import SchoolRecord

logger = logging.getLogger(__name__)

_CONTACT_PATHS = ("/contact", "/contact-us", "/contact-details")

_PHONE_PATTERN = re.compile(r"\b(0\d{2,4}[\s-]?\d{3,4}[\s-]?\d{3,4})\b")
_EMAIL_PATTERN = re.compile(r"\b([A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[a-z]{2,})\b")
_HEAD_PATTERN = re.compile(
    r"(?i:head ?teacher|headmistress|headmaster|principal|head of school)\s*[:\-–]?\s*"
    r"((?:Mr|Mrs|Ms|Miss|Dr)\.? [A-Z][a-z]+(?: [A-Z][A-Za-z'-]+){1,2})"
)


def _normalise_phone(raw: str) -> str:
    return re.sub(r"[\s-]+", " ", raw.strip())


class WebsiteAgent(BaseAgent):
    """Collect contact details from a school's website."""

    async def fetch(self, school: SchoolRecord) -> ContactFacts | None:
        if not school.website:
            return None

        root = school.website.rstrip("/")
        facts = await self._try_extract_from_url(root)
        for path in _CONTACT_PATHS:
            if facts is not None and facts.phone and facts.email and facts.headteacher:
                break
            found = await self._try_extract_from_url(root + path)
            facts = self._merge(facts, found)

        if facts is None or facts.is_empty():
            return None
        return facts

    async def _try_extract_from_url(self, url: str) -> ContactFacts | None:
        """Fetch and parse one page; a missing contact page is not an error."""
        try:
            html = await self.fetch_page(url)
        except httpx.HTTPStatusError as exc:
            self._logger.debug("No page at %s (%d)", url, exc.response.status_code)
            return None
        return self.parse_contact(self.parse_html(html))

    @staticmethod
    def _merge(current: ContactFacts | None, found: ContactFacts | None) -> ContactFacts | None:
        if current is None:
            return found
        if found is None:
            return current
        return ContactFacts(
            phone=current.phone or found.phone,
            email=current.email or found.email,
            headteacher=current.headteacher or found.headteacher,
        )

    def parse_contact(self, soup: BeautifulSoup) -> ContactFacts:
        """Extract phone, email and headteacher from a parsed page.

        ``tel:`` and ``mailto:`` links win over free-text matches.
        """
        phone: str | None = None
        email: str | None = None

        tel = soup.find("a", href=re.compile(r"^tel:", re.IGNORECASE))
        if tel is not None:
            phone = _normalise_phone(str(tel["href"])[4:].replace("+44", "0"))
        mailto = soup.find("a", href=re.compile(r"^mailto:", re.IGNORECASE))
        if mailto is not None:
            email = str(mailto["href"])[7:].split("?", 1)[0].strip().lower() or None

        text = BaseAgent.page_text(soup)
        if phone is None:
            match = _PHONE_PATTERN.search(text)
            if match:
                phone = _normalise_phone(match.group(1))
        if email is None:
            match = _EMAIL_PATTERN.search(text)
            if match:
                email = match.group(1).lower()

        headteacher: str | None = None
        match = _HEAD_PATTERN.search(text)
        if match:
            headteacher = match.group(1).strip()

        return ContactFacts(phone=phone, email=email, headteacher=headteacher)
