"""Real-data source used by the enrichment orchestrator.

:class:`RealDataSource` is the seam between the orchestrator and the network:
anything that can answer the three ``fetch_*`` coroutines can be plugged in.
:class:`AgentSource` is the production implementation backed by the agents.
"""

from __future__ import annotations

import logging
from typing import Protocol

import httpx

from schoolter.agents.base_agent import USER_AGENT
from schoolter.agents.ofsted import OfstedAgent
from schoolter.agents.performance import PerformanceAgent
from schoolter.agents.website import WebsiteAgent
from schoolter.config import Settings, get_settings
from schoolter.schemas.facts import ContactFacts, OfstedFacts, PerformanceFacts
from schoolter.schemas.school import SchoolRecord

logger = logging.getLogger(__name__)


class RealDataSource(Protocol):
    """Best-effort provider of real facts for a school.

    Each coroutine returns ``None`` when nothing usable was found and may
    raise on network failure; callers treat both as "use synthetic data".
    """

    async def fetch_ofsted(self, school: SchoolRecord) -> OfstedFacts | None: ...

    async def fetch_performance(self, school: SchoolRecord) -> PerformanceFacts | None: ...

    async def fetch_contact(self, school: SchoolRecord) -> ContactFacts | None: ...


class AgentSource:
    """:class:`RealDataSource` backed by the Ofsted, performance and website agents.

    Use as an async context manager so the shared HTTP client is closed::

        async with AgentSource() as source:
            facts = await source.fetch_ofsted(school)
    """

    def __init__(self, settings: Settings | None = None, client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings or get_settings()
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            timeout=self.settings.FETCH_TIMEOUT_SECONDS,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )
        common = {
            "client": self.client,
            "cache_dir": self.settings.CACHE_DIR,
            "delay": self.settings.FETCH_DELAY_SECONDS,
            "timeout": self.settings.FETCH_TIMEOUT_SECONDS,
        }
        self.ofsted = OfstedAgent(base_url=self.settings.OFSTED_REPORTS_BASE, **common)
        self.performance = PerformanceAgent(base_url=self.settings.PERFORMANCE_BASE, **common)
        self.website = WebsiteAgent(**common)

    async def fetch_ofsted(self, school: SchoolRecord) -> OfstedFacts | None:
        return await self.ofsted.fetch(school)

    async def fetch_performance(self, school: SchoolRecord) -> PerformanceFacts | None:
        return await self.performance.fetch(school)

    async def fetch_contact(self, school: SchoolRecord) -> ContactFacts | None:
        return await self.website.fetch(school)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self) -> AgentSource:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
