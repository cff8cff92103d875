"""Tests for the real-data agents, driven through httpx.MockTransport."""

from __future__ import annotations

import datetime

import httpx
import pytest
from bs4 import BeautifulSoup

from schoolter.agents.ofsted import OfstedAgent, normalize_rating, parse_date
from schoolter.agents.performance import PerformanceAgent
from schoolter.agents.source import AgentSource
from schoolter.agents.website import WebsiteAgent

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

OFSTED_PAGE = """
<html><body>
  <h1>Bromley Primary School</h1>
  <div class="overall-rating">Good</div>
  <p>Latest inspection <time datetime="2022-05-10">10 May 2022</time></p>
</body></html>
"""

OFSTED_TEXT_PAGE = """
<html><body>
  <p>Overall effectiveness: Requires improvement</p>
  <p>Inspection date: 3 March 2021</p>
</body></html>
"""

PERFORMANCE_PAGE = """
<html><body>
  <p>Pupils meeting the expected standard in reading, writing and maths: 65%</p>
  <p>Attainment 8 score 52.3</p>
  <p>Progress 8 score: -0.21 (average)</p>
</body></html>
"""


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


def _html(body: str) -> httpx.Response:
    return httpx.Response(200, text=body, headers={"content-type": "text/html; charset=utf-8"})


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


class TestOfstedHelpers:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Outstanding", "Outstanding"),
            ("good", "Good"),
            ("Requires improvement", "Requires Improvement"),
            ("Serious Weaknesses", "Inadequate"),
            ("4", "Inadequate"),
            ("1", "Outstanding"),
            ("", None),
            ("Not yet inspected", None),
        ],
    )
    def test_normalize_rating(self, raw, expected):
        assert normalize_rating(raw) == expected

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("10 May 2022", datetime.date(2022, 5, 10)),
            ("3 Mar 2021", datetime.date(2021, 3, 3)),
            ("2020-01-31", datetime.date(2020, 1, 31)),
            ("31/01/2020", datetime.date(2020, 1, 31)),
            ("sometime", None),
        ],
    )
    def test_parse_date(self, raw, expected):
        assert parse_date(raw) == expected


# ---------------------------------------------------------------------------
# Ofsted agent
# ---------------------------------------------------------------------------


class TestOfstedAgent:
    @pytest.mark.asyncio
    async def test_rating_from_class_and_time_tag(self, bromley_primary):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return _html(OFSTED_PAGE)

        async with _client(handler) as client:
            agent = OfstedAgent(base_url="https://reports.test", client=client, delay=0, backoff=0)
            facts = await agent.fetch(bromley_primary)

        assert seen == ["/provider/21/101600"]
        assert facts.rating == "Good"
        assert facts.inspection_date == datetime.date(2022, 5, 10)
        assert facts.report_url == "https://reports.test/provider/21/101600"

    def test_text_fallback(self):
        agent = OfstedAgent(delay=0)
        facts = agent.parse_report(BeautifulSoup(OFSTED_TEXT_PAGE, "lxml"))
        assert facts.rating == "Requires Improvement"
        assert facts.inspection_date == datetime.date(2021, 3, 3)

    @pytest.mark.asyncio
    async def test_page_without_judgement(self, bromley_primary):
        async with _client(lambda request: _html("<html><body><p>Nothing here</p></body></html>")) as client:
            agent = OfstedAgent(client=client, delay=0, backoff=0)
            assert await agent.fetch(bromley_primary) is None

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried(self, bromley_primary):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(404)

        async with _client(handler) as client:
            agent = OfstedAgent(client=client, delay=0, backoff=0)
            with pytest.raises(httpx.HTTPStatusError):
                await agent.fetch(bromley_primary)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_server_error_exhausts_retries(self, bromley_primary):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        async with _client(handler) as client:
            agent = OfstedAgent(client=client, delay=0, backoff=0)
            with pytest.raises(RuntimeError):
                await agent.fetch(bromley_primary)
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_responses_are_cached(self, bromley_primary, tmp_path):
        calls = []

        def handler(request):
            calls.append(request)
            return _html(OFSTED_PAGE)

        async with _client(handler) as client:
            agent = OfstedAgent(client=client, cache_dir=str(tmp_path), delay=0, backoff=0)
            first = await agent.fetch(bromley_primary)
            second = await agent.fetch(bromley_primary)

        assert first == second
        assert len(calls) == 1


# ---------------------------------------------------------------------------
# Performance agent
# ---------------------------------------------------------------------------


class TestPerformanceAgent:
    def test_parse_measures(self):
        facts = PerformanceAgent(delay=0).parse_measures(BeautifulSoup(PERFORMANCE_PAGE, "lxml"))
        assert facts.ks2_combined_expected == 65
        assert facts.attainment8 == 52.3
        assert facts.progress8 == -0.21

    def test_out_of_range_values_are_dropped(self):
        page = "<p>Attainment 8 score 152.0</p><p>Progress 8 score 7.5</p>"
        facts = PerformanceAgent(delay=0).parse_measures(BeautifulSoup(page, "lxml"))
        assert facts.is_empty()

    @pytest.mark.asyncio
    async def test_fetch(self, bromley_primary):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return _html(PERFORMANCE_PAGE)

        async with _client(handler) as client:
            agent = PerformanceAgent(base_url="https://perf.test/", client=client, delay=0, backoff=0)
            facts = await agent.fetch(bromley_primary)

        assert seen == ["/school/101600"]
        assert facts.attainment8 == 52.3

    @pytest.mark.asyncio
    async def test_empty_page(self, bromley_primary):
        async with _client(lambda request: _html("<p>No data published</p>")) as client:
            agent = PerformanceAgent(client=client, delay=0, backoff=0)
            assert await agent.fetch(bromley_primary) is None


# ---------------------------------------------------------------------------
# Website agent
# ---------------------------------------------------------------------------


class TestWebsiteAgent:
    def test_links_win_over_text(self):
        page = """
        <p>Call 01322 999999 or write to info@example.org</p>
        <a href="tel:01322 223039">Phone</a>
        <a href="mailto:Office@dartford.sch.uk?subject=Hello">Email</a>
        <p>Headteacher: Mr John Blake.</p>
        """
        facts = WebsiteAgent(delay=0).parse_contact(BeautifulSoup(page, "lxml"))
        assert facts.phone == "01322 223039"
        assert facts.email == "office@dartford.sch.uk"
        assert facts.headteacher == "Mr John Blake"

    def test_text_fallback(self):
        page = "<p>Telephone: 020 8460 1234. Email admin@bromley.sch.uk.</p>"
        facts = WebsiteAgent(delay=0).parse_contact(BeautifulSoup(page, "lxml"))
        assert facts.phone == "020 8460 1234"
        assert facts.email == "admin@bromley.sch.uk"
        assert facts.headteacher is None

    @pytest.mark.asyncio
    async def test_no_website(self, bromley_primary):
        assert await WebsiteAgent(delay=0).fetch(bromley_primary) is None

    @pytest.mark.asyncio
    async def test_homepage_complete(self, make_school):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            return _html(
                '<a href="tel:020 8460 1234">t</a><a href="mailto:office@bps.sch.uk">e</a>'
                "<p>Headteacher: Mrs Jane Smith.</p>"
            )

        school = make_school(website="https://www.bps.sch.uk/")
        async with _client(handler) as client:
            facts = await WebsiteAgent(client=client, delay=0, backoff=0).fetch(school)

        assert seen == ["/"]
        assert facts.headteacher == "Mrs Jane Smith"

    @pytest.mark.asyncio
    async def test_contact_pages_are_merged(self, make_school):
        seen = []

        def handler(request):
            seen.append(request.url.path)
            if request.url.path == "/":
                return _html('<a href="tel:020 8460 1234">Call us</a>')
            if request.url.path == "/contact":
                return httpx.Response(404)
            if request.url.path == "/contact-us":
                return _html('<a href="mailto:office@bps.sch.uk">e</a><p>Principal: Dr Alan Jones.</p>')
            raise AssertionError(f"unexpected path {request.url.path}")

        school = make_school(website="https://www.bps.sch.uk")
        async with _client(handler) as client:
            facts = await WebsiteAgent(client=client, delay=0, backoff=0).fetch(school)

        assert seen == ["/", "/contact", "/contact-us"]
        assert facts.phone == "020 8460 1234"
        assert facts.email == "office@bps.sch.uk"
        assert facts.headteacher == "Dr Alan Jones"


# ---------------------------------------------------------------------------
# Agent-backed source
# ---------------------------------------------------------------------------


class TestAgentSource:
    @pytest.mark.asyncio
    async def test_routes_to_configured_bases(self, settings, bromley_primary):
        settings = settings.model_copy(
            update={"OFSTED_REPORTS_BASE": "https://reports.test", "PERFORMANCE_BASE": "https://perf.test"}
        )

        def handler(request):
            if request.url.host == "reports.test":
                return _html(OFSTED_PAGE)
            if request.url.host == "perf.test":
                return _html(PERFORMANCE_PAGE)
            return httpx.Response(404)

        async with _client(handler) as client:
            async with AgentSource(settings, client=client) as source:
                ofsted = await source.fetch_ofsted(bromley_primary)
                performance = await source.fetch_performance(bromley_primary)
                contact = await source.fetch_contact(bromley_primary)
            assert not client.is_closed

        assert ofsted.rating == "Good"
        assert performance.ks2_combined_expected == 65
        assert contact is None
