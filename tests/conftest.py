"""
Shared pytest fixtures for citation auditor tests.
"""

import pytest
from typing import Any, Callable, Dict, List, Optional

from citation_auditor import fetch_url
from citation_auditor.config import Settings
from citation_auditor.models import (
    CitationResolution,
    ExtractedCitation,
    ResolutionStatus,
    ResolvedCandidate,
    VerifiedCitation,
)


class FakeResponse:
    """Stand-in for requests.Response with the attributes the code reads."""

    def __init__(
        self,
        text: str = "",
        status_code: int = 200,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.text = text
        self.content = text.encode("utf-8")
        self.status_code = status_code
        self.headers = headers or {"Content-Type": "text/html; charset=utf-8"}


class FakeHttpGet:
    """
    Records calls and answers from a {url_prefix: response} table.

    A response may be an exception instance, which is raised instead.
    Unknown URLs get a 404.
    """

    def __init__(self, routes: Dict[str, Any]):
        self.routes = routes
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, url: str, **kwargs: Any) -> FakeResponse:
        self.calls.append({"url": url, **kwargs})
        for prefix, response in self.routes.items():
            if url.startswith(prefix):
                if isinstance(response, Exception):
                    raise response
                return response
        return FakeResponse("", status_code=404)

    @property
    def urls(self) -> List[str]:
        return [c["url"] for c in self.calls]


@pytest.fixture
def fast_settings() -> Settings:
    """Settings with rate limiting disabled."""
    return Settings(timeout_sec=5, rate_limit_ms=0)


@pytest.fixture(autouse=True)
def reset_rate_limiter():
    """Clear per-source rate limiter state between tests."""
    fetch_url._last_fetch_by_source.clear()
    yield
    fetch_url._last_fetch_by_source.clear()


@pytest.fixture
def fake_http_get() -> Callable[[Dict[str, Any]], FakeHttpGet]:
    return FakeHttpGet


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def sample_bailii_html() -> str:
    """
    Sample BAILII HTML judgment, long enough to pass the content checks.

    Returns:
        str: HTML content
    """
    paragraphs = "\n".join(
        f"<p>[{i}] The appellant contends that the court below erred. "
        f"The respondent says the judgment should stand. Held: appeal dismissed.</p>"
        for i in range(1, 40)
    )
    return f"""
    <html>
    <head><title>Patel v Mirza [2016] UKSC 42 (20 July 2016)</title></head>
    <body>
    <h1>Patel v Mirza</h1>
    <p><b>[2016] UKSC 42</b></p>
    <p><b>Before: Lord Neuberger, Lady Hale, Lord Toulson</b></p>
    <p>JUDGMENT</p>
    {paragraphs}
    </body>
    </html>
    """


@pytest.fixture
def sample_fcl_html() -> str:
    body = "<p>Judgment of the Court. The claimant appeals.</p>\n" * 150
    return f"<html><head><title>Patel v Mirza - Find Case Law</title></head><body>{body}</body></html>"


@pytest.fixture
def sample_atom_feed() -> str:
    return """<?xml version="1.0" encoding="utf-8"?>
<feed xmlns="http://www.w3.org/2005/Atom" xmlns:tna="https://caselaw.nationalarchives.gov.uk/akn">
  <title>Find Case Law search</title>
  <entry>
    <title>Clegg v Olle Andersson (t/a Nordic Marine)</title>
    <id>https://caselaw.nationalarchives.gov.uk/ewca/civ/2003/320</id>
    <tna:uri>ewca/civ/2003/320</tna:uri>
    <tna:identifier type="ukncn">[2003] EWCA Civ 320</tna:identifier>
    <link rel="alternate" href="https://caselaw.nationalarchives.gov.uk/ewca/civ/2003/320"/>
    <link rel="alternate" type="application/akn+xml" href="https://caselaw.nationalarchives.gov.uk/ewca/civ/2003/320/data.xml"/>
    <updated>2023-05-01T10:00:00Z</updated>
  </entry>
  <entry>
    <title>Andersson v Clegg</title>
    <id>https://caselaw.nationalarchives.gov.uk/ewhc/qb/2010/77</id>
    <tna:uri>ewhc/qb/2010/77</tna:uri>
    <link rel="alternate" href="https://caselaw.nationalarchives.gov.uk/ewhc/qb/2010/77"/>
  </entry>
</feed>
"""


@pytest.fixture
def sample_bailii_search_html() -> str:
    """BAILII lucy_search_1.cgi results page with two judgments."""
    return """
    <html>
    <body>
    <p>Total results: 2</p>
    <ol>
    <li><a href="/ew/cases/EWCA/Civ/2003/320.html">Clegg v Olle Andersson (t/a Nordic Marine) [2003] EWCA Civ 320 (14 March 2003)</a></li>
    <li><a href="/ew/cases/EWHC/QB/2010/77.html">Andersson v Clegg [2010] EWHC 77 (QB)</a></li>
    </ol>
    <a href="/ew/cases/EWHC/QB/2010/77.html">next</a>
    <a href="/form/search.html">Search again</a>
    </body>
    </html>
    """


@pytest.fixture
def sample_extracted() -> List[ExtractedCitation]:
    """Five extracted citations, as produced from a skeleton argument."""
    return [
        ExtractedCitation(citation="[2016] UKSC 42", case_name="Patel v Mirza", is_neutral=True),
        ExtractedCitation(citation="[2003] EWCA Civ 320", case_name="Clegg v Olle Andersson", is_neutral=True),
        ExtractedCitation(citation="[1932] AC 562", case_name="Donoghue v Stevenson", is_neutral=False),
        ExtractedCitation(citation="[2024] UKSC 999", case_name="Imaginary v Fabricated", is_neutral=True),
        ExtractedCitation(citation="[2005] 1 WLR 1681", case_name=None, is_neutral=False),
    ]


@pytest.fixture
def sample_verified(sample_extracted) -> List[VerifiedCitation]:
    return [VerifiedCitation.from_extracted(c) for c in sample_extracted]


def make_resolution(citation: str, case_name: Optional[str] = None, found: bool = True) -> CitationResolution:
    """Build a resolver result for tests."""
    if not found:
        return CitationResolution(
            citation=citation,
            case_name=case_name,
            status=ResolutionStatus.UNRESOLVABLE,
            attempts_log=["Strategy 4: FCL Atom search", "  -> No FCL results"],
        )
    slug = "".join(ch for ch in citation if ch.isalnum()).lower()
    return CitationResolution(
        citation=citation,
        case_name=case_name,
        status=ResolutionStatus.RESOLVED,
        candidates=[
            ResolvedCandidate(
                url=f"https://www.bailii.org/test/{slug}.html",
                source="bailii",
                confidence=0.95,
                title=case_name,
                resolution_method="neutral_citation_bailii",
            )
        ],
        attempts_log=["Strategy 1: Neutral citation matched"],
    )


class ScriptedResolver:
    """
    Resolver double: resolves everything except citations listed as
    missing (unresolvable) or failing (raise the given exception).
    """

    def __init__(
        self,
        missing: Optional[List[str]] = None,
        failing: Optional[Dict[str, Exception]] = None,
    ):
        self.missing = set(missing or [])
        self.failing = failing or {}
        self.calls: List[tuple] = []

    def __call__(self, citation: str, case_name: Optional[str]) -> CitationResolution:
        self.calls.append((citation, case_name))
        if citation in self.failing:
            raise self.failing[citation]
        return make_resolution(citation, case_name, found=citation not in self.missing)


@pytest.fixture
def scripted_resolver():
    return ScriptedResolver


@pytest.fixture
def resolution_factory():
    return make_resolution


@pytest.fixture(autouse=True)
def change_test_dir(request, monkeypatch):
    """
    Change to temp directory for all tests.
    Prevents tests from writing into the project directory.
    """
    if "no_change_dir" in request.keywords:
        return

    if "tmp_path" in request.fixturenames:
        monkeypatch.chdir(request.getfixturevalue("tmp_path"))


# Markers for test organization
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests for individual functions")
    config.addinivalue_line(
        "markers", "integration: Integration tests for multiple components"
    )
    config.addinivalue_line("markers", "slow: Slow tests (network, large files)")
    config.addinivalue_line("markers", "no_change_dir: Don't change to temp directory")
