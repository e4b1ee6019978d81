"""
Search BAILII's lucy_search_1.cgi for judgments.

Two modes are used by the resolver:
    - Title search (querytitle=...) by distinctive party words
    - Full-text boolean search (query=a AND b ...), the widest net

Both return result links as {"url", "title"} dicts, at most `limit` of them.
"""

import logging
import re
from typing import Dict, List, Optional
from urllib.parse import urlencode

import requests
from bs4 import BeautifulSoup

from .config import Settings
from .fetch_url import HttpGet, raise_for_unavailable, rate_limit_wait, request_headers

logger = logging.getLogger(__name__)

BAILII_BASE_URL = "https://www.bailii.org"
BAILII_SEARCH_URL = f"{BAILII_BASE_URL}/cgi-bin/lucy_search_1.cgi"

# Jurisdictions searched (UK, England & Wales, Scotland, NI, Ireland)
TITLE_MASK_PATH = "uk/cases ew/cases scot/cases nie/cases ie/cases"
FULLTEXT_MASK_PATH = "uk/cases ew/cases scot/cases nie/cases"

CASE_LINK_PATTERN = re.compile(r"^/[a-z]{2}/cases/.+\.html$")
TOTAL_RESULTS_PATTERN = re.compile(r"Total results:\s*(\d+)")

NAVIGATION_WORDS = frozenset(["next", "previous", "back", "home"])

SearchResult = Dict[str, Optional[str]]


def title_search_url(terms: List[str]) -> str:
    return f"{BAILII_SEARCH_URL}?" + urlencode(
        {"querytitle": " ".join(terms), "mask_path": TITLE_MASK_PATH}
    )


def fulltext_search_url(terms: List[str]) -> str:
    return f"{BAILII_SEARCH_URL}?" + urlencode(
        {
            "query": " AND ".join(terms),
            "mask_path": FULLTEXT_MASK_PATH,
            "method": "boolean",
            "sort": "rank",
        }
    )


def _fetch_results_page(
    url: str, http_get: Optional[HttpGet], settings: Optional[Settings]
) -> Optional[str]:
    if http_get is None:
        http_get = requests.get
    if settings is None:
        settings = Settings.from_env()

    rate_limit_wait(url, settings.rate_limit_ms)
    response = http_get(url, headers=request_headers(settings), timeout=settings.timeout_sec)

    raise_for_unavailable(response, url)
    if response.status_code != 200:
        logger.warning("BAILII search returned HTTP %s: %s", response.status_code, url)
        return None
    return response.text or ""


def parse_case_links(html: str, limit: int = 5, titles: bool = True) -> List[SearchResult]:
    """
    Pull judgment links out of a BAILII results page.

    Links whose text looks like navigation ("next", "back", or under five
    characters) are skipped. When no link has usable text, the bare case
    links are returned with no title.

    Args:
        html: Results page body
        limit: Maximum number of results
        titles: False to return every case link, untitled

    Returns:
        Unique results in page order
    """
    soup = BeautifulSoup(html, "lxml")

    titled: List[SearchResult] = []
    bare: List[SearchResult] = []
    seen = set()

    for anchor in soup.find_all("a", href=CASE_LINK_PATTERN):
        url = BAILII_BASE_URL + anchor["href"]
        if url in seen:
            continue
        seen.add(url)

        title = " ".join(anchor.get_text().split())
        bare.append({"url": url, "title": None})
        if len(title) >= 5 and title.lower() not in NAVIGATION_WORDS:
            titled.append({"url": url, "title": title})

    if not titles:
        return bare[:limit]
    return (titled or bare)[:limit]


def search_bailii_by_title(
    terms: List[str],
    limit: int = 5,
    http_get: Optional[HttpGet] = None,
    settings: Optional[Settings] = None,
) -> List[SearchResult]:
    """
    Search BAILII case titles for party-name words.

    Args:
        terms: Distinctive party-name words
        limit: Maximum number of results
        http_get: HTTP GET callable (default: requests.get)
        settings: Network settings (default: from environment)

    Returns:
        Results; empty when BAILII reports zero hits or answers non-200

    Raises:
        requests.RequestException: If the request fails or BAILII answers 5xx/429
    """
    if not terms:
        return []

    html = _fetch_results_page(title_search_url(terms), http_get, settings)
    if not html:
        return []

    total = TOTAL_RESULTS_PATTERN.search(html)
    if total is None or int(total.group(1)) == 0:
        return []

    return parse_case_links(html, limit)


def search_bailii_fulltext(
    terms: List[str],
    limit: int = 5,
    http_get: Optional[HttpGet] = None,
    settings: Optional[Settings] = None,
) -> List[SearchResult]:
    """
    Boolean AND search over the full text of BAILII judgments.

    Raises:
        requests.RequestException: If the request fails or BAILII answers 5xx/429
    """
    if not terms:
        return []

    html = _fetch_results_page(fulltext_search_url(terms), http_get, settings)
    if not html:
        return []

    return parse_case_links(html, limit, titles=False)
