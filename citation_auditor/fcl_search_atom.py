"""
Search the Find Case Law Atom feed for judgments.

The feed is used as a fallback when a citation cannot be turned into a
judgment URL directly, e.g. traditional law-report citations.
"""

import logging
from typing import Any, Dict, List, Optional
import xml.etree.ElementTree as ET

import requests

from .config import Settings
from .fetch_url import HttpGet, raise_for_unavailable, rate_limit_wait, request_headers


logger = logging.getLogger(__name__)

FCL_BASE_URL = "https://caselaw.nationalarchives.gov.uk"
FCL_ATOM_URL = f"{FCL_BASE_URL}/atom.xml"

ATOM = "{http://www.w3.org/2005/Atom}"
TNA = "{https://caselaw.nationalarchives.gov.uk/akn}"


def _text(element: Optional[ET.Element]) -> Optional[str]:
    if element is None or not element.text:
        return None
    return " ".join(element.text.split()) or None


def _link_kind(link: ET.Element) -> Optional[str]:
    content_type = link.get("type", "text/html")
    if "akn+xml" in content_type:
        return "xml"
    if "pdf" in content_type:
        return "pdf"
    if link.get("rel", "alternate") == "alternate":
        return "html"
    return None


def parse_atom_entry(entry: ET.Element) -> Dict[str, Any]:
    """
    Reduce an Atom <entry> to what resolution needs.

    Returns:
        dict with "title", "uri" (e.g. "uksc/2020/5") and "links" keyed by
        html / xml / pdf
    """
    links: Dict[str, str] = {}
    for link in entry.iter(f"{ATOM}link"):
        kind = _link_kind(link)
        if kind and link.get("href"):
            links.setdefault(kind, link.get("href"))

    # Some entries only carry the judgment URL as their <id>
    entry_id = _text(entry.find(f"{ATOM}id"))
    if "html" not in links and entry_id and entry_id.startswith(FCL_BASE_URL):
        links["html"] = entry_id

    return {
        "title": _text(entry.find(f"{ATOM}title")),
        "uri": _text(entry.find(f"{TNA}uri")),
        "links": links,
    }


def entry_url(entry: Dict[str, Any]) -> Optional[str]:
    """Best judgment URL for a parsed entry: HTML link first, then the URI."""
    html = entry["links"].get("html")
    if html:
        return html
    if entry.get("uri"):
        return f"{FCL_BASE_URL}/{entry['uri'].lstrip('/')}"
    return None


def search_fcl_atom(
    query: str,
    per_page: int = 5,
    http_get: Optional[HttpGet] = None,
    settings: Optional[Settings] = None,
) -> List[Dict[str, Any]]:
    """
    Search Find Case Law Atom feed.

    Args:
        query: Full-text search query
        per_page: Results per page (capped at 50)
        http_get: HTTP GET callable (default: requests.get)
        settings: Network settings (default: from environment)

    Returns:
        Parsed entries; empty when the feed answers with another non-200 status

    Raises:
        requests.RequestException: If the request fails or the feed answers 5xx/429
        xml.etree.ElementTree.ParseError: If the feed is not valid XML
    """
    if http_get is None:
        http_get = requests.get
    if settings is None:
        settings = Settings.from_env()

    params = {
        "query": query,
        "order": "-relevance",
        "per_page": min(per_page, 50),
    }

    rate_limit_wait(FCL_ATOM_URL, settings.rate_limit_ms)
    response = http_get(
        FCL_ATOM_URL,
        params=params,
        headers=request_headers(settings),
        timeout=settings.timeout_sec,
    )

    raise_for_unavailable(response, FCL_ATOM_URL)
    if response.status_code != 200:
        logger.warning("FCL Atom search returned HTTP %s for %r", response.status_code, query)
        return []

    root = ET.fromstring(response.content)
    return [parse_atom_entry(e) for e in root.findall(f"{ATOM}entry")][:per_page]
