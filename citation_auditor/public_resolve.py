"""
Resolve citation strings to candidate judgment URLs (BAILII and Find Case Law).

Resolution Strategy:
    1. Neutral citation -> construct BAILII and FCL URLs, check they exist
    2. BAILII citation finder (answers with a redirect when it knows a citation)
    3. BAILII title search by party names
    4. Find Case Law Atom search by party names (or citation text)
    5. BAILII full-text search with the citation year, the widest net
    Finally candidates are re-ranked: URLs with the citation year are
    boosted, URLs with another year penalised.

A lookup that could not complete (network failure, 5xx, throttling) raises ResolutionError
instead of returning "unresolvable": a failed lookup says nothing about
whether the citation is real.

Any callable with the CitationResolver signature can stand in for
resolve_citation, e.g. a backend with access to a subscription database.
"""

import logging
import re
import xml.etree.ElementTree as ET
from typing import Callable, List, Optional, Tuple
from urllib.parse import quote

import requests

from .bailii_search import BAILII_BASE_URL, search_bailii_by_title, search_bailii_fulltext
from .config import Settings
from .fcl_search_atom import FCL_BASE_URL, entry_url, search_fcl_atom
from .fetch_url import HttpGet, check_url_exists, fetch_redirect_location
from .models import CitationResolution, ResolutionStatus, ResolvedCandidate

logger = logging.getLogger(__name__)


CitationResolver = Callable[[str, Optional[str]], CitationResolution]


class ResolutionError(Exception):
    """The lookup itself failed (transport error, timeout, bad response)."""


BAILII_FINDER_URL = f"{BAILII_BASE_URL}/cgi-bin/find_by_citation.cgi"

NEUTRAL_CITATION_PATTERN = re.compile(
    r"\[(\d{4})\]\s+"
    r"(UKSC|UKHL|UKPC|EWCA\s+Civ|EWCA\s+Crim|EWHC|EWCOP|EWFC|UKUT|UKFTT|UKEAT)\s+"
    r"(\d+)(?:\s*\(([A-Za-z]+)\))?",
    re.IGNORECASE,
)

# Court code -> (BAILII path, FCL path)
COURT_PATHS = {
    "UKSC": ("uk/cases/UKSC", "uksc"),
    "UKHL": ("uk/cases/UKHL", "ukhl"),
    "UKPC": ("uk/cases/UKPC", "ukpc"),
    "EWCA CIV": ("ew/cases/EWCA/Civ", "ewca/civ"),
    "EWCA CRIM": ("ew/cases/EWCA/Crim", "ewca/crim"),
    "EWHC": ("ew/cases/EWHC", "ewhc"),
    "EWCOP": ("ew/cases/EWCOP", "ewcop"),
    "EWFC": ("ew/cases/EWFC", "ewfc"),
    "UKUT": ("uk/cases/UKUT", "ukut"),
    "UKFTT": ("uk/cases/UKFTT", "ukftt"),
    "UKEAT": ("uk/cases/UKEAT", "eat"),
}

# Canonical BAILII spelling of division suffixes
BAILII_DIVISIONS = {
    "admin": "Admin",
    "ch": "Ch",
    "comm": "Comm",
    "fam": "Fam",
    "kb": "KB",
    "qb": "QB",
    "tcc": "TCC",
    "pat": "Patents",
    "iac": "IAC",
    "lc": "LC",
    "aac": "AAC",
    "tc": "TC",
    "grc": "GRC",
}

SEARCH_STOP_WORDS = frozenset(
    [
        "v", "and", "the", "of", "for", "in", "on", "a", "an", "r", "re",
        "plc", "ltd", "limited", "inc", "llc", "llp", "council", "borough",
        "county", "city", "district", "secretary", "state", "home",
        "department", "commissioner", "others", "ors",
    ]
)

CONFIDENCE_NEUTRAL_BAILII = 0.95
CONFIDENCE_NEUTRAL_FCL = 0.90
CONFIDENCE_BAILII_FINDER = 0.95
CONFIDENCE_BAILII_TITLE = 0.80
CONFIDENCE_BAILII_TITLE_UNTITLED = 0.70
CONFIDENCE_FCL_SEARCH = 0.75
CONFIDENCE_BAILII_FULLTEXT = 0.60


def build_neutral_urls(citation: str) -> Optional[Tuple[str, str, str]]:
    """
    Construct BAILII and Find Case Law URLs for a neutral citation.

    Args:
        citation: Citation string, e.g. "[2023] EWHC 1234 (Ch)"

    Returns:
        Tuple of (court code, bailii_url, fcl_url), or None if not neutral
    """
    match = NEUTRAL_CITATION_PATTERN.search(citation)
    if not match:
        return None

    year, code_raw, num, division = match.groups()
    code = " ".join(code_raw.upper().split())
    bailii_path, fcl_path = COURT_PATHS[code]

    if division:
        bailii_division = BAILII_DIVISIONS.get(division.lower(), division)
        bailii_path = f"{bailii_path}/{bailii_division}"
        fcl_path = f"{fcl_path}/{division.lower()}"

    bailii_url = f"{BAILII_BASE_URL}/{bailii_path}/{year}/{num}.html"
    fcl_url = f"{FCL_BASE_URL}/{fcl_path}/{year}/{num}"
    return code, bailii_url, fcl_url


def case_name_from_citation(citation: str) -> Optional[str]:
    """Case name written in front of the bracketed year, if any."""
    match = re.match(r"^(.*?)\s*\[\d{4}\]", citation.strip())
    if match:
        name = match.group(1).strip()
        if len(name) > 2:
            return name
    return None


def extract_year(citation: str) -> Optional[str]:
    match = re.search(r"\[(\d{4})\]", citation)
    return match.group(1) if match else None


def extract_party_search_terms(name: str) -> List[str]:
    """
    Reduce a case name to distinctive search words.

    Args:
        name: Case name, e.g. "Secretary of State for the Home Department v AF"

    Returns:
        Lowercase words of 3+ characters that are not stop words
    """
    words = re.split(r"[^0-9A-Za-z]+", name)
    return [
        w.lower()
        for w in words
        if len(w) >= 3 and w.lower() not in SEARCH_STOP_WORDS
    ]


def boost_year_matching_candidates(
    candidates: List[ResolvedCandidate], citation: str
) -> List[ResolvedCandidate]:
    """
    Re-rank candidates by whether their URL carries the citation year.

    Args:
        candidates: Candidates to re-rank
        citation: Citation the candidates were found for

    Returns:
        New list sorted by confidence, highest first
    """
    year = extract_year(citation)
    if year is None:
        return list(candidates)

    ranked = []
    for candidate in candidates:
        confidence = candidate.confidence
        if f"/{year}/" in candidate.url:
            confidence = min(confidence + 0.20, 0.95)
        else:
            url_year = re.search(r"/(\d{4})/", candidate.url)
            if url_year and url_year.group(1) != year:
                confidence *= 0.3
        ranked.append(candidate.model_copy(update={"confidence": round(confidence, 4)}))

    ranked.sort(key=lambda c: c.confidence, reverse=True)
    return ranked


def _add_candidate(candidates: List[ResolvedCandidate], url: str, **fields) -> None:
    if not any(c.url == url for c in candidates):
        candidates.append(ResolvedCandidate(url=url, **fields))


def _resolve_offline(citation: str, case_name: Optional[str]) -> CitationResolution:
    attempts: List[str] = []
    candidates: List[ResolvedCandidate] = []

    neutral = build_neutral_urls(citation)
    if neutral:
        code, bailii_url, fcl_url = neutral
        candidates.append(
            ResolvedCandidate(
                url=bailii_url,
                source="bailii",
                confidence=CONFIDENCE_NEUTRAL_BAILII,
                resolution_method="deterministic_uri_construction",
            )
        )
        candidates.append(
            ResolvedCandidate(
                url=fcl_url,
                source="find_case_law",
                confidence=CONFIDENCE_NEUTRAL_FCL,
                resolution_method="deterministic_uri_construction",
            )
        )
        attempts.append(f"Deterministic URL construction ({code}), URLs not checked")
    else:
        attempts.append("No deterministic URL pattern for this citation (offline mode)")

    return CitationResolution(
        citation=citation,
        case_name=case_name,
        candidates=candidates,
        status=ResolutionStatus.RESOLVED if candidates else ResolutionStatus.UNRESOLVABLE,
        attempts_log=attempts,
    )


def resolve_citation(
    citation: str,
    case_name: Optional[str] = None,
    *,
    verify_urls: bool = True,
    http_get: Optional[HttpGet] = None,
    settings: Optional[Settings] = None,
) -> CitationResolution:
    """
    Resolve a citation to candidate judgment URLs.

    Args:
        citation: Normalised citation string
        case_name: Case name attributed during extraction (optional)
        verify_urls: Contact BAILII/FCL (default: True); False only builds
            deterministic URLs for neutral citations without checking them
        http_get: HTTP GET callable (default: requests.get)
        settings: Network settings (default: from environment)

    Returns:
        CitationResolution with ordered candidates and an attempts log

    Raises:
        ResolutionError: If no candidate was found and a lookup failed
    """
    name = case_name or case_name_from_citation(citation)

    if not verify_urls:
        return _resolve_offline(citation, name)

    if settings is None:
        settings = Settings.from_env()

    candidates: List[ResolvedCandidate] = []
    attempts: List[str] = []
    failures: List[str] = []

    def finish() -> CitationResolution:
        ranked = boost_year_matching_candidates(candidates, citation)
        if not ranked and failures:
            raise ResolutionError(
                f"Lookup failed for {citation}: " + "; ".join(failures)
            )
        status = ResolutionStatus.RESOLVED if ranked else ResolutionStatus.UNRESOLVABLE
        logger.info("Resolved %s -> %s (%d candidate(s))", citation, status.value, len(ranked))
        return CitationResolution(
            citation=citation,
            case_name=name,
            candidates=ranked,
            status=status,
            attempts_log=attempts,
        )

    # Strategy 1: neutral citation -> direct URLs
    neutral = build_neutral_urls(citation)
    if neutral:
        code, bailii_url, fcl_url = neutral
        attempts.append(f"Strategy 1: Neutral citation matched ({code})")

        for source, url, confidence, method in (
            ("bailii", bailii_url, CONFIDENCE_NEUTRAL_BAILII, "neutral_citation_bailii"),
            ("find_case_law", fcl_url, CONFIDENCE_NEUTRAL_FCL, "neutral_citation_fcl"),
        ):
            label = "BAILII" if source == "bailii" else "FCL"
            try:
                check = check_url_exists(url, http_get=http_get, settings=settings)
            except requests.RequestException as e:
                attempts.append(f"  -> {label} check failed: {e}")
                failures.append(f"{label} check: {e}")
                continue

            if check.exists:
                candidates.append(
                    ResolvedCandidate(
                        url=url,
                        source=source,
                        confidence=confidence,
                        title=check.title,
                        resolution_method=method,
                    )
                )
                attempts.append(f"  -> {label} URL verified: {url}")
            else:
                attempts.append(f"  -> {label} URL not found ({check.status_code}): {url}")

        if candidates:
            return finish()

    # Strategy 2: BAILII citation finder
    attempts.append("Strategy 2: BAILII citation finder")
    finder_url = f"{BAILII_FINDER_URL}?citation={quote(citation)}"
    try:
        location = fetch_redirect_location(finder_url, http_get=http_get, settings=settings)
    except requests.RequestException as e:
        attempts.append(f"  -> Citation finder failed: {e}")
        failures.append(f"BAILII citation finder: {e}")
    else:
        if location:
            attempts.append(f"  -> Found via redirect: {location}")
            candidates.append(
                ResolvedCandidate(
                    url=location,
                    source="bailii",
                    confidence=CONFIDENCE_BAILII_FINDER,
                    resolution_method="bailii_citation_finder",
                )
            )
            return finish()
        attempts.append("  -> No redirect (citation not recognised)")

    terms = extract_party_search_terms(name) if name else []

    # Strategy 3: BAILII title search
    if terms:
        attempts.append(f"Strategy 3: BAILII title search for: {' '.join(terms)}")
        try:
            results = search_bailii_by_title(
                terms, limit=settings.max_search_results, http_get=http_get, settings=settings
            )
        except requests.RequestException as e:
            attempts.append(f"  -> BAILII title search failed: {e}")
            failures.append(f"BAILII title search: {e}")
        else:
            for result in results:
                titled = result["title"] is not None
                _add_candidate(
                    candidates,
                    url=result["url"],
                    source="bailii",
                    confidence=CONFIDENCE_BAILII_TITLE if titled else CONFIDENCE_BAILII_TITLE_UNTITLED,
                    title=result["title"],
                    resolution_method="bailii_title_search",
                )
            if results:
                attempts.append(f"  -> Found {len(results)} result(s)")
                return finish()
            attempts.append("  -> No title search results")

    # Strategy 4: FCL Atom search
    query = " ".join(terms) if terms else citation
    attempts.append(f"Strategy 4: FCL Atom search for: {query}")
    try:
        entries = search_fcl_atom(
            query,
            per_page=settings.max_search_results,
            http_get=http_get,
            settings=settings,
        )
    except (requests.RequestException, ET.ParseError) as e:
        attempts.append(f"  -> FCL search failed: {e}")
        failures.append(f"FCL search: {e}")
    else:
        for entry in entries:
            url = entry_url(entry)
            if url:
                _add_candidate(
                    candidates,
                    url=url,
                    source="find_case_law",
                    confidence=CONFIDENCE_FCL_SEARCH,
                    title=entry.get("title"),
                    resolution_method="fcl_atom_search",
                )
        if candidates:
            attempts.append(f"  -> Found {len(entries)} FCL result(s)")
            return finish()
        attempts.append("  -> No FCL results")

    # Strategy 5: BAILII full-text search; the year narrows party-name queries
    year = extract_year(citation)
    if terms:
        fulltext_terms = terms + [year] if year else list(terms)
    else:
        fulltext_terms = citation.split()
    attempts.append(f"Strategy 5: BAILII full-text search for: {' '.join(fulltext_terms)}")
    try:
        results = search_bailii_fulltext(
            fulltext_terms, limit=settings.max_search_results, http_get=http_get, settings=settings
        )
    except requests.RequestException as e:
        attempts.append(f"  -> BAILII full-text search failed: {e}")
        failures.append(f"BAILII full-text search: {e}")
        return finish()

    for result in results:
        _add_candidate(
            candidates,
            url=result["url"],
            source="bailii",
            confidence=CONFIDENCE_BAILII_FULLTEXT,
            resolution_method="bailii_fulltext_search",
        )
    if results:
        attempts.append(f"  -> Found {len(results)} full-text result(s)")
    else:
        attempts.append("  -> No full-text results")

    return finish()
