"""
Check that candidate judgment URLs exist, with source-specific rate limiting.

Only BAILII, Find Case Law and legislation.gov.uk are ever contacted. A page
counts as existing only when it returns 200 and its content looks like a
judgment: both sources serve soft "not found" pages with status 200.

Rate Limiting:
    - Find Case Law: 200ms between requests by default
    - BAILII: 200ms between requests by default
    - Other sources: 200ms between requests by default
"""

import logging
import time
from typing import Callable, Dict, Optional
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup

from .config import Settings
from .models import UrlCheckResult
from .utils.validation import validate_url

logger = logging.getLogger(__name__)

HttpGet = Callable[..., requests.Response]

ALLOWED_DOMAINS = (
    "www.bailii.org",
    "bailii.org",
    "caselaw.nationalarchives.gov.uk",
    "legislation.gov.uk",
    "www.legislation.gov.uk",
)

# Phrases BAILII shows on its soft error pages
BAILII_ERROR_PHRASES = (
    "page not found",
    "error 404",
    "no case found",
    "citation not found",
    "this page does not exist",
)

LEGAL_INDICATORS = (
    "judgment",
    "court",
    "justice",
    "appeal",
    "claimant",
    "defendant",
    "respondent",
    "appellant",
    "held",
    "ordered",
    "lordship",
    "honour",
    "tribunal",
)

# Source-specific rate limiter state
_last_fetch_by_source: Dict[str, float] = {}


def detect_source(url: str) -> str:
    """
    Detect source type from URL.

    Args:
        url: URL to check

    Returns:
        Source identifier (find_case_law, bailii, or default)
    """
    hostname = (urlparse(url).hostname or "").lower()

    if "caselaw.nationalarchives.gov.uk" in hostname:
        return "find_case_law"
    elif "bailii.org" in hostname:
        return "bailii"
    else:
        return "default"


def is_domain_allowed(url: str) -> bool:
    """True if the URL is well formed and points at an allowed host."""
    if not validate_url(url):
        return False
    hostname = (urlparse(url).hostname or "").lower()
    return any(hostname == d or hostname.endswith("." + d) for d in ALLOWED_DOMAINS)


def rate_limit_wait(url: str, rate_limit_ms: int) -> None:
    """
    Sleep if needed to enforce a per-source rate limit.

    Args:
        url: URL being fetched (for source detection)
        rate_limit_ms: Minimum gap between requests to one source
    """
    source = detect_source(url)

    last_fetch = _last_fetch_by_source.get(source)
    if last_fetch is not None and rate_limit_ms > 0:
        elapsed_ms = (time.monotonic() - last_fetch) * 1000
        if elapsed_ms < rate_limit_ms:
            sleep_ms = rate_limit_ms - elapsed_ms
            logger.debug("Rate limiting (%s): sleeping %.0fms", source, sleep_ms)
            time.sleep(sleep_ms / 1000)

    _last_fetch_by_source[source] = time.monotonic()


def request_headers(settings: Settings) -> Dict[str, str]:
    return {"User-Agent": settings.user_agent}


def validate_bailii_has_content(html: str) -> bool:
    """
    Decide whether a BAILII page is a real judgment.

    Args:
        html: Page body

    Returns:
        True if no error phrase appears near the top, the page is substantial,
        and at least three legal indicator words appear
    """
    lower = html.lower()

    head = lower[:1000]
    if any(phrase in head for phrase in BAILII_ERROR_PHRASES):
        return False

    if len(html) < 3000:
        return False

    matches = sum(1 for word in LEGAL_INDICATORS if word in lower)
    return matches >= 3


def validate_fcl_has_content(url: str, body: str) -> bool:
    """Decide whether a Find Case Law response is a real judgment (XML or HTML)."""
    lower = body.lower()

    if url.endswith(".xml"):
        return "<akomantoso" in lower or "<frbrwork" in lower

    if "page not found" in lower[:2000]:
        return False
    return len(body) >= 5000


def extract_title(body: str) -> Optional[str]:
    soup = BeautifulSoup(body, "lxml")
    title_tag = soup.find("title")
    if title_tag is None:
        return None
    title = " ".join(title_tag.get_text().split())
    return title or None


def raise_for_unavailable(response: requests.Response, url: str) -> None:
    """
    Raise when a source is down or throttling us.

    A 5xx or 429 answer says nothing about whether the judgment exists, so
    it must not be read as "not found".

    Raises:
        requests.HTTPError: For status 429 or >= 500
    """
    status = response.status_code
    if status == 429 or status >= 500:
        raise requests.HTTPError(f"HTTP {status} from {url}", response=response)


def check_url_exists(
    url: str,
    http_get: Optional[HttpGet] = None,
    settings: Optional[Settings] = None,
) -> UrlCheckResult:
    """
    Fetch a candidate URL and decide whether it holds a judgment.

    Args:
        url: Candidate judgment URL
        http_get: HTTP GET callable (default: requests.get)
        settings: Network settings (default: from environment)

    Returns:
        UrlCheckResult; disallowed domains give status 403 without a request

    Raises:
        requests.RequestException: If the request fails or the source answers 5xx/429
    """
    if http_get is None:
        http_get = requests.get
    if settings is None:
        settings = Settings.from_env()

    if not is_domain_allowed(url):
        logger.warning("Refusing to fetch URL outside allowed domains: %s", url)
        return UrlCheckResult(url=url, exists=False, status_code=403)

    rate_limit_wait(url, settings.rate_limit_ms)

    response = http_get(
        url,
        headers=request_headers(settings),
        timeout=settings.timeout_sec,
        allow_redirects=True,
    )

    raise_for_unavailable(response, url)
    if response.status_code != 200:
        return UrlCheckResult(url=url, exists=False, status_code=response.status_code)

    body = response.text or ""
    source = detect_source(url)

    if source == "bailii" and not validate_bailii_has_content(body):
        return UrlCheckResult(url=url, exists=False, status_code=404)

    if source == "find_case_law" and not validate_fcl_has_content(url, body):
        return UrlCheckResult(url=url, exists=False, status_code=404)

    return UrlCheckResult(url=url, exists=True, status_code=200, title=extract_title(body))


def fetch_redirect_location(
    url: str,
    http_get: Optional[HttpGet] = None,
    settings: Optional[Settings] = None,
) -> Optional[str]:
    """
    Request a URL without following redirects and return the redirect target.

    Args:
        url: URL expected to answer with 301/302 when it recognises the query
        http_get: HTTP GET callable (default: requests.get)
        settings: Network settings (default: from environment)

    Returns:
        Absolute redirect URL, or None if the response was not a redirect

    Raises:
        requests.RequestException: If the request fails or the source answers 5xx/429
    """
    if http_get is None:
        http_get = requests.get
    if settings is None:
        settings = Settings.from_env()

    rate_limit_wait(url, settings.rate_limit_ms)

    response = http_get(
        url,
        headers=request_headers(settings),
        timeout=settings.timeout_sec,
        allow_redirects=False,
    )

    raise_for_unavailable(response, url)
    if response.status_code not in (301, 302):
        return None

    location = response.headers.get("Location") or response.headers.get("location")
    if not location:
        return None

    if location.startswith("/"):
        parsed = urlparse(url)
        return f"{parsed.scheme}://{parsed.netloc}{location}"
    if location.startswith("http"):
        return location
    return None
