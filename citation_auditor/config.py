"""
Runtime settings for the citation auditor.

Values come from environment variables so the CLI, the API server and tests
can all tune network behaviour without code changes.
"""

import os
from dataclasses import dataclass, field
from typing import List


DEFAULT_USER_AGENT = "CitationAuditor/0.3.0 (+https://caselaw.nationalarchives.gov.uk)"

# Heuristic constants for extraction
CASE_NAME_WINDOW = 300
SOURCE_TEXT_RADIUS = 50
MIN_CASE_NAME_LENGTH = 5
MAX_CASE_NAME_LENGTH = 200


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {value!r}")


@dataclass
class Settings:
    """Network settings for resolution and URL checks."""

    timeout_sec: int = 15
    rate_limit_ms: int = 200
    user_agent: str = DEFAULT_USER_AGENT
    max_search_results: int = 5
    allowed_origins: List[str] = field(
        default_factory=lambda: [
            "http://localhost:5173",
            "http://localhost:3000",
            "http://127.0.0.1:5173",
        ]
    )

    @classmethod
    def from_env(cls) -> "Settings":
        """
        Build settings from environment variables.

        Reads:
            CITATION_AUDITOR_TIMEOUT: request timeout in seconds
            CITATION_AUDITOR_RATE_LIMIT_MS: pause between requests to one source
            CITATION_AUDITOR_USER_AGENT: User-Agent header
            ALLOWED_ORIGINS: comma-separated CORS origins for the API server

        Raises:
            ValueError: If a numeric variable is not an integer
        """
        defaults = cls()
        origins = os.environ.get("ALLOWED_ORIGINS")
        return cls(
            timeout_sec=_env_int("CITATION_AUDITOR_TIMEOUT", defaults.timeout_sec),
            rate_limit_ms=_env_int("CITATION_AUDITOR_RATE_LIMIT_MS", defaults.rate_limit_ms),
            user_agent=os.environ.get("CITATION_AUDITOR_USER_AGENT", defaults.user_agent),
            allowed_origins=(
                [o.strip() for o in origins.split(",") if o.strip()]
                if origins
                else defaults.allowed_origins
            ),
        )
