"""
Citation auditor: find UK case citations in text and check they exist.

Pipeline:
    text -> extract_citations (regex rules + case name heuristic)
         -> CitationVerifier (sequential lookups via a CitationResolver)
         -> verified / not_found / error per citation
"""

from .case_names import extract_case_name
from .extract_citations import (
    CITATION_RULES,
    contains_citations,
    extract_citations,
    extract_citations_with_stats,
    find_pattern_matches,
    join_text_blocks,
)
from .models import (
    Authority,
    CitationResolution,
    ExtractedCitation,
    ResolutionStatus,
    ResolvedCandidate,
    VerificationProgress,
    VerificationStatus,
    VerifiedCitation,
)
from .public_resolve import CitationResolver, ResolutionError, resolve_citation
from .verify_citations import CitationVerifier, summarise, verify_all, verify_single

__version__ = "0.3.0"

__all__ = [
    "Authority",
    "CITATION_RULES",
    "CitationResolution",
    "CitationResolver",
    "CitationVerifier",
    "ExtractedCitation",
    "ResolutionError",
    "ResolutionStatus",
    "ResolvedCandidate",
    "VerificationProgress",
    "VerificationStatus",
    "VerifiedCitation",
    "contains_citations",
    "extract_case_name",
    "extract_citations",
    "extract_citations_with_stats",
    "find_pattern_matches",
    "join_text_blocks",
    "resolve_citation",
    "summarise",
    "verify_all",
    "verify_single",
]
