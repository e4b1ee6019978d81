"""
Verify extracted citations against a resolver, one at a time.

Each citation moves pending -> resolving -> verified | not_found | error.
Every transition replaces exactly one list element with a new
VerifiedCitation and is reported through the optional on_update callback,
so an observer (UI, API response builder, CLI) sees "resolving" before the
lookup returns.

Batches run sequentially, never in parallel: case-law sources are
third-party and rate-sensitive, and sequential calls keep progress exact.
A failing lookup marks only its own citation as error; the batch carries on.
"""

import logging
import threading
from typing import Callable, Dict, Iterable, List, Optional

from .authorities import authority_from_citation
from .models import (
    Authority,
    CitationResolution,
    ExtractedCitation,
    ResolutionStatus,
    VerificationProgress,
    VerificationStatus,
    VerifiedCitation,
)
from .public_resolve import CitationResolver, resolve_citation

logger = logging.getLogger(__name__)


ProgressCallback = Callable[[VerificationProgress], None]
UpdateCallback = Callable[[int, VerifiedCitation], None]


def _error_message(exc: Exception) -> str:
    message = str(exc).strip()
    return message or exc.__class__.__name__


def _transition(
    citations: List[VerifiedCitation],
    index: int,
    on_update: Optional[UpdateCallback],
    **changes,
) -> VerifiedCitation:
    updated = citations[index].model_copy(update=changes)
    citations[index] = updated
    if on_update is not None:
        on_update(index, updated)
    return updated


def _verify_at(
    citations: List[VerifiedCitation],
    index: int,
    resolver: CitationResolver,
    on_update: Optional[UpdateCallback],
) -> VerifiedCitation:
    # A new attempt discards whatever the previous attempt recorded
    current = _transition(
        citations,
        index,
        on_update,
        status=VerificationStatus.RESOLVING,
        resolution=None,
        error=None,
    )

    try:
        resolution = CitationResolution.model_validate(
            resolver(current.citation, current.case_name)
        )
    except Exception as e:
        logger.warning("Verification of %s failed: %s", current.citation, e)
        return _transition(
            citations,
            index,
            on_update,
            status=VerificationStatus.ERROR,
            error=_error_message(e),
        )

    if resolution.status == ResolutionStatus.RESOLVED:
        status = VerificationStatus.VERIFIED
    else:
        status = VerificationStatus.NOT_FOUND

    logger.info("Citation %s: %s", current.citation, status.value)
    return _transition(citations, index, on_update, status=status, resolution=resolution)


def verify_single(
    citations: List[VerifiedCitation],
    index: int,
    resolver: CitationResolver,
    on_update: Optional[UpdateCallback] = None,
) -> VerifiedCitation:
    """
    Verify one citation, leaving every other element untouched.

    Used to retry a citation that ended in error or not_found.

    Args:
        citations: Citation list, updated in place at `index` only
        index: Position of the citation to verify
        resolver: Lookup callable (citation, case_name) -> CitationResolution
        on_update: Called with (index, citation) after each transition

    Returns:
        The citation in its terminal state

    Raises:
        IndexError: If index is outside the list
    """
    if not 0 <= index < len(citations):
        raise IndexError(f"citation index {index} out of range (0..{len(citations) - 1})")
    return _verify_at(citations, index, resolver, on_update)


def verify_all(
    citations: List[VerifiedCitation],
    resolver: CitationResolver,
    on_progress: Optional[ProgressCallback] = None,
    on_update: Optional[UpdateCallback] = None,
    cancel_event: Optional[threading.Event] = None,
) -> int:
    """
    Verify every citation in list order, one lookup at a time.

    Args:
        citations: Citation list, updated in place
        resolver: Lookup callable (citation, case_name) -> CitationResolution
        on_progress: Called with (current, total) before each lookup
        on_update: Called with (index, citation) after each transition
        cancel_event: When set, no further lookups are started; citations
            already verified keep their state

    Returns:
        Number of citations attempted
    """
    total = len(citations)
    attempted = 0

    for index in range(total):
        if cancel_event is not None and cancel_event.is_set():
            logger.info("Verification cancelled after %d of %d citation(s)", attempted, total)
            break

        if on_progress is not None:
            on_progress(VerificationProgress(current=index + 1, total=total))

        _verify_at(citations, index, resolver, on_update)
        attempted += 1

    return attempted


def summarise(citations: Iterable[VerifiedCitation]) -> Dict[str, int]:
    """Count citations by outcome; "pending" includes those still resolving."""
    counts = {"total": 0, "verified": 0, "not_found": 0, "error": 0, "pending": 0}
    for citation in citations:
        counts["total"] += 1
        if citation.status == VerificationStatus.VERIFIED:
            counts["verified"] += 1
        elif citation.status == VerificationStatus.NOT_FOUND:
            counts["not_found"] += 1
        elif citation.status == VerificationStatus.ERROR:
            counts["error"] += 1
        else:
            counts["pending"] += 1
    return counts


class CitationVerifier:
    """
    Owns the citation list for one extraction + verification session.

    Args:
        extracted: Extraction results; each becomes a pending VerifiedCitation
        resolver: Lookup callable (default: resolve_citation)
        on_update: Called with (index, citation) after each transition
    """

    def __init__(
        self,
        extracted: Iterable[ExtractedCitation],
        resolver: Optional[CitationResolver] = None,
        on_update: Optional[UpdateCallback] = None,
    ):
        self.citations: List[VerifiedCitation] = [
            VerifiedCitation.from_extracted(c) for c in extracted
        ]
        self.resolver = resolver if resolver is not None else resolve_citation
        self.on_update = on_update

    def __len__(self) -> int:
        return len(self.citations)

    def verify_single(self, index: int) -> VerifiedCitation:
        return verify_single(self.citations, index, self.resolver, self.on_update)

    def verify_all(
        self,
        on_progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> int:
        return verify_all(
            self.citations,
            self.resolver,
            on_progress=on_progress,
            on_update=self.on_update,
            cancel_event=cancel_event,
        )

    def summary(self) -> Dict[str, int]:
        return summarise(self.citations)

    def authorities(self) -> List[Authority]:
        """Authority records for every verified citation (best candidate each)."""
        return [
            authority_from_citation(c)
            for c in self.citations
            if c.status == VerificationStatus.VERIFIED and c.resolution and c.resolution.candidates
        ]
