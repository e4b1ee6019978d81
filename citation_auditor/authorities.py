"""
Keep verified citations as authority records.

Authorities are stored as a JSON array in a single file. Saving an
authority with an id already in the file replaces that record.
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

from .models import Authority, VerificationStatus, VerifiedCitation
from .utils.file_helpers import dump_models, read_json, write_json_atomic
from .utils.hash_helpers import short_id

logger = logging.getLogger(__name__)


def authority_from_citation(
    verified: VerifiedCitation,
    candidate_index: int = 0,
    notes: Optional[str] = None,
) -> Authority:
    """
    Build an authority record from a verified citation.

    Args:
        verified: Citation in the verified state
        candidate_index: Which resolution candidate to keep (default: best)
        notes: Free-text user notes

    Returns:
        Authority with a stable id derived from citation and URL

    Raises:
        ValueError: If the citation is not verified or has no such candidate
    """
    if verified.status != VerificationStatus.VERIFIED or verified.resolution is None:
        raise ValueError(f"Only verified citations can be kept: {verified.citation}")

    candidates = verified.resolution.candidates
    if not 0 <= candidate_index < len(candidates):
        raise ValueError(
            f"Citation {verified.citation} has no candidate at index {candidate_index}"
        )

    candidate = candidates[candidate_index]
    return Authority(
        id=short_id(verified.citation, candidate.url),
        citation=verified.citation,
        case_name=verified.case_name,
        url=candidate.url,
        source=candidate.source,
        title=candidate.title,
        date_added=datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
        notes=notes,
    )


def load_authorities(path: Path) -> List[Authority]:
    """Read saved authorities; a missing file means none have been saved."""
    if not path.exists():
        return []

    data = read_json(path)
    if not isinstance(data, list):
        raise ValueError(f"Authorities file must hold a JSON array: {path}")
    return [Authority.model_validate(item) for item in data]


def save_authority(path: Path, authority: Authority) -> List[Authority]:
    """
    Add an authority to the file, replacing any record with the same id.

    Args:
        path: Authorities JSON file
        authority: Record to store

    Returns:
        All stored authorities after the write
    """
    authorities = load_authorities(path)

    for i, existing in enumerate(authorities):
        if existing.id == authority.id:
            authorities[i] = authority
            logger.info("Updated authority %s (%s)", authority.id, authority.citation)
            break
    else:
        authorities.append(authority)
        logger.info("Saved authority %s (%s)", authority.id, authority.citation)

    write_json_atomic(path, dump_models(authorities))
    return authorities


def remove_authority(path: Path, authority_id: str) -> List[Authority]:
    """
    Delete the authority with the given id.

    Args:
        path: Authorities JSON file
        authority_id: Id of the record to drop

    Returns:
        The authorities left in the file; empty if the file does not exist
    """
    if not path.exists():
        return []

    authorities = load_authorities(path)
    remaining = [a for a in authorities if a.id != authority_id]

    if len(remaining) == len(authorities):
        logger.info("No authority with id %s to remove", authority_id)
    else:
        logger.info("Removed authority %s", authority_id)

    write_json_atomic(path, dump_models(remaining))
    return remaining
