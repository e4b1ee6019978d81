"""
Checks on user-supplied input before extraction or lookup.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional
from urllib.parse import urlsplit


@dataclass
class ValidationResult:
    """Outcome of a check; falsy when there are errors."""

    errors: List[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.valid


_HOSTNAME = re.compile(r"^(localhost|[a-z0-9-]+(\.[a-z0-9-]+)+)$", re.IGNORECASE)


def validate_text_blocks(blocks: Iterable[Optional[str]]) -> ValidationResult:
    """
    Check that at least one text source has content to analyse.

    Args:
        blocks: Text from documents, imported files or pasted text

    Returns:
        ValidationResult with an error if every block is empty
    """
    if any(block and block.strip() for block in blocks):
        return ValidationResult()
    return ValidationResult(["No text to analyse. Supply document text, files, or pasted text."])


def validate_citation_record(record: Any) -> ValidationResult:
    """
    Validate a serialized extracted citation (e.g. loaded from JSON).

    Args:
        record: Decoded JSON value

    Returns:
        ValidationResult listing every problem found
    """
    if not isinstance(record, dict):
        return ValidationResult(["citation must be an object"])

    result = ValidationResult()

    citation = record.get("citation")
    if not isinstance(citation, str) or not citation.strip():
        result.errors.append("citation must have a non-empty 'citation' field")

    if "is_neutral" in record and not isinstance(record["is_neutral"], bool):
        result.errors.append("is_neutral must be a boolean")

    case_name = record.get("case_name")
    if case_name is not None and not isinstance(case_name, str):
        result.errors.append("case_name must be a string or null")

    return result


def validate_url(url: Any) -> bool:
    """True for an absolute http(s) URL with a plausible host."""
    if not isinstance(url, str) or any(c.isspace() for c in url):
        return False

    parts = urlsplit(url)
    if parts.scheme not in ("http", "https"):
        return False

    try:
        parts.port
    except ValueError:
        return False

    return bool(parts.hostname and _HOSTNAME.match(parts.hostname))
