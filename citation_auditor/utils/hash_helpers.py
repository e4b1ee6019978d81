"""
Stable identifiers for saved records.
"""

import hashlib

# Unit separator; never appears in a citation or URL
_SEPARATOR = "\x1f"


def short_id(*parts: str, length: int = 16) -> str:
    """
    Build a short identifier from one or more strings.

    The same parts always give the same id, so re-saving an authority
    for the same citation and URL replaces the earlier record.

    Args:
        parts: Strings identifying the record
        length: Number of hex characters to keep (default: 16)

    Returns:
        Truncated hexadecimal SHA256 digest
    """
    digest = hashlib.sha256(_SEPARATOR.join(parts).encode("utf-8"))
    return digest.hexdigest()[:length]
