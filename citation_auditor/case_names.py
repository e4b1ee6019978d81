"""
Attribute a case name to a citation by reading the text just before it.

Looks for, in priority order:
    - "R v Name" / "R (Name) v Name" (criminal and judicial review style)
    - "Re Name" / "In re Name"
    - "Party A v Party B", walking backwards from the separator word by word

This is a heuristic. When the backward walk is ambiguous it returns None
rather than guess.
"""

import re
from typing import List, Optional

from .config import CASE_NAME_WINDOW, MAX_CASE_NAME_LENGTH, MIN_CASE_NAME_LENGTH


# Words allowed inside a party name after the first capitalised word
_NAME_WORD = (
    r"(?:[A-Z][\w'’\-&().,]*"
    r"|&"
    r"|\([^)]*\)"
    r"|of|the|for|and|de|van|von|du|la|le|el)"
)

R_V_PATTERN = re.compile(
    r"\bR(?:\s*\([^)]+\))?\s+v\.?\s+[A-Z][\w'’\-]*(?:\s+" + _NAME_WORD + r")*$"
)

RE_PATTERN = re.compile(
    r"\b(?:[Ii]n\s+[Rr]e|Re)\s+[A-Z][\w'’\-]*(?:\s+" + _NAME_WORD + r")*$"
)

SEPARATOR_PATTERN = re.compile(r"\s+v\.?\s+")

TRAILING_PUNCTUATION = re.compile(r"[,;:\s]+$")

# Lowercase words that may sit between capitalised words of one party name,
# e.g. "Secretary of State for the Home Department"
NAME_CONNECTORS = frozenset(
    ["of", "the", "for", "and", "de", "van", "von", "du", "la", "le", "el"]
)

LEGAL_SUFFIX_PATTERN = re.compile(
    r"^(?:Ltd|Limited|Plc|LLP|Inc|Corp|LLC|Council|Borough|NHS|CIC|Ors)$",
    re.IGNORECASE,
)

# Token classes for the backward walk
UPPER_START = "upper_start"
LEGAL_SUFFIX = "legal_suffix"
AMPERSAND = "ampersand"
CONNECTOR = "connector"
OTHER = "other"


def classify_token(token: str) -> str:
    """
    Classify one whitespace-delimited token of a party name.

    Args:
        token: Raw token, possibly carrying punctuation

    Returns:
        One of UPPER_START, LEGAL_SUFFIX, AMPERSAND, CONNECTOR, OTHER
    """
    bare = re.sub(r"[,;:()]", "", token)

    if bare == "&":
        return AMPERSAND
    if LEGAL_SUFFIX_PATTERN.match(bare):
        return LEGAL_SUFFIX
    if bare[:1].isupper():
        return UPPER_START
    if bare.lower() in NAME_CONNECTORS:
        return CONNECTOR
    return OTHER


def _collapse(value: str) -> str:
    return " ".join(value.split())


def walk_back_party_name(words: List[str]) -> List[str]:
    """
    Take the longest run of name-like tokens at the end of `words`.

    A connector is only kept when the token after it was already accepted,
    so "Secretary of State" survives. Any other lowercase word ("held",
    "that") ends the walk.

    Args:
        words: Tokens preceding the " v " separator, in text order

    Returns:
        The accepted tail of `words` (possibly empty)
    """
    start_idx = len(words)

    for i in range(len(words) - 1, -1, -1):
        token_class = classify_token(words[i])

        if token_class in (UPPER_START, LEGAL_SUFFIX, AMPERSAND):
            start_idx = i
        elif token_class == CONNECTOR and start_idx == i + 1:
            start_idx = i
        else:
            break

    return words[start_idx:]


def _general_case_name(before: str) -> Optional[str]:
    separators = list(SEPARATOR_PATTERN.finditer(before))
    if not separators:
        return None

    # Last separator: earlier prose may itself contain " v "
    last = separators[-1]

    party2 = before[last.end():].strip()
    if not party2 or not party2[0].isupper():
        return None

    accepted = walk_back_party_name(before[: last.start()].split())
    party1 = " ".join(accepted)
    if not party1 or not any(ch.isupper() for ch in party1):
        return None

    return f"{party1} v {_collapse(party2)}"


def extract_case_name(text: str, citation_start: int) -> Optional[str]:
    """
    Extract the most plausible case name immediately preceding a citation.

    Args:
        text: Full document text
        citation_start: Zero-based offset where the citation begins

    Returns:
        Case name such as "Smith v Jones", or None when no safe attribution exists
    """
    if not text or citation_start <= 0:
        return None

    window = text[max(0, citation_start - CASE_NAME_WINDOW):citation_start]
    before = TRAILING_PUNCTUATION.sub("", window).strip()
    if not before:
        return None

    for special in (R_V_PATTERN, RE_PATTERN):
        match = special.search(before)
        if match:
            return _collapse(match.group(0))

    name = _general_case_name(before)
    if name is None:
        return None
    if len(name) < MIN_CASE_NAME_LENGTH or len(name) > MAX_CASE_NAME_LENGTH:
        return None
    return name
