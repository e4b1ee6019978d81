"""
Extract UK case citations from document text using regex rules.

Two families of rules are applied, neutral citations first:
    - Neutral:     [2020] UKSC 5, [2019] EWCA Civ 123, [2023] EWHC 1234 (Ch)
    - Traditional: [1932] AC 562, [2005] 1 WLR 1681, [2004] 2 Lloyd's Rep 653

Results are deduplicated on the whitespace-normalised citation string, keeping
the first match in rule order. Extraction never raises on text input: no
matches simply means an empty list.
"""

import logging
import re
from typing import Any, Dict, Iterable, Iterator, List, NamedTuple, Optional, Pattern, Tuple

from .case_names import extract_case_name
from .config import SOURCE_TEXT_RADIUS
from .models import ExtractedCitation

logger = logging.getLogger(__name__)


# Spaces or tabs, with at most one line break: a wrapped line still matches,
# a blank line between paragraphs does not.
_WS = r"(?=\s)[^\S\r\n]*(?:\r?\n[^\S\r\n]*)?"
_OPT_WS = r"[^\S\r\n]*"

_YEAR = r"\[(\d{4})\]"
_DIVISION = r"(?:" + _WS + r"\([A-Za-z]+\))?"


class CitationRule(NamedTuple):
    label: str
    pattern: Pattern[str]
    is_neutral: bool


class PatternMatch(NamedTuple):
    rule: CitationRule
    text: str
    start: int
    end: int


def _neutral(label: str, code: str, division: bool = False) -> CitationRule:
    code_regex = _WS.join(code.split())
    regex = _YEAR + _WS + code_regex + _WS + r"(\d+)"
    if division:
        regex += _DIVISION
    return CitationRule(label, re.compile(regex, re.IGNORECASE), True)


def _report(label: str, abbreviation_regex: str) -> CitationRule:
    regex = _YEAR + _WS + r"(?:(\d+)" + _WS + r")?" + abbreviation_regex + _WS + r"(\d+)"
    return CitationRule(label, re.compile(regex, re.IGNORECASE), False)


NEUTRAL_RULES: List[CitationRule] = [
    _neutral("neutral_uksc", "UKSC"),
    _neutral("neutral_ukhl", "UKHL"),
    _neutral("neutral_ukpc", "UKPC"),
    _neutral("neutral_ewca_civ", "EWCA Civ"),
    _neutral("neutral_ewca_crim", "EWCA Crim"),
    _neutral("neutral_ewhc", "EWHC", division=True),
    _neutral("neutral_ewcop", "EWCOP"),
    _neutral("neutral_ewfc", "EWFC"),
    _neutral("neutral_ukut", "UKUT", division=True),
    _neutral("neutral_ukftt", "UKFTT", division=True),
    _neutral("neutral_ukeat", "UKEAT"),
]

TRADITIONAL_RULES: List[CitationRule] = [
    _report("report_ac", r"AC"),
    _report("report_qb", r"QB"),
    _report("report_kb", r"KB"),
    _report("report_wlr", r"WLR"),
    _report("report_all_er", r"All" + _OPT_WS + r"ER"),
    _report("report_ch", r"Ch"),
    _report("report_fam", r"Fam"),
    _report("report_icr", r"ICR"),
    _report("report_irlr", r"IRLR"),
    _report("report_flr", r"FLR"),
    _report("report_bclc", r"BCLC"),
    _report("report_bcc", r"BCC"),
    _report("report_lloyds_rep", r"Lloyd['’]" + _OPT_WS + r"s" + _WS + r"Rep"),
    _report("report_pcr", r"P" + _OPT_WS + r"&" + _OPT_WS + r"CR"),
    _report("report_hlr", r"HLR"),
    _report("report_cmlr", r"CMLR"),
]

# Neutral rules first: they take priority when deduplicating
CITATION_RULES: List[CitationRule] = NEUTRAL_RULES + TRADITIONAL_RULES


def normalize_citation(raw: str) -> str:
    """Collapse internal whitespace to single spaces and trim."""
    return " ".join(raw.split())


def join_text_blocks(blocks: Iterable[Optional[str]]) -> str:
    """
    Join text from several sources (documents, imports, pasted text).

    Args:
        blocks: Text blobs; None and blank entries are skipped

    Returns:
        Single text separated by blank lines, so no citation spans two sources
    """
    return "\n\n".join(block for block in blocks if block and block.strip())


def find_pattern_matches(
    text: Optional[str], rules: Optional[List[CitationRule]] = None
) -> Iterator[PatternMatch]:
    """
    Yield every non-overlapping match of every rule, in rule order.

    Within a rule, matches come left to right. Offsets are zero-based
    positions in the original text.
    """
    if not text:
        return

    if rules is None:
        rules = CITATION_RULES

    for rule in rules:
        for match in rule.pattern.finditer(text):
            yield PatternMatch(rule, match.group(0), match.start(), match.end())


def _source_window(text: str, start: int, end: int) -> str:
    left = max(0, start - SOURCE_TEXT_RADIUS)
    right = min(len(text), end + SOURCE_TEXT_RADIUS)
    return text[left:right].strip()


def _unique_matches(text: Optional[str]) -> Iterator[Tuple[str, PatternMatch]]:
    # Case-sensitive: casing is part of a citation's correctness
    seen = set()
    for match in find_pattern_matches(text):
        normalized = normalize_citation(match.text)
        if normalized in seen:
            continue
        seen.add(normalized)
        yield normalized, match


def _build_citation(text: str, normalized: str, match: PatternMatch) -> ExtractedCitation:
    return ExtractedCitation(
        citation=normalized,
        case_name=extract_case_name(text, match.start),
        is_neutral=match.rule.is_neutral,
        source_text=_source_window(text, match.start, match.end),
    )


def extract_citations(text: Optional[str]) -> List[ExtractedCitation]:
    """
    Extract all case citations from a block of text.

    Args:
        text: Document text (None or empty gives an empty list)

    Returns:
        Citations in rule-priority order, unique by normalised citation string
    """
    results = [
        _build_citation(text, normalized, match)
        for normalized, match in _unique_matches(text)
    ]
    logger.debug("Extracted %d citation(s)", len(results))
    return results


def contains_citations(text: Optional[str]) -> bool:
    """
    Quick check for any citation, without building results.

    Used to pre-screen large document sets.
    """
    if not text:
        return False
    return any(rule.pattern.search(text) for rule in CITATION_RULES)


def extract_citations_with_stats(text: Optional[str]) -> Dict[str, Any]:
    """
    Extract citations and summarise them by family and by rule.

    Args:
        text: Document text

    Returns:
        dict with "citations" (list of ExtractedCitation) and "stats"
    """
    citations: List[ExtractedCitation] = []
    by_pattern: Dict[str, int] = {}

    for normalized, match in _unique_matches(text):
        citations.append(_build_citation(text, normalized, match))
        by_pattern[match.rule.label] = by_pattern.get(match.rule.label, 0) + 1

    neutral = sum(1 for c in citations if c.is_neutral)
    stats = {
        "total_found": len(citations),
        "neutral": neutral,
        "traditional": len(citations) - neutral,
        "by_pattern": by_pattern,
    }

    return {"citations": citations, "stats": stats}
