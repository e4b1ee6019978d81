#!/usr/bin/env python3
"""
Command-line entry point: extract citations from text, optionally verify them.

Usage:
    citation-auditor extract --text-file skeleton.txt --output citations.json
    citation-auditor verify --text-file skeleton.txt --authorities authorities.json
    citation-auditor verify --citations-json citations.json --offline
"""

import argparse
import functools
import logging
import sys
from pathlib import Path
from typing import List, Optional

from .authorities import save_authority
from .extract_citations import extract_citations_with_stats, join_text_blocks
from .models import ExtractedCitation, VerificationProgress, VerificationStatus, VerifiedCitation
from .public_resolve import resolve_citation
from .utils.file_helpers import dump_models, read_json, read_text_source, write_json_atomic
from .utils.validation import validate_citation_record, validate_text_blocks
from .verify_citations import CitationVerifier

logger = logging.getLogger(__name__)

STATUS_TAGS = {
    VerificationStatus.VERIFIED: "[OK]",
    VerificationStatus.NOT_FOUND: "[WARN]",
    VerificationStatus.ERROR: "[ERROR]",
}


def _read_texts(args: argparse.Namespace) -> List[str]:
    texts = [read_text_source(Path(p)) for p in args.text_file or []]
    texts.extend(args.text or [])
    return texts


def _extract_from_args(args: argparse.Namespace) -> List[ExtractedCitation]:
    """
    Run extraction over every text source named on the command line.

    Raises:
        ValueError: If there is no text to analyse
        FileNotFoundError: If a --text-file does not exist
    """
    texts = _read_texts(args)
    check = validate_text_blocks(texts)
    if not check:
        raise ValueError("; ".join(check.errors))

    result = extract_citations_with_stats(join_text_blocks(texts))
    stats = result["stats"]

    print(
        f"[OK] Extracted {stats['total_found']} citations "
        f"({stats['neutral']} neutral, {stats['traditional']} traditional)"
    )
    for pattern, count in stats["by_pattern"].items():
        print(f"  {pattern}: {count}")

    return result["citations"]


def _load_citations_json(path: Path) -> List[ExtractedCitation]:
    data = read_json(path)
    if isinstance(data, dict):
        data = data.get("citations", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of citations in {path}")

    citations = []
    for i, record in enumerate(data):
        check = validate_citation_record(record)
        if not check:
            raise ValueError(f"Citation {i} in {path}: " + "; ".join(check.errors))
        citations.append(ExtractedCitation.model_validate(record))
    return citations


def cmd_extract(args: argparse.Namespace) -> int:
    citations = _extract_from_args(args)

    for c in citations:
        name = f"{c.case_name} " if c.case_name else ""
        print(f"  - {name}{c.citation}")

    if args.output:
        output_path = Path(args.output)
        write_json_atomic(output_path, {"citations": dump_models(citations)})
        print(f"  Output: {output_path}")

    return 0


def _print_update(index: int, citation: VerifiedCitation) -> None:
    tag = STATUS_TAGS.get(citation.status)
    if tag is None:
        return

    line = f"  {tag} {citation.citation}"
    best = citation.resolution.best_candidate if citation.resolution else None
    if citation.status == VerificationStatus.VERIFIED and best is not None:
        line += f" -> {best.url}"
    elif citation.status == VerificationStatus.ERROR:
        line += f": {citation.error}"
    print(line)


def _print_progress(citations: List[VerifiedCitation], progress: VerificationProgress) -> None:
    current = citations[progress.current - 1]
    print(f"[..] Verifying ({progress.current}/{progress.total}): {current.citation}")


def cmd_verify(args: argparse.Namespace) -> int:
    if args.citations_json:
        extracted = _load_citations_json(Path(args.citations_json))
    else:
        extracted = _extract_from_args(args)

    if not extracted:
        print("[WARN] No citations to verify")
        return 0

    resolver = resolve_citation
    if args.offline:
        resolver = functools.partial(resolve_citation, verify_urls=False)

    verifier = CitationVerifier(extracted, resolver=resolver, on_update=_print_update)
    verifier.verify_all(
        on_progress=lambda progress: _print_progress(verifier.citations, progress)
    )

    summary = verifier.summary()
    print(
        f"[OK] Verified {summary['verified']}/{summary['total']} "
        f"(not found: {summary['not_found']}, errors: {summary['error']})"
    )

    if args.output:
        output_path = Path(args.output)
        write_json_atomic(
            output_path,
            {
                "citations": dump_models(verifier.citations),
                "summary": summary,
            },
        )
        print(f"  Output: {output_path}")

    if args.authorities:
        authorities_path = Path(args.authorities)
        for authority in verifier.authorities():
            save_authority(authorities_path, authority)
        print(f"  Authorities: {authorities_path}")

    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="citation-auditor",
        description="Extract UK case citations from text and verify them against public sources",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_text_sources(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            "--text-file", action="append", help="Text file to analyse (repeatable)"
        )
        sub.add_argument("--text", action="append", help="Pasted text to analyse (repeatable)")
        sub.add_argument("--output", help="Write results as JSON to this path")

    extract = subparsers.add_parser("extract", help="Extract citations only")
    add_text_sources(extract)
    extract.set_defaults(func=cmd_extract)

    verify = subparsers.add_parser("verify", help="Extract then verify citations")
    add_text_sources(verify)
    verify.add_argument(
        "--citations-json", help="Verify citations from a previous extract --output"
    )
    verify.add_argument(
        "--offline",
        action="store_true",
        help="Do not contact BAILII/FCL; build URLs for neutral citations only",
    )
    verify.add_argument("--authorities", help="Save verified citations to this JSON file")
    verify.set_defaults(func=cmd_verify)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    CLI entry point.

    Returns:
        Exit code (0=success, 1=validation error, 2=runtime error)
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        return args.func(args)

    except (ValueError, FileNotFoundError) as e:
        print(f"[ERROR] Validation error: {e}", file=sys.stderr)
        return 1

    except Exception as e:
        logger.exception("Unexpected failure")
        print(f"[ERROR] {args.command} failed: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
