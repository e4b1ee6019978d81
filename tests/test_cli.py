"""
Tests for citation_auditor/cli.py
"""

import json

import pytest

from citation_auditor import cli
from citation_auditor.models import VerificationStatus, VerifiedCitation
from citation_auditor.public_resolve import ResolutionError

SKELETON = (
    "The leading authority is Clegg v Olle Andersson [2003] EWCA Civ 320. "
    "See also Donoghue v Stevenson [1932] AC 562."
)


@pytest.mark.unit
def test_extract_prints_summary(capsys):
    exit_code = cli.main(["extract", "--text", SKELETON])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "[OK] Extracted 2 citations (1 neutral, 1 traditional)" in out
    assert "Clegg v Olle Andersson [2003] EWCA Civ 320" in out


@pytest.mark.unit
def test_extract_from_files_writes_output(tmp_path, capsys):
    (tmp_path / "a.txt").write_text("Patel v Mirza [2016] UKSC 42", encoding="utf-8")
    (tmp_path / "b.txt").write_text("R v Adams [2020] EWCA Crim 100", encoding="utf-8")

    exit_code = cli.main([
        "extract", "--text-file", "a.txt", "--text-file", "b.txt", "--output", "out/citations.json",
    ])

    assert exit_code == 0
    data = json.loads((tmp_path / "out" / "citations.json").read_text(encoding="utf-8"))
    assert [c["citation"] for c in data["citations"]] == ["[2016] UKSC 42", "[2020] EWCA Crim 100"]
    assert data["citations"][1]["case_name"] == "R v Adams"


@pytest.mark.unit
def test_extract_without_text_is_validation_error(capsys):
    exit_code = cli.main(["extract", "--text", "   "])

    assert exit_code == 1
    assert "[ERROR] Validation error: No text to analyse" in capsys.readouterr().err


@pytest.mark.unit
def test_extract_missing_file(tmp_path, capsys):
    exit_code = cli.main(["extract", "--text-file", "missing.txt"])

    assert exit_code == 1
    assert "File not found" in capsys.readouterr().err


@pytest.mark.unit
def test_verify_offline(tmp_path, capsys):
    exit_code = cli.main(["verify", "--text", SKELETON, "--offline", "--output", "verified.json"])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "[..] Verifying (1/2): [2003] EWCA Civ 320" in out
    assert "[..] Verifying (2/2): [1932] AC 562" in out
    assert "[OK] [2003] EWCA Civ 320 -> https://www.bailii.org/ew/cases/EWCA/Civ/2003/320.html" in out
    assert "[WARN] [1932] AC 562" in out

    data = json.loads((tmp_path / "verified.json").read_text(encoding="utf-8"))
    assert data["summary"] == {"total": 2, "verified": 1, "not_found": 1, "error": 0, "pending": 0}
    assert data["citations"][0]["status"] == "verified"


@pytest.mark.unit
def test_verify_reports_lookup_errors(monkeypatch, capsys, scripted_resolver):
    resolver = scripted_resolver(failing={"[1932] AC 562": ResolutionError("BAILII unreachable")})
    monkeypatch.setattr(cli, "resolve_citation", resolver)

    exit_code = cli.main(["verify", "--text", SKELETON])

    out = capsys.readouterr().out
    assert exit_code == 0
    assert "[ERROR] [1932] AC 562: BAILII unreachable" in out
    assert "[OK] Verified 1/2 (not found: 0, errors: 1)" in out


@pytest.mark.unit
def test_verify_from_citations_json(tmp_path, monkeypatch, capsys, scripted_resolver):
    resolver = scripted_resolver()
    monkeypatch.setattr(cli, "resolve_citation", resolver)
    cli.main(["extract", "--text", SKELETON, "--output", "citations.json"])

    exit_code = cli.main(["verify", "--citations-json", "citations.json"])

    assert exit_code == 0
    assert resolver.calls == [
        ("[2003] EWCA Civ 320", "Clegg v Olle Andersson"),
        ("[1932] AC 562", "Donoghue v Stevenson"),
    ]


@pytest.mark.unit
def test_verify_invalid_citations_json(tmp_path, capsys):
    (tmp_path / "bad.json").write_text('[{"citation": ""}]', encoding="utf-8")

    exit_code = cli.main(["verify", "--citations-json", "bad.json"])

    assert exit_code == 1
    assert "non-empty 'citation'" in capsys.readouterr().err


@pytest.mark.unit
def test_verify_saves_authorities(tmp_path, capsys):
    exit_code = cli.main(["verify", "--text", SKELETON, "--offline", "--authorities", "authorities.json"])

    assert exit_code == 0
    saved = json.loads((tmp_path / "authorities.json").read_text(encoding="utf-8"))
    assert [a["citation"] for a in saved] == ["[2003] EWCA Civ 320"]


@pytest.mark.unit
def test_verify_with_no_citations(capsys):
    exit_code = cli.main(["verify", "--text", "No case law here."])

    assert exit_code == 0
    assert "[WARN] No citations to verify" in capsys.readouterr().out


@pytest.mark.unit
def test_unexpected_failure_exit_code(monkeypatch, capsys):
    def broken(text):
        raise RuntimeError("regex engine on fire")

    monkeypatch.setattr(cli, "extract_citations_with_stats", broken)

    exit_code = cli.main(["extract", "--text", SKELETON])

    assert exit_code == 2
    assert "[ERROR] extract failed: regex engine on fire" in capsys.readouterr().err


@pytest.mark.unit
def test_subcommand_required():
    with pytest.raises(SystemExit):
        cli.main([])


@pytest.mark.unit
def test_print_update_verified_without_resolution(capsys):
    citation = VerifiedCitation(
        citation="[2016] UKSC 42", is_neutral=True, status=VerificationStatus.VERIFIED
    )

    cli._print_update(0, citation)

    assert capsys.readouterr().out.strip().endswith("[2016] UKSC 42")
