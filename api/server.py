#!/usr/bin/env python3
"""
FastAPI backend for the citation auditor.

Exposes extraction and verification over HTTP for a browser front end.
Only citation strings and case names leave the server: document text is
used for extraction and never sent to BAILII or Find Case Law.

Usage:
    python -m api.server
"""

import functools
import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from citation_auditor import __version__
from citation_auditor.authorities import (
    authority_from_citation,
    load_authorities,
    remove_authority,
    save_authority,
)
from citation_auditor.config import Settings
from citation_auditor.extract_citations import extract_citations_with_stats, join_text_blocks
from citation_auditor.models import (
    Authority,
    CitationResolution,
    ExtractedCitation,
    VerifiedCitation,
)
from citation_auditor.public_resolve import CitationResolver, ResolutionError, resolve_citation
from citation_auditor.utils.validation import validate_text_blocks
from citation_auditor.verify_citations import CitationVerifier

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

AUTHORITIES_PATH = Path(os.environ.get("CITATION_AUDITOR_AUTHORITIES", "authorities.json"))


# ===== Request/Response Models =====

class ExtractRequest(BaseModel):
    texts: List[str] = Field(default_factory=list)


class ExtractResponse(BaseModel):
    citations: List[ExtractedCitation]
    stats: Dict


class VerifyRequest(BaseModel):
    citations: List[ExtractedCitation]
    verify_urls: bool = True


class VerifyResponse(BaseModel):
    citations: List[VerifiedCitation]
    summary: Dict[str, int]


class ResolveRequest(BaseModel):
    citation: str
    case_name: Optional[str] = None
    verify_urls: bool = True


class KeepAuthorityRequest(BaseModel):
    citation: VerifiedCitation
    candidate_index: int = 0
    notes: Optional[str] = None


# ===== App Setup =====

settings = Settings.from_env()

app = FastAPI(
    title="Citation Auditor API",
    description="Extract UK case citations and verify them against BAILII and Find Case Law",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def get_resolver() -> CitationResolver:
    """Resolver used by the verify endpoints; overridden in tests."""
    return resolve_citation


def _resolver_for(resolver: CitationResolver, verify_urls: bool) -> CitationResolver:
    if not verify_urls and resolver is resolve_citation:
        return functools.partial(resolve_citation, verify_urls=False)
    return resolver


# ===== Endpoints =====

@app.post("/api/extract", response_model=ExtractResponse)
def extract(request: ExtractRequest):
    """
    Extract citations from one or more text blocks.

    Blocks are joined with blank lines, so a citation never spans two sources.
    """
    check = validate_text_blocks(request.texts)
    if not check:
        raise HTTPException(status_code=400, detail="; ".join(check.errors))

    result = extract_citations_with_stats(join_text_blocks(request.texts))
    logger.info("Extracted %d citation(s)", result["stats"]["total_found"])
    return ExtractResponse(citations=result["citations"], stats=result["stats"])


@app.post("/api/verify", response_model=VerifyResponse)
def verify(request: VerifyRequest, resolver: CitationResolver = Depends(get_resolver)):
    """
    Verify citations sequentially and return each one's final state.

    A failed lookup marks only that citation as error; the response is
    still 200 with the other citations verified.
    """
    verifier = CitationVerifier(
        request.citations, resolver=_resolver_for(resolver, request.verify_urls)
    )
    verifier.verify_all()

    summary = verifier.summary()
    logger.info(
        "Verification complete: %d verified, %d not found, %d error(s)",
        summary["verified"], summary["not_found"], summary["error"],
    )
    return VerifyResponse(citations=verifier.citations, summary=summary)


@app.post("/api/resolve", response_model=CitationResolution)
def resolve(request: ResolveRequest, resolver: CitationResolver = Depends(get_resolver)):
    """Look up a single citation and return the raw resolution (candidates + attempts)."""
    citation = request.citation.strip()
    if not citation:
        raise HTTPException(status_code=400, detail="citation must not be empty")

    try:
        return _resolver_for(resolver, request.verify_urls)(citation, request.case_name)
    except ResolutionError as e:
        logger.warning("Resolution failed for %s: %s", citation, e)
        raise HTTPException(status_code=502, detail=str(e))


@app.get("/api/authorities", response_model=List[Authority])
def list_authorities():
    return load_authorities(AUTHORITIES_PATH)


@app.post("/api/authorities", response_model=Authority)
def keep_authority(request: KeepAuthorityRequest):
    """Save a verified citation as an authority."""
    try:
        authority = authority_from_citation(
            request.citation, request.candidate_index, notes=request.notes
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    save_authority(AUTHORITIES_PATH, authority)
    return authority


@app.delete("/api/authorities/{authority_id}", response_model=List[Authority])
def delete_authority(authority_id: str):
    """Remove a saved authority; answers with the authorities that remain."""
    if not any(a.id == authority_id for a in load_authorities(AUTHORITIES_PATH)):
        raise HTTPException(status_code=404, detail=f"No authority with id {authority_id}")
    return remove_authority(AUTHORITIES_PATH, authority_id)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "name": "Citation Auditor API", "version": __version__}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
