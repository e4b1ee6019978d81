"""
Data models for extracted and verified citations.

ExtractedCitation is produced by extraction and never changes. VerifiedCitation
wraps it with the lifecycle state driven by the verification controller.
CitationResolution and ResolvedCandidate are what a resolver hands back.
"""

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class VerificationStatus(str, Enum):
    """Lifecycle of a single citation during verification."""

    PENDING = "pending"
    RESOLVING = "resolving"
    VERIFIED = "verified"
    NOT_FOUND = "not_found"
    ERROR = "error"


class ResolutionStatus(str, Enum):
    RESOLVED = "resolved"
    UNRESOLVABLE = "unresolvable"


class ExtractedCitation(BaseModel):
    """A single citation found in document text."""

    model_config = ConfigDict(frozen=True)

    citation: str
    case_name: Optional[str] = None
    is_neutral: bool
    source_text: Optional[str] = None


class ResolvedCandidate(BaseModel):
    url: str
    source: str  # 'bailii', 'find_case_law'
    confidence: float = Field(ge=0.0, le=1.0)
    title: Optional[str] = None
    resolution_method: str


class CitationResolution(BaseModel):
    """Outcome of one resolver lookup for one citation."""

    citation: str
    case_name: Optional[str] = None
    candidates: List[ResolvedCandidate] = Field(default_factory=list)
    status: ResolutionStatus
    attempts_log: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_outcome(self) -> "CitationResolution":
        # Users need to see what was tried before trusting a "not found"
        if self.status == ResolutionStatus.UNRESOLVABLE and not self.attempts_log:
            raise ValueError("unresolvable resolution must record at least one attempt")
        if self.status == ResolutionStatus.RESOLVED and not self.candidates:
            raise ValueError("resolved resolution must have at least one candidate")
        return self

    @property
    def best_candidate(self) -> Optional[ResolvedCandidate]:
        return self.candidates[0] if self.candidates else None


class VerifiedCitation(ExtractedCitation):
    """An extracted citation plus its verification state."""

    status: VerificationStatus = VerificationStatus.PENDING
    resolution: Optional[CitationResolution] = None
    error: Optional[str] = None

    @classmethod
    def from_extracted(cls, extracted: ExtractedCitation) -> "VerifiedCitation":
        fields = extracted.model_dump(include=set(ExtractedCitation.model_fields))
        return cls(**fields, status=VerificationStatus.PENDING)

    @property
    def is_terminal(self) -> bool:
        return self.status in (
            VerificationStatus.VERIFIED,
            VerificationStatus.NOT_FOUND,
            VerificationStatus.ERROR,
        )


class VerificationProgress(BaseModel):
    current: int
    total: int


class UrlCheckResult(BaseModel):
    url: str
    exists: bool
    status_code: int
    title: Optional[str] = None


class Authority(BaseModel):
    """A verified citation the user has chosen to keep."""

    id: str
    citation: str
    case_name: Optional[str] = None
    url: str
    source: str
    title: Optional[str] = None
    date_added: str
    notes: Optional[str] = None
