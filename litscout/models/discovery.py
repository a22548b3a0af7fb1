"""Per-source results and discovery diagnostics."""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import Field

from litscout.models.article import CandidateArticle, WireModel, utc_now
from litscout.models.config import SourceType
from litscout.models.dedup import DedupStats


class FailureReason(str, Enum):
    """Why a source call contributed no candidates."""

    NOT_CONFIGURED = "not_configured"
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    UPSTREAM_ERROR = "upstream_error"
    UNEXPECTED_ERROR = "unexpected_error"


class SourceFailure(WireModel):
    """Diagnostic entry for one failed (source, query) call."""

    source: SourceType
    query: Optional[str] = None
    reason: FailureReason
    error: Optional[str] = Field(None, description="Error message if any")


class SourceResult(WireModel):
    """Outcome of one (source, query) call: candidates or a failure."""

    source: SourceType
    query: str
    category: str = ""
    candidates: List[CandidateArticle] = Field(default_factory=list)
    failure: Optional[SourceFailure] = None
    query_time_ms: int = Field(0, ge=0)

    @property
    def success(self) -> bool:
        return self.failure is None


class DiscoveryResult(WireModel):
    """Ranked candidates plus diagnostics for one discovery request."""

    candidates: List[CandidateArticle] = Field(default_factory=list)
    diagnostics: List[SourceFailure] = Field(default_factory=list)
    only_new: bool = False
    total_fetched: int = Field(0, ge=0)
    stats: DedupStats = Field(default_factory=DedupStats)
    assembled_at: datetime = Field(default_factory=utc_now)
