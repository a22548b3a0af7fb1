"""Data models for the admission gate."""

from enum import Enum
from pydantic import Field
from typing import Dict

from litscout.models.article import WireModel


class RejectionReason(str, Enum):
    """Why a candidate was not admitted, in gate order."""

    INVALID_TITLE = "invalid_title"
    EXISTING_REFERENCE = "existing_reference"
    DISMISSED = "dismissed"
    NEAR_DUPLICATE = "near_duplicate"
    DUPLICATE_IN_RUN = "duplicate_in_run"
    NOT_RELEVANT = "not_relevant"


class DedupStats(WireModel):
    """Admission statistics for one discovery run"""

    total_checked: int = 0
    admitted: int = 0
    rejected_by_reason: Dict[RejectionReason, int] = Field(default_factory=dict)

    @property
    def rejected(self) -> int:
        """Total number of rejected candidates"""
        return sum(self.rejected_by_reason.values())

    @property
    def rejection_rate(self) -> float:
        """Calculate rejection rate"""
        if self.total_checked == 0:
            return 0.0
        return self.rejected / self.total_checked

    def record_rejection(self, reason: RejectionReason) -> None:
        self.rejected_by_reason[reason] = self.rejected_by_reason.get(reason, 0) + 1
