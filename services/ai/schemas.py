"""Structured outputs of the model gateway operations."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field

from common.enums import ClaimDecisionType

CRITICAL_MARKERS = ("critical", "missing document")


class InconsistencyReport(BaseModel):
    """Inconsistencies between a claim and the policy rules."""

    inconsistencies: List[str] = Field(default_factory=list)
    summary: str = ""

    @property
    def critical_items(self) -> List[str]:
        """Inconsistencies that mention a critical issue or a missing document."""
        return [
            item for item in self.inconsistencies
            if any(marker in item.lower() for marker in CRITICAL_MARKERS)
        ]

    @property
    def has_critical(self) -> bool:
        return bool(self.critical_items)


class ClaimDecision(BaseModel):
    """Final decision and a short settlement summary."""

    decision: ClaimDecisionType
    summary: str


class EmailDraft(BaseModel):
    """Draft email requesting missing information from a claimant."""

    email_subject: str = Field(..., alias="emailSubject")
    email_body: str = Field(..., alias="emailBody")

    model_config = ConfigDict(populate_by_name=True)
