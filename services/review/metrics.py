"""Dashboard counters for the review session."""

from pydantic import BaseModel, Field

from common.enums import ClaimDecisionType


class DashboardMetrics(BaseModel):
    """Total, in-flight, validated and rejected claim counts.

    Only the review orchestrator mutates these, as a side effect of its actions.
    """

    total_claims: int = Field(0, ge=0)
    processing_claims: int = Field(0, ge=0, le=1)
    validated_claims: int = Field(0, ge=0)
    rejected_claims: int = Field(0, ge=0)

    def set_total(self, count: int) -> None:
        self.total_claims = max(0, count)

    def start_processing(self) -> None:
        self.processing_claims = 1

    def finish_processing(self) -> None:
        self.processing_claims = 0

    def record_decision(self, decision: ClaimDecisionType) -> None:
        if decision == ClaimDecisionType.APPROVED:
            self.validated_claims += 1
        else:
            self.rejected_claims += 1

    def reset_outcomes(self) -> None:
        """Zero everything except the catalog size."""
        self.processing_claims = 0
        self.validated_claims = 0
        self.rejected_claims = 0
