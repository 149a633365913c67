"""State of the active claim review session."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from common.enums import CheckStatus, OverrideTarget, ReviewStep, StepStatus
from services.ai.schemas import ClaimDecision, EmailDraft, InconsistencyReport
from services.claims.models import AvailableClaimFile, ClaimRecord
from services.claims.state_machine import StepTransition

IDLE_NARRATIVE = "Select a claim to begin processing."


class CheckOutcome(BaseModel):
    """Stored result of the eligibility or medical check."""

    status: CheckStatus
    message: str

    @property
    def is_eligible(self) -> bool:
        return self.status != CheckStatus.INELIGIBLE


class OverrideRequest(BaseModel):
    """A pending, single-use request to override a failed check."""

    target: OverrideTarget
    title: str
    message: str


class ReviewSession(BaseModel):
    """Everything the review engine knows about the claim being reviewed."""

    current_step: ReviewStep = ReviewStep.IDLE
    step_status: StepStatus = StepStatus.PENDING
    status_narrative: str = IDLE_NARRATIVE
    is_loading: bool = False

    claim: Optional[ClaimRecord] = None
    initial_claim: Optional[ClaimRecord] = None  # load-time snapshot for resets
    selected_claim: Optional[AvailableClaimFile] = None

    # Rule check results (steps 2 and 5)
    eligibility_result: Optional[CheckOutcome] = None
    medical_result: Optional[CheckOutcome] = None
    eligibility_overridden: bool = False
    medical_overridden: bool = False

    # Model results (steps 3, 4, 6 and 7)
    extraction_result: Optional[Dict[str, Any]] = None
    inconsistency_report: Optional[InconsistencyReport] = None
    decision: Optional[ClaimDecision] = None
    email_draft: Optional[EmailDraft] = None

    override_request: Optional[OverrideRequest] = None
    transitions: List[StepTransition] = Field(default_factory=list)

    def reset_flow(self) -> None:
        """Back to step 0 with no results. The claim itself is left alone."""
        self.current_step = ReviewStep.IDLE
        self.step_status = StepStatus.PENDING
        self.is_loading = False
        self.eligibility_result = None
        self.medical_result = None
        self.eligibility_overridden = False
        self.medical_overridden = False
        self.extraction_result = None
        self.inconsistency_report = None
        self.decision = None
        self.email_draft = None
        self.override_request = None
        self.transitions = []
