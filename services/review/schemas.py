"""Pydantic schemas for the review API."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from common.enums import OverrideTarget, ReviewStep, StepStatus, TransitionTrigger
from services.ai.schemas import ClaimDecision, EmailDraft, InconsistencyReport
from services.claims.models import AvailableClaimFile, ClaimRecord
from services.review.session import CheckOutcome


class SelectClaimRequest(BaseModel):
    """Schema for selecting a claim from the catalog."""

    path: str = Field(..., min_length=1)


class SupplyMissingInfoRequest(BaseModel):
    """Schema for reporting the missing information as provided."""

    diagnosis: Optional[str] = Field(None, min_length=1)


class OverrideRequestResponse(BaseModel):
    """Schema for a pending override confirmation."""

    target: OverrideTarget
    title: str
    message: str

    model_config = ConfigDict(from_attributes=True)


class StepTransitionResponse(BaseModel):
    """Schema for a step transition audit record."""

    claim_id: Optional[str]
    from_step: ReviewStep
    to_step: ReviewStep
    trigger: TransitionTrigger
    reason: Optional[str]
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MetricsResponse(BaseModel):
    """Schema for dashboard counters."""

    total_claims: int
    processing_claims: int
    validated_claims: int
    rejected_claims: int

    model_config = ConfigDict(from_attributes=True)


class SessionResponse(BaseModel):
    """Schema for the review session state."""

    current_step: ReviewStep
    step_title: str
    step_status: StepStatus
    status_narrative: str
    is_loading: bool
    selected_claim: Optional[AvailableClaimFile]
    claim: Optional[ClaimRecord]
    eligibility_result: Optional[CheckOutcome]
    medical_result: Optional[CheckOutcome]
    eligibility_overridden: bool
    medical_overridden: bool
    extraction_result: Optional[Dict[str, Any]]
    inconsistency_report: Optional[InconsistencyReport]
    decision: Optional[ClaimDecision]
    email_draft: Optional[EmailDraft]
    override_request: Optional[OverrideRequestResponse]
    available_actions: List[str]
    metrics: MetricsResponse
