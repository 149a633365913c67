"""Enumerations for claim review steps, statuses and outcomes."""

from enum import Enum, IntEnum

# the review pipeline steps
class ReviewStep(IntEnum):
    """Review pipeline steps, in processing order."""

    IDLE = 0
    SUBMISSION = 1
    ELIGIBILITY_CHECK = 2
    DOCUMENT_EXTRACTION = 3
    CONSISTENCY_CHECK = 4
    MEDICAL_VERIFICATION = 5
    DECISION = 6
    MISSING_INFO = 7

    @property
    def title(self) -> str:
        return STEP_TITLES[self]


STEP_TITLES = {
    ReviewStep.IDLE: "Idle",
    ReviewStep.SUBMISSION: "Claim Submission",
    ReviewStep.ELIGIBILITY_CHECK: "Policy & Member Eligibility Check",
    ReviewStep.DOCUMENT_EXTRACTION: "Document Data Extraction",
    ReviewStep.CONSISTENCY_CHECK: "Claim Consistency Check",
    ReviewStep.MEDICAL_VERIFICATION: "Medical Eligibility Verification",
    ReviewStep.DECISION: "Final Summary & Decision",
    ReviewStep.MISSING_INFO: "Missing Information Required",
}


class StepStatus(str, Enum):
    """Status of the current review step."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    ERROR = "error"  # Check failed or action errored
    INFO = "info"  # Missing-info email drafted


class CheckStatus(str, Enum):
    """Outcome of a rule check (steps 2 and 5)."""

    ELIGIBLE = "Eligible"
    INELIGIBLE = "Ineligible"
    OVERRIDDEN = "Eligible (Overridden)"


class OverrideTarget(str, Enum):
    """Checks that a reviewer may override."""

    ELIGIBILITY = "ELIGIBILITY"
    MEDICAL = "MEDICAL"


class PolicyStatus(str, Enum):
    """Member policy states."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"


class ClaimDecisionType(str, Enum):
    """Final claim decisions."""

    APPROVED = "Approved"
    REJECTED = "Rejected"


class TransitionTrigger(str, Enum):
    """What caused a step transition."""

    PROCEED = "PROCEED"
    OVERRIDE = "OVERRIDE"
    INCONSISTENCY_BRANCH = "INCONSISTENCY_BRANCH"
    MISSING_INFO_SUPPLIED = "MISSING_INFO_SUPPLIED"
