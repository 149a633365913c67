"""Review step state machine."""

from datetime import datetime, timezone
from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from common.enums import ReviewStep, TransitionTrigger


class StateMachineError(Exception):
    """Raised when an invalid step transition is attempted."""

    pass


class StepTransition(BaseModel):
    """Audit record for one step change."""

    claim_id: Optional[str] = None
    from_step: ReviewStep
    to_step: ReviewStep
    trigger: TransitionTrigger
    reason: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ReviewStepMachine:
    """Enforces valid step-index transitions for a review session."""

    # Define valid transitions as (from_step, to_step) tuples
    VALID_TRANSITIONS = [
        # Forward pipeline
        (ReviewStep.IDLE, ReviewStep.SUBMISSION),
        (ReviewStep.SUBMISSION, ReviewStep.ELIGIBILITY_CHECK),
        (ReviewStep.ELIGIBILITY_CHECK, ReviewStep.DOCUMENT_EXTRACTION),
        (ReviewStep.DOCUMENT_EXTRACTION, ReviewStep.CONSISTENCY_CHECK),
        (ReviewStep.CONSISTENCY_CHECK, ReviewStep.MEDICAL_VERIFICATION),
        (ReviewStep.MEDICAL_VERIFICATION, ReviewStep.DECISION),

        # Critical inconsistency found
        (ReviewStep.CONSISTENCY_CHECK, ReviewStep.MISSING_INFO),

        # Missing information supplied, re-run the consistency check
        (ReviewStep.MISSING_INFO, ReviewStep.CONSISTENCY_CHECK),
    ]

    # Which trigger may drive each transition
    ALLOWED_TRIGGERS = {
        (ReviewStep.CONSISTENCY_CHECK, ReviewStep.MISSING_INFO): {TransitionTrigger.INCONSISTENCY_BRANCH},
        (ReviewStep.MISSING_INFO, ReviewStep.CONSISTENCY_CHECK): {TransitionTrigger.MISSING_INFO_SUPPLIED},
        (ReviewStep.ELIGIBILITY_CHECK, ReviewStep.DOCUMENT_EXTRACTION): {
            TransitionTrigger.PROCEED, TransitionTrigger.OVERRIDE,
        },
        (ReviewStep.MEDICAL_VERIFICATION, ReviewStep.DECISION): {
            TransitionTrigger.PROCEED, TransitionTrigger.OVERRIDE,
        },
    }

    @classmethod
    def can_transition(
        cls,
        from_step: ReviewStep,
        to_step: ReviewStep,
        trigger: TransitionTrigger = TransitionTrigger.PROCEED,
    ) -> bool:
        """Check if a transition is valid for the given trigger."""
        if (from_step, to_step) not in cls.VALID_TRANSITIONS:
            return False
        allowed = cls.ALLOWED_TRIGGERS.get((from_step, to_step), {TransitionTrigger.PROCEED})
        return trigger in allowed

    @classmethod
    def get_valid_next_steps(cls, current_step: ReviewStep) -> List[ReviewStep]:
        """Get all steps reachable from the current step."""
        return [
            to_step
            for from_step, to_step in cls.VALID_TRANSITIONS
            if from_step == current_step
        ]

    @classmethod
    def next_step(cls, current_step: ReviewStep) -> Optional[ReviewStep]:
        """The forward successor of a step, if any."""
        if current_step >= ReviewStep.DECISION:
            return None
        return ReviewStep(current_step + 1)

    @classmethod
    def transition(
        cls,
        from_step: ReviewStep,
        to_step: ReviewStep,
        trigger: TransitionTrigger,
        claim_id: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> Tuple[ReviewStep, StepTransition]:
        """
        Validate a step change and build its audit record.

        Raises StateMachineError if transition is invalid.
        """
        if not cls.can_transition(from_step, to_step, trigger):
            raise StateMachineError(
                f"Cannot transition from step {from_step.value} to step {to_step.value} "
                f"via {trigger.value}. "
                f"Valid next steps: {[s.value for s in cls.get_valid_next_steps(from_step)]}"
            )

        record = StepTransition(
            claim_id=claim_id,
            from_step=from_step,
            to_step=to_step,
            trigger=trigger,
            reason=reason,
        )
        return to_step, record
