"""Unit tests for the review step state machine."""

import pytest
from common.enums import ReviewStep, TransitionTrigger
from services.claims.state_machine import ReviewStepMachine, StateMachineError


class TestReviewStepMachine:
    """Test review step transition logic."""

    def test_valid_transitions_from_idle(self):
        """Test valid transitions from IDLE."""
        valid_next = ReviewStepMachine.get_valid_next_steps(ReviewStep.IDLE)
        assert valid_next == [ReviewStep.SUBMISSION]

    def test_valid_transitions_from_consistency_check(self):
        """Test the consistency check can go forward or branch to missing info."""
        valid_next = ReviewStepMachine.get_valid_next_steps(ReviewStep.CONSISTENCY_CHECK)
        assert ReviewStep.MEDICAL_VERIFICATION in valid_next
        assert ReviewStep.MISSING_INFO in valid_next
        assert len(valid_next) == 2

    def test_valid_transitions_from_missing_info(self):
        """Test missing info only returns to the consistency check."""
        valid_next = ReviewStepMachine.get_valid_next_steps(ReviewStep.MISSING_INFO)
        assert valid_next == [ReviewStep.CONSISTENCY_CHECK]

    def test_decision_is_terminal(self):
        """Test nothing follows the decision step."""
        assert ReviewStepMachine.get_valid_next_steps(ReviewStep.DECISION) == []
        assert ReviewStepMachine.next_step(ReviewStep.DECISION) is None

    def test_forward_steps_increase_by_one(self):
        """Test every proceed transition moves exactly one step forward."""
        for step in list(ReviewStep)[:6]:
            next_step = ReviewStepMachine.next_step(step)
            assert next_step == step + 1
            assert ReviewStepMachine.can_transition(step, next_step, TransitionTrigger.PROCEED)

    def test_only_listed_step_deltas_are_valid(self):
        """Test no transition outside the forward chain and the two branches."""
        allowed = {(a, a + 1) for a in range(0, 6)} | {(4, 7), (7, 4)}
        for from_step in ReviewStep:
            for to_step in ReviewStep:
                valid = any(
                    ReviewStepMachine.can_transition(from_step, to_step, trigger)
                    for trigger in TransitionTrigger
                )
                assert valid == ((from_step.value, to_step.value) in allowed)

    def test_branch_requires_inconsistency_trigger(self):
        """Test 4 -> 7 only happens through the inconsistency branch."""
        assert not ReviewStepMachine.can_transition(
            ReviewStep.CONSISTENCY_CHECK, ReviewStep.MISSING_INFO, TransitionTrigger.PROCEED
        )
        assert ReviewStepMachine.can_transition(
            ReviewStep.CONSISTENCY_CHECK, ReviewStep.MISSING_INFO, TransitionTrigger.INCONSISTENCY_BRANCH
        )

    def test_return_requires_missing_info_trigger(self):
        """Test 7 -> 4 only happens when missing info is supplied."""
        assert not ReviewStepMachine.can_transition(
            ReviewStep.MISSING_INFO, ReviewStep.CONSISTENCY_CHECK, TransitionTrigger.PROCEED
        )
        assert ReviewStepMachine.can_transition(
            ReviewStep.MISSING_INFO, ReviewStep.CONSISTENCY_CHECK, TransitionTrigger.MISSING_INFO_SUPPLIED
        )

    def test_override_only_after_overridable_checks(self):
        """Test overrides advance past steps 2 and 5 only."""
        assert ReviewStepMachine.can_transition(
            ReviewStep.ELIGIBILITY_CHECK, ReviewStep.DOCUMENT_EXTRACTION, TransitionTrigger.OVERRIDE
        )
        assert ReviewStepMachine.can_transition(
            ReviewStep.MEDICAL_VERIFICATION, ReviewStep.DECISION, TransitionTrigger.OVERRIDE
        )
        assert not ReviewStepMachine.can_transition(
            ReviewStep.DOCUMENT_EXTRACTION, ReviewStep.CONSISTENCY_CHECK, TransitionTrigger.OVERRIDE
        )

    def test_cannot_skip_steps(self):
        """Test that invalid transition paths are rejected."""
        assert not ReviewStepMachine.can_transition(ReviewStep.SUBMISSION, ReviewStep.DOCUMENT_EXTRACTION)
        assert not ReviewStepMachine.can_transition(ReviewStep.DECISION, ReviewStep.MISSING_INFO)
        assert not ReviewStepMachine.can_transition(ReviewStep.SUBMISSION, ReviewStep.SUBMISSION)

    def test_transition_creates_transition_record(self):
        """Test that transition builds an audit record."""
        new_step, record = ReviewStepMachine.transition(
            from_step=ReviewStep.IDLE,
            to_step=ReviewStep.SUBMISSION,
            trigger=TransitionTrigger.PROCEED,
            claim_id="CLM-1",
            reason="Start",
        )

        assert new_step == ReviewStep.SUBMISSION
        assert record.claim_id == "CLM-1"
        assert record.from_step == ReviewStep.IDLE
        assert record.to_step == ReviewStep.SUBMISSION
        assert record.trigger == TransitionTrigger.PROCEED
        assert record.reason == "Start"
        assert record.created_at is not None

    def test_transition_raises_error_on_invalid_transition(self):
        """Test that invalid transitions raise StateMachineError."""
        with pytest.raises(StateMachineError) as exc_info:
            ReviewStepMachine.transition(
                from_step=ReviewStep.SUBMISSION,
                to_step=ReviewStep.DECISION,
                trigger=TransitionTrigger.PROCEED,
            )

        assert "Cannot transition" in str(exc_info.value)
