"""Review Orchestrator - drives one claim through the seven-step review pipeline.

The orchestrator:
- Owns the review session and the dashboard counters
- Runs the current step when asked (rule checks, model calls)
- Moves between steps through the review step state machine
- Handles reviewer overrides of failed checks
- Accepts one action at a time
"""

from typing import Awaitable, Callable, Dict, List, Optional
import json
import logging

from common.enums import (
    CheckStatus,
    OverrideTarget,
    ReviewStep,
    StepStatus,
    TransitionTrigger,
)
from services.ai.gateway import ModelGateway
from services.ai.prompts import PLACEHOLDER_DOCUMENT_URI
from services.claims.models import AvailableClaimFile, ClaimRecord, MedicalCodeTable, MemberRoster
from services.claims.state_machine import ReviewStepMachine
from services.fixtures.store import FixtureLoadError, FixtureStore
from services.review.metrics import DashboardMetrics
from services.review.session import IDLE_NARRATIVE, CheckOutcome, OverrideRequest, ReviewSession
from services.rules.validator import check_member_eligibility, verify_medical_codes

logger = logging.getLogger(__name__)

DEFAULT_MISSING_ITEMS = ["Details about diagnosis", "Copy of ID proof"]
DEFAULT_SUPPLIED_DIAGNOSIS = "Updated Diagnosis after missing info provided"


class ReviewActionError(Exception):
    """Raised when a user action is not allowed in the current session state."""

    pass


class ReviewBusyError(ReviewActionError):
    """Raised when an action arrives while another one is still running."""

    pass


class UnknownClaimError(ReviewActionError):
    """Raised when a claim path is not in the claim catalog."""

    pass


class ReviewOrchestrator:
    """Step engine for a single active claim review."""

    OVERRIDABLE_STEPS = {
        ReviewStep.ELIGIBILITY_CHECK: OverrideTarget.ELIGIBILITY,
        ReviewStep.MEDICAL_VERIFICATION: OverrideTarget.MEDICAL,
    }

    OVERRIDE_TITLES = {
        OverrideTarget.ELIGIBILITY: "Confirm Override: Eligibility",
        OverrideTarget.MEDICAL: "Confirm Override: Medical Verification",
    }

    def __init__(
        self,
        store: FixtureStore,
        gateway: ModelGateway,
        metrics: Optional[DashboardMetrics] = None,
    ):
        self.store = store
        self.gateway = gateway
        self.metrics = metrics or DashboardMetrics()
        self.session = ReviewSession()

        self.member_roster: Optional[MemberRoster] = None
        self.medical_codes: Optional[MedicalCodeTable] = None
        self.available_claims: List[AvailableClaimFile] = []

        self._step_handlers: Dict[ReviewStep, Callable[[], Awaitable[None]]] = {
            ReviewStep.SUBMISSION: self._process_submission,
            ReviewStep.ELIGIBILITY_CHECK: self._process_eligibility,
            ReviewStep.DOCUMENT_EXTRACTION: self._process_extraction,
            ReviewStep.CONSISTENCY_CHECK: self._process_consistency,
            ReviewStep.MEDICAL_VERIFICATION: self._process_medical_verification,
            ReviewStep.DECISION: self._process_decision,
            ReviewStep.MISSING_INFO: self._process_missing_info,
        }

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    @property
    def core_data_loaded(self) -> bool:
        return self.member_roster is not None and self.medical_codes is not None

    def _ensure_not_busy(self) -> None:
        if self.session.is_loading:
            raise ReviewBusyError("Another review action is still in progress")

    def _require_claim(self) -> ClaimRecord:
        if self.session.claim is None:
            raise ReviewActionError("No claim loaded. Select a claim to process first.")
        return self.session.claim

    def _record_transition(
        self, to_step: ReviewStep, trigger: TransitionTrigger, reason: Optional[str] = None
    ) -> None:
        claim_id = self.session.claim.claim_id if self.session.claim else None
        from_step = self.session.current_step
        new_step, record = ReviewStepMachine.transition(
            from_step=from_step,
            to_step=to_step,
            trigger=trigger,
            claim_id=claim_id,
            reason=reason,
        )
        self.session.current_step = new_step
        self.session.transitions.append(record)
        logger.info(f"Claim {claim_id}: step {from_step.value} -> {new_step.value} ({trigger.value})")

    def _reinitialize(self) -> None:
        self.session.reset_flow()
        self.metrics.finish_processing()

    # ------------------------------------------------------------------
    # Fixture loading and claim selection
    # ------------------------------------------------------------------

    def load_core_data(self, force: bool = False) -> None:
        """Load the member roster, medical codes and claim catalog."""
        if self.core_data_loaded and self.available_claims and not force:
            return

        try:
            roster = self.store.load_member_roster()
            codes = self.store.load_medical_codes()
            catalog = self.store.load_available_claims()
        except FixtureLoadError as e:
            logger.error(f"Failed to load core data: {e}")
            self.session.step_status = StepStatus.ERROR
            self.session.status_narrative = "Failed to load critical data. Check the data files and reload."
            raise

        self.member_roster = roster
        self.medical_codes = codes
        self.available_claims = catalog
        self.metrics.set_total(len(catalog))
        if self.session.claim is None and self.session.step_status == StepStatus.ERROR:
            self.session.step_status = StepStatus.PENDING
            self.session.status_narrative = IDLE_NARRATIVE
        logger.info(
            f"Core data loaded: {len(roster.members)} members, "
            f"{len(codes.eligible_codes)} eligible codes, {len(catalog)} claims"
        )

    def reload_data(self) -> List[AvailableClaimFile]:
        """Re-read every fixture file, e.g. after the data directory changed."""
        self._ensure_not_busy()
        self.load_core_data(force=True)
        return list(self.available_claims)

    def list_claims(self) -> List[AvailableClaimFile]:
        self.load_core_data()
        return list(self.available_claims)

    def select_claim(self, claim_path: str) -> ReviewSession:
        """Load a claim from the catalog and start a fresh review of it."""
        self._ensure_not_busy()
        self.load_core_data()

        entry = next((c for c in self.available_claims if c.path == claim_path), None)
        if entry is None:
            raise UnknownClaimError(f"Claim {claim_path} is not in the claim catalog")

        self._reinitialize()
        try:
            claim = self.store.load_claim(entry.path)
        except FixtureLoadError:
            self.session.claim = None
            self.session.initial_claim = None
            self.session.selected_claim = None
            self.session.step_status = StepStatus.ERROR
            self.session.status_narrative = "Failed to load the selected claim. Please try another."
            raise

        self.session.claim = claim
        self.session.initial_claim = claim.snapshot()
        self.session.selected_claim = entry
        self.session.status_narrative = f'Claim "{entry.name}" loaded. Proceed to start processing this claim.'
        return self.session

    # ------------------------------------------------------------------
    # Step navigation
    # ------------------------------------------------------------------

    def proceed(self) -> ReviewSession:
        """Move to the next step once the current one has completed."""
        self._ensure_not_busy()
        self._require_claim()

        current = self.session.current_step
        if current != ReviewStep.IDLE and self.session.step_status != StepStatus.COMPLETED:
            raise ReviewActionError(
                f"Step {current.value} must be completed before proceeding "
                f"(status: {self.session.step_status.value})"
            )

        next_step = ReviewStepMachine.next_step(current)
        if next_step is None:
            if current == ReviewStep.DECISION:
                raise ReviewActionError("Claim review is complete. Process another claim to continue.")
            raise ReviewActionError("Supply the missing information to continue this claim.")

        self._record_transition(next_step, TransitionTrigger.PROCEED)
        self.session.step_status = StepStatus.PENDING
        self.session.status_narrative = f"Ready for step {next_step.value}: {next_step.title}."
        return self.session

    def request_override(self) -> OverrideRequest:
        """Ask for confirmation before forcing a failed check through."""
        self._ensure_not_busy()
        self._require_claim()

        step = self.session.current_step
        target = self.OVERRIDABLE_STEPS.get(step)
        if target is None:
            raise ReviewActionError("Overrides are only available for the eligibility and medical checks")

        result = self._check_result(target)
        if self.session.step_status != StepStatus.ERROR or result is None or result.is_eligible:
            raise ReviewActionError(f"Step {step.value} has no failed check to override")

        request = OverrideRequest(
            target=target,
            title=self.OVERRIDE_TITLES[target],
            message=f"{result.message} Do you want to override this and continue processing?",
        )
        self.session.override_request = request
        return request

    def confirm_override(self) -> ReviewSession:
        """Force the failed check to eligible and proceed to the next step."""
        self._ensure_not_busy()
        self._require_claim()

        request = self.session.override_request
        if request is None:
            raise ReviewActionError("No override is waiting for confirmation")

        # Single use: consumed whether or not it still applies
        self.session.override_request = None
        if self.OVERRIDABLE_STEPS.get(self.session.current_step) != request.target:
            raise ReviewActionError("The pending override no longer matches the current step")

        result = self._check_result(request.target)
        overridden = CheckOutcome(status=CheckStatus.OVERRIDDEN, message=result.message)
        if request.target == OverrideTarget.ELIGIBILITY:
            self.session.eligibility_overridden = True
            self.session.eligibility_result = overridden
        else:
            self.session.medical_overridden = True
            self.session.medical_result = overridden

        next_step = ReviewStepMachine.next_step(self.session.current_step)
        self._record_transition(next_step, TransitionTrigger.OVERRIDE, reason=request.title)
        self.session.step_status = StepStatus.PENDING
        self.session.status_narrative = (
            f"{request.title} accepted. Ready for step {next_step.value}: {next_step.title}."
        )
        logger.info(f"Claim {self.session.claim.claim_id}: {request.target.value} check overridden")
        return self.session

    def cancel_override(self) -> ReviewSession:
        self._ensure_not_busy()
        if self.session.override_request is not None:
            self.session.override_request = None
            self.session.status_narrative = "Override cancelled."
        return self.session

    def supply_missing_info(self, diagnosis: Optional[str] = None) -> ReviewSession:
        """Record the missing information as provided and go back to the consistency check."""
        self._ensure_not_busy()
        claim = self._require_claim()
        if self.session.current_step != ReviewStep.MISSING_INFO:
            raise ReviewActionError("There is no missing-information request for this claim")

        claim.missing_information = []
        claim.diagnosis = diagnosis or claim.diagnosis or DEFAULT_SUPPLIED_DIAGNOSIS

        self._record_transition(ReviewStep.CONSISTENCY_CHECK, TransitionTrigger.MISSING_INFO_SUPPLIED)
        self.session.step_status = StepStatus.PENDING
        self.session.inconsistency_report = None
        self.session.email_draft = None
        self.session.status_narrative = "Missing information provided. Retry the consistency check."
        self.metrics.finish_processing()
        return self.session

    # ------------------------------------------------------------------
    # Resets
    # ------------------------------------------------------------------

    def reset_session(self) -> ReviewSession:
        """Administrative reset: restore the loaded claim and zero validated/rejected counts."""
        self._ensure_not_busy()
        snapshot = self.session.initial_claim
        selected = self.session.selected_claim

        self._reinitialize()
        self.metrics.reset_outcomes()

        if snapshot is not None and selected is not None:
            self.session.claim = snapshot.snapshot()
            self.session.step_status = StepStatus.PENDING
            self.session.status_narrative = f'Claim "{selected.name}" reloaded. Proceed to start processing this claim.'
        else:
            self.session.claim = None
            self.session.initial_claim = None
            self.session.selected_claim = None
            self.session.status_narrative = IDLE_NARRATIVE

        logger.info("Review session reset")
        return self.session

    def process_another_claim(self) -> ReviewSession:
        """Drop the current claim, keeping cumulative counters."""
        self._ensure_not_busy()
        self._reinitialize()
        self.session.claim = None
        self.session.initial_claim = None
        self.session.selected_claim = None
        self.session.status_narrative = "Previous claim processed. Select a new claim to begin processing."
        return self.session

    # ------------------------------------------------------------------
    # Step processing
    # ------------------------------------------------------------------

    async def process_current_step(self) -> ReviewSession:
        """Run the current step. Only one step action may be in flight."""
        self._ensure_not_busy()
        self._require_claim()
        if not self.core_data_loaded:
            raise ReviewActionError("Core data not loaded. Cannot process.")

        step = self.session.current_step
        if step == ReviewStep.IDLE:
            raise ReviewActionError("Proceed to start processing this claim first.")
        if self.session.step_status in (StepStatus.COMPLETED, StepStatus.INFO, StepStatus.IN_PROGRESS):
            raise ReviewActionError(
                f"Step {step.value} has already been processed (status: {self.session.step_status.value})"
            )

        self.session.is_loading = True
        self.session.step_status = StepStatus.IN_PROGRESS
        self.metrics.start_processing()
        try:
            await self._step_handlers[step]()
        except Exception as e:
            logger.error(f"Error in step {self.session.current_step.value}: {e}", exc_info=True)
            self.session.step_status = StepStatus.ERROR
            self.session.status_narrative = f"An error occurred: {e}"
        finally:
            self.session.is_loading = False
            self.metrics.finish_processing()

        return self.session

    def _check_result(self, target: OverrideTarget) -> Optional[CheckOutcome]:
        if target == OverrideTarget.ELIGIBILITY:
            return self.session.eligibility_result
        return self.session.medical_result

    async def _process_submission(self) -> None:
        self.session.status_narrative = "Claim data and documents received and registered."
        self.session.step_status = StepStatus.COMPLETED

    async def _process_eligibility(self) -> None:
        claim = self.session.claim
        result = check_member_eligibility(claim, self.member_roster)
        self.session.eligibility_result = CheckOutcome(status=result.status, message=result.message)
        self.session.eligibility_overridden = False

        if result.is_eligible:
            self.session.status_narrative = (
                f"Policy holder {result.member.name.strip()} is eligible. Policy status: Active."
            )
            self.session.step_status = StepStatus.COMPLETED
        else:
            self.session.status_narrative = f"Claimant is ineligible. {result.message}"
            self.session.step_status = StepStatus.ERROR

    async def _process_extraction(self) -> None:
        claim = self.session.claim
        current_fields = claim.to_model_input()
        extracted = await self.gateway.extract_and_fill(PLACEHOLDER_DOCUMENT_URI, current_fields)

        self.session.extraction_result = extracted
        changed = claim.merge_extracted(extracted)
        self.session.status_narrative = (
            f"Extracted and filled claim data from documents. {changed} field(s) affected."
        )
        self.session.step_status = StepStatus.COMPLETED

    async def _process_consistency(self) -> None:
        """Critical findings branch to step 7 and draft the email in the same call."""
        claim = self.session.claim
        report = await self.gateway.highlight_inconsistencies(
            claim_json=json.dumps(claim.to_model_input()),
            rules_json=json.dumps(self.medical_codes.as_rules_context()),
        )
        self.session.inconsistency_report = report

        if not report.inconsistencies:
            self.session.status_narrative = "Consistency check passed. No major inconsistencies found."
            self.session.step_status = StepStatus.COMPLETED
            return

        self.session.status_narrative = (
            f"Found {len(report.inconsistencies)} potential inconsistencies. Summary: {report.summary}"
        )
        if not report.has_critical:
            self.session.step_status = StepStatus.COMPLETED
            return

        # Critical findings: ask the claimant for the missing information
        claim.missing_information = list(report.inconsistencies)
        self._record_transition(
            ReviewStep.MISSING_INFO,
            TransitionTrigger.INCONSISTENCY_BRANCH,
            reason="; ".join(report.critical_items),
        )
        self.session.step_status = StepStatus.IN_PROGRESS
        await self._process_missing_info()

    async def _process_medical_verification(self) -> None:
        result = verify_medical_codes(self.session.claim, self.medical_codes)
        self.session.medical_result = CheckOutcome(status=result.status, message=result.message)
        self.session.medical_overridden = False
        self.session.status_narrative = result.message
        self.session.step_status = StepStatus.COMPLETED if result.is_eligible else StepStatus.ERROR

    async def _process_decision(self) -> None:
        eligibility = self.session.eligibility_result
        medical = self.session.medical_result
        if eligibility is None or medical is None:
            self.session.status_narrative = "Eligibility and medical verification must be completed first."
            self.session.step_status = StepStatus.ERROR
            return

        claim = self.session.claim
        is_eligible = (
            (eligibility.is_eligible or self.session.eligibility_overridden)
            and (medical.is_eligible or self.session.medical_overridden)
        )
        settlement = claim.apply_settlement(is_eligible)

        overrides = []
        if self.session.eligibility_overridden:
            overrides.append("eligibility")
        if self.session.medical_overridden:
            overrides.append("medical verification")
        reason = f"Eligibility: {eligibility.message} Medical Verification: {medical.message}"
        if overrides:
            reason += f" Reviewer override applied to: {', '.join(overrides)}."

        decision = await self.gateway.generate_summary(
            claim_amount=claim.claimed_amount,
            settlement_amount=settlement,
            is_eligible=is_eligible,
            reason=reason,
        )
        self.session.decision = decision
        self.metrics.record_decision(decision.decision)
        self.session.override_request = None
        self.session.status_narrative = f"Decision: {decision.decision.value}. {decision.summary}"
        self.session.step_status = StepStatus.COMPLETED
        logger.info(
            f"Claim {claim.claim_id} decided {decision.decision.value}, settlement {settlement}"
        )

    async def _process_missing_info(self) -> None:
        claim = self.session.claim
        items = claim.missing_information or DEFAULT_MISSING_ITEMS
        draft = await self.gateway.generate_email(
            claim_id=claim.claim_id,
            claimant_name=claim.claimant_name,
            missing_items=list(items),
        )
        self.session.email_draft = draft
        self.session.status_narrative = "Drafted an email to request the missing information."
        self.session.step_status = StepStatus.INFO

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def available_actions(self) -> List[str]:
        """Actions the current session state accepts."""
        session = self.session
        if session.is_loading:
            return []

        actions = ["select_claim", "reset", "next_claim"]
        if session.claim is None:
            return actions

        step = session.current_step
        status = session.step_status
        if step != ReviewStep.IDLE and status in (StepStatus.PENDING, StepStatus.ERROR):
            actions.append("process")
        if step == ReviewStep.IDLE or (status == StepStatus.COMPLETED and step < ReviewStep.DECISION):
            actions.append("proceed")
        if step in self.OVERRIDABLE_STEPS and status == StepStatus.ERROR:
            result = self._check_result(self.OVERRIDABLE_STEPS[step])
            if result is not None and not result.is_eligible:
                actions.append("request_override")
        if session.override_request is not None:
            actions.extend(["confirm_override", "cancel_override"])
        if step == ReviewStep.MISSING_INFO:
            actions.append("supply_missing_info")
        return actions
