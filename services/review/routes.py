"""FastAPI routes for the claim review session."""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status

from services.claims.models import AvailableClaimFile
from services.claims.state_machine import StateMachineError
from services.fixtures.store import FixtureLoadError
from services.review import schemas
from services.review.dependencies import get_orchestrator
from services.review.orchestrator import (
    ReviewActionError,
    ReviewBusyError,
    ReviewOrchestrator,
    UnknownClaimError,
)

router = APIRouter(prefix="/review", tags=["review"])


def build_session_response(orchestrator: ReviewOrchestrator) -> schemas.SessionResponse:
    session = orchestrator.session
    return schemas.SessionResponse(
        current_step=session.current_step,
        step_title=session.current_step.title,
        step_status=session.step_status,
        status_narrative=session.status_narrative,
        is_loading=session.is_loading,
        selected_claim=session.selected_claim,
        claim=session.claim,
        eligibility_result=session.eligibility_result,
        medical_result=session.medical_result,
        eligibility_overridden=session.eligibility_overridden,
        medical_overridden=session.medical_overridden,
        extraction_result=session.extraction_result,
        inconsistency_report=session.inconsistency_report,
        decision=session.decision,
        email_draft=session.email_draft,
        override_request=(
            schemas.OverrideRequestResponse.model_validate(session.override_request)
            if session.override_request else None
        ),
        available_actions=orchestrator.available_actions(),
        metrics=schemas.MetricsResponse.model_validate(orchestrator.metrics),
    )


def _raise_http(e: Exception) -> None:
    """Translate review errors into HTTP errors."""
    if isinstance(e, UnknownClaimError):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    if isinstance(e, ReviewBusyError):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, FixtureLoadError):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(e))
    raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


# list the claim catalog
@router.get("/claims", response_model=List[AvailableClaimFile])
def list_available_claims(orchestrator: ReviewOrchestrator = Depends(get_orchestrator)):
    """List the claims available for review."""
    try:
        return orchestrator.list_claims()
    except FixtureLoadError as e:
        _raise_http(e)


@router.post("/data/reload", response_model=List[AvailableClaimFile])
def reload_data(orchestrator: ReviewOrchestrator = Depends(get_orchestrator)):
    """Reload the member roster, medical codes and claim catalog from disk."""
    try:
        return orchestrator.reload_data()
    except (ReviewActionError, FixtureLoadError) as e:
        _raise_http(e)


@router.post("/claims/select", response_model=schemas.SessionResponse)
def select_claim(
    request: schemas.SelectClaimRequest,
    orchestrator: ReviewOrchestrator = Depends(get_orchestrator),
):
    """Load a claim and start a fresh review."""
    try:
        orchestrator.select_claim(request.path)
    except (ReviewActionError, FixtureLoadError) as e:
        _raise_http(e)
    return build_session_response(orchestrator)


@router.get("/session", response_model=schemas.SessionResponse)
def get_session(orchestrator: ReviewOrchestrator = Depends(get_orchestrator)):
    """Get the current review session state."""
    return build_session_response(orchestrator)


# get transition history for the session
@router.get("/session/transitions", response_model=List[schemas.StepTransitionResponse])
def get_session_transitions(orchestrator: ReviewOrchestrator = Depends(get_orchestrator)):
    """Get the step transition history of the current claim."""
    return orchestrator.session.transitions


@router.post("/session/process", response_model=schemas.SessionResponse)
async def process_current_step(orchestrator: ReviewOrchestrator = Depends(get_orchestrator)):
    """Run the current review step."""
    try:
        await orchestrator.process_current_step()
    except ReviewActionError as e:
        _raise_http(e)
    return build_session_response(orchestrator)


@router.post("/session/proceed", response_model=schemas.SessionResponse)
def proceed_to_next_step(orchestrator: ReviewOrchestrator = Depends(get_orchestrator)):
    """Move to the next review step."""
    try:
        orchestrator.proceed()
    except (ReviewActionError, StateMachineError) as e:
        _raise_http(e)
    return build_session_response(orchestrator)


@router.post("/session/override", response_model=schemas.OverrideRequestResponse)
def request_override(orchestrator: ReviewOrchestrator = Depends(get_orchestrator)):
    """Ask for confirmation to override a failed check."""
    try:
        return orchestrator.request_override()
    except ReviewActionError as e:
        _raise_http(e)


@router.post("/session/override/confirm", response_model=schemas.SessionResponse)
def confirm_override(orchestrator: ReviewOrchestrator = Depends(get_orchestrator)):
    """Confirm the pending override and continue processing."""
    try:
        orchestrator.confirm_override()
    except (ReviewActionError, StateMachineError) as e:
        _raise_http(e)
    return build_session_response(orchestrator)


@router.post("/session/override/cancel", response_model=schemas.SessionResponse)
def cancel_override(orchestrator: ReviewOrchestrator = Depends(get_orchestrator)):
    """Discard the pending override."""
    try:
        orchestrator.cancel_override()
    except ReviewActionError as e:
        _raise_http(e)
    return build_session_response(orchestrator)


@router.post("/session/missing-info", response_model=schemas.SessionResponse)
def supply_missing_info(
    request: schemas.SupplyMissingInfoRequest,
    orchestrator: ReviewOrchestrator = Depends(get_orchestrator),
):
    """Mark the missing information as provided and retry the consistency check."""
    try:
        orchestrator.supply_missing_info(diagnosis=request.diagnosis)
    except (ReviewActionError, StateMachineError) as e:
        _raise_http(e)
    return build_session_response(orchestrator)


@router.post("/session/reset", response_model=schemas.SessionResponse)
def reset_session(orchestrator: ReviewOrchestrator = Depends(get_orchestrator)):
    """Administrative reset of the review and the validated/rejected counts."""
    try:
        orchestrator.reset_session()
    except ReviewActionError as e:
        _raise_http(e)
    return build_session_response(orchestrator)


@router.post("/session/next-claim", response_model=schemas.SessionResponse)
def process_another_claim(orchestrator: ReviewOrchestrator = Depends(get_orchestrator)):
    """Finish with the current claim and get ready for the next one."""
    try:
        orchestrator.process_another_claim()
    except ReviewActionError as e:
        _raise_http(e)
    return build_session_response(orchestrator)
