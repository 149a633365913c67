"""Dashboard routes for review counters."""

from fastapi import APIRouter, Depends

from services.review.dependencies import get_orchestrator
from services.review.orchestrator import ReviewOrchestrator
from services.review.schemas import MetricsResponse

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/metrics", response_model=MetricsResponse)
def get_dashboard_metrics(orchestrator: ReviewOrchestrator = Depends(get_orchestrator)):
    """Get total, in-flight, validated and rejected claim counts."""
    return orchestrator.metrics
