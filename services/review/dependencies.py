"""Process-wide review orchestrator for the API layer."""

from functools import lru_cache

from services.ai.gateway import ModelGateway
from services.fixtures.store import FixtureStore
from services.review.orchestrator import ReviewOrchestrator


@lru_cache(maxsize=1)
def get_orchestrator() -> ReviewOrchestrator:
    """Dependency for FastAPI route handlers. One review session per process."""
    return ReviewOrchestrator(store=FixtureStore(), gateway=ModelGateway())
