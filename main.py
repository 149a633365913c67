"""Main FastAPI application entry point."""

from dotenv import load_dotenv

load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from common.config import CORS_ALLOW_ORIGINS
from services.review import dashboard_routes, routes as review_routes
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="ClaimWise Review Engine",
    description="Step-by-step insurance claim review with model-assisted extraction, checks and decisions",
    version="1.0.0",
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(review_routes.router)
app.include_router(dashboard_routes.router)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "service": "ClaimWise Review Engine",
        "version": "1.0.0",
        "status": "operational",
    }


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
