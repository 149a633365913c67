"""Runtime configuration read from the environment."""

from pathlib import Path
import os

BASE_DIR = Path(__file__).resolve().parent.parent

# Fixture data: claim catalog, member roster, medical codes, claim files
DATA_DIR = Path(os.getenv("CLAIMWISE_DATA_DIR", str(BASE_DIR / "data")))

MODEL_NAME = os.getenv("CLAIMWISE_MODEL", "gpt-4o")
MODEL_TEMPERATURE = float(os.getenv("CLAIMWISE_MODEL_TEMPERATURE", "0"))

# Upper bound on a single model round-trip
MODEL_TIMEOUT_SECONDS = float(os.getenv("CLAIMWISE_MODEL_TIMEOUT_SECONDS", "60"))

CORS_ALLOW_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CLAIMWISE_CORS_ORIGINS", "*").split(",")
    if origin.strip()
]
