"""Shared pytest fixtures and configuration."""

import json
import pytest
from unittest.mock import AsyncMock, MagicMock
from fastapi.testclient import TestClient
from faker import Faker

from common.enums import ClaimDecisionType
from main import app
from services.ai.gateway import ModelGateway
from services.ai.schemas import ClaimDecision, EmailDraft, InconsistencyReport
from services.claims.models import ClaimRecord
from services.fixtures.store import FixtureStore
from services.review.dependencies import get_orchestrator
from services.review.orchestrator import ReviewOrchestrator

fake = Faker()

ELIGIBLE_CODES = ["K35.80", "A90", "I21.4"]
INELIGIBLE_CODES = ["Z41.1", "F17.210"]

CLAIM_PATH = "claims/claim_active.json"


@pytest.fixture
def sample_claim_data():
    """Generate sample claim data for testing."""
    return {
        "claim_id": fake.bothify(text="CLM-####-####"),
        "policy_number": fake.bothify(text="POL-HLTH-#####"),
        "claimant_name": fake.name(),
        "claimant_national_id": fake.numerify(text="#### #### ####"),
        "date_of_service": fake.date(),
        "hospital_name": f"{fake.city()} General Hospital",
        "diagnosis": "Acute appendicitis",
        "claimed_amount": 10000,
        "documents": [
            {"type": "Discharge Summary", "file_name": "discharge_summary.pdf"},
            {"type": "Hospital Bill", "file_name": "hospital_bill.pdf"},
        ],
        "medical_codes": ["K35.80"],
        "settlement_amount": None,
        "missing_information": [],
    }


@pytest.fixture
def sample_member_data(sample_claim_data):
    """Roster with an Active member matching the sample claim."""
    return {
        "members": [
            {
                "national_id": sample_claim_data["claimant_national_id"],
                "name": sample_claim_data["claimant_name"],
                "policy_number": sample_claim_data["policy_number"],
                "policy_status": "Active",
                "premium_paid_date": "2024-01-05",
            },
            {
                "national_id": fake.numerify(text="#### #### ####"),
                "name": fake.name(),
                "policy_number": fake.bothify(text="POL-HLTH-#####"),
                "policy_status": "Inactive",
                "premium_paid_date": "2022-06-30",
            },
        ]
    }


@pytest.fixture
def sample_medical_codes():
    return {
        "eligible_codes": ELIGIBLE_CODES,
        "ineligible_codes": INELIGIBLE_CODES,
        "rules": ["Cosmetic procedures are not covered."],
    }


def write_json(path, data):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")


@pytest.fixture
def data_dir(tmp_path, sample_claim_data, sample_member_data, sample_medical_codes):
    """A fixture data directory with one claim in the catalog."""
    write_json(tmp_path / "member_data.json", sample_member_data)
    write_json(tmp_path / "medical_codes.json", sample_medical_codes)
    write_json(tmp_path / "available_claims.json", [{"name": "Sample Claim", "path": CLAIM_PATH}])
    write_json(tmp_path / CLAIM_PATH, sample_claim_data)
    return tmp_path


@pytest.fixture
def fixture_store(data_dir):
    return FixtureStore(data_dir)


@pytest.fixture
def sample_claim(sample_claim_data):
    return ClaimRecord.model_validate(sample_claim_data)


def _summary_for(claim_amount, settlement_amount, is_eligible, reason):
    decision = ClaimDecisionType.APPROVED if is_eligible else ClaimDecisionType.REJECTED
    return ClaimDecision(
        decision=decision,
        summary=f"Claimed {claim_amount}, settling {settlement_amount}.",
    )


@pytest.fixture
def mock_gateway():
    """Model gateway stub with well-behaved default replies."""
    gateway = MagicMock(spec=ModelGateway)
    gateway.extract_and_fill = AsyncMock(side_effect=lambda uri, fields: dict(fields))
    gateway.highlight_inconsistencies = AsyncMock(
        return_value=InconsistencyReport(inconsistencies=[], summary="No inconsistencies found.")
    )
    gateway.generate_summary = AsyncMock(side_effect=_summary_for)
    gateway.generate_email = AsyncMock(
        return_value=EmailDraft(
            email_subject="Additional information required for your claim",
            email_body="Dear claimant, please send the items listed below. Thank you.",
        )
    )
    return gateway


@pytest.fixture
def orchestrator(fixture_store, mock_gateway):
    return ReviewOrchestrator(store=fixture_store, gateway=mock_gateway)


@pytest.fixture
def loaded_orchestrator(orchestrator):
    """Orchestrator with the sample claim selected."""
    orchestrator.select_claim(CLAIM_PATH)
    return orchestrator


@pytest.fixture(scope="function")
def client(orchestrator):
    """Create a test client with the orchestrator dependency overridden."""
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()
