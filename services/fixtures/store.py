"""Read-only access to the static review fixtures."""

from pathlib import Path
from typing import Any, List, Optional, Union
import json
import logging

from pydantic import TypeAdapter, ValidationError

from common.config import DATA_DIR
from services.claims.models import AvailableClaimFile, ClaimRecord, MedicalCodeTable, MemberRoster

logger = logging.getLogger(__name__)

AVAILABLE_CLAIMS_FILE = "available_claims.json"
MEMBER_DATA_FILE = "member_data.json"
MEDICAL_CODES_FILE = "medical_codes.json"

_catalog_adapter = TypeAdapter(List[AvailableClaimFile])


class FixtureLoadError(Exception):
    """Raised when a fixture file is missing, unreadable or malformed."""

    pass


class FixtureStore:
    """Loads the claim catalog, member roster, medical codes and claim files.

    All paths are resolved under ``data_dir``; claim paths come from the
    catalog and may not escape it.
    """

    def __init__(self, data_dir: Optional[Union[str, Path]] = None):
        self.data_dir = Path(data_dir) if data_dir is not None else DATA_DIR

    def _resolve(self, relative_path: str) -> Path:
        base = self.data_dir.resolve()
        path = (base / relative_path.lstrip("/")).resolve()
        if base != path and base not in path.parents:
            raise FixtureLoadError(f"Fixture path {relative_path} is outside the data directory")
        return path

    def _read_json(self, relative_path: str) -> Any:
        path = self._resolve(relative_path)
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except FileNotFoundError:
            raise FixtureLoadError(f"Fixture file not found: {relative_path}")
        except (OSError, json.JSONDecodeError) as e:
            raise FixtureLoadError(f"Failed to read fixture {relative_path}: {e}")

    def load_available_claims(self) -> List[AvailableClaimFile]:
        data = self._read_json(AVAILABLE_CLAIMS_FILE)
        try:
            return _catalog_adapter.validate_python(data)
        except ValidationError as e:
            raise FixtureLoadError(f"Claim catalog is malformed: {e}")

    def load_member_roster(self) -> MemberRoster:
        data = self._read_json(MEMBER_DATA_FILE)
        try:
            return MemberRoster.model_validate(data)
        except ValidationError as e:
            raise FixtureLoadError(f"Member data is malformed: {e}")

    def load_medical_codes(self) -> MedicalCodeTable:
        data = self._read_json(MEDICAL_CODES_FILE)
        try:
            table = MedicalCodeTable.model_validate(data)
        except ValidationError as e:
            raise FixtureLoadError(f"Medical code table is malformed: {e}")

        overlap = set(table.eligible_codes) & set(table.ineligible_codes)
        if overlap:
            raise FixtureLoadError(
                f"Medical codes listed as both eligible and ineligible: {sorted(overlap)}"
            )
        return table

    def load_claim(self, claim_path: str) -> ClaimRecord:
        data = self._read_json(claim_path)
        try:
            claim = ClaimRecord.model_validate(data)
        except ValidationError as e:
            raise FixtureLoadError(f"Claim file {claim_path} is malformed: {e}")
        logger.info(f"Loaded claim {claim.claim_id} from {claim_path}")
        return claim
