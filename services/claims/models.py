"""Claim, member and medical code records."""

from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional
import logging

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from common.enums import PolicyStatus

logger = logging.getLogger(__name__)

SETTLEMENT_RATIO = Decimal("0.9")

# Owned by the decision and consistency steps, never by document extraction
EXTRACTION_PROTECTED_FIELDS = frozenset({"settlement_amount", "missing_information"})


def compute_settlement(claimed_amount: float, eligible: bool) -> int:
    """90% of the claimed amount rounded half-up to a whole unit, or 0 when ineligible."""
    if not eligible:
        return 0
    amount = Decimal(str(claimed_amount)) * SETTLEMENT_RATIO
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class ClaimDocument(BaseModel):
    """A document attached to a claim."""

    type: str
    file_name: str


# everything in a claim
class ClaimRecord(BaseModel):
    """Working copy of one claim under review.

    Core fields are fixed; anything else contributed by document
    extraction is kept in ``extra_fields``.
    """

    claim_id: str = Field(..., min_length=1)
    policy_number: str
    claimant_name: str
    claimant_national_id: str
    date_of_service: str
    hospital_name: Optional[str] = None
    diagnosis: Optional[str] = None
    claimed_amount: float = Field(..., ge=0)
    documents: List[ClaimDocument] = Field(default_factory=list)
    medical_codes: List[str] = Field(default_factory=list)
    settlement_amount: Optional[int] = None
    missing_information: List[str] = Field(default_factory=list)
    extra_fields: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(validate_assignment=True)

    @classmethod
    def core_field_names(cls) -> List[str]:
        return [name for name in cls.model_fields if name != "extra_fields"]

    def to_model_input(self) -> Dict[str, Any]:
        """Flatten core and extension fields into one JSON-compatible dict."""
        data = self.model_dump(mode="json", exclude={"extra_fields"})
        for key, value in self.extra_fields.items():
            data.setdefault(key, value)
        return data

    def merge_extracted(self, fields: Dict[str, Any]) -> int:
        """
        Merge extracted fields into this claim in place.

        Incoming values win on conflict, ``None`` values are skipped and unknown
        keys land in ``extra_fields``. Settlement and missing information are
        never taken from extraction. If the merged core fields do not validate,
        nothing is changed.

        Returns the number of fields whose value changed.
        """
        core_names = set(self.core_field_names())
        current_core = self.model_dump(exclude={"extra_fields"})
        core_updates: Dict[str, Any] = {}
        extra_updates: Dict[str, Any] = {}

        for key, value in fields.items():
            if value is None or key in EXTRACTION_PROTECTED_FIELDS:
                continue
            if key in core_names:
                core_updates[key] = value
            elif key != "extra_fields":
                extra_updates[key] = value

        try:
            merged = ClaimRecord.model_validate(
                {**current_core, **core_updates, "extra_fields": {**self.extra_fields, **extra_updates}}
            )
        except ValidationError as e:
            logger.warning(f"Discarding extracted data for claim {self.claim_id}: {e.error_count()} invalid field(s)")
            return 0

        changed = sum(1 for name in core_names if getattr(merged, name) != getattr(self, name))
        changed += sum(1 for key, value in extra_updates.items() if self.extra_fields.get(key) != value)

        for name in core_names:
            setattr(self, name, getattr(merged, name))
        self.extra_fields = merged.extra_fields
        return changed

    def apply_settlement(self, eligible: bool) -> int:
        """Set and return the settlement amount for the given overall eligibility."""
        self.settlement_amount = compute_settlement(self.claimed_amount, eligible)
        return self.settlement_amount

    def snapshot(self) -> "ClaimRecord":
        return self.model_copy(deep=True)


class MemberRecord(BaseModel):
    """A policy holder from the member roster."""

    national_id: str
    name: str
    policy_number: str
    policy_status: PolicyStatus
    premium_paid_date: str


class MemberRoster(BaseModel):
    members: List[MemberRecord] = Field(default_factory=list)


class MedicalCodeTable(BaseModel):
    """Eligible and ineligible medical codes plus free-text policy rules."""

    eligible_codes: List[str] = Field(default_factory=list)
    ineligible_codes: List[str] = Field(default_factory=list)
    rules: List[str] = Field(default_factory=list)

    def as_rules_context(self) -> List[str]:
        """Rules followed by one line per eligible and ineligible code."""
        return (
            list(self.rules)
            + [f"Eligible code: {code}" for code in self.eligible_codes]
            + [f"Ineligible code: {code}" for code in self.ineligible_codes]
        )


class AvailableClaimFile(BaseModel):
    """Catalog entry pointing at a claim fixture file."""

    name: str
    path: str
