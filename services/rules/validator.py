"""Policy eligibility and medical code verification rules."""

from typing import List, NamedTuple, Optional
import logging

from common.enums import CheckStatus, PolicyStatus
from services.claims.models import ClaimRecord, MedicalCodeTable, MemberRecord, MemberRoster

logger = logging.getLogger(__name__)


class EligibilityResult(NamedTuple):
    """Result of the policy / member eligibility check."""

    status: CheckStatus
    message: str
    member: Optional[MemberRecord] = None

    @property
    def is_eligible(self) -> bool:
        return self.status != CheckStatus.INELIGIBLE


class MedicalVerificationResult(NamedTuple):
    """Result of the medical code verification."""

    status: CheckStatus
    message: str
    codes: List[str]

    @property
    def is_eligible(self) -> bool:
        return self.status != CheckStatus.INELIGIBLE


class PolicyEligibilityChecker:
    """Looks claimants up in the member roster."""

    @classmethod
    def find_member(
        cls, roster: MemberRoster, national_id: str, policy_number: str
    ) -> Optional[MemberRecord]:
        """Exact match on trimmed national ID and trimmed policy number."""
        search_id = national_id.strip()
        search_policy = policy_number.strip()
        for member in roster.members:
            if member.national_id.strip() == search_id and member.policy_number.strip() == search_policy:
                return member
        return None

    @classmethod
    def check(cls, claim: ClaimRecord, roster: Optional[MemberRoster]) -> EligibilityResult:
        if roster is None or not roster.members:
            return EligibilityResult(
                status=CheckStatus.INELIGIBLE,
                message="Member data is not available or empty. Cannot perform eligibility check.",
            )

        search_id = claim.claimant_national_id.strip()
        search_policy = claim.policy_number.strip()
        member = cls.find_member(roster, search_id, search_policy)

        if member is None:
            return EligibilityResult(
                status=CheckStatus.INELIGIBLE,
                message=(
                    f"Policy/Member not found. Searched national ID: '{search_id}', "
                    f"Policy: '{search_policy}'."
                ),
            )

        if member.policy_status != PolicyStatus.ACTIVE:
            return EligibilityResult(
                status=CheckStatus.INELIGIBLE,
                message=(
                    f"Policy found for {member.name.strip()} (national ID: {member.national_id.strip()}, "
                    f"Policy: {member.policy_number.strip()}) but status is {member.policy_status.value}."
                ),
                member=member,
            )

        return EligibilityResult(
            status=CheckStatus.ELIGIBLE,
            message=(
                f"Policy {member.policy_number.strip()} is Active for {member.name.strip()}. "
                f"Premium paid on {member.premium_paid_date}."
            ),
            member=member,
        )


class MedicalCodeVerifier:
    """Cross-checks claim medical codes against the code table."""

    @classmethod
    def is_medically_eligible(cls, codes: List[str], table: MedicalCodeTable) -> bool:
        """At least one eligible code and no ineligible code."""
        code_set = set(codes)
        return bool(code_set & set(table.eligible_codes)) and not (code_set & set(table.ineligible_codes))

    @classmethod
    def verify(cls, claim: ClaimRecord, table: MedicalCodeTable) -> MedicalVerificationResult:
        codes = list(claim.medical_codes)

        if not codes:
            return MedicalVerificationResult(
                status=CheckStatus.INELIGIBLE,
                message="No eligible medical codes found or codes conflict with policy rules.",
                codes=codes,
            )

        joined = ", ".join(codes)
        if cls.is_medically_eligible(codes, table):
            return MedicalVerificationResult(
                status=CheckStatus.ELIGIBLE,
                message=f"Medical codes {joined} verified. Claim appears medically eligible.",
                codes=codes,
            )

        ineligible = [code for code in codes if code in table.ineligible_codes]
        if ineligible:
            message = f"Medical codes {joined} include ineligible codes: {', '.join(ineligible)}."
        else:
            message = f"Medical codes {joined} do not include any eligible code."
        return MedicalVerificationResult(status=CheckStatus.INELIGIBLE, message=message, codes=codes)


def check_member_eligibility(claim: ClaimRecord, roster: Optional[MemberRoster]) -> EligibilityResult:
    """Step 2: the claimant must hold an Active policy matching the claim."""
    result = PolicyEligibilityChecker.check(claim, roster)
    logger.info(f"Eligibility check for claim {claim.claim_id}: {result.status.value}")
    return result


def verify_medical_codes(claim: ClaimRecord, table: MedicalCodeTable) -> MedicalVerificationResult:
    """Step 5: codes must hit the eligible set and miss the ineligible set."""
    result = MedicalCodeVerifier.verify(claim, table)
    logger.info(f"Medical verification for claim {claim.claim_id}: {result.status.value}")
    return result
