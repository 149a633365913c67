"""Unit tests for eligibility and medical code rules."""

import pytest
from common.enums import CheckStatus, PolicyStatus
from services.claims.models import MedicalCodeTable, MemberRecord, MemberRoster
from services.rules.validator import (
    MedicalCodeVerifier,
    PolicyEligibilityChecker,
    check_member_eligibility,
    verify_medical_codes,
)


@pytest.fixture
def roster(sample_member_data):
    return MemberRoster.model_validate(sample_member_data)


@pytest.fixture
def code_table(sample_medical_codes):
    return MedicalCodeTable.model_validate(sample_medical_codes)


class TestPolicyEligibilityChecker:
    """Test member lookup and policy status rules."""

    def test_active_member_is_eligible(self, sample_claim, roster):
        """Test a matching Active member passes."""
        result = check_member_eligibility(sample_claim, roster)
        assert result.status == CheckStatus.ELIGIBLE
        assert result.is_eligible
        assert result.member.name == sample_claim.claimant_name
        assert "is Active" in result.message

    def test_lookup_trims_whitespace(self, sample_claim, roster):
        """Test both claim and roster values are trimmed before matching."""
        sample_claim.claimant_national_id = f"  {sample_claim.claimant_national_id} "
        sample_claim.policy_number = f"{sample_claim.policy_number}\t"
        roster.members[0].policy_number = f" {roster.members[0].policy_number}"

        result = check_member_eligibility(sample_claim, roster)
        assert result.status == CheckStatus.ELIGIBLE

    def test_no_matching_member(self, sample_claim, roster):
        """Test an unknown member is ineligible and the reason names the search keys."""
        sample_claim.claimant_national_id = "0000 0000 0000"

        result = check_member_eligibility(sample_claim, roster)
        assert result.status == CheckStatus.INELIGIBLE
        assert not result.is_eligible
        assert result.member is None
        assert "not found" in result.message
        assert "0000 0000 0000" in result.message
        assert sample_claim.policy_number in result.message

    def test_policy_number_must_match_too(self, sample_claim, roster):
        """Test a matching ID with another policy number does not match."""
        sample_claim.policy_number = "POL-OTHER"

        result = PolicyEligibilityChecker.check(sample_claim, roster)
        assert result.status == CheckStatus.INELIGIBLE
        assert "not found" in result.message

    def test_inactive_policy(self, sample_claim, roster):
        """Test a matching member with an Inactive policy is ineligible."""
        roster.members[0].policy_status = PolicyStatus.INACTIVE

        result = check_member_eligibility(sample_claim, roster)
        assert result.status == CheckStatus.INELIGIBLE
        assert result.member is not None
        assert "status is Inactive" in result.message

    def test_empty_roster(self, sample_claim):
        """Test an empty roster is reported as missing member data."""
        result = check_member_eligibility(sample_claim, MemberRoster(members=[]))
        assert result.status == CheckStatus.INELIGIBLE
        assert "Member data" in result.message

    def test_find_member_exact_match_only(self, roster):
        """Test partial IDs do not match."""
        member = roster.members[0]
        assert PolicyEligibilityChecker.find_member(roster, member.national_id, member.policy_number) == member
        assert PolicyEligibilityChecker.find_member(roster, member.national_id[:-1], member.policy_number) is None


class TestMedicalCodeVerifier:
    """Test medical code cross-checks."""

    def test_eligible_codes_only(self, sample_claim, code_table):
        """Test eligible codes pass."""
        sample_claim.medical_codes = ["K35.80", "A90"]
        result = verify_medical_codes(sample_claim, code_table)
        assert result.status == CheckStatus.ELIGIBLE
        assert "verified" in result.message

    def test_any_ineligible_code_fails(self, sample_claim, code_table):
        """Test a single ineligible code fails the whole claim."""
        sample_claim.medical_codes = ["K35.80", "Z41.1"]
        result = verify_medical_codes(sample_claim, code_table)
        assert result.status == CheckStatus.INELIGIBLE
        assert "Z41.1" in result.message

    def test_unknown_codes_only_fail(self, sample_claim, code_table):
        """Test codes outside both sets do not count as eligible."""
        sample_claim.medical_codes = ["X99.9"]
        result = verify_medical_codes(sample_claim, code_table)
        assert result.status == CheckStatus.INELIGIBLE
        assert "do not include any eligible code" in result.message

    def test_empty_codes_fail(self, sample_claim, code_table):
        """Test an empty code list is ineligible."""
        sample_claim.medical_codes = []
        result = verify_medical_codes(sample_claim, code_table)
        assert result.status == CheckStatus.INELIGIBLE
        assert result.codes == []

    @pytest.mark.parametrize(
        "codes,expected",
        [
            (["K35.80"], True),
            (["K35.80", "X00"], True),
            (["Z41.1"], False),
            (["A90", "F17.210"], False),
            ([], False),
        ],
    )
    def test_is_medically_eligible(self, code_table, codes, expected):
        """Test eligibility is intersection with eligible and disjoint from ineligible."""
        assert MedicalCodeVerifier.is_medically_eligible(codes, code_table) is expected
