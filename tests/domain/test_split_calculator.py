"""
Tests for the revenue split calculator (``payout_kernel.domain.splits``).

Invariants tested:
- Entries sum exactly to the payment amount, rounding included.
- Policies that do not total 100% are rejected before anything is computed.
- A referral bonus is carved out of the department share and the total
  stays 100%.
"""

from decimal import Decimal
from uuid import uuid4

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from payout_kernel.domain.earnings import RecipientType
from payout_kernel.domain.splits import (
    SplitLine,
    SplitPolicy,
    apply_referral_bonus,
    calculate_splits,
    effective_policy,
    validate_policy,
)
from payout_kernel.exceptions import SplitPolicyViolationError


def policy(*pairs, bonus=None, referrer=None) -> SplitPolicy:
    return SplitPolicy(
        key="test",
        lines=tuple(SplitLine(recipient_type=r, percentage=Decimal(p)) for r, p in pairs),
        referral_bonus_percentage=Decimal(bonus) if bonus is not None else None,
        referral_recipient_id=referrer,
    )


# =========================================================================
# Basic fan-out
# =========================================================================


class TestCalculateSplits:

    def test_department_builder_scenario(self):
        splits = calculate_splits(
            Decimal("100000"),
            policy((RecipientType.DEPARTMENT, "40"), (RecipientType.BUILDER, "60")),
        )

        assert [(s.recipient_type, s.amount) for s in splits] == [
            (RecipientType.DEPARTMENT, Decimal("40000.00")),
            (RecipientType.BUILDER, Decimal("60000.00")),
        ]
        assert [s.line_number for s in splits] == [1, 2]

    def test_percentages_are_carried_per_line(self):
        splits = calculate_splits(
            Decimal("1000"),
            policy(
                (RecipientType.COUNCIL, "40"),
                (RecipientType.DEPARTMENT, "40"),
                (RecipientType.INSTITUTION, "20"),
            ),
        )
        assert [s.percentage for s in splits] == [Decimal("40"), Decimal("40"), Decimal("20")]

    def test_rounding_remainder_goes_to_largest_share(self):
        splits = calculate_splits(
            Decimal("10.00"),
            policy(
                (RecipientType.COUNCIL, "33.33"),
                (RecipientType.INSTITUTION, "33.33"),
                (RecipientType.DEPARTMENT, "33.34"),
            ),
        )
        # 3.333 / 3.333 / 3.334 each round to 3.33; the missing cent goes
        # to the 33.34% line.
        assert [s.amount for s in splits] == [Decimal("3.33"), Decimal("3.33"), Decimal("3.34")]
        assert sum(s.amount for s in splits) == Decimal("10.00")

    def test_remainder_tie_goes_to_first_largest_line(self):
        splits = calculate_splits(
            Decimal("0.01"),
            policy((RecipientType.DEPARTMENT, "50"), (RecipientType.BUILDER, "50")),
        )
        # Each half rounds up to 0.01; the first line absorbs the excess.
        assert [s.amount for s in splits] == [Decimal("0.00"), Decimal("0.01")]

    def test_recipient_identity_is_preserved(self):
        builder = uuid4()
        department = uuid4()
        p = SplitPolicy(
            key="named",
            lines=(
                SplitLine(RecipientType.DEPARTMENT, Decimal("40"), department, "Robotics", department),
                SplitLine(RecipientType.BUILDER, Decimal("60"), builder, "Ada"),
            ),
        )
        first, second = calculate_splits(Decimal("10"), p)
        assert first.recipient_id == department
        assert first.department_id == department
        assert first.recipient_name == "Robotics"
        assert second.recipient_id == builder


# =========================================================================
# Validation
# =========================================================================


class TestPolicyValidation:

    @pytest.mark.parametrize("total", ["99", "101", "99.99"])
    def test_total_other_than_100_is_rejected(self, total):
        p = policy((RecipientType.DEPARTMENT, "40"), (RecipientType.BUILDER, str(Decimal(total) - 40)))
        with pytest.raises(SplitPolicyViolationError) as exc_info:
            calculate_splits(Decimal("100"), p)
        assert Decimal(exc_info.value.total_percentage) == Decimal(total)

    def test_empty_policy_is_rejected(self):
        with pytest.raises(SplitPolicyViolationError):
            validate_policy(SplitPolicy(key="empty", lines=()))

    def test_non_positive_line_is_rejected(self):
        p = policy(
            (RecipientType.DEPARTMENT, "100"),
            (RecipientType.BUILDER, "0"),
        )
        with pytest.raises(SplitPolicyViolationError):
            validate_policy(p)

    def test_duplicate_recipient_is_rejected(self):
        p = policy((RecipientType.COUNCIL, "50"), (RecipientType.COUNCIL, "50"))
        with pytest.raises(SplitPolicyViolationError):
            validate_policy(p)

    def test_same_type_different_recipients_is_allowed(self):
        p = SplitPolicy(
            key="two-builders",
            lines=(
                SplitLine(RecipientType.BUILDER, Decimal("50"), uuid4()),
                SplitLine(RecipientType.BUILDER, Decimal("50"), uuid4()),
            ),
        )
        validate_policy(p)

    def test_percentage_beyond_stored_scale_is_rejected(self):
        p = policy(
            (RecipientType.DEPARTMENT, "33.3333333"),
            (RecipientType.BUILDER, "33.3333333"),
            (RecipientType.INSTITUTION, "33.3333334"),
        )
        with pytest.raises(SplitPolicyViolationError) as exc_info:
            validate_policy(p)
        assert "decimal places" in exc_info.value.detail

    def test_six_places_is_allowed(self):
        validate_policy(policy(
            (RecipientType.DEPARTMENT, "33.333333"),
            (RecipientType.BUILDER, "33.333333"),
            (RecipientType.INSTITUTION, "33.333334"),
        ))

    def test_trailing_zeros_do_not_count_as_precision(self):
        validate_policy(policy((RecipientType.COUNCIL, "100.0000000000")))

    def test_bonus_beyond_stored_scale_is_rejected(self):
        p = policy(
            (RecipientType.DEPARTMENT, "40"),
            (RecipientType.BUILDER, "60"),
            bonus="2.5000001",
        )
        with pytest.raises(SplitPolicyViolationError):
            validate_policy(p)

    def test_violation_carries_code(self):
        with pytest.raises(SplitPolicyViolationError) as exc_info:
            validate_policy(policy((RecipientType.BUILDER, "90")))
        assert exc_info.value.code == "SPLIT_POLICY_VIOLATION"


# =========================================================================
# Referral bonus
# =========================================================================


class TestReferralBonus:

    def test_bonus_comes_out_of_department_share(self):
        referrer = uuid4()
        p = policy(
            (RecipientType.COUNCIL, "40"),
            (RecipientType.DEPARTMENT, "40"),
            (RecipientType.INSTITUTION, "20"),
            bonus="5",
            referrer=referrer,
        )
        splits = calculate_splits(Decimal("200000"), p)

        by_type = {s.recipient_type: s for s in splits}
        assert by_type[RecipientType.DEPARTMENT].percentage == Decimal("35")
        assert by_type[RecipientType.DEPARTMENT].amount == Decimal("70000.00")
        assert by_type[RecipientType.REFERRAL_BONUS].amount == Decimal("10000.00")
        assert by_type[RecipientType.REFERRAL_BONUS].recipient_id == referrer
        assert splits[-1].recipient_type == RecipientType.REFERRAL_BONUS
        assert sum(s.amount for s in splits) == Decimal("200000")

    def test_no_bonus_leaves_policy_unchanged(self):
        p = policy((RecipientType.DEPARTMENT, "40"), (RecipientType.BUILDER, "60"))
        assert apply_referral_bonus(p) is p

    def test_bonus_without_department_line_is_rejected(self):
        p = policy((RecipientType.COUNCIL, "100"), bonus="5")
        with pytest.raises(SplitPolicyViolationError):
            calculate_splits(Decimal("100"), p)

    def test_bonus_larger_than_department_share_is_rejected(self):
        p = policy((RecipientType.DEPARTMENT, "5"), (RecipientType.COUNCIL, "95"), bonus="5")
        with pytest.raises(SplitPolicyViolationError):
            calculate_splits(Decimal("100"), p)

    def test_effective_policy_is_what_gets_split(self):
        p = policy((RecipientType.DEPARTMENT, "40"), (RecipientType.BUILDER, "60"), bonus="10")

        effective = effective_policy(p)

        assert [(line.recipient_type, line.percentage) for line in effective.lines] == [
            (RecipientType.DEPARTMENT, Decimal("30")),
            (RecipientType.BUILDER, Decimal("60")),
            (RecipientType.REFERRAL_BONUS, Decimal("10")),
        ]
        assert effective.referral_bonus_percentage is None

    def test_effective_policy_rejects_unusable_bonus(self):
        p = policy((RecipientType.DEPARTMENT, "5"), (RecipientType.BUILDER, "95"), bonus="10")
        with pytest.raises(SplitPolicyViolationError):
            effective_policy(p)


# =========================================================================
# Properties
# =========================================================================


amounts = st.decimals(
    min_value=Decimal("1.00"),
    max_value=Decimal("999999999.99"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)


@st.composite
def percentage_policies(draw):
    """A policy of 1-6 lines with whole-hundredth percentages totalling 100."""
    count = draw(st.integers(min_value=1, max_value=6))
    recipients = draw(
        st.lists(
            st.sampled_from(list(RecipientType)),
            min_size=count, max_size=count, unique=True,
        )
    )
    cuts = sorted(
        draw(
            st.lists(
                st.integers(min_value=1, max_value=9999),
                min_size=count - 1, max_size=count - 1, unique=True,
            )
        )
    )
    bounds = [0, *cuts, 10000]
    lines = tuple(
        SplitLine(recipient, Decimal(bounds[i + 1] - bounds[i]) / 100)
        for i, recipient in enumerate(recipients)
    )
    return SplitPolicy(key="generated", lines=lines)


class TestSplitProperties:

    @given(amount=amounts, p=percentage_policies())
    @settings(max_examples=300)
    def test_entries_sum_exactly_to_amount(self, amount, p):
        splits = calculate_splits(amount, p)
        assert sum(s.amount for s in splits) == amount
        assert len(splits) == len(p.lines)

    @given(amount=amounts, p=percentage_policies())
    @settings(max_examples=200)
    def test_no_share_is_negative(self, amount, p):
        assert all(s.amount >= 0 for s in calculate_splits(amount, p))

    @given(amount=amounts, p=percentage_policies())
    @settings(max_examples=200)
    def test_each_share_within_a_cent_of_exact(self, amount, p):
        splits = calculate_splits(amount, p)
        largest = max(range(len(splits)), key=lambda i: (splits[i].percentage, -i))
        for i, split in enumerate(splits):
            if i == largest:
                continue
            exact = amount * split.percentage / 100
            assert abs(split.amount - exact) <= Decimal("0.005")
