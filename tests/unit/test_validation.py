"""Award validation happens before any write."""

import pytest

from cgrow.leaderboard.award_service import validate_award
from cgrow.leaderboard.exceptions import AwardValidationError

MAX = 10_000


class TestValidateAward:
    def test_valid_award(self):
        validate_award(1, "course_completion", 150, MAX)

    def test_valid_deduction(self):
        validate_award(1, "skill_removed", -10, MAX)

    def test_amount_at_limit(self):
        validate_award(1, "manual_award", MAX, MAX)
        validate_award(1, "manual_award", -MAX, MAX)

    @pytest.mark.parametrize("amount", [None, 0, 1.5, "100", True])
    def test_invalid_amounts(self, amount):
        with pytest.raises(AwardValidationError):
            validate_award(1, "manual_award", amount, MAX)

    def test_amount_over_limit(self):
        with pytest.raises(AwardValidationError, match="exceeds"):
            validate_award(1, "manual_award", MAX + 1, MAX)

    def test_unknown_points_type(self):
        with pytest.raises(AwardValidationError, match="Unknown points type"):
            validate_award(1, "free_money", 10, MAX)

    @pytest.mark.parametrize("user_id", [None, 0, -3, "42", False])
    def test_invalid_user(self, user_id):
        with pytest.raises(AwardValidationError):
            validate_award(user_id, "manual_award", 10, MAX)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            validate_award(1, "manual_award", 0, MAX)
