import pytest

from app.services.absence import AbsencePolicy, recommended_max_absence


@pytest.mark.parametrize(
    "total, expected",
    [(0, 0), (1, 0), (3, 0), (10, 3), (14, 4), (15, 4), (30, 9)],
)
def test_threshold_policy_allows_complement_of_required_attendance(total, expected):
    assert recommended_max_absence(total, AbsencePolicy.THRESHOLD_70) == expected


@pytest.mark.parametrize("total, expected", [(0, 0), (2, 0), (3, 0), (10, 3), (15, 4), (30, 9)])
def test_flat_policy_takes_a_third_rounded_down(total, expected):
    assert recommended_max_absence(total, AbsencePolicy.FLAT_33) == expected


def test_negative_totals_are_treated_as_empty():
    assert recommended_max_absence(-5) == 0


def test_result_never_exceeds_total():
    for total in range(0, 200):
        for policy in AbsencePolicy:
            assert 0 <= recommended_max_absence(total, policy) <= total
