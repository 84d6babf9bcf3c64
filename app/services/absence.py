"""Recommended maximum-absence policies."""

from enum import Enum


class AbsencePolicy(str, Enum):
    """Named absence-threshold policies.

    THRESHOLD_70: a student must attend at least 70% of sessions, so the
    allowance is the complement of ``ceil(total * 0.7)``.
    FLAT_33: a flat third of sessions, rounded down.
    """

    THRESHOLD_70 = "attendance_threshold_70"
    FLAT_33 = "flat_33"


# Integral percentages keep ceil/floor exact
ATTENDANCE_THRESHOLD_PERCENT = 70
FLAT_PERCENT = 33


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


def recommended_max_absence(
    total_sessions: int,
    policy: AbsencePolicy = AbsencePolicy.THRESHOLD_70,
) -> int:
    """Recommended maximum number of absences for ``total_sessions``."""
    if total_sessions <= 0:
        return 0

    if policy == AbsencePolicy.FLAT_33:
        raw = total_sessions * FLAT_PERCENT // 100
    else:
        threshold = -(-total_sessions * ATTENDANCE_THRESHOLD_PERCENT // 100)
        raw = total_sessions - threshold

    return _clamp(raw, 0, total_sessions)
