from datetime import datetime, timedelta
from itertools import count

import pytest

from fitmatch.schema import ActivityRecord, FitnessMetrics, FitnessThreshold, UserProfile

# Wednesday; the surrounding week starts on Sunday 2024-06-02
AS_OF = datetime(2024, 6, 5, 12, 0, 0)

NYC = (40.7128, -74.0060)
LA = (34.0522, -118.2437)


class FakeClock:
    """Deterministic clock advanced manually by tests."""

    def __init__(self, start=AS_OF):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def as_of():
    return AS_OF


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def make_activity():
    ids = count(1)

    def _make(user_id="u1", type="Run", distance=5000.0, average_speed=2.5,
              start_date=AS_OF, moving_time=None):
        if moving_time is None:
            moving_time = int(distance / average_speed) if average_speed else 0
        return ActivityRecord(
            id=next(ids),
            user_id=user_id,
            type=type,
            distance=distance,
            moving_time=moving_time,
            average_speed=average_speed,
            start_date=start_date,
        )

    return _make


@pytest.fixture
def make_profile():
    def _make(user_id, age=30, location=NYC, **kwargs):
        return UserProfile(id=user_id, age=age, latitude=location[0], longitude=location[1], **kwargs)

    return _make


@pytest.fixture
def runner_metrics():
    return FitnessMetrics(
        weekly_distance=20000.0,
        weekly_activities=4.0,
        average_pace=300.0,
        activity_types=frozenset({"Run", "Ride"}),
        total_distance=260000.0,
        longest_activity=21000.0,
        consistency_score=85,
    )


@pytest.fixture
def threshold():
    return FitnessThreshold(
        id="t1",
        weekly_distance=10000.0,
        weekly_activities=3.0,
        average_pace=360.0,
        allowed_activity_types=("Run", "Ride", "Swim", "Hike", "Walk"),
        updated_by="admin",
        updated_at=AS_OF,
        version=1,
    )
