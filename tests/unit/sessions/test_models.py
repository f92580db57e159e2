"""Tests for flowstate/models.py"""

from datetime import datetime, timedelta

import pytest

from flowstate.models import SessionRecord, calendar_weekday

from tests.conftest import START_TIME


class TestCalendarWeekday:
    @pytest.mark.parametrize(
        "day,expected",
        [
            (datetime(2026, 3, 1), 1),  # Sunday
            (datetime(2026, 3, 2), 2),  # Monday
            (datetime(2026, 3, 4), 4),  # Wednesday
            (datetime(2026, 3, 7), 7),  # Saturday
        ],
    )
    def test_sunday_is_one(self, day, expected):
        assert calendar_weekday(day) == expected

    def test_start_time_fixture_is_wednesday(self, make_session):
        assert make_session(start=START_TIME).day_of_week == 4


class TestSessionRecord:
    def test_numeric_fields_stored_as_float(self, make_session):
        record = make_session(duration=3000, average_score=65, trend=-4)

        assert isinstance(record.duration, float)
        assert isinstance(record.average_focus_score, float)
        assert isinstance(record.activity_trend, float)

    def test_end_must_follow_start(self):
        with pytest.raises(ValueError):
            SessionRecord(
                id="x",
                start_time=START_TIME,
                end_time=START_TIME,
                duration=1.0,
                average_focus_score=50.0,
                peak_focus_score=60,
                activity_trend=0.0,
                hour_of_day=10,
                day_of_week=4,
                break_was_suggested=False,
            )

    def test_dict_round_trip(self, make_session):
        record = make_session(start=START_TIME - timedelta(days=1), break_suggested=True, followed=False)

        assert SessionRecord.from_dict(record.to_dict()) == record
