"""Tests for the countdown: tiers, labels, percentage."""

from datetime import datetime, timedelta, timezone

from gavel.timewindow import ENDED_LABEL, Urgency, evaluate, format_remaining

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestUrgency:
    def test_ninety_seconds_is_urgent(self):
        assert evaluate(NOW + timedelta(seconds=90), NOW).urgency == Urgency.URGENT

    def test_one_hour_is_warning(self):
        assert evaluate(NOW + timedelta(hours=1), NOW).urgency == Urgency.WARNING

    def test_boundaries(self):
        assert evaluate(NOW + timedelta(hours=2), NOW).urgency == Urgency.NORMAL
        assert (
            evaluate(NOW + timedelta(hours=2) - timedelta(seconds=1), NOW).urgency
            == Urgency.WARNING
        )
        assert evaluate(NOW + timedelta(minutes=10), NOW).urgency == Urgency.WARNING
        assert (
            evaluate(NOW + timedelta(minutes=10) - timedelta(seconds=1), NOW).urgency
            == Urgency.URGENT
        )

    def test_days_out_is_normal(self):
        assert evaluate(NOW + timedelta(days=2), NOW).urgency == Urgency.NORMAL


class TestEnded:
    def test_past_end_time(self):
        w = evaluate(NOW - timedelta(seconds=1), NOW)
        assert w.urgency == Urgency.ENDED
        assert w.percent_remaining == 0
        assert w.remaining_text == ENDED_LABEL

    def test_exactly_at_end_time(self):
        assert evaluate(NOW, NOW).urgency == Urgency.ENDED


class TestLabel:
    def test_days(self):
        assert format_remaining(timedelta(days=2, hours=3, minutes=4, seconds=59)) == "2d 3h 4m"

    def test_hours(self):
        assert format_remaining(timedelta(hours=5, minutes=6, seconds=7)) == "5h 6m 7s"

    def test_minutes(self):
        assert format_remaining(timedelta(minutes=1, seconds=30)) == "1m 30s"

    def test_floors_fractions(self):
        assert format_remaining(timedelta(seconds=59.999)) == "0m 59s"


class TestPercent:
    def test_half_window(self):
        assert evaluate(NOW + timedelta(hours=12), NOW).percent_remaining == 50

    def test_clamped_at_hundred(self):
        assert evaluate(NOW + timedelta(days=3), NOW).percent_remaining == 100

    def test_custom_window(self):
        w = evaluate(NOW + timedelta(hours=1), NOW, full_window=timedelta(hours=4))
        assert w.percent_remaining == 25

    def test_naive_times_are_utc(self):
        w = evaluate(datetime(2025, 6, 1, 13, 0), NOW)
        assert w.remaining == timedelta(hours=1)
