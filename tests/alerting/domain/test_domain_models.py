"""
Tests for domain models and duration parsing
"""
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from src.alerting.domain.exceptions import CollaboratorTimeoutError, DispatchError, EvaluationError
from src.alerting.domain.models import (
    AlertConfiguration,
    AlertInstance,
    AlertInstanceStatus,
    AlertPriority,
    ComparisonOperator,
    ConfigurationStatus,
    EvaluationContext,
    SensorReading,
    Threshold,
    TimeAggregation,
)
from src.alerting.domain.time import Duration


class TestDuration:
    """Test lookback duration parsing"""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("7d", timedelta(days=7)),
            ("12h", timedelta(hours=12)),
            ("1d12h", timedelta(days=1, hours=12)),
            ("90m", timedelta(minutes=90)),
            ("1.5h", timedelta(minutes=90)),
            ("2w", timedelta(weeks=2)),
        ],
    )
    def test_parse(self, text, expected):
        assert Duration(text).delta == expected

    def test_bare_number_is_minutes(self):
        assert Duration(30).delta == timedelta(minutes=30)

    @pytest.mark.parametrize("text", ["7 days", "d7", "7x", "7d junk"])
    def test_rejects_malformed(self, text):
        with pytest.raises(ValueError):
            Duration(text)

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            Duration(timedelta(minutes=-5))

    def test_string_form(self):
        assert str(Duration("1d12h")) == "1d12h"
        assert str(Duration(timedelta(days=7))) == "1w"
        assert Duration("168h") == Duration("7d")

    def test_threshold_accepts_duration_strings(self):
        threshold = Threshold(value=20, baseline_period="7d")

        assert threshold.baseline_period == Duration("7d")
        assert threshold.model_dump()["baseline_period"] == "1w"


class TestModels:
    """Test model defaults and validation"""

    def test_upper_bound_falls_back_to_value(self):
        assert Threshold(value=10).upper_bound == 10
        assert Threshold(value=10, secondary_value=20).upper_bound == 20

    def test_operator_families(self):
        assert ComparisonOperator.BETWEEN.is_range
        assert ComparisonOperator.OUTSIDE_RANGE.is_range
        assert not ComparisonOperator.GREATER_THAN.is_range
        assert ComparisonOperator.PERCENTAGE_CHANGE.is_baseline_relative

    def test_unknown_operator_rejected(self, make_condition):
        data = make_condition().model_dump()
        data["operator"] = "roughly_equals"

        with pytest.raises(ValidationError):
            type(make_condition()).model_validate(data)

    def test_aggregation_period_must_be_positive(self):
        with pytest.raises(ValidationError):
            TimeAggregation(period=0)

    def test_naive_timestamps_taken_as_utc(self, now):
        reading = SensorReading(sensor_id="s1", timestamp=datetime(2024, 6, 10, 6, 55), value=1)
        context = EvaluationContext(current_time=datetime(2024, 6, 10, 7, 0))

        assert reading.timestamp == datetime(2024, 6, 10, 6, 55, tzinfo=timezone.utc)
        assert context.current_time.tzinfo == timezone.utc
        assert SensorReading(sensor_id="s1", timestamp=now, value=1).timestamp.tzinfo == now.tzinfo

    def test_configuration_active_only_when_status_active(self):
        assert AlertConfiguration(id="a").is_active
        assert not AlertConfiguration(id="b", status=ConfigurationStatus.PAUSED).is_active

    def test_alert_unresolved_statuses(self, now):
        alert = AlertInstance(
            id="a1",
            configuration_id="cfg-1",
            rule_id="r1",
            severity=AlertPriority.HIGH,
            title="t",
            description="d",
            triggered_at=now,
        )
        assert alert.is_unresolved

        for status in (AlertInstanceStatus.ACKNOWLEDGED, AlertInstanceStatus.ESCALATED):
            alert.status = status
            assert alert.is_unresolved

        for status in (AlertInstanceStatus.RESOLVED, AlertInstanceStatus.FALSE_POSITIVE):
            alert.status = status
            assert not alert.is_unresolved


class TestExceptions:
    """Test exception details"""

    def test_evaluation_error_details(self):
        error = EvaluationError("bad operator", condition_id="c1")

        assert error.details == {"reason": "bad operator", "condition_id": "c1"}
        assert "c1" in error.message

    def test_timeout_is_evaluation_error(self):
        error = CollaboratorTimeoutError("historical data fetch", 2.0, condition_id="c1")

        assert isinstance(error, EvaluationError)
        assert error.details["timeout_seconds"] == 2.0

    def test_dispatch_error_wraps_original(self):
        error = DispatchError("alert_1", original_error=ConnectionError("smtp down"))

        assert error.details["original_error"] == "smtp down"
        assert error.details["original_error_type"] == "ConnectionError"
