"""
Pytest configuration and shared fixtures
"""
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest

from src.alerting.domain.models import (
    AggregationFunction,
    AlertCondition,
    AlertConfiguration,
    AlertMetric,
    AlertPriority,
    AlertRule,
    ComparisonOperator,
    EvaluationContext,
    MetricType,
    SensorReading,
    Threshold,
    TimeAggregation,
)
from src.config import EngineConfig

BANGKOK = timezone(timedelta(hours=7))
ENERGY_SENSOR = "energy_floor3_main"
SPIKE_VALUES = [850, 920, 1150, 1380, 1620]


@pytest.fixture
def now():
    """Monday afternoon in Bangkok"""
    return datetime(2024, 6, 10, 14, 0, tzinfo=BANGKOK)


@pytest.fixture
def make_reading(now):
    """Factory for readings timestamped relative to ``now``"""

    def _make(value, minutes_ago=0, sensor_id=ENERGY_SENSOR, unit="kWh", **kwargs):
        return SensorReading(
            sensor_id=sensor_id,
            timestamp=now - timedelta(minutes=minutes_ago),
            value=value,
            unit=unit,
            **kwargs,
        )

    return _make


@pytest.fixture
def spike_readings(make_reading):
    """Bangkok energy spike: five readings over the last 12 minutes, oldest first"""
    return [make_reading(value, minutes_ago=12 - 3 * i) for i, value in enumerate(SPIKE_VALUES)]


@pytest.fixture
def history_readings(make_reading):
    """Ten historical readings with mean 850 and population std 120"""
    return [
        make_reading(730 if i % 2 == 0 else 970, minutes_ago=60 * 24 + 60 * i)
        for i in range(10)
    ]


@pytest.fixture
def make_context(now):
    def _make(readings=(), history=(), **kwargs):
        return EvaluationContext(
            current_time=now,
            sensor_readings=list(readings),
            historical_data=list(history),
            **kwargs,
        )

    return _make


@pytest.fixture
def spike_context(make_context, spike_readings, history_readings):
    return make_context(
        spike_readings,
        history_readings,
        system_status={"hvac": "running"},
        weather_data={"temperature": 34.5},
    )


@pytest.fixture
def make_condition():
    def _make(
        condition_id="c1",
        operator=ComparisonOperator.GREATER_THAN,
        value=1500.0,
        function=AggregationFunction.AVERAGE,
        period=15,
        minimum_data_points=1,
        sensor_id=ENERGY_SENSOR,
        metric_type=MetricType.ENERGY_CONSUMPTION,
        anomaly_detection=False,
        filters=(),
        **threshold,
    ):
        return AlertCondition(
            id=condition_id,
            metric=AlertMetric(type=metric_type, sensor_id=sensor_id, display_name="Floor 3 main meter"),
            operator=operator,
            threshold=Threshold(value=value, **threshold),
            time_aggregation=TimeAggregation(
                function=function, period=period, minimum_data_points=minimum_data_points
            ),
            filters=list(filters),
            anomaly_detection=anomaly_detection,
        )

    return _make


@pytest.fixture
def make_rule(make_condition):
    def _make(rule_id="r1", conditions=None, **kwargs):
        kwargs.setdefault("name", "Energy spike")
        kwargs.setdefault("priority", AlertPriority.HIGH)
        return AlertRule(
            id=rule_id,
            conditions=conditions if conditions is not None else [make_condition()],
            **kwargs,
        )

    return _make


@pytest.fixture
def make_configuration(make_rule):
    def _make(configuration_id="cfg-1", rules=None, **kwargs):
        kwargs.setdefault("name", "Bangkok HQ energy")
        return AlertConfiguration(
            id=configuration_id,
            rules=rules if rules is not None else [make_rule()],
            **kwargs,
        )

    return _make


@pytest.fixture
def engine_config():
    return EngineConfig(
        max_concurrent_configurations=4,
        configuration_timeout_seconds=5,
        collaborator_timeout_seconds=1,
        dispatch_timeout_seconds=1,
    )


@pytest.fixture
def alert_repository():
    """Dedup collaborator with no open alerts"""
    repository = AsyncMock()
    repository.find_unresolved_alert.return_value = None
    return repository


@pytest.fixture
def dispatcher():
    dispatcher = AsyncMock()
    dispatcher.send.return_value = []
    return dispatcher
