"""
Tests for alert instance construction
"""
import asyncio

import pytest

from src.alerting.application.alert_builder import (
    AlertInstanceBuilder,
    alert_id_for,
    describe,
    suggest_actions,
)
from src.alerting.domain.models import (
    AlertInstance,
    AlertPriority,
    ChannelType,
    MetricSnapshot,
    NotificationLog,
    NotificationStatus,
    ReadingQuality,
)
from src.alerting.domain.results import ConditionResult, RuleEvaluationResult


def condition_result(condition_id, met=True, actual=1620.0, threshold=1500.0, deviation=120.0):
    return ConditionResult(
        condition_id=condition_id,
        met=met,
        actual_value=actual,
        threshold_value=threshold,
        deviation=deviation,
        evaluation_method="greater_than",
    )


@pytest.fixture
def triggered_result():
    return RuleEvaluationResult(
        rule_id="r1",
        triggered=True,
        severity=AlertPriority.HIGH,
        confidence=0.82,
        conditions_met=[condition_result("c1")],
    )


@pytest.fixture
def existing_alert(now):
    return AlertInstance(
        id="alert_existing",
        configuration_id="cfg-1",
        rule_id="r1",
        severity=AlertPriority.HIGH,
        title="Energy spike - Bangkok HQ energy",
        description="earlier",
        triggered_at=now,
    )


class TestAlertText:
    """Test description and suggested actions"""

    def test_single_condition_description(self, make_rule, triggered_result):
        rule = make_rule(description="HVAC spike")

        assert describe(rule, triggered_result) == "HVAC spike: Value 1620.00 greater than threshold 1500.00"

    def test_description_falls_back_to_rule_name(self, make_rule, triggered_result):
        assert describe(make_rule(), triggered_result).startswith("Energy spike: Value")

    def test_multiple_conditions_description(self, make_rule):
        result = RuleEvaluationResult(
            rule_id="r1",
            triggered=True,
            severity=AlertPriority.HIGH,
            confidence=0.9,
            conditions_met=[condition_result("a"), condition_result("b"), condition_result("c", met=False)],
        )

        assert describe(make_rule(), result) == "Energy spike: Multiple conditions triggered (2/3)"

    def test_suggested_actions(self, triggered_result):
        actions = suggest_actions(triggered_result)

        assert actions == [
            "Investigate why c1 exceeded threshold by 120.00",
            "Check system logs for related errors",
            "Verify sensor calibration and connectivity",
        ]

    def test_significant_deviation_and_truncation(self):
        result = RuleEvaluationResult(
            rule_id="r1",
            triggered=True,
            severity=AlertPriority.CRITICAL,
            confidence=1.0,
            conditions_met=[condition_result(f"c{i}", deviation=1000) for i in range(3)],
        )

        actions = suggest_actions(result)

        assert len(actions) == 5
        assert "Consider immediate investigation of c0 due to significant deviation" in actions

    def test_alert_id_is_deterministic(self, make_context):
        context = make_context()

        assert alert_id_for("cfg-1", "r1", context) == alert_id_for("cfg-1", "r1", context)
        assert alert_id_for("cfg-1", "r1", context) != alert_id_for("cfg-1", "r2", context)


class TestAlertInstanceBuilder:
    """Test dedup, context enrichment and dispatch"""

    @pytest.mark.asyncio
    async def test_builds_instance_without_dispatching(
        self, alert_repository, dispatcher, engine_config, make_configuration, triggered_result,
        spike_context, spike_readings,
    ):
        configuration = make_configuration()
        rule = configuration.rules[0]
        result = RuleEvaluationResult(
            rule_id=rule.id,
            triggered=True,
            severity=rule.priority,
            confidence=0.82,
            conditions_met=triggered_result.conditions_met,
            metric_snapshots=[],
            condition_readings={"c1": spike_readings},
        )
        builder = AlertInstanceBuilder(alert_repository, dispatcher, engine_config)

        instance, created = await builder.build(configuration, rule, result, spike_context, timeout=1)

        assert created is True
        assert instance.title == "Energy spike - Bangkok HQ energy"
        assert instance.severity == AlertPriority.HIGH
        assert instance.confidence == 0.82
        assert instance.triggered_at == spike_context.current_time
        assert instance.context.weather_conditions == {"temperature": 34.5}
        alert_repository.find_unresolved_alert.assert_awaited_once_with("cfg-1", rule.id)
        dispatcher.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_sensor_context_from_snapshots(
        self, alert_repository, dispatcher, engine_config, make_configuration, condition_snapshot_result,
        spike_context,
    ):
        configuration = make_configuration()
        builder = AlertInstanceBuilder(alert_repository, dispatcher, engine_config)

        instance, _ = await builder.build(
            configuration, configuration.rules[0], condition_snapshot_result, spike_context, timeout=1
        )

        [sensor] = instance.context.sensor_data
        assert sensor.sensor_id == "energy_floor3_main"
        assert sensor.sensor_name == "Floor 3 main meter"
        assert sensor.current_value == pytest.approx(1184)
        assert sensor.historical_average == pytest.approx(850)
        assert sensor.trend == "increasing"
        assert sensor.health_status == "warning"

    @pytest.mark.asyncio
    async def test_duplicate_suppressed_returns_existing(
        self, alert_repository, dispatcher, engine_config, make_configuration, triggered_result,
        spike_context, existing_alert,
    ):
        alert_repository.find_unresolved_alert.return_value = existing_alert
        configuration = make_configuration()
        builder = AlertInstanceBuilder(alert_repository, dispatcher, engine_config)

        instance, created = await builder.build(
            configuration, configuration.rules[0], triggered_result, spike_context, timeout=1
        )

        assert created is False
        assert instance is existing_alert
        assert instance.description == "earlier"
        dispatcher.send.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_duplicate_ignored_when_rule_allows(
        self, alert_repository, dispatcher, engine_config, make_configuration, make_rule, triggered_result,
        spike_context, existing_alert,
    ):
        alert_repository.find_unresolved_alert.return_value = existing_alert
        configuration = make_configuration(rules=[make_rule(suppress_duplicates=False)])
        builder = AlertInstanceBuilder(alert_repository, dispatcher, engine_config)

        instance, created = await builder.build(
            configuration, configuration.rules[0], triggered_result, spike_context, timeout=1
        )

        assert created is True
        assert instance.id != existing_alert.id

    @pytest.mark.asyncio
    async def test_failed_lookup_creates_alert(
        self, alert_repository, dispatcher, engine_config, make_configuration, triggered_result, spike_context
    ):
        alert_repository.find_unresolved_alert.side_effect = ConnectionError("db down")
        configuration = make_configuration()
        builder = AlertInstanceBuilder(alert_repository, dispatcher, engine_config)

        _, created = await builder.build(
            configuration, configuration.rules[0], triggered_result, spike_context, timeout=1
        )

        assert created is True

    @pytest.mark.asyncio
    async def test_dispatch_attaches_log(
        self, alert_repository, dispatcher, engine_config, make_configuration, triggered_result, spike_context,
        now,
    ):
        log = NotificationLog(
            id="notif_1",
            channel=ChannelType.EMAIL,
            recipient="facilities@example.com",
            sent_at=now,
            status=NotificationStatus.SENT,
        )
        dispatcher.send.return_value = [log]
        configuration = make_configuration()
        builder = AlertInstanceBuilder(alert_repository, dispatcher, engine_config)
        instance, _ = await builder.build(
            configuration, configuration.rules[0], triggered_result, spike_context, timeout=1
        )

        await builder.dispatch(configuration, instance)

        dispatcher.send.assert_awaited_once_with(configuration.notification_settings, instance)
        assert instance.notification_log == [log]

    @pytest.mark.asyncio
    async def test_dispatch_failure_keeps_alert(
        self, alert_repository, dispatcher, engine_config, make_configuration, triggered_result, spike_context
    ):
        dispatcher.send.side_effect = ConnectionError("smtp down")
        configuration = make_configuration()
        builder = AlertInstanceBuilder(alert_repository, dispatcher, engine_config)
        instance, _ = await builder.build(
            configuration, configuration.rules[0], triggered_result, spike_context, timeout=1
        )

        await builder.dispatch(configuration, instance)

        assert instance.notification_log == []

    @pytest.mark.asyncio
    async def test_scheduled_dispatch_runs_in_background(
        self, alert_repository, dispatcher, engine_config, make_configuration, triggered_result, spike_context
    ):
        sent = asyncio.Event()

        async def send(settings, alert):
            await asyncio.sleep(0)
            sent.set()
            return []

        dispatcher.send.side_effect = send
        builder = AlertInstanceBuilder(alert_repository, dispatcher, engine_config)
        configuration = make_configuration()
        instance, _ = await builder.build(
            configuration, configuration.rules[0], triggered_result, spike_context, timeout=1
        )

        builder.schedule_dispatch(configuration, instance)
        assert len(builder.pending_dispatches) == 1
        assert not sent.is_set()

        await asyncio.gather(*builder.pending_dispatches)
        assert sent.is_set()


@pytest.fixture
def condition_snapshot_result(make_condition, make_reading, spike_context):
    condition = make_condition()
    snapshot = MetricSnapshot(
        metric=condition.metric,
        value=1184,
        threshold=1500,
        timestamp=spike_context.current_time,
        evaluation_window="15 minutes",
    )
    readings = [
        make_reading(1150, minutes_ago=6),
        make_reading(1380, minutes_ago=3, quality=ReadingQuality.WARNING),
    ]
    return RuleEvaluationResult(
        rule_id="r1",
        triggered=True,
        severity=AlertPriority.HIGH,
        confidence=0.7,
        conditions_met=[condition_result("c1", actual=1184, threshold=1000, deviation=184)],
        metric_snapshots=[snapshot],
        condition_readings={"c1": readings},
    )
