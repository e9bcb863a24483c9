"""Construction of alert instances for triggered rules."""

import asyncio
import uuid

from loguru import logger

from src.alerting.application.collaborators import call_with_timeout
from src.alerting.application.data_filter import reading_matches_metric
from src.alerting.domain.exceptions import DispatchError
from src.alerting.domain.models import (
    AlertCondition,
    AlertConfiguration,
    AlertContext,
    AlertInstance,
    AlertRule,
    ComparisonOperator,
    EvaluationContext,
    MetricSnapshot,
    ReadingQuality,
    SensorDataContext,
    SensorReading,
)
from src.alerting.domain.protocols import AlertRepository, NotificationDispatcher
from src.alerting.domain.results import RuleEvaluationResult
from src.config import EngineConfig

MAX_SUGGESTED_ACTIONS = 5
SIGNIFICANT_DEVIATION_RATIO = 0.5
TREND_BAND = 0.05
GENERAL_ACTIONS = (
    "Check system logs for related errors",
    "Verify sensor calibration and connectivity",
)
HEALTH_BY_QUALITY = {
    ReadingQuality.GOOD: "healthy",
    ReadingQuality.WARNING: "warning",
    ReadingQuality.ERROR: "error",
}


def alert_id_for(configuration_id: str, rule_id: str, context: EvaluationContext) -> str:
    """Stable id, so re-evaluating an identical snapshot yields identical instances."""
    key = f"{configuration_id}:{rule_id}:{context.current_time.isoformat()}"
    return f"alert_{uuid.uuid5(uuid.NAMESPACE_URL, key).hex}"


def describe(rule: AlertRule, result: RuleEvaluationResult) -> str:
    prefix = rule.description or rule.name
    met = result.met_conditions

    if len(met) == 1:
        condition = met[0]
        operator = condition.evaluation_method.replace("_", " ")
        return (
            f"{prefix}: Value {condition.actual_value:.2f} {operator} "
            f"threshold {condition.threshold_value:.2f}"
        )

    return f"{prefix}: Multiple conditions triggered ({len(met)}/{len(result.conditions_met)})"


def suggest_actions(result: RuleEvaluationResult) -> list[str]:
    actions = []

    for condition in result.met_conditions:
        if condition.evaluation_method == ComparisonOperator.GREATER_THAN:
            actions.append(
                f"Investigate why {condition.condition_id} exceeded threshold by {condition.deviation:.2f}"
            )
        if condition.deviation > abs(condition.threshold_value) * SIGNIFICANT_DEVIATION_RATIO:
            actions.append(
                f"Consider immediate investigation of {condition.condition_id} due to significant deviation"
            )

    actions.extend(GENERAL_ACTIONS)
    return actions[:MAX_SUGGESTED_ACTIONS]


def _trend(current: float, average: float) -> str:
    if average == 0:
        return "stable"
    change = (current - average) / abs(average)
    if change > TREND_BAND:
        return "increasing"
    if change < -TREND_BAND:
        return "decreasing"
    return "stable"


def _health(readings: list[SensorReading]) -> str:
    qualities = {reading.quality for reading in readings}
    for quality in (ReadingQuality.ERROR, ReadingQuality.WARNING):
        if quality in qualities:
            return HEALTH_BY_QUALITY[quality]
    return HEALTH_BY_QUALITY[ReadingQuality.GOOD]


def sensor_context(
    condition: AlertCondition,
    snapshot: MetricSnapshot,
    readings: list[SensorReading],
    context: EvaluationContext,
) -> SensorDataContext:
    metric = condition.metric
    sensor_id = metric.sensor_id or (readings[-1].sensor_id if readings else "unknown")

    history = [reading.value for reading in context.historical_data if reading_matches_metric(reading, metric)]
    historical_average = sum(history) / len(history) if history else 0.0

    return SensorDataContext(
        sensor_id=sensor_id,
        sensor_name=metric.display_name or sensor_id,
        current_value=snapshot.value,
        historical_average=historical_average,
        trend=_trend(snapshot.value, historical_average) if history else "stable",
        health_status=_health(readings),
    )


def build_alert_context(rule: AlertRule, result: RuleEvaluationResult, context: EvaluationContext) -> AlertContext:
    sensor_data = [
        sensor_context(condition, snapshot, result.condition_readings.get(condition.id, []), context)
        for condition, snapshot in zip(rule.conditions, result.metric_snapshots)
    ]

    return AlertContext(
        sensor_data=sensor_data,
        system_status=context.system_status,
        weather_conditions=context.weather_data,
        occupancy_status=context.occupancy_data,
    )


class AlertInstanceBuilder:
    """
    Turns a triggered rule result into an alert instance.

    Looks up an unresolved instance for the same rule first; when the rule
    suppresses duplicates, that instance is returned unchanged. Otherwise a new
    instance is assembled. Dispatch is a separate step so callers can start it
    once the instance is recorded, outside any lock or concurrency slot.
    """

    def __init__(
        self,
        alert_repository: AlertRepository,
        dispatcher: NotificationDispatcher,
        config: EngineConfig | None = None,
    ):
        self.alert_repository = alert_repository
        self.dispatcher = dispatcher
        self.config = config or EngineConfig()
        self.pending_dispatches: set[asyncio.Task] = set()

    async def build(
        self,
        configuration: AlertConfiguration,
        rule: AlertRule,
        result: RuleEvaluationResult,
        context: EvaluationContext,
        timeout: float,
    ) -> tuple[AlertInstance, bool]:
        """
        Build or reuse the alert instance for a triggered rule.

        Returns:
            Tuple of (instance, created) where created is False for a suppressed duplicate
        """
        existing = await self._find_duplicate(configuration.id, rule.id, timeout)
        if existing is not None and rule.suppress_duplicates:
            logger.info(f"Suppressed duplicate for rule {rule.id}; unresolved alert {existing.id} already open")
            return existing, False

        instance = AlertInstance(
            id=alert_id_for(configuration.id, rule.id, context),
            configuration_id=configuration.id,
            rule_id=rule.id,
            severity=result.severity,
            title=f"{rule.name} - {configuration.name}",
            description=describe(rule, result),
            metric_values=result.metric_snapshots,
            triggered_at=context.current_time,
            confidence=result.confidence,
            suggested_actions=suggest_actions(result),
            context=build_alert_context(rule, result, context),
        )

        logger.info(f"Alert {instance.id} triggered ({instance.severity}): {instance.description}")
        return instance, True

    def schedule_dispatch(self, configuration: AlertConfiguration, instance: AlertInstance) -> asyncio.Task:
        """Start dispatch in the background; the notification log is attached when it completes."""
        task = asyncio.create_task(self.dispatch(configuration, instance))
        self.pending_dispatches.add(task)
        task.add_done_callback(self.pending_dispatches.discard)
        return task

    async def dispatch(self, configuration: AlertConfiguration, instance: AlertInstance) -> None:
        """Send notifications and attach the returned log; failures never propagate."""
        try:
            logs = await asyncio.wait_for(
                self.dispatcher.send(configuration.notification_settings, instance),
                timeout=self.config.dispatch_timeout_seconds,
            )
        except Exception as e:
            error = DispatchError(instance.id, original_error=e)
            logger.error(f"{error.message}: {error.details['original_error_type']} {e}")
            return

        instance.notification_log = logs
        logger.debug(f"Alert {instance.id}: {len(logs)} notifications recorded")

    async def _find_duplicate(self, configuration_id: str, rule_id: str, timeout: float) -> AlertInstance | None:
        try:
            return await call_with_timeout(
                self.alert_repository.find_unresolved_alert(configuration_id, rule_id),
                timeout,
                "duplicate alert lookup",
            )
        except Exception as e:
            logger.warning(f"Duplicate lookup for rule {rule_id} failed, creating a new alert: {e}")
            return None
