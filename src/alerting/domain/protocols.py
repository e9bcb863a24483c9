"""Protocols (interfaces) for the collaborators the engine depends on."""

from datetime import timedelta
from typing import Protocol, runtime_checkable

from src.alerting.domain.models import (
    AlertCondition,
    AlertInstance,
    EvaluationContext,
    NotificationLog,
    NotificationSettings,
    SensorReading,
)


@runtime_checkable
class AlertRepository(Protocol):
    """Lookup of previously created alert instances, used for deduplication."""

    async def find_unresolved_alert(self, configuration_id: str, rule_id: str) -> AlertInstance | None:
        """
        Find an open alert instance for a rule.

        Returns:
            The unresolved instance, or None if every earlier instance is closed
        """
        ...


@runtime_checkable
class HistoricalDataProvider(Protocol):
    """Source of historical readings for baselines and anomaly detection."""

    async def fetch_historical(
        self, condition: AlertCondition, period: timedelta, context: EvaluationContext
    ) -> list[SensorReading]:
        """
        Fetch historical readings relevant to a condition.

        Args:
            condition: Condition whose metric selects the readings
            period: How far back from context.current_time to look
            context: Evaluation snapshot being processed

        Returns:
            Readings in chronological order
        """
        ...


@runtime_checkable
class NotificationDispatcher(Protocol):
    """Delivery of alert notifications; retries and signing live behind this interface."""

    async def send(self, settings: NotificationSettings, alert: AlertInstance) -> list[NotificationLog]:
        """Send notifications for an alert and return one log entry per attempt."""
        ...
