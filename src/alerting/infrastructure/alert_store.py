"""Alert instance storage used for duplicate suppression."""

import pandas as pd
from loguru import logger

from src.alerting.domain.models import AlertInstance, AlertInstanceStatus
from src.alerting.domain.protocols import AlertRepository


class InMemoryAlertStore(AlertRepository):
    """Simple in-memory alert storage for testing and single-process deployments."""

    def __init__(self):
        self.alerts: dict[str, AlertInstance] = {}

    async def find_unresolved_alert(self, configuration_id: str, rule_id: str) -> AlertInstance | None:
        """Most recently triggered open alert for the rule, if any."""
        candidates = [
            alert
            for alert in self.alerts.values()
            if alert.configuration_id == configuration_id and alert.rule_id == rule_id and alert.is_unresolved
        ]
        if not candidates:
            return None
        return max(candidates, key=lambda alert: alert.triggered_at)

    def add(self, alert: AlertInstance) -> None:
        """Store an alert; an alert with the same id replaces the earlier one."""
        self.alerts[alert.id] = alert

    def add_all(self, alerts: list[AlertInstance]) -> None:
        for alert in alerts:
            self.add(alert)

    def update_status(self, alert_id: str, status: AlertInstanceStatus) -> AlertInstance:
        """
        Move an alert to a new lifecycle status.

        Raises:
            KeyError: If no alert has the given id
        """
        alert = self.alerts[alert_id]
        alert.status = status
        alert.false_positive = status == AlertInstanceStatus.FALSE_POSITIVE
        logger.debug(f"Alert {alert_id} -> {status}")
        return alert

    def resolve(self, alert_id: str) -> AlertInstance:
        return self.update_status(alert_id, AlertInstanceStatus.RESOLVED)

    def to_dataframe(self) -> pd.DataFrame:
        """Flatten stored alerts into one row per alert."""
        if not self.alerts:
            return pd.DataFrame()

        return pd.DataFrame(
            [
                {
                    "id": alert.id,
                    "configuration_id": alert.configuration_id,
                    "rule_id": alert.rule_id,
                    "status": str(alert.status),
                    "severity": str(alert.severity),
                    "triggered_at": alert.triggered_at,
                    "confidence": alert.confidence,
                    "notifications": len(alert.notification_log),
                }
                for alert in self.alerts.values()
            ]
        )

    def clear(self):
        """Clear all stored alerts."""
        self.alerts.clear()

    def __len__(self):
        return len(self.alerts)
