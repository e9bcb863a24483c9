"""Infrastructure layer for alert rule evaluation."""

from src.alerting.infrastructure.alert_store import InMemoryAlertStore
from src.alerting.infrastructure.historical_data import ContextHistoricalDataProvider
from src.alerting.infrastructure.logging import LoggingContext, configure_structured_logging
from src.alerting.infrastructure.notification import LoggingNotificationDispatcher

__all__ = [
    "InMemoryAlertStore",
    "ContextHistoricalDataProvider",
    "LoggingContext",
    "configure_structured_logging",
    "LoggingNotificationDispatcher",
]
