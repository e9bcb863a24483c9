"""Domain layer for the alert rule engine."""

from src.alerting.domain.exceptions import (
    AlertingException,
    CollaboratorTimeoutError,
    ConfigurationError,
    DispatchError,
    EvaluationError,
)
from src.alerting.domain.models import (
    AggregationFunction,
    AlertCondition,
    AlertConfiguration,
    AlertContext,
    AlertInstance,
    AlertInstanceStatus,
    AlertMetric,
    AlertPriority,
    AlertRule,
    ComparisonOperator,
    ConfigurationStatus,
    EvaluationContext,
    LogicalOperator,
    MetricSnapshot,
    MetricType,
    NotificationLog,
    NotificationSettings,
    SensorReading,
    Threshold,
    TimeAggregation,
)
from src.alerting.domain.protocols import AlertRepository, HistoricalDataProvider, NotificationDispatcher
from src.alerting.domain.results import ConditionResult, RuleEvaluationResult
from src.alerting.domain.validation import AlertValidation, SubscriptionTier

__all__ = [
    "AlertingException",
    "CollaboratorTimeoutError",
    "ConfigurationError",
    "DispatchError",
    "EvaluationError",
    "AggregationFunction",
    "AlertCondition",
    "AlertConfiguration",
    "AlertContext",
    "AlertInstance",
    "AlertInstanceStatus",
    "AlertMetric",
    "AlertPriority",
    "AlertRule",
    "ComparisonOperator",
    "ConfigurationStatus",
    "EvaluationContext",
    "LogicalOperator",
    "MetricSnapshot",
    "MetricType",
    "NotificationLog",
    "NotificationSettings",
    "SensorReading",
    "Threshold",
    "TimeAggregation",
    "AlertRepository",
    "HistoricalDataProvider",
    "NotificationDispatcher",
    "ConditionResult",
    "RuleEvaluationResult",
    "AlertValidation",
    "SubscriptionTier",
]
