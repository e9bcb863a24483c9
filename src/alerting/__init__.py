"""Alert rule evaluation engine package."""

from src.alerting.application import RuleEngine, validate_configuration
from src.alerting.domain import AlertConfiguration, AlertInstance, AlertValidation, EvaluationContext
from src.alerting.infrastructure import InMemoryAlertStore

__all__ = [
    "RuleEngine",
    "validate_configuration",
    "AlertConfiguration",
    "AlertInstance",
    "AlertValidation",
    "EvaluationContext",
    "InMemoryAlertStore",
]
