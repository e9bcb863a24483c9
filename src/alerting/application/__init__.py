"""Application layer for alert rule evaluation."""

from src.alerting.application.aggregator import Aggregator
from src.alerting.application.alert_builder import AlertInstanceBuilder
from src.alerting.application.anomaly_detector import AnomalyDetector
from src.alerting.application.comparison import ComparisonEvaluator
from src.alerting.application.condition_evaluator import ConditionEvaluator
from src.alerting.application.data_filter import DataFilter
from src.alerting.application.rule_engine import RuleEngine
from src.alerting.application.rule_evaluator import ConfigurationEvaluator, RuleEvaluator
from src.alerting.application.validator import ConfigurationValidator, validate_configuration

__all__ = [
    "Aggregator",
    "AlertInstanceBuilder",
    "AnomalyDetector",
    "ComparisonEvaluator",
    "ConditionEvaluator",
    "DataFilter",
    "RuleEngine",
    "ConfigurationEvaluator",
    "RuleEvaluator",
    "ConfigurationValidator",
    "validate_configuration",
]
