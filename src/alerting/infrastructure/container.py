"""Dependency injection container for the alerting engine."""

from dependency_injector import containers, providers

from src.alerting.application.aggregator import Aggregator
from src.alerting.application.alert_builder import AlertInstanceBuilder
from src.alerting.application.anomaly_detector import AnomalyDetector
from src.alerting.application.comparison import ComparisonEvaluator
from src.alerting.application.condition_evaluator import ConditionEvaluator
from src.alerting.application.data_filter import DataFilter
from src.alerting.application.rule_engine import RuleEngine
from src.alerting.application.rule_evaluator import ConfigurationEvaluator, RuleEvaluator
from src.alerting.application.validator import ConfigurationValidator
from src.alerting.infrastructure.alert_store import InMemoryAlertStore
from src.alerting.infrastructure.historical_data import ContextHistoricalDataProvider
from src.alerting.infrastructure.notification import LoggingNotificationDispatcher
from src.config import AppConfig


class AlertingContainer(containers.DeclarativeContainer):
    """Dependency injection container for the alerting engine."""

    config = providers.Singleton(AppConfig)

    # Infrastructure - Collaborators
    alert_repository = providers.Singleton(InMemoryAlertStore)
    historical_data = providers.Singleton(ContextHistoricalDataProvider)
    notification_dispatcher = providers.Singleton(LoggingNotificationDispatcher)

    # Application - Evaluation pipeline
    data_filter = providers.Singleton(DataFilter)
    aggregator = providers.Singleton(Aggregator)

    anomaly_detector = providers.Factory(
        AnomalyDetector,
        historical_data=historical_data,
        config=config.provided.anomaly,
    )

    comparison = providers.Factory(
        ComparisonEvaluator,
        historical_data=historical_data,
        anomaly_detector=anomaly_detector,
        aggregator=aggregator,
        engine_config=config.provided.engine,
        anomaly_config=config.provided.anomaly,
    )

    condition_evaluator = providers.Factory(
        ConditionEvaluator,
        comparison=comparison,
        data_filter=data_filter,
        aggregator=aggregator,
    )

    rule_evaluator = providers.Factory(
        RuleEvaluator,
        condition_evaluator=condition_evaluator,
        config=config.provided.engine,
    )

    configuration_evaluator = providers.Factory(
        ConfigurationEvaluator,
        rule_evaluator=rule_evaluator,
    )

    alert_builder = providers.Factory(
        AlertInstanceBuilder,
        alert_repository=alert_repository,
        dispatcher=notification_dispatcher,
        config=config.provided.engine,
    )

    # Application - Entry points
    rule_engine = providers.Singleton(
        RuleEngine,
        configuration_evaluator=configuration_evaluator,
        alert_builder=alert_builder,
        config=config.provided.engine,
    )

    validator = providers.Factory(
        ConfigurationValidator,
        config=config.provided.validation,
    )


# Global container instance
_container: AlertingContainer | None = None


def init_container(config: AppConfig | None = None) -> AlertingContainer:
    """Initialize the global container, optionally with an explicit configuration."""
    global _container
    _container = AlertingContainer()
    if config is not None:
        _container.config.override(providers.Object(config))
    return _container


def get_container() -> AlertingContainer:
    """Get the global container instance."""
    if _container is None:
        raise RuntimeError("Container not initialized. Call init_container() first.")
    return _container
