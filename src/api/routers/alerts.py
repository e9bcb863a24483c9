"""API routes for alert configuration validation and evaluation."""

from typing import Any

from fastapi import APIRouter, Body, Depends, Query
from loguru import logger

from src.alerting.application.rule_engine import RuleEngine
from src.alerting.application.validator import ConfigurationValidator
from src.alerting.domain.validation import AlertValidation, SubscriptionTier
from src.alerting.infrastructure.alert_store import InMemoryAlertStore
from src.alerting.infrastructure.container import get_container
from src.api.domain.schemas import EvaluateRequest, EvaluateResponse

router = APIRouter(prefix="/api/alerts", tags=["alerts"])


def get_rule_engine() -> RuleEngine:
    """Dependency to get the rule engine."""
    return get_container().rule_engine()


def get_alert_store() -> InMemoryAlertStore:
    """Dependency to get the alert store used for duplicate suppression."""
    return get_container().alert_repository()


def get_validator(tier: SubscriptionTier = Query(SubscriptionTier.PROFESSIONAL)) -> ConfigurationValidator:
    """Dependency to get a validator for the caller's tier."""
    container = get_container()
    return container.validator(tier=tier)


@router.post("/configurations/validate", response_model=AlertValidation)
async def validate_configuration(
    configuration: dict[str, Any] = Body(...),
    validator: ConfigurationValidator = Depends(get_validator),
):
    """
    Validate a configuration draft without saving or evaluating it.

    Always answers 200; problems are reported in the body's errors and warnings.
    """
    return validator.validate(configuration)


@router.post("/evaluate", response_model=EvaluateResponse)
async def evaluate(
    request: EvaluateRequest,
    engine: RuleEngine = Depends(get_rule_engine),
    store: InMemoryAlertStore = Depends(get_alert_store),
):
    """
    Evaluate configurations against one snapshot of sensor readings.

    New alerts are recorded so later evaluations can suppress duplicates. The
    response waits for dispatch so it carries each alert's notification log.
    """
    alerts = await engine.evaluate(request.configurations, request.context, timeout=request.timeout_seconds)
    store.add_all(alerts)
    await engine.drain_notifications()

    evaluated = sum(1 for configuration in request.configurations if configuration.is_active)
    logger.info(f"Evaluated {evaluated} configurations: {len(alerts)} alerts")

    return EvaluateResponse(evaluated_configurations=evaluated, alert_count=len(alerts), alerts=alerts)
