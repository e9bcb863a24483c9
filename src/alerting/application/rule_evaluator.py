"""Rule and configuration evaluation with confidence scoring."""

import asyncio

from loguru import logger

from src.alerting.application.collaborators import collaborator_timeout
from src.alerting.application.condition_evaluator import ConditionEvaluator, contributing_factors
from src.alerting.domain.models import (
    AlertCondition,
    AlertConfiguration,
    AlertRule,
    EvaluationContext,
    LogicalOperator,
    MetricSnapshot,
)
from src.alerting.domain.results import ConditionOutcome, ConditionResult, RuleEvaluationResult
from src.alerting.infrastructure.logging import LoggingContext
from src.config import EngineConfig

MAX_NORMALIZED_DEVIATION = 2.0
DEVIATION_WEIGHT = 0.2
MAX_DEVIATION_BONUS = 0.3


def apply_logical_operator(operator: LogicalOperator, results: list[bool]) -> bool:
    match operator:
        case LogicalOperator.OR:
            return any(results)
        case _:
            return all(results)


def calculate_confidence(results: list[ConditionResult]) -> float:
    """
    Score how strongly a rule's conditions support triggering.

    Breadth is the share of met conditions; magnitude adds up to 0.3 based on how far
    the met conditions are past their thresholds, each capped at twice the threshold.
    """
    if not results:
        return 0.0

    met = [result for result in results if result.met]
    base = len(met) / len(results)

    normalized = [
        min(result.deviation / max(abs(result.threshold_value), 1.0), MAX_NORMALIZED_DEVIATION) for result in met
    ]
    avg_deviation = sum(normalized) / max(len(met), 1)

    return min(base + min(avg_deviation * DEVIATION_WEIGHT, MAX_DEVIATION_BONUS), 1.0)


class RuleEvaluator:
    """Evaluates every condition of a rule and combines them with the rule's logical operator."""

    def __init__(self, condition_evaluator: ConditionEvaluator, config: EngineConfig | None = None):
        self.condition_evaluator = condition_evaluator
        self.config = config or EngineConfig()

    async def evaluate(self, rule: AlertRule, context: EvaluationContext) -> RuleEvaluationResult:
        """
        Evaluate a rule.

        Conditions are all evaluated, concurrently, even once the outcome is known,
        because confidence scoring needs every deviation. A condition that raises
        resolves to a neutral "not met" result.
        """
        timeout = collaborator_timeout(rule, self.config)
        outcomes = await asyncio.gather(
            *[self.condition_evaluator.evaluate(condition, context, timeout) for condition in rule.conditions],
            return_exceptions=True,
        )

        results: list[ConditionResult] = []
        snapshots: list[MetricSnapshot] = []
        condition_readings = {}

        for condition, outcome in zip(rule.conditions, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error(f"Error evaluating condition {condition.id}: {outcome}")
                outcome = self._failed_outcome(condition, context)

            results.append(outcome.result)
            if outcome.snapshot is not None:
                snapshots.append(outcome.snapshot)
            condition_readings[condition.id] = outcome.readings

        triggered = apply_logical_operator(rule.logical_operator, [result.met for result in results])
        confidence = calculate_confidence(results)

        logger.debug(
            f"Rule {rule.id}: {sum(r.met for r in results)}/{len(results)} conditions met, "
            f"triggered={triggered}, confidence={confidence:.2f}"
        )

        return RuleEvaluationResult(
            rule_id=rule.id,
            triggered=triggered,
            severity=rule.priority,
            confidence=confidence,
            conditions_met=results,
            metric_snapshots=snapshots,
            condition_readings=condition_readings,
        )

    @staticmethod
    def _failed_outcome(condition: AlertCondition, context: EvaluationContext) -> ConditionOutcome:
        snapshot = MetricSnapshot(
            metric=condition.metric,
            value=0.0,
            threshold=condition.threshold.value,
            timestamp=context.current_time,
            evaluation_window=f"{condition.time_aggregation.period:g} minutes",
            contributing_factors=contributing_factors(context),
        )
        return ConditionOutcome(result=ConditionResult.failed(condition.id), snapshot=snapshot)


class ConfigurationEvaluator:
    """Evaluates all enabled rules of one alert configuration."""

    def __init__(self, rule_evaluator: RuleEvaluator):
        self.rule_evaluator = rule_evaluator

    async def evaluate(
        self, configuration: AlertConfiguration, context: EvaluationContext
    ) -> list[RuleEvaluationResult]:
        """
        Evaluate enabled rules independently.

        Rules without conditions are skipped with a warning. A rule that raises is
        logged and yields no result; sibling rules are unaffected.
        """
        rules = []
        for rule in configuration.rules:
            if not rule.enabled:
                continue
            if not rule.conditions:
                logger.warning(f"Skipping rule {rule.id}: no conditions")
                continue
            rules.append(rule)

        outcomes = await asyncio.gather(
            *[self._evaluate_rule(rule, context) for rule in rules],
            return_exceptions=True,
        )

        results = []
        for rule, outcome in zip(rules, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                logger.error(f"Error evaluating rule {rule.id}: {outcome}")
                continue
            results.append(outcome)

        return results

    async def _evaluate_rule(self, rule: AlertRule, context: EvaluationContext) -> RuleEvaluationResult:
        with LoggingContext(rule_id=rule.id):
            return await self.rule_evaluator.evaluate(rule, context)
