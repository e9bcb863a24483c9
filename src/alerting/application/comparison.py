"""Operator evaluation between an aggregated value and a threshold."""

from loguru import logger

from src.alerting.application.aggregator import Aggregator
from src.alerting.application.anomaly_detector import AnomalyDetector
from src.alerting.application.collaborators import call_with_timeout
from src.alerting.domain.exceptions import EvaluationError
from src.alerting.domain.models import AlertCondition, ComparisonOperator, EvaluationContext, Threshold
from src.alerting.domain.protocols import HistoricalDataProvider
from src.alerting.domain.time import Duration
from src.config import AnomalyConfig, EngineConfig

EQUALITY_TOLERANCE = 0.001


class ComparisonEvaluator:
    """Decides whether a condition is met and how far past its threshold the value is."""

    def __init__(
        self,
        historical_data: HistoricalDataProvider,
        anomaly_detector: AnomalyDetector,
        aggregator: Aggregator | None = None,
        engine_config: EngineConfig | None = None,
        anomaly_config: AnomalyConfig | None = None,
    ):
        self.historical_data = historical_data
        self.anomaly_detector = anomaly_detector
        self.aggregator = aggregator or Aggregator()
        self.default_baseline_period = Duration((engine_config or EngineConfig()).default_baseline_period)
        self.default_confidence_level = (anomaly_config or AnomalyConfig()).default_confidence_level

    async def evaluate(
        self,
        operator: ComparisonOperator,
        actual: float,
        threshold: Threshold,
        condition: AlertCondition,
        context: EvaluationContext,
        timeout: float,
    ) -> bool:
        """
        Apply a comparison operator.

        Args:
            operator: Operator from the condition
            actual: Aggregated value for the condition's window
            threshold: Threshold from the condition
            condition: Condition being evaluated (for baseline lookups)
            context: Evaluation snapshot
            timeout: Budget in seconds for each collaborator call

        Returns:
            True if the condition is met
        """
        match operator:
            case ComparisonOperator.GREATER_THAN:
                return actual > threshold.value
            case ComparisonOperator.GREATER_THAN_OR_EQUAL:
                return actual >= threshold.value
            case ComparisonOperator.LESS_THAN:
                return actual < threshold.value
            case ComparisonOperator.LESS_THAN_OR_EQUAL:
                return actual <= threshold.value
            case ComparisonOperator.EQUALS:
                return abs(actual - threshold.value) < EQUALITY_TOLERANCE
            case ComparisonOperator.NOT_EQUALS:
                return abs(actual - threshold.value) >= EQUALITY_TOLERANCE
            case ComparisonOperator.BETWEEN:
                return threshold.value <= actual <= threshold.upper_bound
            case ComparisonOperator.OUTSIDE_RANGE:
                return actual < threshold.value or actual > threshold.upper_bound
            case ComparisonOperator.PERCENTAGE_CHANGE:
                baseline = await self.baseline_value(condition, context, timeout)
                return percentage_change_exceeds(actual, baseline, threshold.value)
            case ComparisonOperator.RATE_OF_CHANGE:
                # the aggregator already produced a per-minute rate
                return abs(actual) > threshold.value
            case ComparisonOperator.ANOMALY_DETECTED:
                confidence_level = threshold.confidence_level or self.default_confidence_level
                return await self.anomaly_detector.is_anomalous(
                    actual, condition, context, confidence_level, timeout
                )

        raise EvaluationError(f"unsupported operator {operator!r}", condition_id=condition.id)

    async def baseline_value(self, condition: AlertCondition, context: EvaluationContext, timeout: float) -> float:
        """Same aggregation as the condition, applied over its baseline period of history."""
        period = condition.threshold.baseline_period or self.default_baseline_period
        readings = await call_with_timeout(
            self.historical_data.fetch_historical(condition, period.delta, context),
            timeout,
            "historical data fetch",
            condition_id=condition.id,
        )
        baseline = self.aggregator.reduce(readings, condition.time_aggregation)
        logger.debug(f"Condition {condition.id}: baseline over {period} = {baseline:.2f} ({len(readings)} readings)")
        return baseline


def percentage_change_exceeds(actual: float, baseline: float, threshold_percent: float) -> bool:
    if baseline == 0:
        return False
    return abs((actual - baseline) / baseline) * 100 > threshold_percent


def calculate_deviation(actual: float, threshold: float, operator: ComparisonOperator) -> float:
    """Magnitude by which a value is past its threshold, in the threshold's units."""
    match operator:
        case ComparisonOperator.GREATER_THAN | ComparisonOperator.GREATER_THAN_OR_EQUAL:
            return max(0.0, actual - threshold)
        case ComparisonOperator.LESS_THAN | ComparisonOperator.LESS_THAN_OR_EQUAL:
            return max(0.0, threshold - actual)
        case ComparisonOperator.PERCENTAGE_CHANGE:
            return abs(actual)
        case _:
            return abs(actual - threshold)
