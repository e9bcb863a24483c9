"""Evaluation of a single alert condition."""

from loguru import logger

from src.alerting.application.aggregator import Aggregator
from src.alerting.application.comparison import ComparisonEvaluator, calculate_deviation
from src.alerting.application.data_filter import DataFilter
from src.alerting.domain.models import AlertCondition, EvaluationContext, MetricSnapshot
from src.alerting.domain.results import INSUFFICIENT_DATA_METHOD, ConditionOutcome, ConditionResult

BUSINESS_HOURS = range(9, 18)
HIGH_TEMPERATURE_C = 30
LOW_TEMPERATURE_C = 5


def contributing_factors(context: EvaluationContext) -> list[str]:
    """Time-of-day, day-type and weather factors attached to every metric snapshot."""
    factors = []

    now = context.current_time
    factors.append("Business hours" if now.hour in BUSINESS_HOURS else "After hours")
    factors.append("Weekend" if now.weekday() >= 5 else "Weekday")

    temperature = (context.weather_data or {}).get("temperature")
    if isinstance(temperature, (int, float)):
        if temperature > HIGH_TEMPERATURE_C:
            factors.append("High temperature")
        elif temperature < LOW_TEMPERATURE_C:
            factors.append("Low temperature")

    return factors


class ConditionEvaluator:
    """Runs DataFilter, Aggregator and ComparisonEvaluator for one condition."""

    def __init__(
        self,
        comparison: ComparisonEvaluator,
        data_filter: DataFilter | None = None,
        aggregator: Aggregator | None = None,
    ):
        self.comparison = comparison
        self.data_filter = data_filter or DataFilter()
        self.aggregator = aggregator or Aggregator()

    async def evaluate(self, condition: AlertCondition, context: EvaluationContext, timeout: float) -> ConditionOutcome:
        """
        Evaluate a condition against the snapshot.

        A condition with fewer in-window readings than its ``minimum_data_points``
        is never met. A metric snapshot is produced either way.
        """
        readings = self.data_filter.select(condition, context)
        aggregation = condition.time_aggregation
        threshold_value = condition.threshold.value

        if len(readings) < aggregation.minimum_data_points:
            logger.debug(
                f"Condition {condition.id}: {len(readings)} readings, "
                f"need {aggregation.minimum_data_points}; not met"
            )
            result = ConditionResult(
                condition_id=condition.id,
                met=False,
                actual_value=0.0,
                threshold_value=threshold_value,
                deviation=0.0,
                evaluation_method=INSUFFICIENT_DATA_METHOD,
            )
        else:
            actual = self.aggregator.reduce(readings, aggregation)
            met = await self.comparison.evaluate(
                condition.operator, actual, condition.threshold, condition, context, timeout
            )
            result = ConditionResult(
                condition_id=condition.id,
                met=met,
                actual_value=actual,
                threshold_value=threshold_value,
                deviation=calculate_deviation(actual, threshold_value, condition.operator),
                evaluation_method=condition.operator.value,
            )

        snapshot = MetricSnapshot(
            metric=condition.metric,
            value=result.actual_value,
            threshold=threshold_value,
            timestamp=context.current_time,
            evaluation_window=f"{aggregation.period:g} minutes",
            contributing_factors=contributing_factors(context),
        )

        return ConditionOutcome(result=result, snapshot=snapshot, readings=readings)
