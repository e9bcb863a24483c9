"""Selection of the sensor readings relevant to one condition."""

from datetime import timedelta

from loguru import logger

from src.alerting.domain.models import (
    AlertCondition,
    AlertMetric,
    EvaluationContext,
    FilterOperator,
    MetricFilter,
    MetricType,
    SensorReading,
)

# Keywords looked up in a reading's sensor id or unit (lowercase)
METRIC_KEYWORDS: dict[MetricType, tuple[str, ...]] = {
    MetricType.ENERGY_CONSUMPTION: ("energy", "power", "kwh"),
    MetricType.TEMPERATURE: ("temperature", "temp"),
    MetricType.HUMIDITY: ("humidity", "rh"),
    MetricType.PRESSURE: ("pressure", "pa"),
    MetricType.AIR_QUALITY: ("co2", "pm25", "voc"),
    MetricType.OCCUPANCY: ("occupancy", "people"),
    MetricType.POWER_DEMAND: ("demand", "kw"),
    MetricType.ELECTRICAL: ("voltage", "current", "amp"),
    MetricType.SYSTEM_STATUS: ("status", "health"),
}


def reading_matches_metric(reading: SensorReading, metric: AlertMetric) -> bool:
    """Check whether a reading belongs to a metric, either explicitly or by keyword."""
    if metric.sensor_id and reading.sensor_id == metric.sensor_id:
        return True

    sensor_id = reading.sensor_id.lower()
    unit = reading.unit.lower()
    return any(keyword in sensor_id or keyword in unit for keyword in METRIC_KEYWORDS.get(metric.type, ()))


def reading_passes_filter(reading: SensorReading, metric_filter: MetricFilter) -> bool:
    field_value = getattr(reading, metric_filter.field, None)

    try:
        match metric_filter.operator:
            case FilterOperator.EQUALS:
                return field_value == metric_filter.value
            case FilterOperator.CONTAINS:
                return str(metric_filter.value).lower() in str(field_value).lower()
            case FilterOperator.GREATER_THAN:
                return float(field_value) > float(metric_filter.value)
            case FilterOperator.LESS_THAN:
                return float(field_value) < float(metric_filter.value)
    except (TypeError, ValueError):
        logger.debug(f"Filter on '{metric_filter.field}' not comparable for reading {reading.sensor_id}")
        return False

    return True


class DataFilter:
    """Selects the readings a condition aggregates over."""

    def select(self, condition: AlertCondition, context: EvaluationContext) -> list[SensorReading]:
        """
        Filter the context's current readings for a condition.

        Keeps readings that match the metric, pass every filter and fall inside the
        aggregation window ending at ``context.current_time``. Input order is preserved,
        so chronologically ordered readings stay chronological.

        Args:
            condition: Condition to select readings for
            context: Evaluation snapshot

        Returns:
            Matching readings (possibly empty)
        """
        window_start = context.current_time - timedelta(minutes=condition.time_aggregation.period)

        selected = [
            reading
            for reading in context.sensor_readings
            if reading_matches_metric(reading, condition.metric)
            and all(reading_passes_filter(reading, f) for f in condition.filters)
            and reading.timestamp >= window_start
        ]

        logger.debug(
            f"Condition {condition.id}: {len(selected)} of {len(context.sensor_readings)} readings selected"
        )
        return selected
