"""Z-score anomaly detection against a per-sensor historical baseline."""

from loguru import logger
from river import stats

from src.alerting.application.collaborators import call_with_timeout
from src.alerting.domain.models import AlertCondition, EvaluationContext
from src.alerting.domain.protocols import HistoricalDataProvider
from src.alerting.domain.time import Duration
from src.config import AnomalyConfig


def population_stats(values: list[float]) -> tuple[float, float]:
    """Mean and population standard deviation of a series."""
    mean = stats.Mean()
    variance = stats.Var(ddof=0)
    for value in values:
        mean.update(value)
        variance.update(value)
    return mean.get(), variance.get() ** 0.5


class AnomalyDetector:
    """
    Classifies a live value as anomalous relative to the sensor's history.

    Only conditions with ``anomaly_detection`` enabled are considered. The value is
    anomalous when its z-score against the historical mean exceeds the threshold
    mapped from the requested confidence level.
    """

    def __init__(self, historical_data: HistoricalDataProvider, config: AnomalyConfig | None = None):
        self.historical_data = historical_data
        self.config = config or AnomalyConfig()

    async def is_anomalous(
        self,
        value: float,
        condition: AlertCondition,
        context: EvaluationContext,
        confidence_level: float,
        timeout: float,
    ) -> bool:
        if not condition.anomaly_detection:
            return False

        sensor_id = condition.metric.sensor_id
        if not sensor_id:
            logger.debug(f"Condition {condition.id}: anomaly detection needs a metric sensor_id")
            return False

        period = condition.threshold.baseline_period or Duration(self.config.history_period)
        readings = await call_with_timeout(
            self.historical_data.fetch_historical(condition, period.delta, context),
            timeout,
            "historical data fetch",
            condition_id=condition.id,
        )
        values = [reading.value for reading in readings if reading.sensor_id == sensor_id]

        if len(values) < self.config.min_history_points:
            logger.debug(
                f"Condition {condition.id}: {len(values)} historical points for {sensor_id}, "
                f"need {self.config.min_history_points}"
            )
            return False

        mean, std_dev = population_stats(values)
        if std_dev == 0:
            logger.debug(f"Condition {condition.id}: no variance in history for {sensor_id}")
            return False

        z_score = abs(value - mean) / std_dev
        z_threshold = self.config.z_threshold_for(confidence_level)
        is_anomaly = z_score > z_threshold

        if is_anomaly:
            logger.info(
                f"Anomaly detected: {sensor_id}={value}, mean={mean:.2f}, "
                f"z-score={z_score:.2f}, threshold={z_threshold}"
            )

        return is_anomaly
