"""Historical data provider backed by the evaluation snapshot."""

from datetime import timedelta

from src.alerting.application.data_filter import reading_matches_metric
from src.alerting.domain.models import AlertCondition, EvaluationContext, SensorReading
from src.alerting.domain.protocols import HistoricalDataProvider


class ContextHistoricalDataProvider(HistoricalDataProvider):
    """
    Serves baselines from ``context.historical_data``.

    Used when the caller ships history together with the current readings, which is
    how the HTTP endpoint and tests supply it. Deployments backed by a time-series
    store provide their own HistoricalDataProvider instead.
    """

    async def fetch_historical(
        self, condition: AlertCondition, period: timedelta, context: EvaluationContext
    ) -> list[SensorReading]:
        window_start = context.current_time - period
        readings = [
            reading
            for reading in context.historical_data
            if reading_matches_metric(reading, condition.metric)
            and window_start <= reading.timestamp <= context.current_time
        ]
        return sorted(readings, key=lambda reading: reading.timestamp)
