"""Reduction of a reading set to a single scalar."""

import math

import pandas as pd

from src.alerting.domain.models import AggregationFunction, SensorReading, TimeAggregation

PERCENTILE = 0.95


class Aggregator:
    """
    Applies a condition's time aggregation to its filtered readings.

    Returns 0 when fewer readings than ``minimum_data_points`` are available,
    which the comparison step treats as "not enough evidence".
    """

    def reduce(self, readings: list[SensorReading], aggregation: TimeAggregation) -> float:
        if not readings or len(readings) < aggregation.minimum_data_points:
            return 0.0

        series = pd.Series(
            [reading.value for reading in readings],
            index=pd.to_datetime([reading.timestamp for reading in readings], utc=True),
            dtype="float64",
        ).dropna()

        if series.empty:
            return 0.0

        match aggregation.function:
            case AggregationFunction.AVERAGE:
                return float(series.mean())
            case AggregationFunction.SUM:
                return float(series.sum())
            case AggregationFunction.MINIMUM:
                return float(series.min())
            case AggregationFunction.MAXIMUM:
                return float(series.max())
            case AggregationFunction.COUNT:
                return float(series.count())
            case AggregationFunction.MEDIAN:
                return float(series.median())
            case AggregationFunction.PERCENTILE:
                return self._percentile(series)
            case AggregationFunction.STANDARD_DEVIATION:
                return float(series.std(ddof=0))
            case AggregationFunction.RATE_OF_CHANGE:
                return self._rate_of_change(series)
            case _:
                return float(series.mean())

    @staticmethod
    def _percentile(series: pd.Series) -> float:
        # nearest-rank on the sorted values, no interpolation
        ordered = series.sort_values().to_numpy()
        index = min(math.floor(PERCENTILE * len(ordered)), len(ordered) - 1)
        return float(ordered[index])

    @staticmethod
    def _rate_of_change(series: pd.Series) -> float:
        """Change per minute between the first and last reading, by position."""
        if len(series) < 2:
            return 0.0

        minutes = (series.index[-1] - series.index[0]).total_seconds() / 60
        if minutes <= 0:
            return 0.0

        return float((series.iloc[-1] - series.iloc[0]) / minutes)
