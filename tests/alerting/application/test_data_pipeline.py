"""
Tests for reading selection and aggregation
"""
import pytest

from src.alerting.application.aggregator import Aggregator
from src.alerting.application.data_filter import DataFilter, reading_matches_metric
from src.alerting.domain.models import (
    AggregationFunction,
    AlertMetric,
    FilterOperator,
    MetricFilter,
    MetricType,
    ReadingQuality,
    TimeAggregation,
)


class TestDataFilter:
    """Test metric matching, filters and the time window"""

    def test_explicit_sensor_id_matches(self, make_reading):
        metric = AlertMetric(type=MetricType.TEMPERATURE, sensor_id="zone_a_thermostat")

        assert reading_matches_metric(make_reading(21.5, sensor_id="zone_a_thermostat", unit="C"), metric)

    def test_keyword_in_sensor_id_or_unit(self, make_reading):
        metric = AlertMetric(type=MetricType.ENERGY_CONSUMPTION)

        assert reading_matches_metric(make_reading(10, sensor_id="meter_7", unit="kWh"), metric)
        assert reading_matches_metric(make_reading(10, sensor_id="Power_Panel_2", unit=""), metric)
        assert not reading_matches_metric(make_reading(10, sensor_id="zone_a_thermostat", unit="C"), metric)

    def test_window_keeps_recent_readings_in_order(self, make_condition, make_context, spike_readings, make_reading):
        stale = make_reading(5000, minutes_ago=45)
        context = make_context([stale, *spike_readings])

        selected = DataFilter().select(make_condition(period=15), context)

        assert [r.value for r in selected] == [850, 920, 1150, 1380, 1620]

    def test_filters_are_anded(self, make_condition, make_context, make_reading):
        readings = [
            make_reading(100, minutes_ago=1, quality=ReadingQuality.GOOD),
            make_reading(200, minutes_ago=2, quality=ReadingQuality.ERROR),
            make_reading(300, minutes_ago=3, quality=ReadingQuality.GOOD),
        ]
        condition = make_condition(
            filters=[
                MetricFilter(field="quality", operator=FilterOperator.EQUALS, value="good"),
                MetricFilter(field="value", operator=FilterOperator.GREATER_THAN, value=150),
            ]
        )

        selected = DataFilter().select(condition, make_context(readings))

        assert [r.value for r in selected] == [300]

    def test_non_numeric_filter_value_excludes_reading(self, make_condition, make_context, make_reading):
        condition = make_condition(
            filters=[MetricFilter(field="unit", operator=FilterOperator.GREATER_THAN, value=5)]
        )

        assert DataFilter().select(condition, make_context([make_reading(1)])) == []

    def test_no_match_is_empty_not_error(self, make_condition, make_context):
        assert DataFilter().select(make_condition(), make_context()) == []


class TestAggregator:
    """Test each aggregation function"""

    @pytest.mark.parametrize(
        "function,expected",
        [
            (AggregationFunction.AVERAGE, 1184.0),
            (AggregationFunction.SUM, 5920.0),
            (AggregationFunction.MINIMUM, 850.0),
            (AggregationFunction.MAXIMUM, 1620.0),
            (AggregationFunction.COUNT, 5.0),
            (AggregationFunction.MEDIAN, 1150.0),
            (AggregationFunction.PERCENTILE, 1620.0),
        ],
    )
    def test_spike_aggregations(self, spike_readings, function, expected):
        result = Aggregator().reduce(spike_readings, TimeAggregation(function=function, period=15))

        assert result == pytest.approx(expected)

    def test_median_even_length_averages_middle(self, make_reading):
        readings = [make_reading(v, minutes_ago=i) for i, v in enumerate([4, 1, 3, 2])]

        result = Aggregator().reduce(readings, TimeAggregation(function=AggregationFunction.MEDIAN, period=15))

        assert result == pytest.approx(2.5)

    def test_percentile_nearest_rank(self, make_reading):
        readings = [make_reading(v, minutes_ago=i) for i, v in enumerate(range(1, 21))]

        result = Aggregator().reduce(readings, TimeAggregation(function=AggregationFunction.PERCENTILE, period=60))

        # floor(0.95 * 20) = 19 -> the largest value
        assert result == 20

    def test_population_standard_deviation(self, history_readings):
        result = Aggregator().reduce(
            history_readings, TimeAggregation(function=AggregationFunction.STANDARD_DEVIATION, period=60)
        )

        assert result == pytest.approx(120.0)

    def test_rate_of_change_per_minute(self, spike_readings):
        result = Aggregator().reduce(
            spike_readings, TimeAggregation(function=AggregationFunction.RATE_OF_CHANGE, period=15)
        )

        # (1620 - 850) over 12 minutes
        assert result == pytest.approx(770 / 12)

    def test_rate_of_change_needs_two_points(self, make_reading):
        result = Aggregator().reduce(
            [make_reading(10)], TimeAggregation(function=AggregationFunction.RATE_OF_CHANGE, period=15)
        )

        assert result == 0.0

    def test_below_minimum_points_is_zero(self, spike_readings):
        aggregation = TimeAggregation(function=AggregationFunction.MAXIMUM, period=15, minimum_data_points=6)

        assert Aggregator().reduce(spike_readings, aggregation) == 0.0

    def test_empty_is_zero(self):
        assert Aggregator().reduce([], TimeAggregation(period=15)) == 0.0
