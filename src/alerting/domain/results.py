"""Intermediate evaluation results passed between evaluators."""

from dataclasses import dataclass, field

from src.alerting.domain.models import AlertPriority, MetricSnapshot, SensorReading

ERROR_METHOD = "error"
INSUFFICIENT_DATA_METHOD = "insufficient_data"


@dataclass
class ConditionResult:
    """Outcome of comparing one condition's aggregated value against its threshold."""

    condition_id: str
    met: bool
    actual_value: float
    threshold_value: float
    deviation: float
    evaluation_method: str

    @classmethod
    def failed(cls, condition_id: str) -> "ConditionResult":
        """Neutral result used when evaluating a condition raised."""
        return cls(
            condition_id=condition_id,
            met=False,
            actual_value=0.0,
            threshold_value=0.0,
            deviation=0.0,
            evaluation_method=ERROR_METHOD,
        )


@dataclass
class ConditionOutcome:
    result: ConditionResult
    snapshot: MetricSnapshot | None = None
    readings: list[SensorReading] = field(default_factory=list)


@dataclass
class RuleEvaluationResult:
    rule_id: str
    triggered: bool
    severity: AlertPriority
    confidence: float
    conditions_met: list[ConditionResult] = field(default_factory=list)
    metric_snapshots: list[MetricSnapshot] = field(default_factory=list)
    condition_readings: dict[str, list[SensorReading]] = field(default_factory=dict)

    @property
    def met_conditions(self) -> list[ConditionResult]:
        return [result for result in self.conditions_met if result.met]
