"""Domain models for alert configuration, sensor telemetry and alert instances."""

from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.alerting.domain.time import Duration


class MetricType(StrEnum):
    """What a condition measures."""

    ENERGY_CONSUMPTION = "energy_consumption"
    POWER_DEMAND = "power_demand"
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    PRESSURE = "pressure"
    AIR_QUALITY = "air_quality"
    OCCUPANCY = "occupancy"
    ELECTRICAL = "electrical"
    SYSTEM_STATUS = "system_status"
    EQUIPMENT_STATUS = "equipment_status"
    EFFICIENCY_RATIO = "efficiency_ratio"
    SENSOR_CONNECTIVITY = "sensor_connectivity"
    DATA_QUALITY = "data_quality"


class ComparisonOperator(StrEnum):
    """Comparison applied between the aggregated value and the threshold."""

    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    GREATER_THAN_OR_EQUAL = "greater_than_or_equal"
    LESS_THAN_OR_EQUAL = "less_than_or_equal"
    BETWEEN = "between"
    OUTSIDE_RANGE = "outside_range"
    PERCENTAGE_CHANGE = "percentage_change"
    RATE_OF_CHANGE = "rate_of_change"
    ANOMALY_DETECTED = "anomaly_detected"

    @property
    def is_range(self) -> bool:
        return self in (ComparisonOperator.BETWEEN, ComparisonOperator.OUTSIDE_RANGE)

    @property
    def is_baseline_relative(self) -> bool:
        return self in (ComparisonOperator.PERCENTAGE_CHANGE, ComparisonOperator.ANOMALY_DETECTED)


class AggregationFunction(StrEnum):
    """Reduction applied to the readings inside the aggregation window."""

    AVERAGE = "average"
    SUM = "sum"
    MINIMUM = "minimum"
    MAXIMUM = "maximum"
    COUNT = "count"
    MEDIAN = "median"
    PERCENTILE = "percentile"
    STANDARD_DEVIATION = "standard_deviation"
    RATE_OF_CHANGE = "rate_of_change"


class FilterOperator(StrEnum):
    EQUALS = "equals"
    CONTAINS = "contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"


class LogicalOperator(StrEnum):
    AND = "AND"
    OR = "OR"


class AlertPriority(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class ConfigurationStatus(StrEnum):
    ACTIVE = "active"
    PAUSED = "paused"
    INACTIVE = "inactive"
    DRAFT = "draft"
    TESTING = "testing"


class ReadingQuality(StrEnum):
    GOOD = "good"
    WARNING = "warning"
    ERROR = "error"


class AlertInstanceStatus(StrEnum):
    """Lifecycle status of an alert instance."""

    TRIGGERED = "triggered"
    ESCALATED = "escalated"
    ACKNOWLEDGED = "acknowledged"
    INVESTIGATING = "investigating"
    RESOLVED = "resolved"
    SUPPRESSED = "suppressed"
    EXPIRED = "expired"
    FALSE_POSITIVE = "false_positive"


CLOSED_STATUSES = frozenset(
    {AlertInstanceStatus.RESOLVED, AlertInstanceStatus.EXPIRED, AlertInstanceStatus.FALSE_POSITIVE}
)


class ChannelType(StrEnum):
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    WEBHOOK = "webhook"
    SLACK = "slack"
    TEAMS = "teams"
    PHONE = "phone"


class NotificationStatus(StrEnum):
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"
    ACKNOWLEDGED = "acknowledged"


# Telemetry
def as_utc_instant(value: datetime) -> datetime:
    """Timestamps without an offset are taken as UTC so every comparison is between instants."""
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SensorReading(BaseModel):
    """A single immutable sensor sample."""

    model_config = ConfigDict(frozen=True)

    sensor_id: str
    timestamp: datetime
    value: float
    unit: str = ""
    quality: ReadingQuality = ReadingQuality.GOOD

    @field_validator("timestamp")
    @classmethod
    def validate_timestamp(cls, v: datetime) -> datetime:
        return as_utc_instant(v)


class EvaluationContext(BaseModel):
    """Snapshot of current and historical telemetry handed to one evaluation pass."""

    model_config = ConfigDict(frozen=True)

    current_time: datetime
    sensor_readings: list[SensorReading] = Field(default_factory=list)
    historical_data: list[SensorReading] = Field(default_factory=list)
    system_status: Any = None
    weather_data: dict[str, Any] | None = None
    occupancy_data: dict[str, Any] | None = None

    @field_validator("current_time")
    @classmethod
    def validate_current_time(cls, v: datetime) -> datetime:
        return as_utc_instant(v)


# Alert configuration
class AlertMetric(BaseModel):
    """Describes what a condition measures."""

    type: MetricType
    sensor_id: str | None = None
    equipment_type: str | None = None
    floor_number: int | None = None
    display_name: str = ""
    units: str = ""


class Threshold(BaseModel):
    """
    Threshold shape shared by all operator families.

    Simple operators read ``value``; range operators also read ``secondary_value``;
    baseline-relative operators read ``baseline_period`` and ``confidence_level``.
    """

    value: float
    secondary_value: float | None = None
    baseline_period: Duration | None = None
    confidence_level: float | None = Field(default=None, gt=0, lt=1)

    @property
    def upper_bound(self) -> float:
        return self.secondary_value if self.secondary_value is not None else self.value


class TimeAggregation(BaseModel):
    function: AggregationFunction = AggregationFunction.AVERAGE
    period: float = Field(gt=0, description="Aggregation window in minutes")
    minimum_data_points: int = Field(default=1, ge=1)


class MetricFilter(BaseModel):
    field: str
    operator: FilterOperator
    value: str | float | bool


class AlertCondition(BaseModel):
    id: str
    metric: AlertMetric
    operator: ComparisonOperator
    threshold: Threshold
    time_aggregation: TimeAggregation
    filters: list[MetricFilter] = Field(default_factory=list)
    anomaly_detection: bool = False


class AlertRule(BaseModel):
    id: str
    name: str
    description: str = ""
    enabled: bool = True
    priority: AlertPriority = AlertPriority.MEDIUM
    conditions: list[AlertCondition] = Field(default_factory=list)
    logical_operator: LogicalOperator = LogicalOperator.AND
    evaluation_window: float = Field(default=5, gt=0, description="Minutes between evaluations")
    cooldown_period: float = Field(default=0, ge=0, description="Minutes of suppression after a trigger")
    suppress_duplicates: bool = True
    tags: list[str] = Field(default_factory=list)


class ChannelConfiguration(BaseModel):
    """Channel targets; unknown provider-specific keys are kept as-is."""

    model_config = ConfigDict(extra="allow")

    email_addresses: list[str] = Field(default_factory=list)
    phone_numbers: list[str] = Field(default_factory=list)
    webhook_url: str | None = None
    slack_channel: str | None = None
    teams_webhook_url: str | None = None
    push_topic: str | None = None


class NotificationChannel(BaseModel):
    type: ChannelType
    enabled: bool = True
    configuration: ChannelConfiguration = Field(default_factory=ChannelConfiguration)
    priority_filter: list[AlertPriority] = Field(default_factory=list)


class QuietHours(BaseModel):
    enabled: bool = False
    start_time: str = Field(default="22:00", pattern=r"^\d{2}:\d{2}$")
    end_time: str = Field(default="06:00", pattern=r"^\d{2}:\d{2}$")
    exceptions: list[str] = Field(default_factory=list)


class NotificationSettings(BaseModel):
    channels: list[NotificationChannel] = Field(default_factory=list)
    quiet_hours: QuietHours | None = None
    escalation_delays: list[float] = Field(default_factory=list)
    custom_message_template: str | None = None


class AlertConfiguration(BaseModel):
    """A named bundle of rules plus notification settings."""

    id: str
    name: str = ""
    description: str = ""
    status: ConfigurationStatus = ConfigurationStatus.ACTIVE
    rules: list[AlertRule] = Field(default_factory=list)
    notification_settings: NotificationSettings = Field(default_factory=NotificationSettings)

    @property
    def is_active(self) -> bool:
        return self.status == ConfigurationStatus.ACTIVE


# Alert instances
class MetricSnapshot(BaseModel):
    """What a condition measured, recorded whether or not it was met."""

    metric: AlertMetric
    value: float
    threshold: float
    timestamp: datetime
    evaluation_window: str
    contributing_factors: list[str] = Field(default_factory=list)


class SensorDataContext(BaseModel):
    sensor_id: str
    sensor_name: str
    current_value: float
    historical_average: float = 0.0
    trend: str = "stable"
    health_status: str = "healthy"


class AlertContext(BaseModel):
    sensor_data: list[SensorDataContext] = Field(default_factory=list)
    system_status: Any = None
    related_alerts: list[str] = Field(default_factory=list)
    weather_conditions: dict[str, Any] | None = None
    occupancy_status: dict[str, Any] | None = None


class NotificationLog(BaseModel):
    id: str
    channel: ChannelType
    recipient: str
    sent_at: datetime
    delivered_at: datetime | None = None
    status: NotificationStatus
    error_message: str | None = None
    retry_count: int = 0


class AlertInstance(BaseModel):
    id: str
    configuration_id: str
    rule_id: str
    status: AlertInstanceStatus = AlertInstanceStatus.TRIGGERED
    severity: AlertPriority
    title: str
    description: str
    metric_values: list[MetricSnapshot] = Field(default_factory=list)
    triggered_at: datetime
    escalation_level: int = 0
    false_positive: bool = False
    suppressed: bool = False
    confidence: float = 0.0
    suggested_actions: list[str] = Field(default_factory=list)
    notification_log: list[NotificationLog] = Field(default_factory=list)
    context: AlertContext = Field(default_factory=AlertContext)

    @property
    def is_unresolved(self) -> bool:
        return self.status not in CLOSED_STATUSES
