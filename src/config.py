"""Configuration for the application."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineConfig(BaseSettings):
    """Configuration for batch rule evaluation."""

    model_config = SettingsConfigDict(env_prefix="ENGINE_", env_file=".env", extra="ignore")

    max_concurrent_configurations: int = Field(default=8, ge=1, description="Configurations evaluated in parallel")
    configuration_timeout_seconds: float = Field(default=60.0, gt=0, description="Budget for one configuration")
    collaborator_timeout_seconds: float = Field(
        default=30.0, gt=0, description="Upper bound for historical-data and dedup lookups"
    )
    dispatch_timeout_seconds: float = Field(default=10.0, gt=0, description="Budget for notification dispatch")
    await_notifications: bool = Field(
        default=False, description="Wait for the batch's background dispatches before evaluate returns"
    )
    default_baseline_period: str = Field(default="7d", description="Baseline lookback for percentage_change")


class AnomalyConfig(BaseSettings):
    """Configuration for z-score anomaly detection."""

    model_config = SettingsConfigDict(env_prefix="ANOMALY_", env_file=".env", extra="ignore")

    min_history_points: int = Field(default=10, ge=2, description="Historical readings required per sensor")
    z_thresholds: dict[float, float] = Field(
        default_factory=lambda: {0.99: 2.6, 0.95: 2.0}, description="Confidence level to z-score threshold"
    )
    default_z_threshold: float = Field(default=1.6, gt=0, description="Threshold for unlisted confidence levels")
    default_confidence_level: float = Field(default=0.95, gt=0, lt=1, description="Used when a threshold omits it")
    history_period: str = Field(default="7d", description="Lookback for anomaly baselines")

    def z_threshold_for(self, confidence_level: float) -> float:
        return self.z_thresholds.get(confidence_level, self.default_z_threshold)


class ValidationConfig(BaseSettings):
    """Configuration for configuration validation estimates."""

    model_config = SettingsConfigDict(env_prefix="VALIDATION_", env_file=".env", extra="ignore")

    trigger_rate: float = Field(default=0.05, ge=0.0, le=1.0, description="Assumed share of evaluations that fire")
    cost_per_alert: float = Field(default=0.10, ge=0.0, description="Flat unit cost per alert")
    high_volume_threshold: int = Field(default=100, ge=1, description="Daily volume that triggers a warning")


class LoggingConfig(BaseSettings):
    """Configuration for log sinks."""

    model_config = SettingsConfigDict(env_prefix="LOG_", env_file=".env", extra="ignore")

    level: str = Field(default="INFO", description="Console log level")
    file: str | None = Field(default=None, description="Optional rotating log file path")


class AppConfig(BaseSettings):
    """Application configuration."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    engine: EngineConfig = Field(default_factory=EngineConfig)
    anomaly: AnomalyConfig = Field(default_factory=AnomalyConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
