"""Report models returned by configuration validation."""

from enum import StrEnum

from pydantic import BaseModel, Field


class SubscriptionTier(StrEnum):
    FREE = "free"
    PROFESSIONAL = "professional"
    ENTERPRISE = "enterprise"


class ValidationIssue(BaseModel):
    """A blocking problem with a configuration."""

    field: str
    error_code: str
    message: str
    severity: str = "error"


class ValidationWarning(BaseModel):
    """A non-blocking concern with a configuration."""

    field: str
    warning_code: str
    message: str
    recommendation: str


class ValidationSuggestion(BaseModel):
    category: str
    suggestion: str
    benefit: str
    implementation_effort: str


class SubscriptionCompatibility(BaseModel):
    tier_required: SubscriptionTier
    features_available: list[str] = Field(default_factory=list)
    features_blocked: list[str] = Field(default_factory=list)
    upgrade_benefits: list[str] = Field(default_factory=list)
    estimated_monthly_cost: float | None = None


class AlertValidation(BaseModel):
    is_valid: bool
    errors: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[ValidationWarning] = Field(default_factory=list)
    suggestions: list[ValidationSuggestion] = Field(default_factory=list)
    estimated_alert_volume: int = 0
    estimated_cost_impact: float = 0.0
    subscription_compatibility: SubscriptionCompatibility
