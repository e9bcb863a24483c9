"""Pydantic schemas for API requests and responses."""

from pydantic import BaseModel, Field

from src.alerting.domain.models import AlertConfiguration, AlertInstance, EvaluationContext


# Evaluation Schemas
class EvaluateRequest(BaseModel):
    """Schema for evaluating configurations against one snapshot."""

    configurations: list[AlertConfiguration] = Field(..., description="Configurations to evaluate")
    context: EvaluationContext
    timeout_seconds: float | None = Field(None, gt=0, description="Deadline for the whole batch")


class EvaluateResponse(BaseModel):
    """Schema for evaluation results."""

    evaluated_configurations: int
    alert_count: int
    alerts: list[AlertInstance]
