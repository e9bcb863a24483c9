"""Custom exceptions for the alerting engine."""


class AlertingException(Exception):
    """Base exception for all alerting errors."""

    def __init__(self, message: str, details: dict | None = None):
        """
        Initialize alerting exception.

        Args:
            message: Human-readable error message
            details: Optional dict with additional error context
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(AlertingException):
    """Raised when a configuration fails structural validation."""

    def __init__(self, configuration_id: str | None, errors: list[dict]):
        super().__init__(
            message=f"Configuration '{configuration_id}' is invalid ({len(errors)} errors)",
            details={"configuration_id": configuration_id, "errors": errors},
        )


class EvaluationError(AlertingException):
    """Raised while evaluating a single condition or rule."""

    def __init__(self, reason: str, condition_id: str | None = None, rule_id: str | None = None):
        details = {"reason": reason}
        if condition_id:
            details["condition_id"] = condition_id
        if rule_id:
            details["rule_id"] = rule_id
        target = condition_id or rule_id or "unknown"
        super().__init__(message=f"Evaluation of '{target}' failed: {reason}", details=details)


class CollaboratorTimeoutError(EvaluationError):
    """Raised when a collaborator call exceeds its timeout."""

    def __init__(self, operation: str, timeout: float, condition_id: str | None = None):
        super().__init__(reason=f"{operation} timed out after {timeout:.1f}s", condition_id=condition_id)
        self.details["timeout_seconds"] = timeout


class DispatchError(AlertingException):
    """Raised when handing an alert to the notification dispatcher fails."""

    def __init__(self, alert_id: str, original_error: Exception | None = None):
        details = {"alert_id": alert_id}
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__
        super().__init__(message=f"Failed to dispatch notifications for alert {alert_id}", details=details)
