"""Static validation of alert configurations before they are saved."""

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger
from pydantic import ValidationError

from src.alerting.domain.exceptions import ConfigurationError
from src.alerting.domain.models import (
    AggregationFunction,
    AlertConfiguration,
    AlertRule,
    ComparisonOperator,
)
from src.alerting.domain.validation import (
    AlertValidation,
    SubscriptionCompatibility,
    SubscriptionTier,
    ValidationIssue,
    ValidationSuggestion,
    ValidationWarning,
)
from src.config import ValidationConfig

MINUTES_PER_DAY = 24 * 60
UNSAVED_CONFIGURATION_ID = "unsaved"

ADVANCED_AGGREGATIONS = {
    AggregationFunction.MEDIAN,
    AggregationFunction.PERCENTILE,
    AggregationFunction.STANDARD_DEVIATION,
    AggregationFunction.RATE_OF_CHANGE,
}
ADVANCED_OPERATORS = {ComparisonOperator.PERCENTAGE_CHANGE, ComparisonOperator.RATE_OF_CHANGE}

TIER_ORDER = [SubscriptionTier.FREE, SubscriptionTier.PROFESSIONAL, SubscriptionTier.ENTERPRISE]


@dataclass(frozen=True)
class TierLimits:
    """Feature limits of a subscription tier; None means unlimited."""

    max_custom_rules: int | None
    max_notification_channels: int | None
    anomaly_detection: bool
    advanced_metrics: bool
    monthly_cost: float | None
    benefits: tuple[str, ...] = ()


TIER_LIMITS = {
    SubscriptionTier.FREE: TierLimits(
        max_custom_rules=3,
        max_notification_channels=2,
        anomaly_detection=False,
        advanced_metrics=False,
        monthly_cost=0.0,
    ),
    SubscriptionTier.PROFESSIONAL: TierLimits(
        max_custom_rules=20,
        max_notification_channels=10,
        anomaly_detection=True,
        advanced_metrics=True,
        monthly_cost=29.99,
        benefits=(
            "Up to 20 alert rules",
            "Anomaly detection",
            "Advanced metrics",
            "Up to 10 notification channels",
        ),
    ),
    SubscriptionTier.ENTERPRISE: TierLimits(
        max_custom_rules=None,
        max_notification_channels=None,
        anomaly_detection=True,
        advanced_metrics=True,
        monthly_cost=None,
        benefits=(
            "Unlimited alert rules",
            "Unlimited notification channels",
            "API access for integrations",
            "Priority support",
        ),
    ),
}


def field_path(loc: tuple[int | str, ...]) -> str:
    """Render a pydantic error location as ``rules[0].conditions[1].operator``."""
    path = ""
    for part in loc:
        if isinstance(part, int):
            path += f"[{part}]"
        else:
            path += f".{part}" if path else str(part)
    return path


def _within(limit: int | None, used: int) -> bool:
    return limit is None or used <= limit


def _as_mapping(data: Any) -> Mapping:
    return data if isinstance(data, Mapping) else {}


class ConfigurationValidator:
    """
    Validates a candidate configuration without evaluating it.

    Accepts a raw mapping (as posted by an editing UI, possibly partial) or a parsed
    AlertConfiguration. Structural problems become errors; risky but legal settings
    become warnings. The report also estimates daily alert volume and cost and
    checks the configuration against the caller's subscription tier.
    """

    def __init__(self, config: ValidationConfig | None = None, tier: SubscriptionTier = SubscriptionTier.PROFESSIONAL):
        self.config = config or ValidationConfig()
        self.tier = tier

    def validate(self, configuration: Mapping[str, Any] | AlertConfiguration) -> AlertValidation:
        raw = configuration.model_dump() if isinstance(configuration, AlertConfiguration) else dict(configuration)

        errors = self._required_errors(raw)
        parsed = self._parse(raw, errors)
        indexed = list(enumerate(parsed.rules)) if parsed else self._parse_rules(raw.get("rules"))
        rules = [rule for _, rule in indexed]
        channel_count = len(parsed.notification_settings.channels) if parsed else 0

        warnings = self._threshold_warnings(indexed)

        volume = self.estimate_alert_volume(rules)
        if volume > self.config.high_volume_threshold:
            warnings.append(
                ValidationWarning(
                    field="rules",
                    warning_code="HIGH_VOLUME",
                    message=f"Estimated {volume} alerts per day may be excessive",
                    recommendation="Consider adjusting thresholds or adding cooldown periods",
                )
            )

        compatibility = self.check_subscription_compatibility(rules, channel_count)
        if compatibility.features_blocked:
            warnings.append(
                ValidationWarning(
                    field="rules",
                    warning_code="TIER_LIMIT",
                    message=(
                        f"{', '.join(compatibility.features_blocked)} not available on the {self.tier} tier"
                    ),
                    recommendation=f"Upgrade to the {compatibility.tier_required} tier or simplify the configuration",
                )
            )

        report = AlertValidation(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            suggestions=self._suggestions(parsed),
            estimated_alert_volume=volume,
            estimated_cost_impact=round(volume * self.config.cost_per_alert, 2),
            subscription_compatibility=compatibility,
        )

        logger.debug(
            f"Validated configuration {raw.get('id', UNSAVED_CONFIGURATION_ID)}: "
            f"{len(errors)} errors, {len(warnings)} warnings, ~{volume} alerts/day"
        )
        return report

    def require_valid(self, configuration: Mapping[str, Any] | AlertConfiguration) -> AlertConfiguration:
        """
        Parse a configuration, raising instead of reporting.

        Raises:
            ConfigurationError: If the configuration has any blocking error
        """
        report = self.validate(configuration)
        if not report.is_valid:
            configuration_id = (
                configuration.id
                if isinstance(configuration, AlertConfiguration)
                else configuration.get("id")
            )
            raise ConfigurationError(configuration_id, [error.model_dump() for error in report.errors])

        if isinstance(configuration, AlertConfiguration):
            return configuration
        return AlertConfiguration.model_validate({"id": UNSAVED_CONFIGURATION_ID, **configuration})

    def estimate_alert_volume(self, rules: list[AlertRule]) -> int:
        """
        Estimate alerts per day from evaluation cadence.

        Each enabled rule fires on a flat share of its evaluations, reduced by the
        fraction of the day its cooldown covers, and counts at least once per day.
        """
        total = 0.0
        for rule in rules:
            if not rule.enabled:
                continue
            evaluations_per_day = MINUTES_PER_DAY / rule.evaluation_window
            cooldown_reduction = rule.cooldown_period / MINUTES_PER_DAY
            total += max(evaluations_per_day * self.config.trigger_rate * (1 - cooldown_reduction), 1)

        # half up
        return math.floor(total + 0.5)

    def check_subscription_compatibility(
        self, rules: list[AlertRule], channel_count: int
    ) -> SubscriptionCompatibility:
        rule_count = len(rules)
        conditions = [condition for rule in rules for condition in rule.conditions]
        uses_anomaly = any(
            c.anomaly_detection or c.operator == ComparisonOperator.ANOMALY_DETECTED for c in conditions
        )
        uses_advanced = any(
            c.time_aggregation.function in ADVANCED_AGGREGATIONS or c.operator in ADVANCED_OPERATORS
            for c in conditions
        )

        # feature label -> whether a tier supports it
        features = {f"{rule_count} custom rules": lambda limits: _within(limits.max_custom_rules, rule_count)}
        if channel_count:
            features[f"{channel_count} notification channels"] = lambda limits: _within(
                limits.max_notification_channels, channel_count
            )
        if uses_anomaly:
            features["Anomaly detection"] = lambda limits: limits.anomaly_detection
        if uses_advanced:
            features["Advanced metrics"] = lambda limits: limits.advanced_metrics

        tier_required = next(
            tier for tier in TIER_ORDER if all(supports(TIER_LIMITS[tier]) for supports in features.values())
        )
        caller_limits = TIER_LIMITS[self.tier]

        caller_index = TIER_ORDER.index(self.tier)
        upgrade_benefits = (
            list(TIER_LIMITS[TIER_ORDER[caller_index + 1]].benefits) if caller_index + 1 < len(TIER_ORDER) else []
        )

        return SubscriptionCompatibility(
            tier_required=tier_required,
            features_available=[name for name, supports in features.items() if supports(caller_limits)],
            features_blocked=[name for name, supports in features.items() if not supports(caller_limits)],
            upgrade_benefits=upgrade_benefits,
            estimated_monthly_cost=TIER_LIMITS[tier_required].monthly_cost,
        )

    @staticmethod
    def _required_errors(raw: Mapping[str, Any]) -> list[ValidationIssue]:
        errors = []

        if not raw.get("name"):
            errors.append(
                ValidationIssue(field="name", error_code="REQUIRED", message="Configuration name is required")
            )

        rules = raw.get("rules")
        if not rules:
            errors.append(
                ValidationIssue(field="rules", error_code="REQUIRED", message="At least one rule is required")
            )
            return errors

        if not isinstance(rules, list):
            return errors

        for index, rule in enumerate(rules):
            rule = _as_mapping(rule)
            if not rule.get("conditions"):
                errors.append(
                    ValidationIssue(
                        field=f"rules[{index}].conditions",
                        error_code="REQUIRED",
                        message=f"Rule \"{rule.get('name', index)}\" must have at least one condition",
                    )
                )

        return errors

    @staticmethod
    def _parse(raw: Mapping[str, Any], errors: list[ValidationIssue]) -> AlertConfiguration | None:
        """Parse the whole configuration, turning schema violations into errors."""
        data = {"id": UNSAVED_CONFIGURATION_ID, **raw}
        try:
            return AlertConfiguration.model_validate(data)
        except ValidationError as e:
            reported = {error.field for error in errors}
            for detail in e.errors():
                field = field_path(detail["loc"])
                if field in reported:
                    continue
                code = "REQUIRED" if detail["type"] == "missing" else "INVALID_VALUE"
                errors.append(ValidationIssue(field=field, error_code=code, message=detail["msg"]))
            return None

    @staticmethod
    def _parse_rules(raw_rules: Any) -> list[tuple[int, AlertRule]]:
        """Parse rules one by one so estimates still cover the valid ones."""
        if not isinstance(raw_rules, list):
            return []

        rules = []
        for index, raw_rule in enumerate(raw_rules):
            try:
                rules.append((index, AlertRule.model_validate(raw_rule)))
            except ValidationError:
                continue
        return rules

    @staticmethod
    def _threshold_warnings(indexed: list[tuple[int, AlertRule]]) -> list[ValidationWarning]:
        warnings = []

        for index, rule in indexed:
            for position, condition in enumerate(rule.conditions):
                field = f"rules[{index}].conditions[{position}].threshold"
                threshold = condition.threshold

                if threshold.value == 0 and condition.operator != ComparisonOperator.EQUALS:
                    warnings.append(
                        ValidationWarning(
                            field=field,
                            warning_code="SENSITIVE_THRESHOLD",
                            message="Zero threshold may cause excessive alerts",
                            recommendation="Consider setting a more appropriate threshold value",
                        )
                    )

                if condition.operator.is_range and threshold.secondary_value is None:
                    warnings.append(
                        ValidationWarning(
                            field=field,
                            warning_code="MISSING_SECONDARY_VALUE",
                            message=f"Operator {condition.operator} has no upper bound; the range collapses to one value",
                            recommendation="Set threshold.secondary_value to the upper end of the range",
                        )
                    )

        return warnings

    @staticmethod
    def _suggestions(parsed: AlertConfiguration | None) -> list[ValidationSuggestion]:
        if parsed is None:
            return []

        suggestions = []
        if any(rule.enabled and rule.cooldown_period == 0 for rule in parsed.rules):
            suggestions.append(
                ValidationSuggestion(
                    category="noise_reduction",
                    suggestion="Add a cooldown period to rules that currently have none",
                    benefit="Fewer repeated alerts for the same ongoing condition",
                    implementation_effort="low",
                )
            )
        if not parsed.notification_settings.channels:
            suggestions.append(
                ValidationSuggestion(
                    category="delivery",
                    suggestion="Add at least one notification channel",
                    benefit="Triggered alerts reach someone instead of only being recorded",
                    implementation_effort="low",
                )
            )
        return suggestions


def validate_configuration(
    configuration: Mapping[str, Any] | AlertConfiguration,
    tier: SubscriptionTier = SubscriptionTier.PROFESSIONAL,
    config: ValidationConfig | None = None,
) -> AlertValidation:
    """Validate a configuration; pure, performs no I/O."""
    return ConfigurationValidator(config, tier).validate(configuration)
