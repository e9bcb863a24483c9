"""Default notification dispatcher that records deliveries in the alert log."""

import string
import uuid
from datetime import time

from loguru import logger

from src.alerting.domain.models import (
    AlertInstance,
    AlertPriority,
    ChannelConfiguration,
    NotificationChannel,
    NotificationLog,
    NotificationSettings,
    NotificationStatus,
    QuietHours,
)
from src.alerting.domain.protocols import NotificationDispatcher

TEMPLATE_FIELDS = {"id", "configuration_id", "rule_id", "severity", "title", "description"}

_formatter = string.Formatter()


def channel_recipient(configuration: ChannelConfiguration) -> str | None:
    """First delivery target configured on a channel."""
    for targets in (configuration.email_addresses, configuration.phone_numbers):
        if targets:
            return targets[0]

    for target in (
        configuration.webhook_url,
        configuration.slack_channel,
        configuration.teams_webhook_url,
        configuration.push_topic,
    ):
        if target:
            return target

    return None


def in_quiet_hours(quiet_hours: QuietHours | None, alert: AlertInstance) -> bool:
    """
    Check whether an alert falls inside the quiet-hours window.

    Critical alerts and alerts listed in ``exceptions`` (by alert or rule id) are never
    held back. Windows whose end precedes their start wrap past midnight.
    """
    if quiet_hours is None or not quiet_hours.enabled:
        return False
    if alert.severity == AlertPriority.CRITICAL:
        return False
    if alert.id in quiet_hours.exceptions or alert.rule_id in quiet_hours.exceptions:
        return False

    start = time.fromisoformat(quiet_hours.start_time)
    end = time.fromisoformat(quiet_hours.end_time)
    now = alert.triggered_at.time().replace(tzinfo=None)

    if start <= end:
        return start <= now < end
    return now >= start or now < end


def render_message(template: str | None, alert: AlertInstance) -> str:
    """
    Fill a custom template; placeholders are plain AlertInstance field names such as {title}.

    Raises:
        ValueError: If the template is malformed or names anything outside TEMPLATE_FIELDS
    """
    if not template:
        return alert.description

    fields = alert.model_dump(include=TEMPLATE_FIELDS)
    for _, field_name, format_spec, _ in _formatter.parse(template):
        if field_name is None:
            continue
        # attribute access and indexing ("title.x", "id[0]") are not plain names
        if field_name not in TEMPLATE_FIELDS:
            raise ValueError(f"unknown template field '{field_name}'")
        if format_spec and "{" in format_spec:
            raise ValueError(f"nested placeholder in format of '{field_name}'")
    return _formatter.vformat(template, (), fields)


class LoggingNotificationDispatcher(NotificationDispatcher):
    """
    Dispatcher that logs each delivery instead of contacting an external service.

    Produces one NotificationLog per enabled channel whose priority filter admits
    the alert. Channel problems are recorded as failed entries, never raised.
    """

    async def send(self, settings: NotificationSettings, alert: AlertInstance) -> list[NotificationLog]:
        if in_quiet_hours(settings.quiet_hours, alert):
            logger.info(f"Alert {alert.id} held back by quiet hours")
            return []

        logs = []
        for index, channel in enumerate(settings.channels):
            if not channel.enabled:
                continue
            if channel.priority_filter and alert.severity not in channel.priority_filter:
                continue
            logs.append(self._deliver(index, channel, alert, settings))

        return logs

    def _deliver(
        self, index: int, channel: NotificationChannel, alert: AlertInstance, settings: NotificationSettings
    ) -> NotificationLog:
        recipient = channel_recipient(channel.configuration)
        log_id = f"notif_{uuid.uuid5(uuid.NAMESPACE_URL, f'{alert.id}:{index}').hex}"

        if recipient is None:
            logger.warning(f"Alert {alert.id}: {channel.type} channel has no recipient configured")
            return self._failed(log_id, channel, alert, "", "No recipient configured")

        try:
            message = render_message(settings.custom_message_template, alert)
        except ValueError as e:
            logger.warning(f"Alert {alert.id}: invalid message template: {e}")
            return self._failed(log_id, channel, alert, recipient, f"Invalid message template: {e}")

        logger.info(f"[{channel.type}] -> {recipient}: {alert.title} | {message}")

        return NotificationLog(
            id=log_id,
            channel=channel.type,
            recipient=recipient,
            sent_at=alert.triggered_at,
            status=NotificationStatus.SENT,
        )

    @staticmethod
    def _failed(
        log_id: str, channel: NotificationChannel, alert: AlertInstance, recipient: str, reason: str
    ) -> NotificationLog:
        return NotificationLog(
            id=log_id,
            channel=channel.type,
            recipient=recipient,
            sent_at=alert.triggered_at,
            status=NotificationStatus.FAILED,
            error_message=reason,
        )
