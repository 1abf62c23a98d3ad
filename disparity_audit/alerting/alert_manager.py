"""
Case Disparity Audit - Alert Manager

Delivers threshold findings with severity-based routing:
- Log records for every finding
- Slack webhooks for critical findings (when a webhook is configured)

Routing per severity comes from the `alerting.routing` configuration section.

Usage:
    alert_manager = AlertManager(config)

    # Deliver the findings of a disparity report
    alert_manager.dispatch_findings(report.findings, dimension="race")

    # Free-form alert
    alert_manager.send_alert(
        title="Dataset rejected",
        message="Missing required columns: RACE",
        severity="warning",
    )
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Literal

import requests

from disparity_audit.alerting.threshold_alerts import Finding, FindingSeverity
from disparity_audit.shared.config import Settings, get_config

logger = logging.getLogger(__name__)


class AlertSeverity(StrEnum):
    """Alert severity levels."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AlertChannel(StrEnum):
    """Alert delivery channels."""

    LOG = "log"
    SLACK = "slack"


@dataclass
class Alert:
    """Alert message."""

    title: str
    message: str
    severity: AlertSeverity
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    dimension: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert alert to dictionary."""
        return {
            "title": self.title,
            "message": self.message,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat(),
            "dimension": self.dimension,
            "metadata": self.metadata,
        }

    @classmethod
    def from_finding(cls, finding: Finding, dimension: str | None = None) -> Alert:
        """Build an alert from a threshold finding."""
        return cls(
            title=f"Disparity threshold crossed: {finding.metric.value}",
            message=finding.message,
            severity=AlertSeverity(finding.severity.value),
            dimension=dimension,
            metadata=finding.to_dict(),
        )


class AlertDeliveryError(Exception):
    """Raised when a channel rejects an alert."""


class AlertManager:
    """
    Alert delivery with severity-based routing.

    Default routing:
    - INFO: Log only
    - WARNING: Log only
    - CRITICAL: Log + Slack
    """

    def __init__(self, config: Settings | None = None):
        """
        Initialize alert manager.

        Args:
            config: Configuration object (uses default if not provided)
        """
        self.config = config or get_config()
        self.slack_timeout = self.config.alerting.slack_timeout_seconds

    def send_alert(
        self,
        title: str,
        message: str,
        severity: Literal["info", "warning", "critical"] = "info",
        dimension: str | None = None,
        metadata: dict[str, Any] | None = None,
        channels: list[str] | None = None,
    ) -> bool:
        """
        Send an alert through configured channels.

        Args:
            title: Alert title
            message: Alert message
            severity: Severity level (info, warning, critical)
            dimension: Grouping dimension the alert refers to
            metadata: Additional metadata
            channels: Override default channel routing

        Returns:
            True if every channel accepted the alert
        """
        alert = Alert(
            title=title,
            message=message,
            severity=AlertSeverity(severity),
            dimension=dimension,
            metadata=metadata or {},
        )
        return self.deliver(alert, channels)

    def deliver(self, alert: Alert, channels: list[str] | None = None) -> bool:
        """Deliver a prepared alert to its channels."""
        if channels is None:
            channels = self._get_channels_for_severity(alert.severity)

        success = True
        for channel in channels:
            try:
                self._send_to_channel(alert, AlertChannel(channel))
            except (AlertDeliveryError, requests.RequestException, ValueError) as e:
                logger.error(
                    f"Failed to send alert to {channel}: {e}",
                    extra={"channel": channel, "alert": alert.title},
                    exc_info=True,
                )
                success = False

        return success

    def dispatch_findings(self, findings: list[Finding] | tuple[Finding, ...], dimension: str | None = None) -> int:
        """
        Deliver one alert per finding.

        Args:
            findings: Findings from evaluate_thresholds (in order)
            dimension: Grouping dimension of the report

        Returns:
            Number of findings delivered to all of their channels
        """
        delivered = 0
        for finding in findings:
            if self.deliver(Alert.from_finding(finding, dimension)):
                delivered += 1

        if findings:
            critical = sum(1 for f in findings if f.severity == FindingSeverity.CRITICAL)
            logger.info(
                f"Dispatched {delivered}/{len(findings)} disparity alerts ({critical} critical)",
                extra={"dimension": dimension, "findings": len(findings), "critical": critical},
            )

        return delivered

    # =========================================================================
    # Private Methods
    # =========================================================================

    def _get_channels_for_severity(self, severity: AlertSeverity) -> list[str]:
        """Get default channels for a severity level."""
        routing = self.config.alerting.routing

        if severity == AlertSeverity.CRITICAL:
            return routing.critical
        elif severity == AlertSeverity.WARNING:
            return routing.warning
        else:
            return routing.info

    def _send_to_channel(self, alert: Alert, channel: AlertChannel) -> None:
        """Send alert to a specific channel."""
        if channel == AlertChannel.LOG:
            self._send_to_log(alert)
        elif channel == AlertChannel.SLACK:
            self._send_to_slack(alert)

    def _send_to_log(self, alert: Alert) -> None:
        """Send alert to logs."""
        log_level = {
            AlertSeverity.INFO: logging.INFO,
            AlertSeverity.WARNING: logging.WARNING,
            AlertSeverity.CRITICAL: logging.CRITICAL,
        }[alert.severity]

        logger.log(
            log_level,
            f"ALERT: {alert.title} - {alert.message}",
            extra={
                "alert_severity": alert.severity.value,
                "dimension": alert.dimension,
                "metadata": alert.metadata,
            },
        )

    def _send_to_slack(self, alert: Alert) -> None:
        """Send alert to Slack via webhook."""
        webhook_url = self.config.slack_webhook_url

        if not webhook_url:
            logger.warning("Slack webhook URL not configured, skipping Slack alert")
            return

        color = {
            AlertSeverity.INFO: "#36a64f",
            AlertSeverity.WARNING: "#ff9900",
            AlertSeverity.CRITICAL: "#ff0000",
        }[alert.severity]

        fields = [
            {"title": "Severity", "value": alert.severity.value.upper(), "short": True},
            {
                "title": "Timestamp",
                "value": alert.timestamp.strftime("%Y-%m-%d %H:%M:%S UTC"),
                "short": True,
            },
        ]
        if alert.dimension:
            fields.append({"title": "Grouped by", "value": alert.dimension, "short": True})

        payload = {
            "attachments": [
                {
                    "color": color,
                    "title": alert.title,
                    "text": alert.message,
                    "fields": fields,
                    "footer": "Case Disparity Audit",
                    "ts": int(alert.timestamp.timestamp()),
                }
            ]
        }

        response = requests.post(
            webhook_url,
            json=payload,
            headers={"Content-Type": "application/json"},
            timeout=self.slack_timeout,
        )

        if response.status_code != 200:
            raise AlertDeliveryError(f"Slack API error: {response.status_code} - {response.text}")

        logger.info(f"Sent alert to Slack: {alert.title}")


# =============================================================================
# Convenience Functions
# =============================================================================


def send_alert(
    title: str,
    message: str,
    severity: Literal["info", "warning", "critical"] = "info",
    dimension: str | None = None,
    config: Settings | None = None,
) -> bool:
    """
    Convenience function to send an alert.

    Returns:
        True if sent successfully
    """
    manager = AlertManager(config)
    return manager.send_alert(title, message, severity, dimension)


def dispatch_findings(
    findings: list[Finding] | tuple[Finding, ...],
    dimension: str | None = None,
    config: Settings | None = None,
) -> int:
    """Convenience function to deliver threshold findings."""
    return AlertManager(config).dispatch_findings(findings, dimension)
