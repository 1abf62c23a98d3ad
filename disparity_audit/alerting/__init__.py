"""
Case Disparity Audit - Alerting System

Threshold evaluation and alert delivery:
- Disparity report + thresholds -> ordered findings
- Severity-based routing to log and Slack

Components:
    - evaluate_thresholds: Stateless finding generation
    - AlertManager: Alert delivery
"""

from disparity_audit.alerting.alert_manager import (
    Alert,
    AlertChannel,
    AlertDeliveryError,
    AlertManager,
    AlertSeverity,
    dispatch_findings,
    send_alert,
)
from disparity_audit.alerting.threshold_alerts import (
    DisparityMetric,
    Finding,
    FindingSeverity,
    evaluate_thresholds,
    format_findings,
)

__all__ = [
    # Threshold Alerts
    "DisparityMetric",
    "Finding",
    "FindingSeverity",
    "evaluate_thresholds",
    "format_findings",
    # Alert Manager
    "AlertManager",
    "Alert",
    "AlertSeverity",
    "AlertChannel",
    "AlertDeliveryError",
    "dispatch_findings",
    "send_alert",
]
