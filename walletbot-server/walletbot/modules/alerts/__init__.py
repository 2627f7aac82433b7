"""Operator alert exports"""

from .sink import AlertSink, HttpAlertSink, LoggingAlertSink, build_alert_sink

__all__ = ["AlertSink", "HttpAlertSink", "LoggingAlertSink", "build_alert_sink"]
