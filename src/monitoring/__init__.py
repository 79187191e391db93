"""Monitoring module - observation sinks for logs, metrics and alerts."""

from src.monitoring.publishers import (
    LoggingObservationPublisher,
    CloudWatchObservationPublisher,
    SlackMismatchPublisher,
    CompositeObservationPublisher,
)

__all__ = [
    "LoggingObservationPublisher",
    "CloudWatchObservationPublisher",
    "SlackMismatchPublisher",
    "CompositeObservationPublisher",
]
