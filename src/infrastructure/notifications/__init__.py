"""Outbound alert implementations."""

from src.infrastructure.notifications.logging_notifier import LoggingNotifier

__all__ = ["LoggingNotifier"]
