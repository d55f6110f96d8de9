"""
Notification channels and the dispatcher that fans reports out to them.
"""

from .base import Notifier
from .dispatcher import (
    ChannelOutcome,
    ChannelStatus,
    DispatchResult,
    NotificationDispatcher,
    NotificationPolicy,
    build_channels,
)
from .email import EmailNotifier
from .slack import SlackNotifier
from .webhook import WebhookNotifier

__all__ = [
    "ChannelOutcome",
    "ChannelStatus",
    "DispatchResult",
    "EmailNotifier",
    "NotificationDispatcher",
    "NotificationPolicy",
    "Notifier",
    "SlackNotifier",
    "WebhookNotifier",
    "build_channels",
]
