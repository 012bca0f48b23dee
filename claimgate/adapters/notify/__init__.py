"""Notification adapters - Where confirmed claims are sent."""

from .console import ConsoleNotificationSink
from .discord import DiscordWebhookSink

__all__ = ["ConsoleNotificationSink", "DiscordWebhookSink"]
