"""Delivery channels and message rendering."""

from .base import DeliveryChannel, DeliveryResult, Failed, RecipientGone, Sent
from .render import escape_markdown, format_price, render_listing
from .telegram import TelegramChannel

__all__ = [
    "DeliveryChannel",
    "DeliveryResult",
    "Failed",
    "RecipientGone",
    "Sent",
    "TelegramChannel",
    "escape_markdown",
    "format_price",
    "render_listing",
]
