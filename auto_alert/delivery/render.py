"""Render listings into Telegram MarkdownV2 messages."""

from __future__ import annotations

import re

from ..models import Listing

_MARKDOWN_V2_SPECIAL = re.compile(r"([_*\[\]()~`>#+\-=|{}.!\\])")
_DIGITS = re.compile(r"\d+")
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
GREETING = "👋 Hi, here's a new listing for your subscription."


def escape_markdown(text: str) -> str:
    return _MARKDOWN_V2_SPECIAL.sub(r"\\\1", text or "")


def _escape_link(url: str) -> str:
    return (url or "").replace("\\", "\\\\").replace(")", "\\)")


def _price_number(price: str) -> int | None:
    digits = "".join(_DIGITS.findall(price or ""))
    return int(digits) if digits else None


def format_price(listing: Listing) -> str:
    """Plain price, or ``⚠old🔺new`` / ``⚠old🔻new`` while a change is pending."""

    if not listing.has_price_change:
        return listing.price
    old, new = _price_number(listing.price), _price_number(listing.new_price or "")
    if old is not None and new is not None:
        dropped = new < old
    else:
        dropped = (listing.new_price or "") < listing.price
    direction = "🔻" if dropped else "🔺"
    return f"⚠{listing.price}{direction}{listing.new_price}"


def render_listing(listing: Listing) -> str:
    date = listing.date.strftime(DATE_FORMAT) if listing.date else ""
    lines = [
        escape_markdown(GREETING),
        "",
        f"📝 *Title:* {escape_markdown(listing.title)}",
        f"💰 *Price:* {escape_markdown(format_price(listing))}",
        f"🏎️ *Engine Volume:* {escape_markdown(listing.engine_volume)}",
        f"⚙️ *Transmission:* {escape_markdown(listing.transmission)}",
        f"🚗 *Body Type:* {escape_markdown(listing.body_type)}",
        f"🧭 *Mileage:* {escape_markdown(listing.mileage)}",
        f"📍 *Location:* {escape_markdown(listing.location)}",
        f"📅 *Date:* {escape_markdown(date)}",
        f"🌐 *Link:* [tap to link]({_escape_link(listing.link)})",
    ]
    return "\n".join(lines)


__all__ = ["escape_markdown", "format_price", "render_listing"]
