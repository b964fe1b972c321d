"""Telegram Bot API delivery channel."""

from __future__ import annotations

import httpx

from ..config import TelegramConfig
from ..logging_conf import component_logger
from .base import DeliveryChannel, DeliveryResult, Failed, RecipientGone, Sent

FORBIDDEN = 403


class TelegramChannel(DeliveryChannel):
    """Send MarkdownV2 messages through ``sendMessage``.

    HTTP 403 means the user blocked the bot or deleted their account, which is
    reported as :class:`RecipientGone`. Everything else is a transient failure.
    """

    def __init__(self, config: TelegramConfig, client: httpx.Client | None = None) -> None:
        if not config.bot_token:
            raise ValueError("telegram bot token is required")
        self.config = config
        self._client = client or httpx.Client(timeout=config.timeout)
        self._url = f"{config.api_base.rstrip('/')}/bot{config.bot_token}/sendMessage"
        self.logger = component_logger("telegram")

    def close(self) -> None:
        self._client.close()

    def send(self, user_id: int, text: str) -> DeliveryResult:
        payload = {
            "chat_id": user_id,
            "text": text,
            "parse_mode": "MarkdownV2",
            "disable_web_page_preview": False,
        }
        try:
            response = self._client.post(self._url, json=payload)
        except httpx.HTTPError as exc:
            return Failed(reason=f"telegram request failed: {exc}")

        description = self._description(response)
        if response.status_code == FORBIDDEN:
            return RecipientGone(reason=description or "forbidden")
        if response.status_code != 200:
            reason = f"telegram status {response.status_code}"
            return Failed(reason=f"{reason}: {description}" if description else reason)
        try:
            body = response.json()
        except ValueError:
            return Failed(reason="telegram returned a non-JSON response")
        if not body.get("ok", False):
            return Failed(reason=description or "telegram reported ok=false")
        return Sent()

    @staticmethod
    def _description(response: httpx.Response) -> str:
        try:
            body = response.json()
        except ValueError:
            return ""
        if isinstance(body, dict):
            return str(body.get("description") or "")
        return ""


__all__ = ["TelegramChannel"]
