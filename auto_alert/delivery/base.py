"""Delivery channel contract and its classified outcomes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True, slots=True)
class Sent:
    """The message reached the recipient."""


@dataclass(frozen=True, slots=True)
class Failed:
    """Transient failure; the same message may be retried later."""

    reason: str


@dataclass(frozen=True, slots=True)
class RecipientGone:
    """The recipient can no longer be reached (e.g. blocked the bot)."""

    reason: str = ""


DeliveryResult = Union[Sent, Failed, RecipientGone]


class DeliveryChannel(ABC):
    """Push-style messaging channel with one address per user."""

    @abstractmethod
    def send(self, user_id: int, text: str) -> DeliveryResult:
        """Deliver ``text`` to ``user_id`` and classify the outcome."""

    def close(self) -> None:
        """Release underlying resources."""


__all__ = ["DeliveryChannel", "DeliveryResult", "Failed", "RecipientGone", "Sent"]
