"""Delivery of notification messages to chat users."""
import logging
from typing import Protocol

import requests

from tvbingefriend_notification_service.config import TELEGRAM_API_BASE_URL, TELEGRAM_TOKEN
from tvbingefriend_notification_service.services.retry_service import ProviderRequestError, RetryService


class DeliveryError(RuntimeError):
    """A message could not be delivered."""


class DeliveryChannel(Protocol):
    """Anything that can send a text message to a user."""

    def send(self, user_id: int, text: str) -> None: ...


class TelegramDeliveryService:
    """Sends Markdown messages through the Telegram Bot API."""
    def __init__(self,
                 token: str | None = TELEGRAM_TOKEN,
                 base_url: str = TELEGRAM_API_BASE_URL,
                 timeout: float = 10.0,
                 retry_service: RetryService | None = None,
                 session: requests.Session | None = None) -> None:
        self.token = (token or "").strip()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_service = retry_service or RetryService(max_retries=2)
        self.session = session or requests.Session()

    def send(self, user_id: int, text: str) -> None:
        """Send a message to a user's private chat.

        Raises:
            DeliveryError: If no token is configured or Telegram rejects the message
        """
        if not self.token:
            raise DeliveryError("TELEGRAM_TOKEN is not set.")

        try:
            payload = self.retry_service.request_json(
                self.session,
                "POST",
                f"{self.base_url}/bot{self.token}/sendMessage",
                json_body={"chat_id": user_id, "text": text, "parse_mode": "Markdown"},
                timeout=self.timeout,
                label="telegram sendMessage",
            )
        except ProviderRequestError as e:
            raise DeliveryError(f"Failed to send message to user {user_id}: {e}") from e

        if not isinstance(payload, dict) or not payload.get("ok"):
            description = payload.get("description") if isinstance(payload, dict) else payload
            raise DeliveryError(f"Telegram rejected message to user {user_id}: {description}")
        logging.debug(f"TelegramDeliveryService.send: Delivered message to user {user_id}")
