from __future__ import annotations

import logging

import httpx

from hue_chat.config import AppConfig
from hue_chat.schemas import ChatMessage, ChatUser, RoomRef


logger = logging.getLogger(__name__)


class Notifier:
    """Delivers a private notification to one user in one room of the chat host."""

    async def notify(self, *, user: ChatUser, room: RoomRef, message: ChatMessage) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class LogNotifier(Notifier):
    async def notify(self, *, user: ChatUser, room: RoomRef, message: ChatMessage) -> None:
        logger.info("notify user=%s room=%s: %s", user.username, room.id, message.summary())


class WebhookNotifier(Notifier):
    """Posts notifications to the host's incoming webhook."""

    def __init__(self, *, config: AppConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        if not config.chat_webhook_url:
            raise ValueError("chat_webhook_url not configured")
        self._url = config.chat_webhook_url
        self._alias = config.display_name
        self._avatar = config.icon_url or None
        self._client = httpx.AsyncClient(timeout=httpx.Timeout(config.http_timeout_seconds, connect=3.0), transport=transport)

    async def close(self) -> None:
        await self._client.aclose()

    async def notify(self, *, user: ChatUser, room: RoomRef, message: ChatMessage) -> None:
        payload = {
            "user": user.model_dump(mode="json"),
            "room": room.model_dump(mode="json"),
            "alias": self._alias,
            "avatar": self._avatar,
            "groupable": False,
            **message.model_dump(mode="json", exclude_none=True),
        }
        try:
            resp = await self._client.post(self._url, json=payload)
        except httpx.HTTPError as exc:
            logger.warning("Chat webhook unreachable: %s", exc)
            return
        if resp.status_code >= 400:
            logger.warning("Chat webhook rejected notification: %s %s", resp.status_code, resp.text[:200])


def build_notifier(config: AppConfig) -> Notifier:
    if config.chat_webhook_url:
        return WebhookNotifier(config=config)
    logger.warning("CHAT_WEBHOOK_URL not set; chat notifications will only be logged")
    return LogNotifier()
