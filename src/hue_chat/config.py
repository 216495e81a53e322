from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import os


DEFAULT_API_BASE_URL = "https://api.meethue.com"
DEFAULT_ICON_URL = ""


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class AppConfig:
    port: int
    client_id: str
    client_secret: str
    app_id: str
    device_id: str
    device_name: str
    api_base_url: str
    display_name: str
    icon_url: str
    root_url: Optional[str]
    chat_webhook_url: Optional[str]
    command_tokens: list[str]
    pending_auth_ttl_seconds: int
    http_timeout_seconds: float

    @staticmethod
    def from_env() -> "AppConfig":
        return AppConfig(
            port=int(os.getenv("PORT", "8000")),
            client_id=os.getenv("HUE_CLIENT_ID", ""),
            client_secret=os.getenv("HUE_CLIENT_SECRET", ""),
            app_id=os.getenv("HUE_APP_ID", ""),
            device_id=os.getenv("HUE_DEVICE_ID", ""),
            device_name=os.getenv("HUE_DEVICE_NAME", ""),
            api_base_url=os.getenv("HUE_API_BASE_URL", DEFAULT_API_BASE_URL).rstrip("/"),
            display_name=os.getenv("HUE_DISPLAY_NAME", "Philips Hue"),
            icon_url=os.getenv("HUE_ICON_URL", DEFAULT_ICON_URL),
            root_url=(os.getenv("ROOT_URL") or "").rstrip("/") or None,
            chat_webhook_url=os.getenv("CHAT_WEBHOOK_URL") or None,
            command_tokens=_split_csv(os.getenv("COMMAND_TOKENS")),
            pending_auth_ttl_seconds=int(os.getenv("PENDING_AUTH_TTL_SECONDS", "600")),
            http_timeout_seconds=float(os.getenv("HTTP_TIMEOUT_SECONDS", "10")),
        )

    @property
    def oauth_configured(self) -> bool:
        return bool(self.client_id and self.client_secret and self.app_id and self.device_id and self.device_name)
