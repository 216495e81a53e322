import pytest

from hue_chat.config import AppConfig
from hue_chat.notifier import Notifier
from hue_chat.schemas import ChatMessage, ChatUser, RoomRef


class RecordingNotifier(Notifier):
    def __init__(self) -> None:
        self.sent: list[tuple[ChatUser, RoomRef, ChatMessage]] = []

    async def notify(self, *, user: ChatUser, room: RoomRef, message: ChatMessage) -> None:
        self.sent.append((user, room, message))

    @property
    def summaries(self) -> list[str]:
        return [message.summary() for _, _, message in self.sent]


@pytest.fixture
def config() -> AppConfig:
    return AppConfig(
        port=8000,
        client_id="abc",
        client_secret="secret",
        app_id="app",
        device_id="dev-1",
        device_name="hue-chat",
        api_base_url="https://api.meethue.test",
        display_name="Philips Hue",
        icon_url="",
        root_url=None,
        chat_webhook_url=None,
        command_tokens=["host-token"],
        pending_auth_ttl_seconds=600,
        http_timeout_seconds=5.0,
    )


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def user() -> ChatUser:
    return ChatUser(id="u-1", username="alice")


@pytest.fixture
def room() -> RoomRef:
    return RoomRef(id="GENERAL", name="general")
