import json
from dataclasses import replace

import httpx
import pytest

from hue_chat.command_tool import build_body
from hue_chat.messages import text_message, usage_message
from hue_chat.notifier import LogNotifier, WebhookNotifier, build_notifier


@pytest.mark.asyncio
async def test_webhook_notifier_posts_private_message(config, user, room):
    seen: list[dict] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == "https://chat.example.test/hooks/hue"
        seen.append(json.loads(request.content))
        return httpx.Response(200, json={"success": True})

    notifier = WebhookNotifier(
        config=replace(config, chat_webhook_url="https://chat.example.test/hooks/hue"),
        transport=httpx.MockTransport(handler),
    )
    try:
        await notifier.notify(user=user, room=room, message=text_message("hello"))
    finally:
        await notifier.close()

    assert seen == [
        {
            "user": {"id": "u-1", "username": "alice"},
            "room": {"id": "GENERAL", "name": "general"},
            "alias": "Philips Hue",
            "avatar": None,
            "groupable": False,
            "text": "hello",
            "attachments": [],
        }
    ]


@pytest.mark.asyncio
async def test_webhook_failures_are_not_raised(config, user, room):
    async def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("down", request=request)

    notifier = WebhookNotifier(
        config=replace(config, chat_webhook_url="https://chat.example.test/hooks/hue"),
        transport=httpx.MockTransport(handler),
    )
    try:
        await notifier.notify(user=user, room=room, message=text_message("hello"))
    finally:
        await notifier.close()


def test_build_notifier_falls_back_to_logging(config):
    assert isinstance(build_notifier(config), LogNotifier)


def test_usage_message_prefixes_additional_text():
    message = usage_message("scenes", "Nope!")
    assert message.text == "Nope!\n*Usage: *`/hue-scenes (all)`\n>View your Scenes"
    assert usage_message("hue-scenes").text == "*Usage: *`/hue-scenes (all)`\n>View your Scenes"


def test_command_tool_body_strips_slash():
    body = build_body(command="/hue-light-state", args=["1", "on=true"], user_id="u", username="n", room_id="r")
    assert body == {
        "command": "hue-light-state",
        "args": ["1", "on=true"],
        "user": {"id": "u", "username": "n"},
        "room": {"id": "r"},
    }
