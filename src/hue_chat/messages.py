from __future__ import annotations

from datetime import datetime
from typing import Any

from hue_chat.schemas import AttachmentField, ChatMessage, MessageAction, MessageAttachment


COLOR_INFO = "#0a5ed6"
COLOR_RESULTS = "#00CE00"
COLOR_HELP = "#e37200"
COLOR_ERROR = "#e10000"

_STATE_ARGS = "(on=true) (bri=254) (color=#ff0000) (hue=65535) (sat=254) (ct=500) (cie=0.5:0.4) (alert=false)"

USAGE: dict[str, dict[str, str]] = {
    "login": {"command": "hue-login", "usage": "`/hue-login`", "description": "Login to Hue"},
    "lights": {"command": "hue-lights", "usage": "`/hue-lights (ID,ID)`", "description": "View your Lights"},
    "lightState": {
        "command": "hue-light-state",
        "usage": f"`/hue-light-state [ID,ID] {_STATE_ARGS}`",
        "description": "Change Light state",
    },
    "groups": {"command": "hue-groups", "usage": "`/hue-groups`", "description": "View your Light Groups"},
    "groupState": {
        "command": "hue-group-state",
        "usage": f"`/hue-group-state [ID,ID] {_STATE_ARGS}`",
        "description": "Change Group state",
    },
    "group": {
        "command": "hue-group",
        "usage": "`/hue-group [ID OR NAME]`",
        "description": "Search for Group (name can be partial)",
    },
    "scene": {
        "command": "hue-scene",
        "usage": "`/hue-scene [SCENE ID] (GROUP ID)`",
        "description": "Recall a Scene (optionally for one Group)",
    },
    "scenes": {"command": "hue-scenes", "usage": "`/hue-scenes (all)`", "description": "View your Scenes"},
}

LOGIN_PROMPT_NO_TOKEN = "No token found! Please login using `/hue-login`"
LOGIN_PROMPT_NO_WHITELIST = "No Whitelist Id found! Please login using `/hue-login`"
PREVIEW_TOKEN_EXPIRED = "Token expired! Please login using `/hue-login`"


def _button(text: str, *, msg: str | None = None, url: str | None = None) -> MessageAction:
    if url:
        return MessageAction(text=text, url=url, msg_in_chat_window=False)
    return MessageAction(text=text, msg=msg, msg_in_chat_window=True)


def text_message(text: str) -> ChatMessage:
    return ChatMessage(text=text)


def usage_message(scope: str, additional_text: str | None = None) -> ChatMessage:
    entry = USAGE.get(scope)
    if entry is None:
        entry = next((item for item in USAGE.values() if item["command"] == scope), None)
    text = ""
    if entry:
        text = f"*Usage: *{entry['usage']}\n>{entry['description']}"
    if additional_text:
        text = f"{additional_text}\n{text}" if text else additional_text
    return ChatMessage(text=text)


def help_message() -> ChatMessage:
    text = "".join(f"{entry['usage']}\n>{entry['description']}\n" for entry in USAGE.values())
    text += "\n\n_For choosing hex colors, this website is a great option: http://colorpicker.me_"
    return ChatMessage(attachments=[MessageAttachment(title="Commands", text=text, color=COLOR_HELP)])


def token_expired_message() -> ChatMessage:
    return ChatMessage(
        attachments=[
            MessageAttachment(title="Token Expired!", text="Please login again using `/hue-login`", color=COLOR_ERROR)
        ]
    )


def login_message(url: str) -> ChatMessage:
    return ChatMessage(
        attachments=[
            MessageAttachment(
                text=(
                    "You will now need to open a browser to initiate an OAuth authorization. Once completed, "
                    "the application will automatically obtain the appropriate token and respond back when completed."
                ),
                actions=[_button("Login", url=url)],
            )
        ]
    )


def _format_expiry(value: datetime | None) -> str:
    if value is None:
        return "unknown"
    return value.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def login_success_message(
    *,
    token_expires_at: datetime | None,
    refresh_token_expires_at: datetime | None,
) -> ChatMessage:
    return ChatMessage(
        attachments=[
            MessageAttachment(
                title="Successfully logged in!",
                color=COLOR_RESULTS,
                fields=[
                    AttachmentField(title="Token Expires", value=_format_expiry(token_expires_at)),
                    AttachmentField(title="Refresh Token Expires", value=_format_expiry(refresh_token_expires_at)),
                ],
                actions=[_button("Get Lights", msg="/hue-lights "), _button("Get Groups", msg="/hue-groups ")],
            )
        ]
    )


def login_failed_message(text: str) -> ChatMessage:
    return ChatMessage(
        attachments=[
            MessageAttachment(title=text, text="Please try again using `/hue-login`", color=COLOR_ERROR)
        ]
    )


def success_message(title: str, *, command_used: str, follow_up: tuple[str, str]) -> ChatMessage:
    follow_up_text, follow_up_command = follow_up
    return ChatMessage(
        attachments=[
            MessageAttachment(
                title=title,
                color=COLOR_INFO,
                actions=[_button("Run Again", msg=command_used), _button(follow_up_text, msg=follow_up_command)],
            )
        ]
    )


def _results_attachment(count: int, actions: list[MessageAction]) -> MessageAttachment:
    return MessageAttachment(title=f"Results ({count})", color=COLOR_RESULTS, actions=actions)


def _bulk_toggle_actions(command: str, items: list[dict[str, Any]], is_on) -> list[MessageAction]:
    ids = ",".join(str(item["id"]).strip() for item in items)
    count_on = sum(1 for item in items if is_on(item))
    actions: list[MessageAction] = []
    if len(items) - count_on > 0:
        actions.append(_button("Turn All On", msg=f"/{command} {ids} on=true"))
    if count_on > 0:
        actions.append(_button("Turn All Off", msg=f"/{command} {ids} on=false"))
    return actions


def _light_is_on(light: dict[str, Any]) -> bool:
    return (light.get("state") or {}).get("on") is True


def lights_message(lights: list[dict[str, Any]]) -> ChatMessage:
    attachments = [_results_attachment(len(lights), _bulk_toggle_actions("hue-light-state", lights, _light_is_on))]

    for light in lights:
        state = light.get("state") or {}
        xy = state.get("xy") or []
        alerting = state.get("alert") not in (None, "none")
        on = state.get("on") is True
        text = (
            f"*Brightness: *{state.get('bri')}\n"
            f"*Hue: *{state.get('hue')}\n"
            f"*Saturation: *{state.get('sat')}\n"
            f"*CIE: *{','.join(str(c) for c in xy)}\n"
            f"*Color Temperature: *{state.get('ct')}\n"
            f"*Color Mode: *{state.get('colormode')}\n"
            f"*Effect: *{state.get('effect')}\n"
            f"*Alerting: *{state.get('alert')}"
        )

        change_state = f"/hue-light-state {light['id']} on={str(on).lower()}"
        # bri/hue/sat/cie are only accepted together with on=true.
        if on:
            for key in ("bri", "hue", "sat"):
                if state.get(key) is not None:
                    change_state += f" {key}={state[key]}"
            if len(xy) == 2:
                change_state += f" cie={xy[0]}:{xy[1]}"
        change_state += f" alert={str(alerting).lower()}"

        actions = [
            _button("Change State", msg=change_state + " "),
            _button("Turn Off Alert", msg=f"/hue-light-state {light['id']} alert=false ")
            if alerting
            else _button("Alert Light", msg=f"/hue-light-state {light['id']} alert=true "),
            _button("Turn Off Light", msg=f"/hue-light-state {light['id']} on=false ")
            if on
            else _button("Turn On Light", msg=f"/hue-light-state {light['id']} on=true "),
        ]

        attachments.append(
            MessageAttachment(
                title=f"{light.get('name')} ({'On' if on else 'Off'})",
                text=text,
                color=COLOR_INFO,
                collapsed=len(lights) > 5,
                fields=[
                    AttachmentField(
                        title="Type",
                        value=f"{light.get('manufacturername')} {light.get('modelid')} ({light.get('type')})",
                    ),
                    AttachmentField(title="Software", value=f"v{light.get('swversion')}"),
                ],
                actions=actions,
            )
        )

    return ChatMessage(attachments=attachments)


def _group_is_on(group: dict[str, Any]) -> bool:
    return (group.get("state") or {}).get("any_on") is True


def groups_message(groups: list[dict[str, Any]]) -> ChatMessage:
    attachments = [_results_attachment(len(groups), _bulk_toggle_actions("hue-group-state", groups, _group_is_on))]

    for group in groups:
        state = group.get("state") or {}
        action = group.get("action") or {}
        on = _group_is_on(group)
        lights = group.get("lights") or []
        text = (
            f"*Lights: *{','.join(str(i) for i in lights)}\n"
            f"*All On: *{state.get('all_on')}\n"
            f"*Brightness: *{action.get('bri')}\n"
            f"*Color Mode: *{action.get('colormode')}"
        )
        actions = [
            _button("Turn Off Group", msg=f"/hue-group-state {group['id']} on=false ")
            if on
            else _button("Turn On Group", msg=f"/hue-group-state {group['id']} on=true "),
            _button("View Lights", msg=f"/hue-lights {','.join(str(i) for i in lights)} "),
        ]
        attachments.append(
            MessageAttachment(
                title=f"{group.get('name')} ({'On' if on else 'Off'})",
                text=text,
                color=COLOR_INFO,
                collapsed=len(groups) > 5,
                fields=[
                    AttachmentField(title="Type", value=f"{group.get('type')}"),
                    AttachmentField(title="Class", value=f"{group.get('class')}"),
                ],
                actions=actions,
            )
        )

    return ChatMessage(attachments=attachments)


def scenes_message(scenes: list[dict[str, Any]]) -> ChatMessage:
    attachments = [_results_attachment(len(scenes), [])]
    for scene in scenes:
        recall = f"/hue-scene {scene['id']}"
        if scene.get("group") is not None:
            recall += f" {scene['group']}"
        attachments.append(
            MessageAttachment(
                title=f"{scene.get('name')}",
                text=f"*Id: *{scene['id']}\n*Lights: *{','.join(str(i) for i in scene.get('lights') or [])}",
                color=COLOR_INFO,
                collapsed=len(scenes) > 5,
                actions=[_button("Recall Scene", msg=recall + " ")],
            )
        )
    return ChatMessage(attachments=attachments)
