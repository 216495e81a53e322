from __future__ import annotations

import argparse
import os
import sys
from typing import Any

import httpx


def _pick_first_csv(name: str) -> str | None:
    value = os.getenv(name)
    if not value:
        return None
    for item in value.split(","):
        item = item.strip()
        if item:
            return item
    return None


def _post_command(
    client: httpx.Client, url: str, token: str, body: dict[str, Any], *, preview: bool = False
) -> httpx.Response:
    endpoint = "previews" if preview else "commands"
    return client.post(
        f"{url}/v1/{endpoint}",
        headers={"Authorization": f"Bearer {token}", "Content-Type": "application/json"},
        json=body,
        timeout=30.0,
    )


def build_body(*, command: str, args: list[str], user_id: str, username: str, room_id: str) -> dict[str, Any]:
    return {
        "command": command.lstrip("/"),
        "args": args,
        "user": {"id": user_id, "username": username},
        "room": {"id": room_id},
    }


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="hue-chat-command",
        description="Invoke a Hue slash command on a running hue-chat service, as the chat host would.",
    )
    parser.add_argument("command", help="Slash command, e.g. hue-lights or /hue-light-state")
    parser.add_argument("args", nargs=argparse.REMAINDER, help="Command arguments")
    parser.add_argument("--url", default=os.getenv("HUE_CHAT_URL", "http://localhost:8000"))
    parser.add_argument("--token", default=os.getenv("HUE_CHAT_TOKEN") or _pick_first_csv("COMMAND_TOKENS"))
    parser.add_argument("--user-id", default=os.getenv("HUE_CHAT_USER_ID", "cli"))
    parser.add_argument("--username", default=os.getenv("HUE_CHAT_USERNAME", "cli"))
    parser.add_argument("--room-id", default=os.getenv("HUE_CHAT_ROOM_ID", "cli"))
    parser.add_argument("--preview", action="store_true", help="List preview items instead of running the command")
    args = parser.parse_args(argv)

    if not args.token:
        print("Missing host token. Provide --token (or set COMMAND_TOKENS).", file=sys.stderr)
        raise SystemExit(2)

    url = args.url.rstrip("/")
    body = build_body(
        command=args.command,
        args=args.args,
        user_id=args.user_id,
        username=args.username,
        room_id=args.room_id,
    )

    with httpx.Client() as client:
        try:
            resp = _post_command(client, url, args.token, body, preview=args.preview)
        except httpx.HTTPError as exc:
            print(f"Failed to reach hue-chat at {url}: {exc}", file=sys.stderr)
            raise SystemExit(1)

    if resp.status_code != 200:
        print(f"Command failed: HTTP {resp.status_code} {resp.text}", file=sys.stderr)
        raise SystemExit(1)

    payload = resp.json()
    if args.preview:
        print(payload.get("title"))
        for item in payload.get("items") or []:
            print(f"  {item.get('id')}: {item.get('value')}")
        raise SystemExit(0)

    print(f"/{payload.get('command')}: {payload.get('messages')} notification(s) sent")
    raise SystemExit(0)


if __name__ == "__main__":
    main()
