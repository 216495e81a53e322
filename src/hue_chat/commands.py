from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from hue_chat.batch import TargetKind, TargetOutcome, apply_state
from hue_chat.config import AppConfig
from hue_chat.db import Database
from hue_chat.errors import (
    AuthExpiredError,
    HueApiError,
    HueChatError,
    NotLoggedInError,
    UpstreamProtocolError,
    UserInputError,
)
from hue_chat.hue_client import HueClient, HueTransportError
from hue_chat.messages import (
    LOGIN_PROMPT_NO_TOKEN,
    LOGIN_PROMPT_NO_WHITELIST,
    PREVIEW_TOKEN_EXPIRED,
    groups_message,
    help_message,
    lights_message,
    login_message,
    scenes_message,
    success_message,
    text_message,
    token_expired_message,
    usage_message,
)
from hue_chat.notifier import Notifier
from hue_chat.oauth import OAuthFlow
from hue_chat.schemas import ChatMessage, ChatUser, PreviewItem, PreviewResponse, RoomRef
from hue_chat.state_parser import parse_id_list, parse_state_args


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandContext:
    command: str
    args: list[str]
    user: ChatUser
    room: RoomRef

    @property
    def command_used(self) -> str:
        return f"/{self.command} {' '.join(self.args)}"


@dataclass
class CommandResult:
    command: str
    messages: list[ChatMessage] = field(default_factory=list)
    outcomes: list[TargetOutcome] = field(default_factory=list)


@dataclass
class _Session:
    context: CommandContext
    notifier: Notifier
    result: CommandResult

    async def send(self, message: ChatMessage) -> None:
        await self.notifier.notify(user=self.context.user, room=self.context.room, message=message)
        self.result.messages.append(message)


Handler = Callable[[_Session], Awaitable[None]]
Previewer = Callable[[CommandContext], Awaitable[PreviewResponse]]

_PLURAL = {"light": "lights", "group": "groups"}


def _index_by_id(content: Any) -> list[dict[str, Any]]:
    """Hue v1 returns `{id: resource}` maps; flatten them into a list carrying the id."""
    if not isinstance(content, dict):
        raise UpstreamProtocolError()
    items: list[dict[str, Any]] = []
    for rid, resource in content.items():
        if isinstance(resource, dict):
            items.append({**resource, "id": str(rid)})
    return items


class CommandDispatcher:
    def __init__(
        self,
        *,
        db: Database,
        hue: HueClient,
        config: AppConfig,
        notifier: Notifier,
        oauth: OAuthFlow,
    ) -> None:
        self.db = db
        self.hue = hue
        self.config = config
        self.notifier = notifier
        self.oauth = oauth
        self._handlers: dict[str, Handler] = {
            "hue": self._help,
            "hue-login": self._login,
            "hue-lights": self._lights,
            "hue-light-state": self._light_state,
            "hue-groups": self._groups,
            "hue-group-state": self._group_state,
            "hue-group": self._group,
            "hue-scene": self._scene,
            "hue-scenes": self._scenes,
        }
        self._previewers: dict[str, Previewer] = {
            "hue-group": self._preview_groups,
        }

    @property
    def commands(self) -> list[str]:
        return list(self._handlers)

    async def dispatch(self, context: CommandContext) -> CommandResult:
        result = CommandResult(command=context.command)
        session = _Session(context=context, notifier=self.notifier, result=result)
        handler = self._handlers.get(context.command, self._help)

        try:
            await handler(session)
        except UserInputError as err:
            await session.send(usage_message(err.scope or context.command, err.message))
        except NotLoggedInError as err:
            await session.send(text_message(err.message))
        except AuthExpiredError:
            await session.send(token_expired_message())
        except UpstreamProtocolError as err:
            logger.warning("/%s: %s %s", context.command, err.message, err.details)
            await session.send(text_message(err.message))
        except HueTransportError as err:
            logger.warning("/%s: Hue cloud unreachable: %s", context.command, err)
            await session.send(text_message("Failed to reach the Hue cloud!"))
        except Exception:
            logger.exception("/%s failed", context.command)
            await session.send(text_message("Something went wrong!"))
        return result

    async def preview(self, context: CommandContext) -> PreviewResponse | None:
        """
        Preview items for commands that offer them; None when the command has none.

        Failures never raise: they become the preview title, with no items.
        """
        previewer = self._previewers.get(context.command)
        if previewer is None:
            return None

        try:
            return await previewer(context)
        except NotLoggedInError as err:
            return PreviewResponse(title=err.message)
        except AuthExpiredError:
            return PreviewResponse(title=PREVIEW_TOKEN_EXPIRED)
        except UpstreamProtocolError as err:
            logger.warning("/%s preview: %s %s", context.command, err.message, err.details)
            return PreviewResponse(title=UpstreamProtocolError().message)
        except HueTransportError as err:
            logger.warning("/%s preview: Hue cloud unreachable: %s", context.command, err)
            return PreviewResponse(title="Failed to reach the Hue cloud!")
        except Exception:
            logger.exception("/%s preview failed", context.command)
            return PreviewResponse(title="Something went wrong!")

    async def _preview_groups(self, context: CommandContext) -> PreviewResponse:
        query = " ".join(context.args).lower().strip()
        token, whitelist_id = await self._require_credentials(context.user)
        groups = _index_by_id(await self.hue.get_bridge(token=token, whitelist_id=whitelist_id, path="groups"))
        items = [
            PreviewItem(id=group["id"], value=str(group.get("name") or ""))
            for group in groups
            if query in group["id"].lower().strip() or query in str(group.get("name") or "").lower().strip()
        ]
        return PreviewResponse(title="Groups", items=items)

    async def _require_credentials(self, user: ChatUser) -> tuple[str, str]:
        credential = await self.db.get_user_credential(user.id)
        if not credential.token:
            raise NotLoggedInError(LOGIN_PROMPT_NO_TOKEN)
        if not credential.whitelist_id:
            raise NotLoggedInError(LOGIN_PROMPT_NO_WHITELIST)
        return credential.token, credential.whitelist_id

    async def _help(self, session: _Session) -> None:
        await session.send(help_message())

    async def _login(self, session: _Session) -> None:
        if not self.config.oauth_configured:
            await session.send(
                text_message("The Hue app is not configured yet! Ask an administrator to provide the Hue client settings.")
            )
            return
        ctx = session.context
        url = await self.oauth.start_login(user=ctx.user, room=ctx.room)
        await session.send(login_message(url))

    async def _lights(self, session: _Session) -> None:
        ctx = session.context
        wanted = parse_id_list(ctx.args[0], kind="light") if ctx.args else None
        token, whitelist_id = await self._require_credentials(ctx.user)
        lights = _index_by_id(await self.hue.get_bridge(token=token, whitelist_id=whitelist_id, path="lights"))
        if wanted is not None:
            lights = [light for light in lights if light["id"] in wanted]
        await session.send(lights_message(lights))

    async def _groups(self, session: _Session) -> None:
        token, whitelist_id = await self._require_credentials(session.context.user)
        groups = _index_by_id(await self.hue.get_bridge(token=token, whitelist_id=whitelist_id, path="groups"))
        await session.send(groups_message(groups))

    async def _group(self, session: _Session) -> None:
        ctx = session.context
        query = " ".join(ctx.args).strip()
        if not query:
            raise UserInputError("Group Id or Name must be provided!")
        token, whitelist_id = await self._require_credentials(ctx.user)
        groups = _index_by_id(await self.hue.get_bridge(token=token, whitelist_id=whitelist_id, path="groups"))
        needle = query.lower()
        matches = [
            group
            for group in groups
            if group["id"] == query or needle in str(group.get("name") or "").lower()
        ]
        await session.send(groups_message(matches))

    async def _light_state(self, session: _Session) -> None:
        await self._apply_state(session, kind="light")

    async def _group_state(self, session: _Session) -> None:
        await self._apply_state(session, kind="group")

    async def _apply_state(self, session: _Session, *, kind: TargetKind) -> None:
        ctx = session.context
        if len(ctx.args) < 2:
            raise UserInputError("Arguments were invalid!")
        ids = parse_id_list(ctx.args[0], kind=kind)
        state = parse_state_args(" ".join(ctx.args[1:]) + " ")
        token, whitelist_id = await self._require_credentials(ctx.user)

        outcomes = await apply_state(
            hue=self.hue, token=token, whitelist_id=whitelist_id, kind=kind, ids=ids, state=state
        )
        session.result.outcomes = outcomes

        expired_reported = False
        for outcome in outcomes:
            if outcome.ok:
                continue
            if outcome.error_code == AuthExpiredError.code:
                if not expired_reported:
                    await session.send(token_expired_message())
                    expired_reported = True
            elif outcome.error_code == HueApiError.code:
                await session.send(text_message(f"Error occurred for {kind} id {outcome.target_id}!"))
            elif outcome.error_code == HueTransportError.code:
                await session.send(text_message(f"Failed to reach the Hue cloud for {kind} id {outcome.target_id}!"))
            elif outcome.error_code == HueChatError.code:
                await session.send(text_message(f"Something went wrong for {kind} id {outcome.target_id}!"))
            else:
                await session.send(text_message(f"Failed to parse response for {kind} id {outcome.target_id}!"))

        plural = _PLURAL[kind]
        await session.send(
            success_message(
                f"Successfully updated {plural}!",
                command_used=ctx.command_used,
                follow_up=(f"Get {plural.capitalize()}", f"/hue-{plural} "),
            )
        )

    async def _scene(self, session: _Session) -> None:
        ctx = session.context
        scene_id = ctx.args[0] if ctx.args else ""
        if not scene_id:
            raise UserInputError("Must provide a scene id!")
        group_id = "0"
        if len(ctx.args) > 1:
            try:
                group_id = str(int(ctx.args[1]))
            except ValueError:
                raise UserInputError("Group id must be a number!") from None

        token, whitelist_id = await self._require_credentials(ctx.user)
        try:
            await self.hue.put_bridge(
                token=token,
                whitelist_id=whitelist_id,
                path=f"groups/{group_id}/action",
                json_body={"scene": scene_id},
            )
        except HueApiError as err:
            raise HueApiError("Error setting scene!", details=err.details) from err
        except UpstreamProtocolError as err:
            raise UpstreamProtocolError(f"Failed to parse response for group id {group_id}!", details=err.details) from err

        await session.send(
            success_message(
                "Successfully recalled scene!",
                command_used=ctx.command_used,
                follow_up=("Get Groups", "/hue-groups "),
            )
        )

    async def _scenes(self, session: _Session) -> None:
        ctx = session.context
        show_all = bool(ctx.args) and ctx.args[0] == "all"
        token, whitelist_id = await self._require_credentials(ctx.user)
        scenes = _index_by_id(await self.hue.get_bridge(token=token, whitelist_id=whitelist_id, path="scenes"))
        if not show_all:
            scenes = [scene for scene in scenes if scene.get("locked") is True]
        await session.send(scenes_message(scenes))
