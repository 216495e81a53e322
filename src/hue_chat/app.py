from __future__ import annotations

import asyncio
import logging
import os
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Callable

from fastapi import Depends, FastAPI, HTTPException, Request, Response, status

from hue_chat.auth_attempts import cleanup_loop
from hue_chat.commands import CommandContext, CommandDispatcher
from hue_chat.config import AppConfig
from hue_chat.db import Database
from hue_chat.hue_client import HueClient
from hue_chat.notifier import Notifier, build_notifier
from hue_chat.oauth import OAuthFlow
from hue_chat.schemas import (
    CommandRequest,
    CommandResponse,
    HealthResponse,
    PreviewResponse,
    UnauthorizedResponse,
)
from hue_chat.security import HostContext, require_host


logger = logging.getLogger("hue_chat")


@dataclass
class AppState:
    config: AppConfig
    db: Database
    hue: HueClient
    notifier: Notifier
    oauth: OAuthFlow
    dispatcher: CommandDispatcher
    tasks: list[asyncio.Task]


def _default_db_path() -> str:
    env = os.getenv("DB_PATH")
    if env:
        return env

    preferred_dir = "/data"
    try:
        if os.path.isdir(preferred_dir) and os.access(preferred_dir, os.W_OK):
            return os.path.join(preferred_dir, "hue-chat.db")
    except OSError:
        pass

    return os.path.join(os.getcwd(), ".data", "hue-chat.db")


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = AppConfig.from_env()
    db = Database(db_path=_default_db_path())
    await db.connect()

    hue = HueClient(base_url=config.api_base_url, timeout_seconds=config.http_timeout_seconds)
    notifier = build_notifier(config)
    oauth = OAuthFlow(db=db, hue=hue, config=config, notifier=notifier)
    dispatcher = CommandDispatcher(db=db, hue=hue, config=config, notifier=notifier, oauth=oauth)

    tasks: list[asyncio.Task] = []
    app.state.state = AppState(
        config=config,
        db=db,
        hue=hue,
        notifier=notifier,
        oauth=oauth,
        dispatcher=dispatcher,
        tasks=tasks,
    )

    tasks.append(asyncio.create_task(cleanup_loop(db=db)))
    if not config.oauth_configured:
        logger.warning("Hue OAuth settings incomplete; /hue-login will be refused")

    try:
        yield
    finally:
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except BaseException:
                pass
        await notifier.close()
        await hue.close()
        await db.close()


app = FastAPI(
    title="Hue Chat",
    version="0.1.0",
    description=(
        "# Hue Chat\n\n"
        "Slash commands for Philips Hue, backed by the Hue cloud API.\n\n"
        "## Endpoints\n"
        "- `GET /healthz` liveness\n"
        "- `POST /v1/commands` slash command invocation forwarded by the chat host "
        "(`Authorization: Bearer <COMMAND_TOKENS item>`)\n"
        "- `POST /v1/previews` slash command preview items (same host auth)\n"
        "- `GET /oauth-callback` public OAuth2 redirect target for the Hue cloud\n\n"
        "## Commands\n"
        "`/hue`, `/hue-login`, `/hue-lights`, `/hue-light-state`, `/hue-groups`, `/hue-group-state`, "
        "`/hue-group`, `/hue-scene`, `/hue-scenes`.\n\n"
        "Results are delivered as chat notifications through `CHAT_WEBHOOK_URL`.\n"
    ),
    lifespan=lifespan,
)


@app.middleware("http")
async def access_log(request: Request, call_next: Callable[[Request], Response]):
    start = time.perf_counter()
    response = await call_next(request)
    duration_ms = (time.perf_counter() - start) * 1000
    # The callback query carries the authorization code; never log it.
    logger.info(
        "%s %s -> %s (%.1fms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


@app.get(
    "/healthz",
    summary="Liveness check",
    response_model=HealthResponse,
    tags=["meta"],
)
async def healthz() -> HealthResponse:
    return {"ok": True}


@app.get(
    "/oauth-callback",
    summary="Hue cloud OAuth2 redirect target",
    description=(
        "Completes a login started with `/hue-login`. The `state` query parameter must match a pending "
        "login attempt; unknown states are acknowledged and ignored. The outcome is sent to the user as a "
        "chat notification, never in this response."
    ),
    response_model=HealthResponse,
    tags=["oauth"],
)
async def oauth_callback(code: str | None = None, state: str | None = None) -> HealthResponse:
    app_state: AppState = app.state.state
    try:
        await app_state.oauth.handle_callback(code=code, state=state)
    except Exception:
        logger.exception("OAuth callback handling failed")
    return {"ok": True}


@app.post(
    "/v1/commands",
    summary="Slash command invocation",
    response_model=CommandResponse,
    responses={
        401: {"description": "Unauthorized (missing/invalid host token).", "model": UnauthorizedResponse},
    },
    tags=["commands"],
)
async def commands(payload: CommandRequest, _: HostContext = Depends(require_host)) -> CommandResponse:
    app_state: AppState = app.state.state
    context = CommandContext(
        command=payload.command,
        args=list(payload.args or []),
        user=payload.user,
        room=payload.room,
    )
    result = await app_state.dispatcher.dispatch(context)
    return {"ok": True, "command": result.command, "messages": len(result.messages)}


@app.post(
    "/v1/previews",
    summary="Slash command preview",
    description=(
        "Lists preview items while the user is typing a command. Only `/hue-group` offers a preview; "
        "choosing an item is the same as running `/hue-group <item value>` through `/v1/commands`."
    ),
    response_model=PreviewResponse,
    responses={
        401: {"description": "Unauthorized (missing/invalid host token).", "model": UnauthorizedResponse},
        404: {"description": "The command has no preview."},
    },
    tags=["commands"],
)
async def previews(payload: CommandRequest, _: HostContext = Depends(require_host)) -> PreviewResponse:
    app_state: AppState = app.state.state
    context = CommandContext(
        command=payload.command,
        args=list(payload.args or []),
        user=payload.user,
        room=payload.room,
    )
    preview = await app_state.dispatcher.preview(context)
    if preview is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail={"error": "no_preview"})
    return preview
