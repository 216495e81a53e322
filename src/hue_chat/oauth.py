from __future__ import annotations

import logging
import urllib.parse
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from email.utils import parsedate_to_datetime
from typing import Any

from hue_chat.auth_attempts import PendingAuthAttempt, create_attempt, delete_attempt, get_attempt
from hue_chat.config import AppConfig
from hue_chat.db import REFRESH_TOKEN, TOKEN, WHITELIST_ID, Database
from hue_chat.digest import TOKEN_URI, build_digest_header, parse_challenge
from hue_chat.errors import HueChatError, OAuthFlowError
from hue_chat.hue_client import HueClient, HueTransportError, check_bridge_result
from hue_chat.messages import login_failed_message, login_success_message
from hue_chat.notifier import Notifier
from hue_chat.schemas import ChatUser, RoomRef


logger = logging.getLogger(__name__)

LOGIN_FAILED = "Failed to login!"
WHITELIST_FAILED = "Failed to whitelist the application with your bridge!"


@dataclass(frozen=True)
class TokenGrant:
    access_token: str
    refresh_token: str | None
    token_expires_at: datetime | None
    refresh_token_expires_at: datetime | None


@dataclass(frozen=True)
class OAuthOutcome:
    ok: bool
    user_id: str
    message: str
    grant: TokenGrant | None = None
    whitelist_id: str | None = None
    whitelist_registered: bool = False


def build_login_url(config: AppConfig, state: str) -> str:
    params = {
        "clientid": config.client_id,
        "appid": config.app_id,
        "deviceid": config.device_id,
        "devicename": config.device_name,
        "state": state,
        "response_type": "code",
    }
    return f"{config.api_base_url}/oauth2/auth?{urllib.parse.urlencode(params)}"


def _response_date(headers_date: str | None) -> datetime:
    if headers_date:
        try:
            return parsedate_to_datetime(headers_date)
        except (TypeError, ValueError):
            pass
    return datetime.now(timezone.utc)


def _expires_at(base: datetime, seconds: Any) -> datetime | None:
    if seconds is None:
        return None
    try:
        return base + timedelta(seconds=int(float(seconds)))
    except (TypeError, ValueError):
        return None


class OAuthFlow:
    """
    Hue cloud login: authorization code -> digest challenge -> bearer token -> bridge whitelist.

    Stateless between invocations; the only state is the pending attempt in the database.
    """

    def __init__(self, *, db: Database, hue: HueClient, config: AppConfig, notifier: Notifier) -> None:
        self.db = db
        self.hue = hue
        self.config = config
        self.notifier = notifier

    async def start_login(self, *, user: ChatUser, room: RoomRef) -> str:
        auth_id = str(uuid.uuid4())
        await create_attempt(
            db=self.db,
            auth_id=auth_id,
            user_id=user.id,
            user_name=user.username,
            room=room.model_dump(mode="json"),
            ttl_seconds=self.config.pending_auth_ttl_seconds,
        )
        logger.info("Login started for %s", user.username)
        return build_login_url(self.config, auth_id)

    async def handle_callback(self, *, code: str | None, state: str | None) -> OAuthOutcome | None:
        """
        Returns None when the callback can't be attributed to a pending attempt.
        """
        if not state:
            return None
        attempt = await get_attempt(db=self.db, auth_id=state)
        if attempt is None:
            logger.info("Ignoring OAuth callback with unknown state")
            return None

        try:
            outcome = await self._run(attempt=attempt, code=code)
        except Exception:
            logger.exception("OAuth callback failed for %s", attempt.user_name)
            outcome = OAuthOutcome(ok=False, user_id=attempt.user_id, message=LOGIN_FAILED)
        finally:
            await delete_attempt(db=self.db, auth_id=attempt.auth_id)

        if outcome.ok:
            message = login_success_message(
                token_expires_at=outcome.grant.token_expires_at if outcome.grant else None,
                refresh_token_expires_at=outcome.grant.refresh_token_expires_at if outcome.grant else None,
            )
        else:
            message = login_failed_message(outcome.message)
        await self.notifier.notify(
            user=ChatUser(id=attempt.user_id, username=attempt.user_name),
            room=RoomRef.model_validate(attempt.room),
            message=message,
        )
        return outcome

    async def _run(self, *, attempt: PendingAuthAttempt, code: str | None) -> OAuthOutcome:
        user_id = attempt.user_id
        if not code:
            logger.warning("OAuth callback for %s is missing the code", attempt.user_name)
            return OAuthOutcome(ok=False, user_id=user_id, message=LOGIN_FAILED)

        try:
            grant = await self.exchange_code(code)
        except (OAuthFlowError, HueTransportError) as err:
            logger.warning("Token exchange failed for %s: %s", attempt.user_name, err)
            return OAuthOutcome(ok=False, user_id=user_id, message=LOGIN_FAILED)

        await self.db.set_credential(user_id, TOKEN, grant.access_token)
        if grant.refresh_token:
            await self.db.set_credential(user_id, REFRESH_TOKEN, grant.refresh_token)

        whitelist_id = await self.db.get_credential(user_id, WHITELIST_ID)
        if whitelist_id:
            return OAuthOutcome(ok=True, user_id=user_id, message="Successfully logged in!", grant=grant, whitelist_id=whitelist_id)

        try:
            whitelist_id = await self.register_whitelist(grant.access_token)
        except (OAuthFlowError, HueTransportError) as err:
            logger.warning("Bridge whitelisting failed for %s: %s", attempt.user_name, err)
            return OAuthOutcome(ok=False, user_id=user_id, message=WHITELIST_FAILED, grant=grant)

        await self.db.set_credential(user_id, WHITELIST_ID, whitelist_id)
        return OAuthOutcome(
            ok=True,
            user_id=user_id,
            message="Successfully logged in!",
            grant=grant,
            whitelist_id=whitelist_id,
            whitelist_registered=True,
        )

    async def exchange_code(self, code: str) -> TokenGrant:
        params = {"code": code, "grant_type": "authorization_code"}

        challenge_resp = await self.hue.request_jsonish(method="POST", path=TOKEN_URI, params=params)
        www_authenticate = challenge_resp.header("www-authenticate")
        if not www_authenticate:
            raise OAuthFlowError(
                "Token endpoint sent no digest challenge", details={"status": challenge_resp.status_code}
            )

        challenge = parse_challenge(www_authenticate)
        authorization = build_digest_header(
            self.config.client_id,
            self.config.client_secret,
            challenge.realm,
            "POST",
            TOKEN_URI,
            challenge.nonce,
        )
        resp = await self.hue.request_jsonish(
            method="POST", path=TOKEN_URI, params=params, headers={"Authorization": authorization}
        )
        if resp.status_code != 200 or not resp.body:
            raise OAuthFlowError("Digest token request rejected", details={"status": resp.status_code})

        body = resp.body
        if not isinstance(body, dict) or not body.get("access_token"):
            raise OAuthFlowError("Token response carries no access_token")

        issued_at = _response_date(resp.header("date"))
        return TokenGrant(
            access_token=str(body["access_token"]),
            refresh_token=str(body["refresh_token"]) if body.get("refresh_token") else None,
            token_expires_at=_expires_at(issued_at, body.get("access_token_expires_in")),
            refresh_token_expires_at=_expires_at(issued_at, body.get("refresh_token_expires_in")),
        )

    async def register_whitelist(self, token: str) -> str:
        try:
            link = await self.hue.request_jsonish(
                method="PUT", path="/bridge/0/config", json_body={"linkbutton": True}, token=token
            )
            check_bridge_result(link)
            registration = await self.hue.request_jsonish(
                method="POST", path="/bridge/", json_body={"devicetype": self.config.device_name}, token=token
            )
            body = check_bridge_result(registration)
        except HueChatError as err:
            raise OAuthFlowError(err.message, details=err.details) from err

        first = body[0] if isinstance(body, list) and body else None
        success = first.get("success") if isinstance(first, dict) else None
        username = success.get("username") if isinstance(success, dict) else None
        if not isinstance(username, str) or not username:
            raise OAuthFlowError("Unexpected whitelist registration response", details={"body": body})
        return username
