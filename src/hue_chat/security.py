from __future__ import annotations

import secrets
from dataclasses import dataclass

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer


@dataclass(frozen=True)
class HostContext:
    credential: str


def _matches_any(token: str, allowed: list[str]) -> bool:
    return any(secrets.compare_digest(token.encode(), item.encode()) for item in allowed)


_bearer = HTTPBearer(auto_error=False)


async def require_host(
    request: Request,
    bearer: HTTPAuthorizationCredentials | None = Depends(_bearer),
) -> HostContext:
    """Only the chat host, holding one of COMMAND_TOKENS, may forward slash commands."""
    config = request.app.state.state.config

    if bearer and bearer.scheme.lower() == "bearer":
        token = bearer.credentials.strip()
        if token and _matches_any(token, config.command_tokens):
            return HostContext(credential=token)

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": "unauthorized"},
    )
