from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Literal

from hue_chat.errors import HueChatError
from hue_chat.hue_client import HueClient, HueTransportError
from hue_chat.state_parser import ParsedState


logger = logging.getLogger(__name__)

TargetKind = Literal["light", "group"]

_STATE_PATHS: dict[str, str] = {
    "light": "lights/{id}/state",
    "group": "groups/{id}/action",
}


@dataclass(frozen=True)
class TargetOutcome:
    target_id: str
    ok: bool
    requests_sent: int
    error_code: str | None = None
    message: str | None = None


async def _apply_one(
    *,
    hue: HueClient,
    token: str,
    whitelist_id: str,
    kind: TargetKind,
    target_id: str,
    bodies: list[dict],
) -> TargetOutcome:
    path = _STATE_PATHS[kind].format(id=target_id)
    sent = 0
    for body in bodies:
        try:
            sent += 1
            await hue.put_bridge(token=token, whitelist_id=whitelist_id, path=path, json_body=body)
        except HueChatError as err:
            logger.warning("%s %s update failed (%s): %s %s", kind, target_id, err.code, err.message, err.details)
            return TargetOutcome(target_id=target_id, ok=False, requests_sent=sent, error_code=err.code, message=err.message)
        except HueTransportError as err:
            logger.warning("%s %s update failed (%s): %s", kind, target_id, err.code, err)
            return TargetOutcome(target_id=target_id, ok=False, requests_sent=sent, error_code=err.code, message=str(err))
        except Exception as err:
            logger.exception("%s %s update failed unexpectedly", kind, target_id)
            return TargetOutcome(
                target_id=target_id, ok=False, requests_sent=sent, error_code=HueChatError.code, message=str(err)
            )
    return TargetOutcome(target_id=target_id, ok=True, requests_sent=sent)


async def apply_state(
    *,
    hue: HueClient,
    token: str,
    whitelist_id: str,
    kind: TargetKind,
    ids: list[str],
    state: ParsedState,
) -> list[TargetOutcome]:
    """
    Best-effort, non-atomic application of one state change to many targets.

    Targets run concurrently; per target the isolated `on` switch is sent before the
    remaining attributes. A failing target never stops the others.
    """
    bodies = state.requests()
    return list(
        await asyncio.gather(
            *(
                _apply_one(hue=hue, token=token, whitelist_id=whitelist_id, kind=kind, target_id=target_id, bodies=bodies)
                for target_id in ids
            )
        )
    )
