from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Callable

from hue_chat.color import hex_to_rgb, rgb_to_cie
from hue_chat.errors import UserInputError


@dataclass(frozen=True)
class StateField:
    key: str
    parse: Callable[["StateField", str], Any]
    hue_field: str | None = None
    label: str = ""
    minimum: float | None = None
    maximum: float | None = None
    requires_on: bool = False
    color_property: bool = False
    exclusive_color: bool = False


@dataclass
class ParsedState:
    on: bool | None = None
    payload: dict[str, Any] = field(default_factory=dict)

    @property
    def change_count(self) -> int:
        return len(self.payload) + (0 if self.on is None else 1)

    def requests(self) -> list[dict[str, Any]]:
        """Bodies to PUT per target, in order: the isolated on/off switch, then the rest."""
        bodies: list[dict[str, Any]] = []
        if self.on is not None:
            bodies.append({"on": self.on})
        if self.payload:
            bodies.append(dict(self.payload))
        return bodies


def _parse_bool(spec: StateField, text: str) -> bool:
    lowered = text.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False
    raise UserInputError(f"Failed to parse '{spec.key}' state value!")


def _parse_int(spec: StateField, text: str) -> int:
    try:
        value = int(text)
    except ValueError:
        raise UserInputError(f"Failed to parse '{spec.key}' state value!") from None
    if (spec.minimum is not None and value < spec.minimum) or (spec.maximum is not None and value > spec.maximum):
        raise UserInputError(f"'{spec.key}' must be between {spec.minimum} and {spec.maximum}!")
    return value


def _parse_cie(spec: StateField, text: str) -> list[float]:
    parts = text.split(":")
    if len(parts) != 2:
        raise UserInputError(f"'{spec.key}' must contain two values!")
    coords: list[float] = []
    for part in parts:
        try:
            coords.append(float(part))
        except ValueError:
            raise UserInputError(f"'{spec.key}' coordinates must be numbers!") from None
    if not all(math.isfinite(c) for c in coords):
        raise UserInputError(f"'{spec.key}' coordinates must be numbers!")
    if any(not 0 <= c <= 1 for c in coords):
        raise UserInputError(f"'{spec.key}' coordinates must be between 0 and 1!")
    return coords


def _parse_color(spec: StateField, text: str) -> list[float]:
    rgb = hex_to_rgb(text) if text.startswith("#") and len(text) == 7 else None
    if rgb is None:
        raise UserInputError(f"'{spec.key}' must be a hex value starting with #!")
    return rgb_to_cie(*rgb)


def _parse_alert(spec: StateField, text: str) -> str:
    return "lselect" if _parse_bool(spec, text) else "none"


STATE_FIELDS: tuple[StateField, ...] = (
    StateField(key="on", parse=_parse_bool),
    StateField(key="bri", parse=_parse_int, hue_field="bri", label="brightness", minimum=1, maximum=254, requires_on=True),
    StateField(
        key="hue", parse=_parse_int, hue_field="hue", label="hue", minimum=0, maximum=65535,
        requires_on=True, color_property=True,
    ),
    StateField(
        key="sat", parse=_parse_int, hue_field="sat", label="saturation", minimum=0, maximum=254,
        requires_on=True, color_property=True,
    ),
    StateField(
        key="ct", parse=_parse_int, hue_field="ct", label="color temp", minimum=153, maximum=500,
        requires_on=True, color_property=True,
    ),
    StateField(key="cie", parse=_parse_cie, hue_field="xy", label="CIE color", requires_on=True, color_property=True),
    StateField(key="color", parse=_parse_color, hue_field="xy", label="color", requires_on=True, exclusive_color=True),
    StateField(key="alert", parse=_parse_alert, hue_field="alert"),
)

_FIELDS_BY_KEY = {spec.key: spec for spec in STATE_FIELDS}


def tokenize(raw: str) -> dict[str, str]:
    """Collects `key=value` tokens; the first occurrence of a key wins, unknown keys are ignored."""
    found: dict[str, str] = {}
    for token in raw.split():
        key, sep, value = token.partition("=")
        if not sep or key not in _FIELDS_BY_KEY or key in found:
            continue
        found[key] = value
    return found


def parse_state_args(raw: str) -> ParsedState:
    tokens = tokenize(raw)

    values: dict[str, Any] = {}
    for spec in STATE_FIELDS:
        text = tokens.get(spec.key)
        if not text:
            continue
        values[spec.key] = spec.parse(spec, text)

    on = values.get("on")
    color_given = "color" in values
    state = ParsedState(on=on)
    for spec in STATE_FIELDS:
        if spec.key not in values or spec.hue_field is None:
            continue
        if spec.requires_on and on is not True:
            raise UserInputError(f"Must specify 'on=true' to modify {spec.label} state!")
        if spec.color_property and color_given:
            raise UserInputError("Cannot specify color with other color properties!")
        state.payload[spec.hue_field] = values[spec.key]

    if state.change_count == 0:
        raise UserInputError("Must specify at least one state change!")
    return state


def parse_id_list(value: str, *, kind: str) -> list[str]:
    items = [item.strip() for item in value.split(",")]
    if not items or items == [""]:
        raise UserInputError(f"Must specify at least one {kind} id!")
    ids: list[str] = []
    for item in items:
        try:
            int(item)
        except ValueError:
            raise UserInputError(f"One or more {kind} ids were invalid!") from None
        ids.append(item.lower())
    return ids
