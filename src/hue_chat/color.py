from __future__ import annotations

import re


# Wide gamut D65 RGB -> XYZ, as documented for Hue lights.
_RGB_TO_XYZ = (
    (0.664511, 0.154324, 0.162028),
    (0.283881, 0.668433, 0.047685),
    (0.000088, 0.072310, 0.986039),
)

D65_WHITE_POINT = [0.3127, 0.329]

_HEX_RE = re.compile(r"^#?([a-f\d]{2})([a-f\d]{2})([a-f\d]{2})$", re.IGNORECASE)


def _invert_3x3(m: tuple[tuple[float, ...], ...]) -> tuple[tuple[float, ...], ...]:
    (a, b, c), (d, e, f), (g, h, i) = m
    det = a * (e * i - f * h) - b * (d * i - f * g) + c * (d * h - e * g)
    return (
        ((e * i - f * h) / det, (c * h - b * i) / det, (b * f - c * e) / det),
        ((f * g - d * i) / det, (a * i - c * g) / det, (c * d - a * f) / det),
        ((d * h - e * g) / det, (b * g - a * h) / det, (a * e - b * d) / det),
    )


_XYZ_TO_RGB = _invert_3x3(_RGB_TO_XYZ)


def hex_to_rgb(value: str) -> tuple[int, int, int] | None:
    match = _HEX_RE.match(value.strip())
    if not match:
        return None
    return int(match.group(1), 16), int(match.group(2), 16), int(match.group(3), 16)


def rgb_to_hex(r: int, g: int, b: int) -> str:
    return f"#{r:02x}{g:02x}{b:02x}"


def _expand_gamma(channel: float) -> float:
    if channel > 0.04045:
        return ((channel + 0.055) / (1.0 + 0.055)) ** 2.4
    return channel / 12.92


def _compress_gamma(channel: float) -> float:
    if channel <= 0.0031308:
        return 12.92 * channel
    return (1.0 + 0.055) * (channel ** (1.0 / 2.4)) - 0.055


def _rgb_to_xyz(r: int, g: int, b: int) -> tuple[float, float, float]:
    linear = [_expand_gamma(c / 255.0) for c in (r, g, b)]
    return tuple(sum(row[k] * linear[k] for k in range(3)) for row in _RGB_TO_XYZ)  # type: ignore[return-value]


def rgb_to_cie(r: int, g: int, b: int) -> list[float]:
    """
    Converts 8-bit sRGB to CIE 1931 xy chromaticity.

    Luminance is dropped; use rgb_to_brightness() to keep it.
    """
    x_, y_, z_ = _rgb_to_xyz(r, g, b)
    total = x_ + y_ + z_
    if total == 0:
        return list(D65_WHITE_POINT)
    return [round(x_ / total, 4), round(y_ / total, 4)]


def rgb_to_brightness(r: int, g: int, b: int) -> float:
    _, y_, _ = _rgb_to_xyz(r, g, b)
    return y_ * 254.0


def cie_to_rgb(x: float, y: float, bri: float = 254) -> tuple[int, int, int]:
    if y <= 0:
        return 0, 0, 0
    lum = max(0.0, min(254.0, float(bri))) / 254.0
    xyz = (lum / y * x, lum, lum / y * (1.0 - x - y))
    linear = [sum(row[k] * xyz[k] for k in range(3)) for row in _XYZ_TO_RGB]
    linear = [max(0.0, c) for c in linear]

    peak = max(linear)
    if peak > 1.0:
        linear = [c / peak for c in linear]

    return tuple(max(0, min(255, int(round(_compress_gamma(c) * 255.0)))) for c in linear)  # type: ignore[return-value]
