import pytest

from hue_chat.color import D65_WHITE_POINT, cie_to_rgb, hex_to_rgb, rgb_to_brightness, rgb_to_cie, rgb_to_hex


def _close(actual, expected, tolerance=2):
    return all(abs(a - e) <= tolerance for a, e in zip(actual, expected))


def test_hex_to_rgb_parses_with_and_without_hash():
    assert hex_to_rgb("#FF8000") == (255, 128, 0)
    assert hex_to_rgb("ff8000") == (255, 128, 0)
    assert hex_to_rgb("#GG0000") is None
    assert rgb_to_hex(255, 128, 0) == "#ff8000"


def test_rgb_to_cie_red_is_in_the_red_corner():
    x, y = rgb_to_cie(255, 0, 0)
    assert x == pytest.approx(0.7006, abs=1e-4)
    assert y == pytest.approx(0.2993, abs=1e-4)


def test_rgb_to_cie_black_falls_back_to_white_point():
    assert rgb_to_cie(0, 0, 0) == D65_WHITE_POINT


@pytest.mark.parametrize("hex_value", ["#FF0000", "#FFFFFF"])
def test_cie_round_trip_at_full_brightness(hex_value):
    rgb = hex_to_rgb(hex_value)
    x, y = rgb_to_cie(*rgb)
    assert _close(cie_to_rgb(x, y, 254), rgb)


def test_cie_round_trip_gray_needs_its_own_brightness():
    """xy carries no luminance, so gray only survives with its own brightness (see DESIGN.md, Gray colors)."""
    rgb = hex_to_rgb("#808080")
    x, y = rgb_to_cie(*rgb)
    # Chromaticity of gray equals white's; luminance is carried separately.
    assert _close(cie_to_rgb(x, y, 254), (255, 255, 255))
    assert _close(cie_to_rgb(x, y, rgb_to_brightness(*rgb)), rgb)


def test_cie_to_rgb_handles_degenerate_y():
    assert cie_to_rgb(0.3, 0.0) == (0, 0, 0)
