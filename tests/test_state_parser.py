import pytest

from hue_chat.color import rgb_to_cie
from hue_chat.errors import UserInputError
from hue_chat.state_parser import parse_id_list, parse_state_args


def _error(raw: str) -> str:
    with pytest.raises(UserInputError) as exc:
        parse_state_args(raw)
    return exc.value.message


def test_on_with_brightness_yields_isolated_on_then_payload():
    state = parse_state_args("on=true bri=200 ")
    assert state.on is True
    assert state.payload == {"bri": 200}
    assert state.requests() == [{"on": True}, {"bri": 200}]


def test_on_alone_is_a_single_request():
    state = parse_state_args("on=FALSE ")
    assert state.requests() == [{"on": False}]


def test_alert_alone_is_a_single_request_without_on():
    state = parse_state_args("alert=true ")
    assert state.on is None
    assert state.requests() == [{"alert": "lselect"}]
    assert parse_state_args("alert=false ").payload == {"alert": "none"}


def test_brightness_out_of_range_is_rejected():
    assert _error("on=true bri=300 ") == "'bri' must be between 1 and 254!"
    assert _error("on=true bri=0 ") == "'bri' must be between 1 and 254!"


def test_brightness_requires_on_true():
    assert _error("bri=200 ") == "Must specify 'on=true' to modify brightness state!"
    assert _error("on=false bri=200 ") == "Must specify 'on=true' to modify brightness state!"


def test_color_is_exclusive_with_other_color_properties():
    assert _error("on=true color=#ff0000 hue=100 ") == "Cannot specify color with other color properties!"
    assert _error("on=true color=#ff0000 cie=0.3:0.3 ") == "Cannot specify color with other color properties!"


def test_color_is_converted_to_xy():
    state = parse_state_args("on=true color=#ff0000 ")
    assert state.payload == {"xy": rgb_to_cie(255, 0, 0)}


def test_empty_tail_is_rejected():
    assert _error(" ") == "Must specify at least one state change!"
    assert _error("foo=bar ") == "Must specify at least one state change!"


def test_all_numeric_ranges():
    state = parse_state_args("on=true hue=65535 sat=0 ct=153 ")
    assert state.payload == {"hue": 65535, "sat": 0, "ct": 153}
    assert _error("on=true hue=70000 ") == "'hue' must be between 0 and 65535!"
    assert _error("on=true sat=255 ") == "'sat' must be between 0 and 254!"
    assert _error("on=true ct=100 ") == "'ct' must be between 153 and 500!"
    assert _error("on=true bri=bright ") == "Failed to parse 'bri' state value!"


def test_cie_validation():
    assert parse_state_args("on=true cie=0.5:0.4 ").payload == {"xy": [0.5, 0.4]}
    assert _error("on=true cie=0.5 ") == "'cie' must contain two values!"
    assert _error("on=true cie=a:b ") == "'cie' coordinates must be numbers!"
    assert _error("on=true cie=1.5:0.2 ") == "'cie' coordinates must be between 0 and 1!"


def test_bad_booleans_and_colors():
    assert _error("on=yes ") == "Failed to parse 'on' state value!"
    assert _error("alert=maybe ") == "Failed to parse 'alert' state value!"
    assert _error("on=true color=ff0000 ") == "'color' must be a hex value starting with #!"
    assert _error("on=true color=#ff00 ") == "'color' must be a hex value starting with #!"


def test_first_occurrence_of_a_key_wins():
    assert parse_state_args("on=true bri=10 bri=20 ").payload == {"bri": 10}


def test_id_list_parsing():
    assert parse_id_list("1, 2,3", kind="light") == ["1", "2", "3"]
    with pytest.raises(UserInputError) as exc:
        parse_id_list("1,kitchen", kind="light")
    assert exc.value.message == "One or more light ids were invalid!"
    with pytest.raises(UserInputError):
        parse_id_list("1,,2", kind="group")


@pytest.mark.parametrize("raw", ["nan:0.5", "0.3:inf", "-inf:0.2", "NaN:NaN"])
def test_cie_rejects_non_finite_coordinates(raw):
    assert _error(f"on=true cie={raw} ") == "'cie' coordinates must be numbers!"


def test_cie_rejects_malformed_pairs():
    assert _error("on=true cie=0.1:0.2:0.3 ") == "'cie' must contain two values!"
    assert _error("on=true cie=: ") == "'cie' coordinates must be numbers!"
