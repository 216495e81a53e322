import hashlib

from hue_chat.digest import build_digest_header, compute_digest_response, parse_challenge


def _md5(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def test_digest_response_matches_known_vector():
    expected = _md5(_md5("abc:x:y") + ":n:" + _md5("POST:/oauth2/token"))
    assert compute_digest_response("abc", "y", "x", "POST", "/oauth2/token", "n") == expected


def test_digest_response_is_deterministic_lowercase_hex():
    first = compute_digest_response("id", "secret", "oauth2_client@api.meethue.com", "POST", "/oauth2/token", "abc")
    second = compute_digest_response("id", "secret", "oauth2_client@api.meethue.com", "POST", "/oauth2/token", "abc")
    assert first == second
    assert len(first) == 32
    assert first == first.lower()


def test_digest_response_accepts_empty_inputs():
    assert len(compute_digest_response("", "", "", "", "", "")) == 32


def test_digest_header_carries_all_fields():
    header = build_digest_header("abc", "y", "x", "POST", "/oauth2/token", "n")
    response = compute_digest_response("abc", "y", "x", "POST", "/oauth2/token", "n")
    assert header == (
        f'Digest username="abc", realm="x", nonce="n", uri="/oauth2/token", response="{response}"'
    )


def test_parse_challenge_extracts_realm_and_nonce():
    challenge = parse_challenge('Digest realm="oauth2_client@api.meethue.com", nonce="7b6e45de18ac4ee452ee0a0de91dbb10"')
    assert challenge.realm == "oauth2_client@api.meethue.com"
    assert challenge.nonce == "7b6e45de18ac4ee452ee0a0de91dbb10"


def test_parse_challenge_defaults_missing_values_to_empty():
    challenge = parse_challenge('Digest realm="only-realm"')
    assert challenge.realm == "only-realm"
    assert challenge.nonce == ""
