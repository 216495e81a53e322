from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass


TOKEN_URI = "/oauth2/token"

_REALM_RE = re.compile(r'realm="(.*?)"')
_NONCE_RE = re.compile(r'nonce="(.*?)"')


@dataclass(frozen=True)
class DigestChallenge:
    realm: str
    nonce: str


def _md5(value: str) -> str:
    return hashlib.md5(value.encode("utf-8")).hexdigest()


def compute_digest_response(
    client_id: str,
    client_secret: str,
    realm: str,
    verb: str,
    uri: str,
    nonce: str,
) -> str:
    """
    RFC 2069 style digest (MD5, no qop/cnonce) as required by the Hue cloud token endpoint.
    """
    ha1 = _md5(f"{client_id}:{realm}:{client_secret}")
    ha2 = _md5(f"{verb}:{uri}")
    return _md5(f"{ha1}:{nonce}:{ha2}")


def build_digest_header(
    client_id: str,
    client_secret: str,
    realm: str,
    verb: str,
    uri: str,
    nonce: str,
) -> str:
    response = compute_digest_response(client_id, client_secret, realm, verb, uri, nonce)
    return (
        f'Digest username="{client_id}", '
        f'realm="{realm}", nonce="{nonce}", '
        f'uri="{uri}", response="{response}"'
    )


def _first_group(pattern: re.Pattern[str], value: str) -> str:
    match = pattern.search(value)
    return match.group(1) if match else ""


def parse_challenge(header: str) -> DigestChallenge:
    # Missing parameters yield empty strings; the server rejects the retry in that case.
    return DigestChallenge(realm=_first_group(_REALM_RE, header), nonce=_first_group(_NONCE_RE, header))
