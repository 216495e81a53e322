from __future__ import annotations

from typing import Any


class HueChatError(Exception):
    code = "internal_error"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class UserInputError(HueChatError):
    """Malformed command arguments; reported together with the command usage."""

    code = "invalid_input"

    def __init__(self, message: str, *, scope: str | None = None, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details=details)
        self.scope = scope


class NotLoggedInError(HueChatError):
    code = "not_logged_in"


class AuthExpiredError(HueChatError):
    code = "token_expired"

    def __init__(self, message: str = "Token Expired!", *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details=details)


class UpstreamProtocolError(HueChatError):
    code = "bad_response"

    def __init__(self, message: str = "Failed to parse response!", *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details=details)


class HueApiError(UpstreamProtocolError):
    """The Hue API answered 200 but reported an error object in the body."""

    code = "api_error"


class OAuthFlowError(HueChatError):
    code = "oauth_failed"

