"""Authentication for the MCP endpoint.

Handles:
- Credential checks (API key, bearer token, basic auth)
- Client identification for diagnostics
"""

import secrets
from typing import Mapping, Optional

from pydantic import BaseModel

from shared.config import AuthSettings
from shared.logging import get_logger
from shared.models import AuthMethod, AuthResult

logger = get_logger(__name__)

API_KEY_HEADER = "x-api-key"
AUTHORIZATION_HEADER = "authorization"
CLIENT_ID_HEADER = "x-client-id"
USER_AGENT_HEADER = "user-agent"

BEARER_PREFIX = "Bearer "
BASIC_PREFIX = "Basic "


class AuthConfig(BaseModel):
    """Authentication configuration."""
    api_key: Optional[str] = None
    bearer_token: Optional[str] = None
    basic_auth_value: Optional[str] = None
    allow_unauthenticated: bool = True

    @classmethod
    def from_settings(cls, settings: AuthSettings) -> "AuthConfig":
        return cls(
            api_key=settings.api_key,
            bearer_token=settings.bearer_token,
            basic_auth_value=settings.basic_auth_value,
            allow_unauthenticated=settings.allow_unauthenticated,
        )


def _first_header(headers: Mapping[str, str], name: str) -> Optional[str]:
    """Case-insensitive header lookup; the first occurrence wins."""
    getter = getattr(headers, "getlist", None)
    if getter is not None:
        values = getter(name)
        return values[0] if values else None

    for key, value in headers.items():
        if key.lower() == name:
            return value
    return None


def _matches(presented: str, expected: Optional[str]) -> bool:
    """Exact, constant-time comparison; an unconfigured secret never matches."""
    if expected is None:
        return False
    return secrets.compare_digest(presented.encode("utf-8"), expected.encode("utf-8"))


def extract_client_info(headers: Mapping[str, str]) -> str:
    """Identify the caller for logging; never affects the verdict."""
    client_id = _first_header(headers, CLIENT_ID_HEADER)
    if client_id is not None:
        return f"Client: {client_id}"

    user_agent = _first_header(headers, USER_AGENT_HEADER)
    if user_agent is not None:
        return f"User-Agent: {user_agent}"

    return "Unknown client"


class AuthGate:
    """
    Validates inbound credentials against configured secrets.

    Checks run in order and the first credential header found decides:
    X-API-Key, then Authorization with a Bearer or Basic scheme. A request
    with none of these is let through only when ``allow_unauthenticated``
    is set.
    """

    def __init__(self, config: AuthConfig) -> None:
        self.config = config

    def authenticate(self, headers: Mapping[str, str]) -> AuthResult:
        """
        Decide whether a request may be dispatched.

        Args:
            headers: Request headers (any mapping; lookup is case-insensitive)

        Returns:
            Authentication verdict with client information
        """
        client_info = extract_client_info(headers)

        api_key = _first_header(headers, API_KEY_HEADER)
        if api_key is not None:
            return self._verdict(
                _matches(api_key, self.config.api_key), AuthMethod.API_KEY, client_info
            )

        authorization = _first_header(headers, AUTHORIZATION_HEADER)
        if authorization is not None:
            if authorization.startswith(BEARER_PREFIX):
                token = authorization[len(BEARER_PREFIX):]
                return self._verdict(
                    _matches(token, self.config.bearer_token), AuthMethod.BEARER, client_info
                )
            if authorization.startswith(BASIC_PREFIX):
                return self._verdict(
                    _matches(authorization, self.config.basic_auth_value),
                    AuthMethod.BASIC,
                    client_info,
                )

        if self.config.allow_unauthenticated:
            logger.debug("No credentials presented, allowing request", client=client_info)
            return AuthResult.success(client_info, AuthMethod.NONE)

        logger.warning("No credentials presented", client=client_info)
        return AuthResult.failure("Authentication required", client_info, AuthMethod.NONE)

    def _verdict(self, matched: bool, method: AuthMethod, client_info: str) -> AuthResult:
        if matched:
            logger.debug("Client authenticated", client=client_info, auth_method=method.value)
            return AuthResult.success(client_info, method)

        logger.warning("Invalid credentials", client=client_info, auth_method=method.value)
        return AuthResult.failure("Invalid credentials", client_info, method)
