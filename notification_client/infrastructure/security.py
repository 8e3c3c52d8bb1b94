"""Helpers for handling bearer credentials supplied by the auth provider."""

from __future__ import annotations

import logging
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

CredentialProvider = Callable[[], Awaitable[str]]

_BEARER_PREFIX = "Bearer "


class CredentialError(RuntimeError):
    """Raised when the credential provider cannot supply a token."""


def strip_bearer_prefix(token: str) -> str:
    """Return the raw token without a leading ``Bearer `` marker."""

    token = token.strip()
    if token[: len(_BEARER_PREFIX)].lower() == _BEARER_PREFIX.lower():
        return token[len(_BEARER_PREFIX) :].strip()
    return token


def as_authorization_header(token: str) -> str:
    raw = strip_bearer_prefix(token)
    return f"{_BEARER_PREFIX}{raw}" if raw else ""


async def fetch_token(provider: CredentialProvider) -> str:
    """Await ``provider`` and normalise failures into :class:`CredentialError`."""

    try:
        token = await provider()
    except Exception as exc:
        raise CredentialError("Could not obtain a bearer token") from exc
    if not token:
        logger.warning("Credential provider returned an empty token")
    return token or ""


__all__ = [
    "CredentialError",
    "CredentialProvider",
    "as_authorization_header",
    "fetch_token",
    "strip_bearer_prefix",
]
