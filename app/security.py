"""HTTP Basic handling for the tracker.

The Basic username names the acting time tracker user. A deployment may
additionally require a shared password through `BasicAuthMiddleware`.
"""

from __future__ import annotations

import base64
import binascii
import logging
import secrets
from dataclasses import dataclass

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

REALM = "WorklogBridge"


@dataclass(frozen=True)
class BasicAuthCredentials:
    username: str
    password: str


def parse_basic_auth(header_value: str) -> BasicAuthCredentials | None:
    """Credentials from an `Authorization: Basic ...` header, None if malformed."""
    scheme, _, encoded = (header_value or "").partition(" ")
    if scheme.lower() != "basic" or not encoded:
        return None

    try:
        decoded = base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None

    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return BasicAuthCredentials(username=username.strip(), password=password)


def request_username(request: Request) -> str | None:
    creds = parse_basic_auth(request.headers.get("Authorization", ""))
    if creds is None or not creds.username:
        return None
    return creds.username


def unauthorized_headers(realm: str = REALM) -> dict[str, str]:
    return {"WWW-Authenticate": f'Basic realm="{realm}", charset="UTF-8"'}


class BasicAuthMiddleware(BaseHTTPMiddleware):
    """Reject requests without a username or with a wrong shared password."""

    def __init__(
        self,
        app,
        *,
        password: str,
        allow_paths: set[str] | None = None,
        realm: str = REALM,
    ):
        super().__init__(app)
        self.password = password
        self.allow_paths = allow_paths or {"/health"}
        self.realm = realm

    async def dispatch(self, request: Request, call_next):
        if request.url.path in self.allow_paths:
            return await call_next(request)

        creds = parse_basic_auth(request.headers.get("Authorization", ""))
        if creds is not None and creds.username and secrets.compare_digest(creds.password, self.password):
            return await call_next(request)

        logger.info(f"Rejected unauthenticated request to {request.url.path}")
        return Response("Unauthorized", status_code=401, headers=unauthorized_headers(self.realm))
