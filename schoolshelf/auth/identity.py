"""Identity token verification using HS256 signing.

The external identity provider signs short-lived tokens carrying the identity
reference (`sub`) and the verified email. This module only verifies them;
`issue_identity_token` exists for local development and tests.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from schoolshelf.core.exceptions import AuthenticationError, TokenExpiredError


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    padding = "=" * (-len(data) % 4)
    return base64.urlsafe_b64decode(f"{data}{padding}".encode("ascii"))


def _sign(message: str, secret: str) -> str:
    digest = hmac.new(secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256).digest()
    return _b64url_encode(digest)


def _json_dumps(payload: dict[str, Any]) -> str:
    return json.dumps(payload, separators=(",", ":"), sort_keys=True)


@dataclass(frozen=True)
class VerifiedIdentity:
    uid: str
    email: str | None
    claims: dict[str, Any]


def encode_token(payload: dict[str, Any], secret: str, ttl: timedelta) -> str:
    """Encode a signed token using HS256."""
    if not secret:
        raise AuthenticationError("Identity token secret must be configured.")

    now = datetime.now(timezone.utc)
    body = dict(payload)
    body.setdefault("iat", int(now.timestamp()))
    body.setdefault("exp", int((now + ttl).timestamp()))
    body.setdefault("jti", str(uuid.uuid4()))
    header = {"alg": "HS256", "typ": "JWT"}

    header_segment = _b64url_encode(_json_dumps(header).encode("utf-8"))
    payload_segment = _b64url_encode(_json_dumps(body).encode("utf-8"))
    signing_input = f"{header_segment}.{payload_segment}"
    signature = _sign(signing_input, secret=secret)
    return f"{signing_input}.{signature}"


def decode_token(token: str, secret: str, verify_exp: bool = True) -> dict[str, Any]:
    """Decode and validate a signed token."""
    if not secret:
        raise AuthenticationError("Identity token secret must be configured.")
    try:
        header_segment, payload_segment, signature_segment = token.split(".")
    except ValueError as exc:
        raise AuthenticationError("Invalid token format.") from exc

    signing_input = f"{header_segment}.{payload_segment}"
    expected_signature = _sign(signing_input, secret=secret)
    if not hmac.compare_digest(expected_signature, signature_segment):
        raise AuthenticationError("Invalid token signature.")

    try:
        payload = json.loads(_b64url_decode(payload_segment).decode("utf-8"))
    except (json.JSONDecodeError, ValueError) as exc:
        raise AuthenticationError("Invalid token payload.") from exc

    if verify_exp:
        exp = payload.get("exp")
        if exp is None:
            raise AuthenticationError("Token is missing exp claim.")
        if int(exp) < int(datetime.now(timezone.utc).timestamp()):
            raise TokenExpiredError("Token has expired.")
    return payload


def issue_identity_token(
    uid: str,
    email: str | None,
    secret: str,
    issuer: str,
    ttl_minutes: int = 60,
) -> str:
    payload = {"sub": uid, "email": email, "iss": issuer}
    return encode_token(payload=payload, secret=secret, ttl=timedelta(minutes=ttl_minutes))


class IdentityVerifier:
    """Verifies bearer tokens issued by the identity provider."""

    def __init__(self, secret: str, issuer: str) -> None:
        self.secret = secret
        self.issuer = issuer

    def verify(self, token: str) -> VerifiedIdentity:
        claims = decode_token(token, secret=self.secret)
        if claims.get("iss") != self.issuer:
            raise AuthenticationError("Token issuer is not trusted.")
        uid = claims.get("sub")
        if not uid:
            raise AuthenticationError("Token is missing the identity reference.")
        email = claims.get("email")
        return VerifiedIdentity(uid=str(uid), email=str(email).lower() if email else None, claims=claims)


def extract_bearer_token(authorization: str | None) -> str:
    if authorization is None or not authorization.strip():
        raise AuthenticationError("Authorization header is required.")
    parts = authorization.strip().split(" ", 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        raise AuthenticationError("Authorization header must use Bearer token.")
    return parts[1].strip()
