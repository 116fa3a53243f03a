"""HTTP client for the SchoolShelf API.

Token handling is explicit: a `TokenCache` is injected (or created) and
refreshed through a `token_source` callable once the cached token is within
the freshness buffer of its expiry. Failures are raised as `ApiRequestError`
carrying an `ErrorCode`; nothing is retried.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import requests

from schoolshelf.core.config import Config, get_config
from schoolshelf.core.enums import ErrorCode

logger = logging.getLogger(__name__)

TokenSource = Callable[[], tuple[str, float]]

_STATUS_CODES = {
    400: ErrorCode.VALIDATION,
    401: ErrorCode.AUTH_INVALID,
    403: ErrorCode.FORBIDDEN,
    404: ErrorCode.NOT_FOUND,
    409: ErrorCode.CONFLICT,
    422: ErrorCode.VALIDATION,
    429: ErrorCode.RATE_LIMIT,
}

_DEFAULT_MESSAGES = {
    ErrorCode.AUTH_INVALID: "Your session has ended. Please sign in again.",
    ErrorCode.AUTH_EXPIRED: "Your session has expired. Please sign in again.",
    ErrorCode.FORBIDDEN: "You are not allowed to do this.",
    ErrorCode.NOT_FOUND: "The requested resource was not found.",
    ErrorCode.VALIDATION: "Some of the submitted information is invalid.",
    ErrorCode.CONFLICT: "The request conflicts with the current state.",
    ErrorCode.RATE_LIMIT: "Too many requests. Please wait a moment.",
    ErrorCode.SERVER_ERROR: "Server error. Please try again later.",
    ErrorCode.TIMEOUT: "The request timed out. Please try again.",
    ErrorCode.NETWORK_ERROR: "Check your internet connection.",
}

_SIGN_OUT_CODES = frozenset({ErrorCode.AUTH_INVALID, ErrorCode.AUTH_EXPIRED})
_KNOWN_CODES = frozenset(code.value for code in ErrorCode)


class ApiRequestError(Exception):
    def __init__(self, message: str, code: ErrorCode, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code


@dataclass
class TokenCache:
    token: str | None = None
    expires_at: float = 0.0

    def is_fresh(self, buffer_seconds: float, now: float | None = None) -> bool:
        current = time.time() if now is None else now
        return self.token is not None and self.expires_at - buffer_seconds > current

    def store(self, token: str, expires_at: float) -> None:
        self.token = token
        self.expires_at = expires_at

    def clear(self) -> None:
        self.token = None
        self.expires_at = 0.0


def error_from_response(response: requests.Response) -> ApiRequestError:
    """Map a non-2xx response onto the error taxonomy."""
    body: dict[str, Any] = {}
    if "application/json" in response.headers.get("content-type", ""):
        try:
            parsed = response.json()
        except ValueError:
            parsed = None
        if isinstance(parsed, dict):
            body = parsed

    code = _STATUS_CODES.get(response.status_code)
    if code is None:
        code = ErrorCode.SERVER_ERROR if response.status_code >= 500 else ErrorCode.VALIDATION
    server_code = body.get("error_code")
    if server_code in _KNOWN_CODES:
        code = ErrorCode(server_code)

    message = body.get("detail") if isinstance(body.get("detail"), str) else None
    return ApiRequestError(message or _DEFAULT_MESSAGES[code], code, response.status_code)


class SchoolShelfClient:
    """Thin wrapper around `requests.Session` for the REST API."""

    def __init__(
        self,
        base_url: str,
        token_source: TokenSource | None = None,
        token_cache: TokenCache | None = None,
        on_sign_out: Callable[[ApiRequestError], None] | None = None,
        timeout: float = 30.0,
        upload_timeout: float = 60.0,
        freshness_buffer: float = 300.0,
        api_prefix: str = "/api",
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_prefix = api_prefix.rstrip("/")
        self.token_source = token_source
        self.token_cache = token_cache or TokenCache()
        self.on_sign_out = on_sign_out
        self.timeout = timeout
        self.upload_timeout = upload_timeout
        self.freshness_buffer = freshness_buffer
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config: Config | None = None, **kwargs: Any) -> "SchoolShelfClient":
        cfg = config or get_config()
        kwargs.setdefault("timeout", cfg.CLIENT_TIMEOUT_SECONDS)
        kwargs.setdefault("upload_timeout", cfg.UPLOAD_TIMEOUT_SECONDS)
        kwargs.setdefault("freshness_buffer", cfg.TOKEN_CACHE_BUFFER_SECONDS)
        kwargs.setdefault("api_prefix", cfg.API_PREFIX)
        return cls(cfg.API_BASE_URL, **kwargs)

    def _token(self) -> str | None:
        if self.token_cache.is_fresh(self.freshness_buffer):
            return self.token_cache.token
        if self.token_source is None:
            return self.token_cache.token
        token, expires_at = self.token_source()
        self.token_cache.store(token, expires_at)
        return token

    def _headers(self, school_id: str | None) -> dict[str, str]:
        headers: dict[str, str] = {}
        token = self._token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if school_id:
            headers["X-School-Id"] = school_id
        return headers

    def _fail(self, error: ApiRequestError) -> ApiRequestError:
        if error.code in _SIGN_OUT_CODES:
            self.token_cache.clear()
            if self.on_sign_out is not None:
                self.on_sign_out(error)
        logger.warning(
            "client.request.failed",
            extra={"event": "client.request.failed", "error_code": error.code.value},
        )
        return error

    def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: dict[str, Any] | None = None,
        files: dict[str, Any] | None = None,
        school_id: str | None = None,
        timeout: float | None = None,
    ) -> Any:
        url = f"{self.base_url}{self.api_prefix}{path}"
        try:
            response = self.session.request(
                method,
                url,
                json=json,
                params=params,
                files=files,
                headers=self._headers(school_id),
                timeout=timeout or self.timeout,
            )
        except requests.exceptions.Timeout as exc:
            raise self._fail(ApiRequestError(_DEFAULT_MESSAGES[ErrorCode.TIMEOUT], ErrorCode.TIMEOUT)) from exc
        except requests.exceptions.RequestException as exc:
            raise self._fail(
                ApiRequestError(_DEFAULT_MESSAGES[ErrorCode.NETWORK_ERROR], ErrorCode.NETWORK_ERROR)
            ) from exc

        if not response.ok:
            raise self._fail(error_from_response(response))
        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def get(self, path: str, **kwargs: Any) -> Any:
        return self.request("GET", path, **kwargs)

    def post(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return self.request("POST", path, json=json, **kwargs)

    def put(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return self.request("PUT", path, json=json, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Any:
        return self.request("DELETE", path, **kwargs)

    def upload(
        self,
        filename: str,
        content: bytes,
        content_type: str,
        path: str = "/upload",
        school_id: str | None = None,
    ) -> dict[str, str]:
        return self.request(
            "POST",
            path,
            files={"file": (filename, content, content_type)},
            school_id=school_id,
            timeout=self.upload_timeout,
        )

    def get_profile(self) -> dict[str, Any]:
        return self.get("/users/me")

    def register(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self.post("/users/register", json=payload)

    def search_books(self, school_id: str | None = None, **params: Any) -> dict[str, Any]:
        return self.get("/books/search", params=params, school_id=school_id)

    def borrow(self, book_id: str) -> dict[str, Any]:
        return self.post(f"/loans/{book_id}")
