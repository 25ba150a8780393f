"""
Conditional GET support (ETag / If-None-Match).

The negotiator is built from explicit configuration and is only invoked on
success paths: error payloads are never fingerprinted or tagged.
"""

import hashlib
import json
from dataclasses import dataclass, field
from typing import Any

from fastapi import Response, status
from fastapi.responses import JSONResponse

from app.config import settings


def _canonical_json(payload: Any) -> bytes:
    return json.dumps(
        payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    ).encode("utf-8")


def _strip_tag(tag: str) -> str:
    tag = tag.strip()
    if tag.startswith("W/"):
        tag = tag[2:]
    return tag.strip('"')


@dataclass(slots=True)
class NegotiatedResponse:
    status_code: int
    body: Any | None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def not_modified(self) -> bool:
        return self.status_code == status.HTTP_304_NOT_MODIFIED

    def to_response(self) -> Response:
        if self.not_modified:
            return Response(status_code=self.status_code, headers=self.headers)
        return JSONResponse(content=self.body, status_code=self.status_code, headers=self.headers)


class ConditionalCacheNegotiator:
    """Computes content fingerprints and answers conditional requests."""

    def __init__(self, enabled: bool = True, max_age: int | None = None):
        self.enabled = enabled
        self.max_age = max_age

    @staticmethod
    def fingerprint(payload: Any) -> str:
        """SHA-256 of the canonical JSON form, rendered as a strong ETag."""
        digest = hashlib.sha256(_canonical_json(payload)).hexdigest()
        return f'"{digest}"'

    @staticmethod
    def is_fresh(tag: str, client_tag: str | None) -> bool:
        """True when the client's If-None-Match value covers the current tag."""
        if not client_tag:
            return False
        if client_tag.strip() == "*":
            return True

        current = _strip_tag(tag)
        return any(_strip_tag(candidate) == current for candidate in client_tag.split(","))

    def _cache_headers(self, tag: str | None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if tag:
            headers["ETag"] = tag
        if self.max_age is not None:
            headers["Cache-Control"] = (
                f"public, max-age=0, s-maxage={self.max_age}, stale-while-revalidate"
            )
        return headers

    def negotiate(self, payload: Any, if_none_match: str | None = None) -> NegotiatedResponse:
        if not self.enabled:
            return NegotiatedResponse(
                status_code=status.HTTP_200_OK, body=payload, headers=self._cache_headers(None)
            )

        tag = self.fingerprint(payload)
        headers = self._cache_headers(tag)

        if self.is_fresh(tag, if_none_match):
            return NegotiatedResponse(
                status_code=status.HTTP_304_NOT_MODIFIED, body=None, headers=headers
            )

        return NegotiatedResponse(status_code=status.HTTP_200_OK, body=payload, headers=headers)


def get_list_negotiator() -> ConditionalCacheNegotiator:
    """FastAPI dependency for list/search endpoints."""
    return ConditionalCacheNegotiator(enabled=settings.ETAGS_ENABLED)


def get_analytics_negotiator() -> ConditionalCacheNegotiator:
    """FastAPI dependency for analytics endpoints (adds Cache-Control)."""
    return ConditionalCacheNegotiator(
        enabled=settings.ETAGS_ENABLED, max_age=settings.ANALYTICS_CACHE_MAX_AGE
    )
