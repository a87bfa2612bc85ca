from __future__ import annotations

import logging
from typing import Optional

import requests

from crossthread.domain.ports import TextSourcePort

from .api_errors import (
    ApiClientError,
    ApiError,
    ApiServerError,
    build_error_message,
    parse_error_payload,
)
from .http_client import HttpConfig, TextSession

DEFAULT_TARGET_URL = "http://microsoft.com"


class PageTextRest(TextSourcePort):
    """Downloads one page and returns its body verbatim."""

    def __init__(
        self,
        url: str = DEFAULT_TARGET_URL,
        *,
        request_timeout_s: float = 10,
        retries: int = 0,
        session: Optional[TextSession] = None,
    ) -> None:
        if not url:
            raise ValueError("PageTextRest requires a target URL")
        self.url = url
        self.session = session or TextSession(
            HttpConfig(request_timeout_s=request_timeout_s, retries=retries)
        )
        self._log = logging.getLogger(__name__)

    def fetch(self) -> str:
        ctx = f"GET {self.url}"
        self._log.debug("%s: sending", ctx)
        resp = self.session.get(self.url)
        self._ensure_ok(resp, ctx)
        self._log.debug("%s: %s chars", ctx, len(resp.text))
        return resp.text

    @staticmethod
    def _ensure_ok(resp: requests.Response, ctx: str) -> None:
        if 200 <= resp.status_code < 300:
            return
        status = resp.status_code
        payload = parse_error_payload(resp)
        message = build_error_message(ctx, status, payload)
        if 400 <= status < 500:
            raise ApiClientError(message, status=status, payload=payload, context=ctx)
        if 500 <= status < 600:
            raise ApiServerError(message, status=status, payload=payload, context=ctx)
        raise ApiError(message, status=status, payload=payload, context=ctx)


__all__ = ["DEFAULT_TARGET_URL", "PageTextRest"]
