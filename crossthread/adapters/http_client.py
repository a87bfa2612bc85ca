"""Shared HTTP transport utilities for text adapters.

This module provides a thin wrapper around ``requests.Session`` so adapter
implementations share one timeout policy and one place where transport
failures become typed adapter errors.

Dependencies:
    - ``requests`` for network I/O.
    - ``crossthread.adapters.api_errors.ApiTimeoutError`` for typed transport
      failures.

Call context:
    - Constructed by ``crossthread/adapters/page_text_rest.py``.
    - Called only on worker threads; the UI thread never blocks on it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import requests
from requests import exceptions as req_exc

from crossthread.adapters.api_errors import ApiTimeoutError


@dataclass
class HttpConfig:
    """Timeout and retry configuration for adapter HTTP calls.

    Attributes:
        request_timeout_s: Default timeout in seconds for GET calls.
        retries: Number of retry attempts after the initial request.
    """
    request_timeout_s: float = 10
    retries: int = 0


class TextSession:
    """Requests wrapper for plain text downloads.

    This class is transport-only. Callers decide how to map non-2xx responses
    into adapter errors.
    """

    def __init__(self, cfg: Optional[HttpConfig] = None) -> None:
        """Create the session.

        Args:
            cfg: Shared timeout and retry settings.

        Side Effects:
            Creates a persistent ``requests.Session`` object.
        """
        self.session = requests.Session()
        self.cfg = cfg or HttpConfig()

    def _headers(self, accept: str) -> Dict[str, str]:
        return {"Accept": accept}

    def get(
        self,
        url: str,
        *,
        accept: str = "text/html, text/plain, */*",
        timeout: Optional[float] = None,
    ) -> requests.Response:
        """Send a GET request, retrying on timeout/connectivity failures.

        Args:
            url: Absolute URL.
            accept: ``Accept`` header value.
            timeout: Optional timeout override in seconds.

        Returns:
            ``requests.Response`` from the first attempt that reached the server.

        Raises:
            ApiTimeoutError: If all attempts fail with timeout/connection errors.
        """
        context = f"GET {url}"
        last_err: ApiTimeoutError | None = None
        attempts = max(0, int(self.cfg.retries)) + 1
        for _ in range(attempts):
            try:
                return self.session.get(
                    url,
                    headers=self._headers(accept),
                    timeout=timeout or self.cfg.request_timeout_s,
                )
            except (req_exc.Timeout, req_exc.ConnectionError) as exc:
                last_err = ApiTimeoutError(f"Timeout contacting {url}: {exc}", context=context)
        raise last_err

    def close(self) -> None:
        self.session.close()


__all__ = ["HttpConfig", "TextSession"]
