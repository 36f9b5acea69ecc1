"""
Shared JSON-over-HTTP transport with bounded exponential retry.

Clients get one retry budget per logical call. Network errors, timeouts and
non-2xx statuses other than 404 are retried; 404 surfaces immediately.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)


class HttpStatusError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class TransientHttpError(HttpStatusError):
    """Retryable failure: network error, timeout or non-2xx response."""


class HttpNotFound(HttpStatusError):
    """404 from the remote side. Never retried."""


class JsonHttpClient:
    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 15.0,
        attempts: int = 3,
        base_delay: float = 0.3,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.attempts = max(1, attempts)
        self.base_delay = max(0.0, base_delay)

    def _retrying(self) -> Retrying:
        return Retrying(
            stop=stop_after_attempt(self.attempts),
            wait=wait_exponential(multiplier=self.base_delay, min=0, max=10),
            retry=retry_if_exception_type(TransientHttpError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

    def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TransientHttpError(f"{method} {url} failed: {e}") from e

        if response.status_code == 404:
            raise HttpNotFound(f"{method} {url} returned 404", 404, response.text)
        if not 200 <= response.status_code < 300:
            raise TransientHttpError(
                f"{method} {url} returned {response.status_code}: {response.text[:500]}",
                response.status_code,
                response.text,
            )
        return response

    def request(self, method: str, url: str, **kwargs) -> requests.Response:
        return self._retrying()(self._send, method, url, **kwargs)

    def get_json(self, url: str, params: Optional[dict] = None, headers: Optional[dict] = None) -> Any:
        response = self.request("GET", url, params=params, headers=headers)
        try:
            return response.json()
        except ValueError as e:
            raise TransientHttpError(f"GET {url} returned invalid JSON: {e}") from e

    def get_text(self, url: str, params: Optional[dict] = None, headers: Optional[dict] = None) -> str:
        return self.request("GET", url, params=params, headers=headers).text

    def post_json(self, url: str, payload: Any, headers: Optional[dict] = None) -> requests.Response:
        return self.request("POST", url, json=payload, headers=headers)
