"""
HTTP Client
Session-backed GET with rotating user agents and bounded retry/backoff
"""
import logging
import random
import time
from dataclasses import dataclass, field
from typing import Dict, Optional

import requests

from .errors import FetchError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.9",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Cache-Control": "max-age=0",
}


@dataclass
class FetchRequest:
    """One outbound GET; ``attempt`` is advanced only by the retry loop."""
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    attempt: int = 0


class HttpClient:
    """Shared HTTP client for all upstream fetches.

    A single ``requests.Session`` keeps the cookie jar for the lifetime of the
    client so session cookies issued by the site are replayed on later calls.
    """

    def __init__(self, settings, session: Optional[requests.Session] = None):
        self.settings = settings
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)

    def _timeout(self) -> float:
        try:
            return max(1.0, float(self.settings.get("request_timeout_seconds", 30.0) or 30.0))
        except (TypeError, ValueError):
            return 30.0

    def _max_retries(self) -> int:
        try:
            return max(0, int(self.settings.get("request_max_retries", 3)))
        except (TypeError, ValueError):
            return 3

    def _retry_delay(self) -> float:
        try:
            return max(0.0, float(self.settings.get("request_retry_delay_seconds", 1.0) or 0.0))
        except (TypeError, ValueError):
            return 1.0

    def random_user_agent(self) -> str:
        agents = self.settings.get("user_agents") or []
        if not agents:
            return requests.utils.default_user_agent()
        return random.choice(agents)

    def _build_headers(self, request: FetchRequest) -> Dict[str, str]:
        headers = {"User-Agent": self.random_user_agent()}
        headers.update(request.headers)
        return headers

    def request_with_retry(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        stream: bool = False,
    ) -> requests.Response:
        """GET with bounded retry/backoff for transient network/server failures.

        Network errors, timeouts and 5xx responses are retried up to
        ``request_max_retries`` times, sleeping ``attempt * delay`` between
        attempts. Any other response is returned immediately.
        """
        request = FetchRequest(url=url, headers=dict(headers or {}))
        max_retries = self._max_retries()
        delay = self._retry_delay()
        timeout = self._timeout()
        last_error: Optional[Exception] = None
        last_status: Optional[int] = None

        while True:
            try:
                # Identity is picked per attempt, caller headers always win.
                response = self.session.get(
                    request.url,
                    headers=self._build_headers(request),
                    timeout=timeout,
                    allow_redirects=True,
                    stream=stream,
                )
                if response.status_code < 500:
                    return response
                last_status = response.status_code
                last_error = None
                response.close()
                logger.warning(
                    "Upstream %s returned %s (attempt %d)", request.url, response.status_code, request.attempt + 1
                )
            except requests.RequestException as exc:
                last_error = exc
                last_status = None
                logger.warning("Request to %s failed (attempt %d): %s", request.url, request.attempt + 1, exc)

            if request.attempt >= max_retries:
                break
            request.attempt += 1
            wait = request.attempt * delay
            if wait > 0:
                time.sleep(wait)

        error = FetchError(
            request.url,
            attempts=request.attempt + 1,
            status_code=last_status,
            reason=str(last_error) if last_error else "",
        )
        if last_error is not None:
            raise error from last_error
        raise error

    def fetch_html(self, url: str, headers: Optional[Dict[str, str]] = None) -> str:
        """Fetch a page body as text.

        Raises:
            FetchError: retries exhausted, or a non-retryable error status.
        """
        response = self.request_with_retry(url, headers=headers)
        if response.status_code >= 400:
            logger.warning("Upstream %s returned %s", url, response.status_code)
            raise FetchError(url, attempts=1, status_code=response.status_code)
        return response.text

    def open_stream(self, url: str, headers: Optional[Dict[str, str]] = None) -> requests.Response:
        """Open a streaming GET; the caller must close the response."""
        response = self.request_with_retry(url, headers=headers, stream=True)
        if response.status_code >= 400:
            status = response.status_code
            response.close()
            raise FetchError(url, attempts=1, status_code=status)
        return response
