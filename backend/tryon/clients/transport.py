"""HTTP transport for the remote judge (xAI chat completions).

Handles:
- Session management with httpx.Client
- Backoff with jitter for retryable statuses
- Retry-After header support
- Minimum interval between requests
"""

from __future__ import annotations

import random
import threading
import time
from typing import Any

import httpx

from tryon.core.logging import log

RETRYABLE_STATUSES = {429, 500, 502, 503, 504}


class JudgeTransport:
    """HTTP transport with bounded retries and client-side rate limiting.

    The caller already enforces a hard deadline and falls back on failure,
    so retries default to a single attempt.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.x.ai/v1",
        timeout_connect_s: float = 5.0,
        timeout_read_s: float = 20.0,
        max_retries: int = 1,
        rps: float = 2.0,
    ):
        """
        Initialize transport layer.

        Args:
            api_key: xAI API key
            base_url: API base URL
            timeout_connect_s: Connection timeout in seconds
            timeout_read_s: Read timeout in seconds
            max_retries: Total attempts for retryable errors (>= 1)
            rps: Requests per second rate limit
        """
        if not api_key:
            raise ValueError("API key cannot be empty")

        self.base_url = base_url.rstrip("/")
        self.max_retries = max(1, max_retries)
        self.rps = rps

        self.client = httpx.Client(
            base_url=self.base_url,
            timeout=httpx.Timeout(timeout_read_s, connect=timeout_connect_s),
            headers={
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
                "User-Agent": "tryon-prompt-core/1.0",
            },
        )

        self._last_request_time = 0.0
        self._rate_lock = threading.Lock()

    def _rate_limit(self) -> None:
        with self._rate_lock:
            min_interval = 1.0 / self.rps
            elapsed = time.monotonic() - self._last_request_time
            if elapsed < min_interval:
                time.sleep(min_interval - elapsed)
            self._last_request_time = time.monotonic()

    def _retry_sleep(self, attempt: int, retry_after: float | None = None) -> None:
        """Sleep before the next attempt (server Retry-After wins over backoff)."""
        if retry_after is not None:
            sleep_time = retry_after
        else:
            sleep_time = 0.5 * (2**attempt) + random.uniform(0, 0.5)

        log.debug(f"JUDGE_TRANSPORT retry_sleep={sleep_time:.2f}s attempt={attempt + 1}")
        time.sleep(sleep_time)

    def post_json(
        self, path: str, payload: dict[str, Any], timeout_s: float | None = None
    ) -> dict[str, Any]:
        """
        POST JSON to an API endpoint.

        Args:
            path: API path (e.g., "chat/completions")
            payload: JSON payload dict
            timeout_s: Optional per-request timeout overriding the session default

        Returns:
            Response JSON dict

        Raises:
            RuntimeError: On non-retryable errors or when attempts run out
        """
        url = f"{self.base_url}/{path.lstrip('/')}"

        for attempt in range(self.max_retries):
            last_attempt = attempt == self.max_retries - 1
            try:
                self._rate_limit()
                log.debug(f"JUDGE_TRANSPORT POST {path} attempt={attempt + 1}/{self.max_retries}")
                if timeout_s is None:
                    response = self.client.post(url, json=payload)
                else:
                    response = self.client.post(url, json=payload, timeout=timeout_s)

                if response.status_code in RETRYABLE_STATUSES and not last_attempt:
                    retry_after = None
                    if "Retry-After" in response.headers:
                        try:
                            retry_after = float(response.headers["Retry-After"])
                        except ValueError:
                            retry_after = None
                    log.warning(f"JUDGE_TRANSPORT retryable status={response.status_code} path={path}")
                    self._retry_sleep(attempt, retry_after)
                    continue

                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                body_preview = e.response.text[:500] if e.response.text else "(no body)"
                raise RuntimeError(f"HTTP {e.response.status_code} on {path}: {body_preview}") from e

            except (httpx.TimeoutException, httpx.ConnectError) as e:
                log.warning(f"JUDGE_TRANSPORT network_error path={path}: {e}")
                if last_attempt:
                    raise RuntimeError(f"Max retries exceeded for {path}: {e}") from e
                self._retry_sleep(attempt)

        raise RuntimeError(f"Unexpected retry loop exit for {path}")

    def close(self) -> None:
        """Close the HTTP client session."""
        self.client.close()

    def __enter__(self) -> JudgeTransport:
        return self

    def __exit__(self, *args) -> None:
        self.close()
