"""Async HTTP client with retries, Retry-After handling and request spacing."""

import asyncio
import time
from typing import Any

import httpx
import structlog

from .. import __version__

log = structlog.stdlib.get_logger()


class HttpClientService:
    """Shared async client for IGDB and the Twitch token endpoint."""

    def __init__(
        self,
        timeout: float = 10.0,
        max_retries: int = 2,
        base_delay: float = 0.5,
        max_delay: float = 8.0,
        rate_limit_delay: float = 0.25,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the HTTP client service.

        Args:
            timeout: Request timeout in seconds
            max_retries: Maximum number of retry attempts
            base_delay: Base delay for exponential backoff in seconds
            max_delay: Maximum delay between retries in seconds
            rate_limit_delay: Minimum delay between requests in seconds
                (IGDB allows four requests per second)
            transport: Optional httpx transport, used to stub the network in tests
        """
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.rate_limit_delay = rate_limit_delay
        self._last_request_time: float = 0.0
        self._rate_lock = asyncio.Lock()

        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(timeout),
            headers={"User-Agent": f"gameshelf/{__version__}"},
            follow_redirects=True,
            limits=httpx.Limits(max_keepalive_connections=5, max_connections=10),
            transport=transport,
        )

        log.info(
            "HTTP client initialized",
            timeout=timeout,
            max_retries=max_retries,
            rate_limit_delay=rate_limit_delay,
        )

    async def post(
        self,
        url: str,
        content: str | None = None,
        data: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Make a POST request with retry logic and rate limiting.

        Args:
            url: The URL to request
            content: Raw request body (IGDB queries are plain text)
            data: Form fields, sent URL-encoded
            headers: Optional additional headers

        Returns:
            HTTP response object

        Raises:
            httpx.HTTPStatusError: On a 4xx response, or a 5xx after all retries
            httpx.RequestError: If the transport fails on every attempt
        """
        merged_headers = self._client.headers.copy()
        if headers:
            merged_headers.update(headers)

        attempts = self.max_retries + 1
        for attempt in range(attempts):
            await self._enforce_rate_limit()
            try:
                log.debug("IGDB POST", url=url, attempt=attempt + 1, max_attempts=attempts)
                response = await self._client.post(url, content=content, data=data, headers=merged_headers)
                response.raise_for_status()
                log.debug("IGDB POST succeeded", url=url, status_code=response.status_code, size=len(response.content))
                return response

            except (httpx.HTTPStatusError, httpx.RequestError) as e:
                log.warning(
                    "IGDB POST failed",
                    url=url,
                    attempt=attempt + 1,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                delay = self._retry_delay(e, attempt)
                if delay is None:
                    raise
                log.info("Retrying after delay", url=url, delay=delay)
                await asyncio.sleep(delay)

        raise RuntimeError("Unexpected end of retry loop")

    def _retry_delay(self, error: httpx.HTTPError, attempt: int) -> float | None:
        """Seconds to wait before the next attempt, or None to give up."""
        if attempt >= self.max_retries:
            log.error("Giving up after all retries", total_attempts=attempt + 1)
            return None

        if isinstance(error, httpx.HTTPStatusError):
            status_code = error.response.status_code
            if status_code == 429:
                retry_after = self._parse_retry_after(error.response)
                if retry_after is not None:
                    return retry_after
            elif 400 <= status_code < 500:
                log.error("Client error, not retrying", status_code=status_code)
                return None

        return min(self.base_delay * (2 ** attempt), self.max_delay)

    @staticmethod
    def _parse_retry_after(response: httpx.Response) -> float | None:
        retry_after = response.headers.get("retry-after")
        if not retry_after:
            return None
        try:
            return float(retry_after)
        except ValueError:
            return None

    async def _enforce_rate_limit(self) -> None:
        """Space requests at least ``rate_limit_delay`` apart, across concurrent callers."""
        async with self._rate_lock:
            wait = self._last_request_time + self.rate_limit_delay - time.monotonic()
            if wait > 0:
                log.debug("Rate limiting: sleeping", sleep_time=wait)
                await asyncio.sleep(wait)
            self._last_request_time = time.monotonic()

    async def close(self) -> None:
        await self._client.aclose()
        log.info("HTTP client closed")

    async def __aenter__(self) -> "HttpClientService":
        return self

    async def __aexit__(self, exc_type: type[Exception] | None, exc_val: Exception | None, exc_tb: Any) -> None:
        await self.close()
