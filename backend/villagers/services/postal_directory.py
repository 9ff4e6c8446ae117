"""
The Villagers Backend — Postal Directory Client
=================================================

What:  HTTP client for the public India Post pincode directory.
How:   GET {postal_api_base_url}/{code} with httpx, bounded by a timeout and
       wrapped in tenacity retries for transient failures.
Who:   Called by PincodeService on a cache miss.

Wire format (directory response):
    [
        {
            "Message": "Number of pincode(s) found:21",
            "Status": "Success",          # or "Error" / "404"
            "PostOffice": [               # null when nothing matched
                {"Name": "Bangalore G.P.O.", "District": "Bangalore",
                 "State": "Karnataka", ...},
                ...
            ]
        }
    ]

Resilience Strategy:
    1. Per-request timeout (settings.postal_api_timeout)
    2. Tenacity retry with exponential backoff + jitter, only for transport
       errors and 5xx responses; a 4xx or a parsed "Error" status is final
    3. Exhausted retries and malformed bodies become DirectoryServiceError
"""

import logging
import time
from typing import Any, List, Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from villagers.config import settings
from villagers.exceptions import DirectoryServiceError

logger = logging.getLogger(__name__)


class _TransientDirectoryError(Exception):
    """A failure worth retrying: connection problem, timeout or 5xx."""


class PostalDirectoryClient:
    """
    Thin async client around the pincode directory.

    Args:
        base_url:  Override settings.postal_api_base_url.
        timeout:   Override settings.postal_api_timeout (seconds).
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = (base_url or settings.postal_api_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.postal_api_timeout
        self._transport = transport

    async def lookup(self, code: str) -> List[Any]:
        """
        Fetch the raw directory payload for a pincode.

        Returns:
            The decoded JSON list. Interpreting `Status` / `PostOffice` is the
            caller's job.

        Raises:
            DirectoryServiceError: retries exhausted, 4xx, or a body that is
                not a JSON list.
        """
        try:
            payload = await self._get_with_retry(code)
        except _TransientDirectoryError as e:
            logger.error("Postal directory unavailable for %s after %d attempts: %s",
                         code, settings.retry_max_attempts, str(e))
            raise DirectoryServiceError(
                context={"code": code, "attempts": settings.retry_max_attempts, "error": str(e)},
            )

        if not isinstance(payload, list):
            logger.error("Postal directory returned unexpected body type %s for %s",
                         type(payload).__name__, code)
            raise DirectoryServiceError(
                message="Postal directory returned an unexpected response",
                context={"code": code, "body_type": type(payload).__name__},
            )
        return payload

    @retry(
        retry=retry_if_exception_type(_TransientDirectoryError),
        stop=stop_after_attempt(settings.retry_max_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=settings.retry_min_wait,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _get_with_retry(self, code: str) -> Any:
        """One GET attempt; tenacity re-runs it on _TransientDirectoryError."""
        url = f"{self.base_url}/{code}"
        start_time = time.perf_counter()

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.get(url)
        except httpx.TransportError as e:
            # Covers connect errors, read errors and timeouts
            raise _TransientDirectoryError(f"{type(e).__name__}: {e}") from e

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info("Postal directory GET %s -> %d in %.0fms", code, response.status_code, duration_ms)

        if response.status_code >= 500:
            raise _TransientDirectoryError(f"HTTP {response.status_code}")
        if response.status_code >= 400:
            raise DirectoryServiceError(
                message="Postal directory rejected the request",
                context={"code": code, "status_code": response.status_code},
            )

        try:
            return response.json()
        except ValueError as e:
            raise DirectoryServiceError(
                message="Postal directory returned an unexpected response",
                context={"code": code, "error": str(e)},
            ) from e


# ── Singleton Instance ────────────────────────────────────────────────────
postal_directory = PostalDirectoryClient()
