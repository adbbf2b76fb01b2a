"""Shared outbound HTTP with bounded retries."""

import asyncio
from typing import Any

import httpx
import structlog

from nfl_edge.exceptions import FetchError

logger = structlog.get_logger()


def _retry_after_seconds(response: httpx.Response) -> float | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(float(value), 0.0)
    except ValueError:
        return None


async def request_with_retry(
    client: httpx.AsyncClient,
    url: str,
    *,
    source: str,
    params: dict[str, Any] | None = None,
    max_retries: int = 3,
    retry_delay: float = 5.0,
) -> httpx.Response:
    """
    GET ``url`` with exponential backoff.

    Timeouts, connection errors, 5xx responses and 429s are retried up to
    ``max_retries`` attempts, waiting ``retry_delay * 2**attempt`` seconds
    between them (or the server's ``Retry-After`` on a 429). Other 4xx
    responses fail immediately.

    Args:
        client: Open async client
        url: Absolute URL
        source: Source name used in logs and errors
        params: Query parameters
        max_retries: Total attempts
        retry_delay: Base delay in seconds

    Returns:
        The successful response

    Raises:
        FetchError: When every attempt failed or the request was rejected
    """
    last_error = "no attempts made"
    last_status: int | None = None

    for attempt in range(max_retries):
        wait_time = retry_delay * (2**attempt)
        try:
            response = await client.get(url, params=params)

            if response.status_code == 429:
                last_status = 429
                last_error = "rate limited"
                wait_time = _retry_after_seconds(response) or wait_time
                logger.warning(
                    "Rate limited",
                    source=source,
                    attempt=attempt + 1,
                    wait_seconds=wait_time,
                )
            elif response.status_code >= 500:
                last_status = response.status_code
                last_error = f"server error {response.status_code}"
                logger.warning(
                    "Server error",
                    source=source,
                    status=response.status_code,
                    attempt=attempt + 1,
                )
            elif response.status_code >= 400:
                raise FetchError(
                    source,
                    f"request rejected with status {response.status_code}",
                    status_code=response.status_code,
                )
            else:
                return response

        except httpx.TimeoutException as e:
            last_status = None
            last_error = f"timeout: {e}"
            logger.warning("Request timed out", source=source, attempt=attempt + 1)

        except httpx.RequestError as e:
            last_status = None
            last_error = f"request error: {e}"
            logger.warning(
                "Request failed", source=source, attempt=attempt + 1, error=str(e)
            )

        if attempt < max_retries - 1:
            await asyncio.sleep(wait_time)

    logger.error("Fetch failed after retries", source=source, error=last_error)
    raise FetchError(source, last_error, status_code=last_status)
