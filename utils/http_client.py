"""Shared httpx request helper that maps transport and status failures to UpstreamError."""
import logging
import math
from typing import Any, Dict, Optional

import httpx

from exceptions import UpstreamUnavailable, upstream_error_for_status
from utils.sanitization import sanitize_params, sanitize_url

logger = logging.getLogger(__name__)


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a numeric Retry-After header into seconds. HTTP-date values are ignored."""
    if value is None:
        return None
    try:
        seconds = float(value.strip())
    except (AttributeError, ValueError):
        return None
    if not math.isfinite(seconds) or seconds < 0:
        return None
    return seconds


async def get_json(client: httpx.AsyncClient, url: str, params: Dict[str, Any], provider: str,
                   timeout: Optional[float] = None) -> Any:
    """GET url and return the decoded JSON body.

    Raises:
        UpstreamUnavailable: Timeout, connection failure or undecodable body
        UpstreamRateLimited / UpstreamServerError / UpstreamClientError: Non-2xx responses
    """
    logger.debug(f"🌐 {provider} GET {url} params={sanitize_params(params)}")
    try:
        response = await client.get(
            url, params=params, timeout=httpx.USE_CLIENT_DEFAULT if timeout is None else timeout
        )
    except httpx.TimeoutException as e:
        raise UpstreamUnavailable(f"{provider} request timed out: {e}") from e
    except httpx.RequestError as e:
        raise UpstreamUnavailable(f"{provider} request failed: {e}") from e

    if not response.is_success:
        body = response.text[:200]
        logger.error(f"❌ {provider} error: status={response.status_code} url={sanitize_url(str(response.request.url))} body={body}")
        raise upstream_error_for_status(
            response.status_code,
            f"{provider} returned HTTP {response.status_code}",
            retry_after=parse_retry_after(response.headers.get("retry-after")),
        )

    try:
        return response.json()
    except ValueError as e:
        raise UpstreamUnavailable(f"{provider} returned an undecodable body") from e
