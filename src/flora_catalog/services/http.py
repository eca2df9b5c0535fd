"""
Shared HTTP client for all source clients.

Provides a pre-configured ``requests.Session`` and an awaitable ``get_json``
that runs the blocking call on a worker thread, so the aggregator can have
every source in flight at once.

Transport-level retries are switched off: retrying is owned by
``services.throttle.RetryPolicy``, which must see every 429 unretried.

Usage::

    from flora_catalog.services.http import get_json

    data = await get_json("https://api.example.com/v1/data", {"q": "rose"}, source="example")
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from flora_catalog.errors import MalformedResponse, RateLimited, RequestFailed, Unreachable

logger = logging.getLogger(__name__)

#: No transport retries, no status-based retries.
DEFAULT_RETRY = Retry(
    total=0,
    allowed_methods=["GET", "HEAD", "OPTIONS"],
    raise_on_status=False,  # statuses are classified in get_json
)

DEFAULT_TIMEOUT = 30  # seconds

USER_AGENT = "flora-catalog/0.1 (plant and fungi discovery)"


def create_session(
    retry: Retry | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> requests.Session:
    """
    Build a ``requests.Session`` with the retry adapter mounted.

    Args:
        retry: Custom retry strategy (defaults to ``DEFAULT_RETRY``).
        timeout: Default timeout applied to every request.
    """
    s = requests.Session()
    adapter = HTTPAdapter(max_retries=retry or DEFAULT_RETRY)
    s.mount("https://", adapter)
    s.mount("http://", adapter)
    s.headers["User-Agent"] = USER_AGENT
    s.headers["Accept"] = "application/json"

    # Inject a default timeout so callers don't need to pass ``timeout=``.
    _original_send = s.send

    def _send_with_timeout(
        prepared: requests.PreparedRequest, **kwargs: object
    ) -> requests.Response:
        kwargs.setdefault("timeout", timeout)
        return _original_send(prepared, **kwargs)  # type: ignore[arg-type]

    s.send = _send_with_timeout  # type: ignore[method-assign]
    return s


#: Module-level session: import and use directly.
session: requests.Session = create_session()


async def get_json(
    url: str,
    params: dict[str, Any] | None = None,
    *,
    source: str,
    rate_limit_message: str | None = None,
) -> Any:
    """
    GET ``url`` and decode the JSON body, classifying every failure.

    Args:
        url: Fully-built endpoint URL.
        params: Query parameters.
        source: Source tag used in error messages.
        rate_limit_message: User-facing remediation for HTTP 429.

    Raises:
        RateLimited: HTTP 429.
        RequestFailed: Any other non-2xx status.
        Unreachable: Connection errors, timeouts, other transport failures.
        MalformedResponse: The body is not valid JSON.
    """
    try:
        resp = await asyncio.to_thread(session.get, url, params=params or {})
    except requests.RequestException as e:
        logger.debug("%s unreachable: %s", source, e)
        raise Unreachable(source, f"{source} unreachable: {e}") from e

    if resp.status_code == 429:
        raise RateLimited(source, rate_limit_message)
    if not 200 <= resp.status_code < 300:
        raise RequestFailed(source, resp.status_code)

    try:
        return resp.json()
    except ValueError as e:
        raise MalformedResponse(source, f"{source} returned invalid JSON: {e}") from e
