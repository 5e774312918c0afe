"""Portal status feed poller.

Two kinds of HTTP feeds are supported. A URL with a path is fetched as is
(concentrator feeds serve one portal per resource); a bare host URL is a
tecthulhu module and gets the module's status path appended.
"""

from __future__ import annotations

import asyncio
import json
import logging
from urllib.parse import urlsplit

import aiohttp
from pydantic import ValidationError

from portalgw._constants import POLL_INTERVAL_S, STATUS_PUT_TIMEOUT_S, TECTHULHU_STATUS_PATH
from portalgw._queues import put_with_timeout, report_error, wait_or_stop
from portalgw.exceptions import StatusSourceError
from portalgw.models.portal import LocationState

_logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_S = 5.0


def status_endpoint(url: str) -> str:
    """Resolve the resource to GET for a configured source URL."""
    parts = urlsplit(url)
    if parts.path in ("", "/"):
        return url.rstrip("/") + TECTHULHU_STATUS_PATH
    return url


def parse_status(text: str, *, url: str = "") -> LocationState:
    """Parse a feed body into a :class:`LocationState`.

    Raises
    ------
    StatusSourceError
        If the body is not JSON or does not describe a portal.
    """
    try:
        payload = json.loads(text)
    except json.JSONDecodeError as exc:
        raise StatusSourceError(f"Invalid JSON from {url}: {text[:200]}", url=url) from exc

    if not isinstance(payload, dict):
        raise StatusSourceError(f"Status from {url} is not a JSON object", url=url)

    try:
        return LocationState.model_validate(payload)
    except ValidationError as exc:
        _logger.debug("bad data from %s: %s", url, text[:200])
        raise StatusSourceError(f"Status from {url} is not a portal: {exc.error_count()} errors", url=url) from exc


class StatusSource:
    """Polls one status feed and enqueues the parsed portal states."""

    def __init__(
        self,
        url: str,
        http_session: aiohttp.ClientSession,
        *,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT_S,
    ) -> None:
        self.url = url
        self.endpoint = status_endpoint(url)
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=fetch_timeout)

    async def fetch(self) -> LocationState:
        """Fetch and parse the current portal state."""
        _logger.debug("GET %s", self.endpoint)
        try:
            async with self._http.get(self.endpoint, timeout=self._timeout) as resp:
                body = await resp.read()
                if resp.status != 200:
                    excerpt = body[:200].decode("utf-8", errors="replace")
                    raise StatusSourceError(
                        f"HTTP {resp.status} from {self.endpoint}: {excerpt}",
                        url=self.url,
                        status_code=resp.status,
                    )
                text = body.decode("utf-8")
        except StatusSourceError:
            raise
        except UnicodeDecodeError as exc:
            raise StatusSourceError(f"Response from {self.endpoint} is not UTF-8: {exc}", url=self.url) from exc
        except (aiohttp.ClientError, TimeoutError) as exc:
            raise StatusSourceError(f"Request to {self.endpoint} failed: {exc!r}", url=self.url) from exc

        return parse_status(text, url=self.url)

    async def poll_once(
        self,
        statuses: asyncio.Queue[LocationState],
        errors: asyncio.Queue[Exception],
    ) -> LocationState | None:
        """Fetch once and enqueue the result; errors go to *errors*."""
        try:
            state = await self.fetch()
        except StatusSourceError as exc:
            await report_error(
                errors,
                StatusSourceError(
                    f"portal status for {self.url} could not be retrieved due to {exc}",
                    url=self.url,
                    status_code=exc.status_code,
                ),
            )
            return None

        if not await put_with_timeout(statuses, state, STATUS_PUT_TIMEOUT_S):
            await report_error(errors, StatusSourceError(f"portal status for {self.url} had to be skipped", url=self.url))
            return None
        return state

    async def run(
        self,
        statuses: asyncio.Queue[LocationState],
        errors: asyncio.Queue[Exception],
        stop: asyncio.Event,
        interval: float = POLL_INTERVAL_S,
    ) -> None:
        """Poll every *interval* seconds until *stop* is set."""
        while not stop.is_set():
            await self.poll_once(statuses, errors)
            if await wait_or_stop(stop, interval):
                break
