"""Pass a remote resource straight through when nothing needs transforming."""

from __future__ import annotations

import httpx

from .errors import FetchError
from .events import EventLog

CHUNK_SIZE = 64 * 1024


def open_proxy(client: httpx.Client, url: str, events: EventLog, timeout: float = 10.0) -> httpx.Response:
    """Start a streaming GET for *url*.

    The caller must iterate the returned response body and close it. Nothing is
    written to disk.
    """

    events.record(processor="proxy", download=url)
    request = client.build_request("GET", url, timeout=timeout)
    try:
        return client.send(request, stream=True, follow_redirects=True)
    except httpx.HTTPError as exc:
        events.record(processor="proxy", failure=str(exc), args=url)
        raise FetchError(url, str(exc)) from exc


def iter_body(response: httpx.Response):
    """Yield the upstream body, surfacing transport errors as :class:`FetchError`."""

    try:
        yield from response.iter_bytes(CHUNK_SIZE)
    except httpx.HTTPError as exc:
        raise FetchError(str(response.request.url), str(exc)) from exc
    finally:
        response.close()
