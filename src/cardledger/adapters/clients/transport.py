from __future__ import annotations

import asyncio
from http.cookiejar import CookieJar
import json
from typing import Any, Protocol, cast
import urllib.error
import urllib.parse
import urllib.request

from cardledger.errors import TransportError

DEFAULT_HEADERS = {
    "Accept": "application/json, text/plain, */*",
    "User-Agent": (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
}


class SessionTransport(Protocol):
    """Session-bound HTTP collaborator used by the scraper.

    Implementations keep one cookie context for the whole run: the login
    handshake establishes it and every later request reuses it. Failures are
    reported by raising TransportError.
    """

    async def navigate(self, url: str) -> None:
        """Load a page so the institution sets its session cookies."""
        ...

    async def get_json(self, url: str) -> Any:
        """GET ``url`` and return the decoded JSON body."""
        ...

    async def post_json(self, url: str, body: dict[str, Any]) -> Any:
        """POST ``body`` as JSON to ``url`` and return the decoded JSON body."""
        ...


def build_url(base_url: str, query_params: dict[str, str]) -> str:
    """Append ``query_params`` to ``base_url`` in insertion order."""
    separator = "&" if urllib.parse.urlsplit(base_url).query else "?"
    return base_url + separator + urllib.parse.urlencode(query_params)


class UrllibSessionTransport:
    """Cookie-keeping transport built on urllib.

    Blocking calls run in a worker thread so month fetches can overlap.
    """

    def __init__(self, *, timeout_seconds: float = 30.0) -> None:
        self._timeout_seconds = timeout_seconds
        self._cookies = CookieJar()
        self._opener = urllib.request.build_opener(
            urllib.request.HTTPCookieProcessor(self._cookies)
        )

    @property
    def cookies(self) -> CookieJar:
        return self._cookies

    def _parse_json_response(self, body: str, url: str) -> Any:
        try:
            return cast(Any, json.loads(body))
        except json.JSONDecodeError as e:
            raise TransportError(
                f"Failed to parse response from {url} as JSON: {e}"
            ) from e

    def _send(self, req: urllib.request.Request) -> str:
        try:
            with self._opener.open(req, timeout=self._timeout_seconds) as resp:
                return cast(str, resp.read().decode("utf-8"))
        except urllib.error.HTTPError as e:  # pragma: no cover - network-dependent
            err_body = e.read().decode("utf-8", "ignore")
            raise TransportError(
                f"HTTP error ({e.code}) from {req.full_url}: {err_body}"
            ) from e
        except urllib.error.URLError as e:  # pragma: no cover - network-dependent
            raise TransportError(f"Network error calling {req.full_url}: {e}") from e
        except TimeoutError as e:  # pragma: no cover - network-dependent
            raise TransportError(f"Timed out calling {req.full_url}") from e

    def _get(self, url: str) -> str:
        req = urllib.request.Request(  # noqa: S310
            url, headers=DEFAULT_HEADERS, method="GET"
        )
        return self._send(req)

    def _post(self, url: str, body: dict[str, Any]) -> str:
        data = json.dumps(body).encode("utf-8")
        req = urllib.request.Request(  # noqa: S310
            url,
            data=data,
            headers={**DEFAULT_HEADERS, "Content-Type": "application/json"},
            method="POST",
        )
        return self._send(req)

    async def navigate(self, url: str) -> None:
        await asyncio.to_thread(self._get, url)

    async def get_json(self, url: str) -> Any:
        body = await asyncio.to_thread(self._get, url)
        return self._parse_json_response(body, url)

    async def post_json(self, url: str, body: dict[str, Any]) -> Any:
        raw = await asyncio.to_thread(self._post, url, body)
        return self._parse_json_response(raw, url)
