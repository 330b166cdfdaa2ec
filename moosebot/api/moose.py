"""Thin asynchronous client for the moose2 web service.

Wraps only the endpoints the bot needs: name resolution, IRC art lines,
image links and search. Every failure surfaces as an InternalError subclass
so the router can answer with a single chat reply.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import aiohttp
from yarl import URL

from ..constants import (
    MOOSE_MAX_BODY_BYTES,
    MOOSE_MAX_LINE_BYTES,
    MOOSE_MAX_SEARCH_RESULTS,
)
from ..errors.handling import handle_api_error
from ..errors.internal import MooseNotFoundError, NetworkError, ParsingError


@dataclass(frozen=True, slots=True)
class SearchResult:
    name: str
    page: int


def _quote(value: str) -> str:
    return quote(value, safe="")


class MooseAPI:
    """Asynchronous client for the moose service.

    Attributes:
        base_url: Service root without trailing slash.
    """

    def __init__(self, session: aiohttp.ClientSession, base_url: str) -> None:
        if not session:
            raise ValueError("aiohttp session required")
        self._session = session
        self.base_url = base_url.rstrip("/")

    def _url(self, path_and_query: str) -> URL:
        # Paths are quoted here already; stop yarl from quoting them again.
        return URL(f"{self.base_url}{path_and_query}", encoded=True)

    # ---- Pure formatting ----
    def image_url(self, name: str) -> str:
        """Link to the PNG of an already resolved (server-encoded) name."""
        return f"{self.base_url}/img/{name}"

    def gallery_url(self, query: str) -> str:
        return f"{self.base_url}/gallery/0?q={_quote(query)}"

    # ---- Remote calls ----
    async def resolve(self, name: str) -> str:
        """Resolve a user supplied name (or random/latest/oldest) to a moose.

        Returns:
            The canonical name, percent-encoded by the server.

        Raises:
            MooseNotFoundError: The service has no such moose.
            NetworkError: Transport failure or unexpected status.
            ParsingError: Malformed response body.
        """

        async def operation() -> str:
            url = self._url(f"/api-helper/resolve/{_quote(name)}")
            async with self._session.get(url) as resp:
                if resp.status == 404:
                    raise MooseNotFoundError(name)
                if resp.status != 200:
                    raise NetworkError(
                        f"Unexpected Status resolving moose: {resp.status} {resp.reason or ''}".rstrip(),
                        data={"status": resp.status},
                    )
                body: Any = await resp.json(content_type=None)
            if not isinstance(body, dict) or not isinstance(body.get("msg"), str):
                raise ParsingError("Moose resolver returned an invalid response body")
            if body.get("status") == "error":
                raise MooseNotFoundError(name, body["msg"])
            return body["msg"]

        return await handle_api_error(operation, "moose resolve")

    async def fetch_irc_lines(self, name: str) -> list[str]:
        """Fetch the IRC colour-art rendition of a resolved moose.

        Raises:
            NetworkError: Transport failure or non-200 status.
            ParsingError: A line exceeds the maximum length or the body is too large.
        """

        async def operation() -> list[str]:
            async with self._session.get(self._url(f"/irc/{name}")) as resp:
                if resp.status != 200:
                    raise NetworkError(
                        f"Unexpected Status getting moose: {resp.status} {resp.reason or ''}".rstrip(),
                        data={"status": resp.status},
                    )
                return await self._read_lines(resp)

        return await handle_api_error(operation, "moose irc lines")

    @staticmethod
    async def _read_lines(resp: aiohttp.ClientResponse) -> list[str]:
        lines: list[bytes] = []
        pending = b""
        total = 0
        async for chunk in resp.content.iter_chunked(8192):
            total += len(chunk)
            if total > MOOSE_MAX_BODY_BYTES:
                raise ParsingError("Moose response too large")
            pending += chunk
            *complete, pending = pending.split(b"\n")
            lines.extend(complete)
            if any(len(line) > MOOSE_MAX_LINE_BYTES for line in complete) or (
                len(pending) > MOOSE_MAX_LINE_BYTES
            ):
                raise ParsingError("Malformed moose line: Line too long.")
        if pending:
            lines.append(pending)
        return [line.rstrip(b"\r").decode("utf-8", errors="replace") for line in lines]

    async def search(self, query: str) -> list[SearchResult]:
        """Search moose names; returns at most ``MOOSE_MAX_SEARCH_RESULTS`` hits.

        Raises:
            NetworkError: Transport failure or non-200 status.
            ParsingError: Malformed response body.
        """

        async def operation() -> list[SearchResult]:
            url = self._url(f"/search?q={_quote(query)}&p=0")
            async with self._session.get(url) as resp:
                if resp.status != 200:
                    raise NetworkError(
                        f"Unexpected Status searching moose: {resp.status} {resp.reason or ''}".rstrip(),
                        data={"status": resp.status},
                    )
                body: Any = await resp.json(content_type=None)
            return self._parse_search(body)

        results = await handle_api_error(operation, "moose search")
        logging.debug(f"🔎 Moose search query={query!r} results={len(results)}")
        return results

    @staticmethod
    def _parse_search(body: Any) -> list[SearchResult]:
        if not isinstance(body, dict):
            raise ParsingError("Moose search result was malformed")
        raw_results = body.get("result") or []
        if not isinstance(raw_results, list):
            raise ParsingError("Moose search result was malformed")
        results: list[SearchResult] = []
        for item in raw_results[:MOOSE_MAX_SEARCH_RESULTS]:
            try:
                results.append(
                    SearchResult(name=str(item["moose"]["name"]), page=int(item["page"]))
                )
            except (KeyError, TypeError, ValueError) as e:
                raise ParsingError(f"Moose search result was malformed: {e}") from e
        return results
