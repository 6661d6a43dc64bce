# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Final, Protocol, runtime_checkable

import aiohttp
from yarl import URL

from .._http import SignedRequest

logger: Final = logging.getLogger(__name__)


@dataclass(kw_only=True, frozen=True)
class HTTPResponse:
    """A fully read HTTP response."""

    status: int
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    reason: str | None = None

    def json(self) -> Any:
        """Decode the body as JSON."""
        return json.loads(self.body or b"null")


@runtime_checkable
class HTTPClient(Protocol):
    """An asynchronous transport for signed requests."""

    async def send(self, request: SignedRequest) -> HTTPResponse:
        """Send a signed request and read the whole response.

        :param request: The signed request descriptor, sent exactly as given.
        """
        ...


class AIOHTTPClient:
    """Implementation of :py:class:`HTTPClient` using aiohttp."""

    def __init__(self, *, _session: aiohttp.ClientSession | None = None) -> None:
        self._session = _session

    async def send(self, request: SignedRequest) -> HTTPResponse:
        session = await self._get_session()
        logger.debug("Sending %s %s", request.method, request.url)
        # The URL is already encoded and signed, it must not be re-quoted.
        async with session.request(
            method=request.method,
            url=URL(request.url, encoded=True),
            headers=request.headers,
            data=request.body or None,
        ) as resp:
            return await self._marshal_response(resp)

    async def close(self) -> None:
        if self._session is not None:
            await self._session.close()
            self._session = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None:
            self._session = aiohttp.ClientSession()
        return self._session

    async def _marshal_response(
        self, aiohttp_resp: aiohttp.ClientResponse
    ) -> HTTPResponse:
        """Convert a ``aiohttp.ClientResponse`` to an :py:class:`HTTPResponse`."""
        headers: dict[str, str] = {}
        for header_name, header_val in aiohttp_resp.headers.items():
            if header_name in headers:
                headers[header_name] = f"{headers[header_name]},{header_val}"
            else:
                headers[header_name] = header_val

        return HTTPResponse(
            status=aiohttp_resp.status,
            headers=headers,
            body=await aiohttp_resp.read(),
            reason=aiohttp_resp.reason,
        )
