# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from collections import deque

from ._http import SignedRequest
from .aio.http import HTTPResponse


class MockHTTPClientError(Exception):
    """Exception raised by MockHTTPClient when no response is queued."""


class MockHTTPClient:
    """Implementation of :py:class:`.aio.http.HTTPClient` solely for testing purposes.

    Simulates HTTP request/response behavior. Responses are queued in FIFO order and
    requests are captured for inspection.
    """

    def __init__(self) -> None:
        self._response_queue: deque[HTTPResponse] = deque()
        self._captured_requests: list[SignedRequest] = []

    def add_response(
        self,
        status: int = 200,
        headers: dict[str, str] | None = None,
        body: bytes = b"",
        reason: str | None = None,
    ) -> None:
        """Queue a response for the next request.

        :param status: HTTP status code.
        :param headers: HTTP response headers.
        :param body: Response body as bytes.
        :param reason: HTTP reason phrase.
        """
        self._response_queue.append(
            HTTPResponse(status=status, headers=headers or {}, body=body, reason=reason)
        )

    async def send(self, request: SignedRequest) -> HTTPResponse:
        """Capture the request and return the next queued response.

        :raises MockHTTPClientError: If no responses are queued.
        """
        self._captured_requests.append(request)
        if not self._response_queue:
            raise MockHTTPClientError(
                "No responses queued. Use add_response() to queue responses."
            )
        return self._response_queue.popleft()

    @property
    def captured_requests(self) -> list[SignedRequest]:
        """The requests sent through this client, oldest first."""
        return list(self._captured_requests)

    @property
    def last_request(self) -> SignedRequest | None:
        return self._captured_requests[-1] if self._captured_requests else None
