# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import json
import logging
from typing import Any, Final, Self

from ..client import AWSClient, AWSServiceConfig
from ..config import AWSConfig
from .http import AIOHTTPClient, HTTPClient

logger: Final = logging.getLogger(__name__)


class AsyncServiceClient:
    """Base of the clients for JSON protocol services.

    A transport the client creates itself is closed with the client. A transport
    passed in by the caller stays open and remains the caller's to close. To ensure
    the transport is closed, the client may be used as an async context manager.
    """

    def __init__(
        self,
        config: AWSConfig,
        service: AWSServiceConfig,
        *,
        http_client: HTTPClient | None = None,
    ) -> None:
        self._client = AWSClient(config, service)
        self._owned_http_client: AIOHTTPClient | None = None
        if http_client is None:
            http_client = self._owned_http_client = AIOHTTPClient()
        self._http_client: HTTPClient = http_client

    async def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owned_http_client is not None:
            await self._owned_http_client.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, exc_type: Any, exc_value: Any, traceback: Any) -> None:
        await self.close()

    async def _call(self, operation: str, payload: dict[str, Any]) -> dict[str, Any]:
        body = json.dumps(payload).encode("utf-8")
        request = self._client.build_request(
            "POST",
            self._client.host,
            "/",
            body=body,
            headers={"X-Amz-Target": self._client.target(operation)},
        )
        logger.debug("Calling %s %s", self._client.service.name, operation)
        response = await self._http_client.send(request)
        self._client.handle_error(operation, response)
        return response.json() or {}
