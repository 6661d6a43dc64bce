# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass
from typing import Any

from ..client import SSM
from ..config import AWSConfig
from ..exceptions import SSMServiceError
from ._service import AsyncServiceClient
from .http import HTTPClient


@dataclass(frozen=True)
class SystemsManagerParameter:
    name: str
    value: str
    type: str
    version: int
    arn: str | None = None

    @classmethod
    def from_json(cls, document: dict[str, Any]) -> "SystemsManagerParameter":
        return cls(
            name=document["Name"],
            value=document["Value"],
            type=document["Type"],
            version=document["Version"],
            arn=document.get("ARN"),
        )


class SystemsManagerClient(AsyncServiceClient):
    """A minimal client for the Systems Manager parameter store."""

    def __init__(
        self, config: AWSConfig, *, http_client: HTTPClient | None = None
    ) -> None:
        super().__init__(config, SSM, http_client=http_client)

    async def get_parameter(
        self, name: str, with_decryption: bool = False
    ) -> SystemsManagerParameter:
        """Retrieve a parameter, decrypting ``SecureString`` values on request.

        :raises SSMServiceError: If the response carries no parameter.
        """
        operation = "GetParameter"
        response = await self._call(
            operation, {"Name": name, "WithDecryption": with_decryption}
        )
        parameter = response.get("Parameter")
        if not isinstance(parameter, dict):
            raise SSMServiceError(
                f"The {operation} response for {name!r} contains no parameter.",
                code="MissingParameter",
                operation=operation,
                service=SSM.name,
            )
        return SystemsManagerParameter.from_json(parameter)
