# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""A minimal client for the AWS Key Management Service."""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any

from ..client import KMS
from ..config import AWSConfig
from ._service import AsyncServiceClient
from .http import HTTPClient


class KMSKeySize(IntEnum):
    """Length in bytes of a generated data key."""

    SIZE_256 = 32
    SIZE_512 = 64


@dataclass(frozen=True)
class KMSKey:
    key_arn: str
    key_id: str

    @classmethod
    def from_json(cls, document: dict[str, Any]) -> "KMSKey":
        return cls(key_arn=document["KeyArn"], key_id=document["KeyId"])


@dataclass(frozen=True)
class KMSDataKey:
    """A data key generated under a KMS key."""

    id: str
    """The ARN of the KMS key that encrypted the data key."""

    ciphertext_blob: str
    """The base64 encoded, encrypted copy of the data key."""

    plaintext: str
    """The base64 encoded plaintext data key."""

    @classmethod
    def from_json(cls, document: dict[str, Any]) -> "KMSDataKey":
        return cls(
            id=document["KeyId"],
            ciphertext_blob=document["CiphertextBlob"],
            plaintext=document["Plaintext"],
        )


class KMSClient(AsyncServiceClient):
    """Calls KMS JSON operations through a signed POST to ``/``."""

    def __init__(
        self, config: AWSConfig, *, http_client: HTTPClient | None = None
    ) -> None:
        super().__init__(config, KMS, http_client=http_client)

    async def list_keys(self) -> list[KMSKey]:
        """List the KMS keys of the caller's account and region."""
        response = await self._call("ListKeys", {})
        return [KMSKey.from_json(key) for key in response.get("Keys", [])]

    async def generate_data_key(
        self, key_id: str, size: KMSKeySize = KMSKeySize.SIZE_256
    ) -> KMSDataKey:
        """Generate a symmetric data key encrypted under ``key_id``.

        :param key_id: Key ID, key ARN, alias name or alias ARN of a symmetric KMS key.
        :param size: Length of the data key.
        """
        response = await self._call(
            "GenerateDataKey", {"KeyId": key_id, "NumberOfBytes": int(size)}
        )
        return KMSDataKey.from_json(response)
