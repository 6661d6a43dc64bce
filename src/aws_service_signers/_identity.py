# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0

from dataclasses import dataclass, field
from datetime import UTC, datetime

from .exceptions import MissingExpectedParameterException


@dataclass(kw_only=True, frozen=True)
class AWSCredentialIdentity:
    """An immutable snapshot of AWS credentials."""

    access_key_id: str
    """A unique identifier for an AWS user or role."""

    secret_access_key: str = field(repr=False)
    """A secret key used in conjunction with the access key ID to authenticate
    programmatic access to AWS services."""

    session_token: str | None = field(default=None, repr=False)
    """A temporary token used to specify the current session for the supplied
    credentials."""

    expiration: datetime | None = None
    """The expiration time of the identity, in UTC."""

    def __post_init__(self) -> None:
        if not self.access_key_id:
            raise MissingExpectedParameterException(
                "An access key ID is required to sign requests."
            )
        if not self.secret_access_key:
            raise MissingExpectedParameterException(
                "A secret access key is required to sign requests."
            )

    @property
    def is_expired(self) -> bool:
        """Whether the identity is expired."""
        if self.expiration is None:
            return False
        return datetime.now(tz=UTC) >= self.expiration
