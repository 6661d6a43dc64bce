# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Final
from urllib.parse import urlparse

from ._identity import AWSCredentialIdentity
from .exceptions import InvalidRequestError, MissingExpectedParameterException

logger: Final = logging.getLogger(__name__)

DEFAULT_ENDPOINT: Final = "amazonaws.com"
SUPPORTED_SCHEMES: Final = ("http", "https")


@dataclass(kw_only=True, frozen=True)
class URIEncodingConfig:
    """Per-service rules for encoding the request path before signing.

    Services disagree on how the canonical path is formed. Most of them expect the
    already percent-encoded path to be encoded a second time, while S3 expects it to
    be encoded exactly once. Getting this backwards produces a signature mismatch, so
    the rule is fixed per service when a client is created.
    """

    double_encode_path: bool = True
    """Percent-encode the encoded path a second time in the canonical request."""

    normalize_empty_path_to_slash: bool = True
    """Use ``/`` as the canonical path when the request path is empty."""

    apply_checksum: bool = False
    """Send and sign an ``X-Amz-Content-SHA256`` header with the payload hash."""

    def __post_init__(self) -> None:
        for flag in fields(self):
            value = getattr(self, flag.name)
            if not isinstance(value, bool):
                raise InvalidRequestError(
                    f"URIEncodingConfig.{flag.name} must be a bool, "
                    f"got {type(value).__name__}."
                )


@dataclass(kw_only=True, frozen=True)
class AWSConfig:
    """Region, credentials and endpoint used by a client for its whole lifetime."""

    region: str
    access_key_id: str
    secret_access_key: str = field(repr=False)
    session_token: str | None = field(default=None, repr=False)
    scheme: str = "https"
    endpoint: str = DEFAULT_ENDPOINT
    """Domain suffix of service hosts, as in ``<service>.<region>.<endpoint>``."""

    endpoint_host: str | None = None
    """A complete host, optionally with a port, used for every service instead of
    one derived from ``endpoint``."""

    def __post_init__(self) -> None:
        if not self.region:
            raise MissingExpectedParameterException(
                "A region is required to sign requests."
            )
        if self.scheme not in SUPPORTED_SCHEMES:
            raise InvalidRequestError(
                f"Unsupported scheme {self.scheme!r}, expected one of "
                f"{', '.join(SUPPORTED_SCHEMES)}."
            )
        if not self.endpoint:
            raise MissingExpectedParameterException("An endpoint is required.")
        # Raises when a credential field is missing.
        _ = self.identity

    @property
    def identity(self) -> AWSCredentialIdentity:
        return AWSCredentialIdentity(
            access_key_id=self.access_key_id,
            secret_access_key=self.secret_access_key,
            session_token=self.session_token,
        )

    @classmethod
    def from_environment(cls, environ: Mapping[str, str] | None = None) -> "AWSConfig":
        """Build a config from the standard AWS environment variables.

        ``AWS_REGION`` (or ``AWS_DEFAULT_REGION``), ``AWS_ACCESS_KEY_ID`` and
        ``AWS_SECRET_ACCESS_KEY`` are required. ``AWS_SESSION_TOKEN`` and
        ``AWS_ENDPOINT_URL`` are optional.

        :param environ: Mapping to read from, ``os.environ`` by default.
        """
        env = os.environ if environ is None else environ

        region = env.get("AWS_REGION") or env.get("AWS_DEFAULT_REGION")
        access_key_id = env.get("AWS_ACCESS_KEY_ID")
        secret_access_key = env.get("AWS_SECRET_ACCESS_KEY")
        if region is None or access_key_id is None or secret_access_key is None:
            raise MissingExpectedParameterException(
                "AWS_REGION, AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY are required"
            )

        kwargs: dict[str, str] = {}
        if endpoint_url := env.get("AWS_ENDPOINT_URL"):
            parsed = urlparse(endpoint_url)
            if not parsed.scheme or not parsed.netloc:
                raise InvalidRequestError(
                    f"AWS_ENDPOINT_URL must be an absolute URL, got {endpoint_url!r}."
                )
            kwargs["scheme"] = parsed.scheme
            kwargs["endpoint_host"] = parsed.netloc
            logger.debug("Using endpoint %s from AWS_ENDPOINT_URL.", parsed.netloc)

        return cls(
            region=region,
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=env.get("AWS_SESSION_TOKEN"),
            **kwargs,
        )
