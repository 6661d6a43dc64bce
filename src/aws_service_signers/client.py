# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import datetime
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Final

from ._http import AWSRequest, Field, Fields, SignedRequest, URI
from .canonical import QueryParams, canonical_query_string, encode_path
from .config import AWSConfig, URIEncodingConfig
from .errors import classify_error
from .exceptions import (
    AWSError,
    AWSServiceError,
    InvalidRequestError,
    KMSServiceError,
    S3ServiceError,
    SecretsManagerServiceError,
    SSMServiceError,
)
from .signers import (
    DEFAULT_PRESIGN_EXPIRES,
    SIGV4_TIMESTAMP_FORMAT,
    SigV4Signer,
    SigV4SigningProperties,
)

if TYPE_CHECKING:
    from .aio.http import HTTPResponse

logger: Final = logging.getLogger(__name__)

SUPPORTED_METHODS: Final = frozenset({"GET", "PUT", "POST", "DELETE", "HEAD"})


class SigningMode(Enum):
    """Where the signature of a request is carried."""

    HEADER = "header"
    """In an ``Authorization`` header."""

    QUERY = "query"
    """In the query string, producing a presigned URL."""


@dataclass(kw_only=True, frozen=True)
class AWSServiceConfig:
    """Everything that distinguishes one service from another when signing."""

    name: str
    """The signing name, also used as the endpoint prefix, e.g. ``kms``."""

    uri_encoding: URIEncodingConfig = field(default_factory=URIEncodingConfig)

    common_headers: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType({})
    )
    """Headers sent with every request to the service."""

    error_class: type[AWSServiceError] = AWSServiceError

    target_prefix: str | None = None
    """Prefix of the ``X-Amz-Target`` header for JSON protocol services."""


KMS: Final = AWSServiceConfig(
    name="kms",
    uri_encoding=URIEncodingConfig(double_encode_path=True),
    common_headers=MappingProxyType(
        {
            "Accept-Encoding": "identity",
            "Content-Type": "application/x-amz-json-1.1",
        }
    ),
    error_class=KMSServiceError,
    target_prefix="TrentService",
)

S3: Final = AWSServiceConfig(
    name="s3",
    uri_encoding=URIEncodingConfig(double_encode_path=False, apply_checksum=True),
    error_class=S3ServiceError,
)

SSM: Final = AWSServiceConfig(
    name="ssm",
    uri_encoding=URIEncodingConfig(double_encode_path=True),
    common_headers=MappingProxyType(
        {
            "Accept-Encoding": "identity",
            "Content-Type": "application/x-amz-json-1.1",
        }
    ),
    error_class=SSMServiceError,
    target_prefix="AmazonSSM",
)

SECRETS_MANAGER: Final = AWSServiceConfig(
    name="secretsmanager",
    uri_encoding=URIEncodingConfig(double_encode_path=True),
    common_headers=MappingProxyType(
        {
            "Accept-Encoding": "identity",
            "Content-Type": "application/x-amz-json-1.1",
        }
    ),
    error_class=SecretsManagerServiceError,
    target_prefix="secretsmanager",
)


class AWSClient:
    """Builds signed requests for one service and interprets its error responses.

    Service clients only assemble method, path, query and body; signing and error
    mapping live here and are driven by the :py:class:`AWSServiceConfig`.
    """

    def __init__(
        self,
        config: AWSConfig,
        service: AWSServiceConfig,
        *,
        signer: SigV4Signer | None = None,
    ):
        self._config = config
        self._service = service
        self._signer = signer or SigV4Signer()

    @property
    def config(self) -> AWSConfig:
        return self._config

    @property
    def service(self) -> AWSServiceConfig:
        return self._service

    @property
    def host(self) -> str:
        if self._config.endpoint_host:
            return self._config.endpoint_host
        return f"{self._service.name}.{self._config.region}.{self._config.endpoint}"

    def target(self, operation: str) -> str:
        """The ``X-Amz-Target`` value for a JSON protocol operation."""
        if self._service.target_prefix is None:
            raise InvalidRequestError(
                f"Service {self._service.name!r} does not use X-Amz-Target."
            )
        return f"{self._service.target_prefix}.{operation}"

    def build_request(
        self,
        method: str,
        host: str,
        path: str,
        query: QueryParams | None = None,
        body: bytes | str = b"",
        headers: Mapping[str, str] | None = None,
        *,
        mode: SigningMode = SigningMode.HEADER,
        expires: int | None = None,
        timestamp: datetime.datetime | None = None,
    ) -> SignedRequest:
        """Build a signed request descriptor.

        :param method: One of GET, PUT, POST, DELETE or HEAD.
        :param host: The host to send the request to, optionally with a port.
        :param path: The raw, unencoded request path.
        :param query: Raw query parameters.
        :param body: The raw request body.
        :param headers: Extra headers; they take precedence over the common
            headers of the service.
        :param mode: Sign with an ``Authorization`` header or in the query string.
        :param expires: Validity of a presigned URL in seconds. Only used with
            :py:attr:`SigningMode.QUERY`.
        :param timestamp: The signing time, the current time when omitted.
        """
        method = self._validate_method(method)
        if not host:
            raise InvalidRequestError("A host is required to build a request.")
        if isinstance(body, str):
            body = body.encode("utf-8")

        request = AWSRequest(
            destination=self._destination(host=host, path=path, query=query),
            method=method,
            body=body,
            fields=self._fields(host=host, headers=headers),
        )
        signing_properties = self._signing_properties(timestamp=timestamp)

        if mode is SigningMode.QUERY:
            signing_properties["expires"] = (
                DEFAULT_PRESIGN_EXPIRES if expires is None else expires
            )
            signed = self._signer.presign(
                signing_properties=signing_properties,
                http_request=request,
                identity=self._config.identity,
            )
        else:
            signed = self._signer.sign(
                signing_properties=signing_properties,
                http_request=request,
                identity=self._config.identity,
            )

        logger.debug(
            "Built %s-signed %s request for %s", mode.value, method, self._service.name
        )
        return SignedRequest.from_request(signed)

    def classify_error(
        self,
        operation: str,
        status: int,
        body: bytes | str | None,
        *,
        reason: str | None = None,
    ) -> AWSError | None:
        return classify_error(
            service=self._service.name,
            operation=operation,
            status=status,
            body=body,
            error_class=self._service.error_class,
            reason=reason,
        )

    def handle_error(self, operation: str, response: "HTTPResponse") -> None:
        """Raise the typed error carried by ``response``, if any."""
        error = self.classify_error(
            operation, response.status, response.body, reason=response.reason
        )
        if error is not None:
            raise error

    def _validate_method(self, method: str) -> str:
        normalized = method.upper() if isinstance(method, str) else method
        if normalized not in SUPPORTED_METHODS:
            raise InvalidRequestError(
                f"Unsupported HTTP method {method!r}, expected one of "
                f"{', '.join(sorted(SUPPORTED_METHODS))}."
            )
        return normalized

    def _destination(self, *, host: str, path: str, query: QueryParams | None) -> URI:
        hostname, port = self._split_host(host)
        return URI(
            scheme=self._config.scheme,
            host=hostname,
            port=port,
            path=encode_path(path),
            query=canonical_query_string(query) or None,
        )

    def _split_host(self, host: str) -> tuple[str, int | None]:
        """Split ``host[:port]`` on the last colon outside IPv6 brackets."""
        if ":" not in host or host.endswith("]"):
            return host, None
        hostname, _, port = host.rpartition(":")
        if ":" in hostname and not hostname.endswith("]"):
            raise InvalidRequestError(
                f"IPv6 hosts must be enclosed in brackets, got {host!r}."
            )
        if not hostname or not port.isdigit() or int(port) > 65535:
            raise InvalidRequestError(f"Invalid host or port in {host!r}.")
        return hostname, int(port)

    def _fields(self, *, host: str, headers: Mapping[str, str] | None) -> Fields:
        fields = Fields.from_mapping(self._service.common_headers)
        for name, value in (headers or {}).items():
            if name.lower() != "host":
                fields.set_field(Field(name=name, values=[value]))
        fields.set_field(Field(name="Host", values=[host]))
        return fields

    def _signing_properties(
        self, *, timestamp: datetime.datetime | None
    ) -> SigV4SigningProperties:
        if timestamp is None:
            timestamp = datetime.datetime.now(datetime.UTC)
        elif timestamp.tzinfo is not None:
            timestamp = timestamp.astimezone(datetime.UTC)
        return SigV4SigningProperties(
            region=self._config.region,
            service=self._service.name,
            date=timestamp.strftime(SIGV4_TIMESTAMP_FORMAT),
            uri_encoding=self._service.uri_encoding,
        )
