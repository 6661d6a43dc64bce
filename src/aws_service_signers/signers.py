# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
import datetime
import hmac
import logging
from copy import deepcopy
from dataclasses import dataclass
from hashlib import sha256
from typing import ClassVar, Final, Required, TypedDict
from urllib.parse import parse_qsl

from ._http import AWSRequest, Field, URI
from ._identity import AWSCredentialIdentity
from .canonical import (
    UNSIGNED_PAYLOAD,
    CanonicalRequest,
    canonical_headers,
    canonical_path,
    canonical_query_string,
    hash_payload,
)
from .config import URIEncodingConfig
from .exceptions import InvalidRequestError, MissingExpectedParameterException

logger: Final = logging.getLogger(__name__)

ALGORITHM: str = "AWS4-HMAC-SHA256"
SCOPE_TERMINATOR: str = "aws4_request"
SIGV4_TIMESTAMP_FORMAT: str = "%Y%m%dT%H%M%SZ"
DEFAULT_PORTS: dict[str, int] = {"http": 80, "https": 443}

DEFAULT_PRESIGN_EXPIRES: int = 3600
MAX_PRESIGN_EXPIRES: int = 7 * 24 * 60 * 60

DEFAULT_URI_ENCODING: Final = URIEncodingConfig()


class SigV4SigningProperties(TypedDict, total=False):
    region: Required[str]
    service: Required[str]
    date: str
    payload_signing_enabled: bool
    uri_encoding: URIEncodingConfig
    expires: int


@dataclass(frozen=True)
class CredentialScope:
    """The date, region and service a derived signing key is valid for."""

    date: str
    """The signing date formatted as ``YYYYMMDD``."""

    region: str
    service: str

    terminator: ClassVar[str] = SCOPE_TERMINATOR

    @classmethod
    def from_signing_properties(
        cls, signing_properties: SigV4SigningProperties
    ) -> "CredentialScope":
        date = signing_properties.get("date")
        if not date:
            raise MissingExpectedParameterException(
                "Cannot build a credential scope without a signing date."
            )
        return cls(
            date=date[0:8],
            region=signing_properties["region"],
            service=signing_properties["service"],
        )

    def __str__(self) -> str:
        # Scope format: <YYYYMMDD>/<AWS Region>/<AWS Service>/aws4_request
        return f"{self.date}/{self.region}/{self.service}/{self.terminator}"


class SigV4Signer:
    """Request signer for applying the AWS Signature Version 4 algorithm.

    The signer holds no state. Every call derives its own scope and signing key, so
    one instance may be shared between threads.
    """

    def sign(
        self,
        *,
        signing_properties: SigV4SigningProperties,
        http_request: AWSRequest,
        identity: AWSCredentialIdentity,
    ) -> AWSRequest:
        """Generate and apply a SigV4 ``Authorization`` header to a copy of the
        supplied request.

        :param signing_properties: SigV4SigningProperties to define signing primitives
            such as the target service, region, and date.
        :param http_request: An AWSRequest to sign prior to sending to the service.
        :param identity: A set of credentials representing an AWS Identity or role
            capacity.
        """
        self._validate_identity(identity=identity)
        new_signing_properties = self._normalize_signing_properties(
            signing_properties=signing_properties
        )
        new_request = deepcopy(http_request)
        self._apply_required_fields(
            request=new_request,
            signing_properties=new_signing_properties,
            identity=identity,
        )

        canonical_request = self.canonical_request(
            signing_properties=new_signing_properties,
            request=new_request,
        )
        scope = CredentialScope.from_signing_properties(new_signing_properties)
        signature = self.signature(
            canonical_request=canonical_request,
            identity=identity,
            scope=scope,
            timestamp=new_signing_properties["date"],
        )
        authorization = self.generate_authorization_field(
            credential=f"{identity.access_key_id}/{scope}",
            signed_headers=canonical_request.signed_headers,
            signature=signature,
        )
        new_request.fields.set_field(authorization)
        return new_request

    def presign(
        self,
        *,
        signing_properties: SigV4SigningProperties,
        http_request: AWSRequest,
        identity: AWSCredentialIdentity,
    ) -> AWSRequest:
        """Generate a copy of the supplied request with the signature carried in its
        query string.

        The result can be sent without further signing until ``expires`` seconds
        after the signing date. The payload is not signed.
        """
        self._validate_identity(identity=identity)
        new_signing_properties = self._normalize_signing_properties(
            signing_properties=signing_properties
        )
        expires = new_signing_properties.get("expires", DEFAULT_PRESIGN_EXPIRES)
        if not 1 <= expires <= MAX_PRESIGN_EXPIRES:
            raise InvalidRequestError(
                f"Presigned URLs must expire within 1 and {MAX_PRESIGN_EXPIRES} "
                f"seconds, got {expires}."
            )

        new_request = deepcopy(http_request)
        if "Host" not in new_request.fields:
            new_request.fields.set_field(
                Field(
                    name="Host",
                    values=[self._normalize_host_field(uri=new_request.destination)],
                )
            )

        scope = CredentialScope.from_signing_properties(new_signing_properties)
        _, signed_headers = canonical_headers(new_request.fields)
        query = parse_qsl(new_request.destination.query or "", keep_blank_values=True)
        query.extend(
            [
                ("X-Amz-Algorithm", ALGORITHM),
                ("X-Amz-Credential", f"{identity.access_key_id}/{scope}"),
                ("X-Amz-Date", new_signing_properties["date"]),
                ("X-Amz-Expires", str(expires)),
                ("X-Amz-SignedHeaders", signed_headers),
            ]
        )
        if identity.session_token is not None:
            query.append(("X-Amz-Security-Token", identity.session_token))
        new_request.destination = new_request.destination.with_query(
            canonical_query_string(query)
        )

        canonical_request = self.canonical_request(
            signing_properties=new_signing_properties,
            request=new_request,
            payload_hash=UNSIGNED_PAYLOAD,
        )
        signature = self.signature(
            canonical_request=canonical_request,
            identity=identity,
            scope=scope,
            timestamp=new_signing_properties["date"],
        )
        # The signature always comes last.
        new_request.destination = new_request.destination.with_query(
            f"{new_request.destination.query}&X-Amz-Signature={signature}"
        )
        return new_request

    def generate_authorization_field(
        self, *, credential: str, signed_headers: str, signature: str
    ) -> Field:
        """Generate the `Authorization` field.

        :param credential:
            Credential scope string for generating the Authorization header.
            Defined as:
                <access_key>/<date>/<region>/<service>/<request_type>
        :param signed_headers:
            The ``;`` separated field names used in signing.
        :param signature:
            Final hash of the SigV4 signing algorithm generated from the
            canonical request and string to sign.
        """
        auth_str = (
            f"{ALGORITHM} Credential={credential}, "
            f"SignedHeaders={signed_headers}, Signature={signature}"
        )
        return Field(name="Authorization", values=[auth_str])

    def canonical_request(
        self,
        *,
        signing_properties: SigV4SigningProperties,
        request: AWSRequest,
        payload_hash: str | None = None,
    ) -> CanonicalRequest:
        """The canonical request is a standardized representation of the components
        used in the SigV4 signing algorithm. This is useful to quickly compare inputs
        to find signature mismatches and unintended variances.

        :param signing_properties:
            SigV4SigningProperties to define signing primitives such as
            the target service, region, and date.
        :param request:
            An AWSRequest to use for generating a SigV4 signature. Its path and query
            are expected in their percent-encoded wire form.
        :param payload_hash:
            Use this value instead of hashing the request body.
        """
        policy = signing_properties.get("uri_encoding", DEFAULT_URI_ENCODING)
        # We generate the payload first to ensure any field modifications
        # are in place before choosing the canonical fields.
        if payload_hash is None:
            payload_hash = self._format_canonical_payload(
                request=request, signing_properties=signing_properties
            )
        query = parse_qsl(request.destination.query or "", keep_blank_values=True)
        canonical_fields, signed_headers = canonical_headers(request.fields)
        canonical_request = CanonicalRequest(
            method=request.method.upper(),
            canonical_uri=canonical_path(request.destination.path, policy),
            canonical_query=canonical_query_string(query),
            canonical_headers=canonical_fields,
            signed_headers=signed_headers,
            payload_hash=payload_hash,
        )
        logger.debug("Canonical request:\n%s", canonical_request)
        return canonical_request

    def string_to_sign(
        self,
        *,
        canonical_request: CanonicalRequest | str,
        scope: CredentialScope,
        timestamp: str | None,
    ) -> str:
        """The string to sign concatenates the formal identifier of our signing
        algorithm, the signing DateTime, the scope of our credentials, and a hash of
        the canonical request.

        The SigV4 specification defines the string to sign as:
            Algorithm \\n
            RequestDateTime \\n
            CredentialScope  \\n
            HashedCanonicalRequest

        :param canonical_request:
            The output of :py:meth:`canonical_request` or its string form.
        :param scope:
            The credential scope of the request.
        :param timestamp:
            The signing time in ISO 8601 basic format, e.g. ``20130524T000000Z``.
        """
        if not timestamp:
            raise MissingExpectedParameterException(
                "Cannot generate string_to_sign without a valid timestamp. "
                f"Current value: {timestamp}"
            )
        string_to_sign = (
            f"{ALGORITHM}\n"
            f"{timestamp}\n"
            f"{scope}\n"
            f"{sha256(str(canonical_request).encode()).hexdigest()}"
        )
        logger.debug("String to sign:\n%s", string_to_sign)
        return string_to_sign

    def signing_key(self, *, secret_key: str, scope: CredentialScope) -> bytes:
        """Derive the key scoped to one date, region and service.

        DateKey              = HMAC-SHA256("AWS4"+"<SecretAccessKey>", "<YYYYMMDD>")
        DateRegionKey        = HMAC-SHA256(<DateKey>, "<aws-region>")
        DateRegionServiceKey = HMAC-SHA256(<DateRegionKey>, "<aws-service>")
        SigningKey           = HMAC-SHA256(<DateRegionServiceKey>, "aws4_request")
        """
        k_date = self._hash(key=f"AWS4{secret_key}".encode(), value=scope.date)
        k_region = self._hash(key=k_date, value=scope.region)
        k_service = self._hash(key=k_region, value=scope.service)
        return self._hash(key=k_service, value=scope.terminator)

    def final_signature(self, *, string_to_sign: str, signing_key: bytes) -> str:
        return self._hash(key=signing_key, value=string_to_sign).hex()

    def signature(
        self,
        *,
        canonical_request: CanonicalRequest | str,
        identity: AWSCredentialIdentity,
        scope: CredentialScope,
        timestamp: str,
    ) -> str:
        """Compute the hex encoded signature of a canonical request.

        Session tokens never take part in key derivation.
        """
        string_to_sign = self.string_to_sign(
            canonical_request=canonical_request, scope=scope, timestamp=timestamp
        )
        signing_key = self.signing_key(
            secret_key=identity.secret_access_key, scope=scope
        )
        return self.final_signature(
            string_to_sign=string_to_sign, signing_key=signing_key
        )

    def _hash(self, key: bytes, value: str) -> bytes:
        return hmac.new(key=key, msg=value.encode(), digestmod=sha256).digest()

    def _validate_identity(self, *, identity: AWSCredentialIdentity) -> None:
        """Perform runtime and expiration checks before attempting signing."""
        if not isinstance(identity, AWSCredentialIdentity):
            raise ValueError(
                "Received unexpected value for identity parameter. Expected "
                f"AWSCredentialIdentity but received {type(identity)}."
            )
        elif identity.is_expired:
            raise ValueError(
                f"Provided identity expired at {identity.expiration}. Please "
                "refresh the credentials or update the expiration parameter."
            )

    def _normalize_signing_properties(
        self, *, signing_properties: SigV4SigningProperties
    ) -> SigV4SigningProperties:
        for required in ("region", "service"):
            if not signing_properties.get(required):
                raise MissingExpectedParameterException(
                    f"Signing properties must include a non-empty {required!r}."
                )
        # Create copy of signing properties to avoid mutating the original
        new_signing_properties = SigV4SigningProperties(**signing_properties)
        if "date" not in new_signing_properties:
            date_obj = datetime.datetime.now(datetime.UTC)
            new_signing_properties["date"] = date_obj.strftime(SIGV4_TIMESTAMP_FORMAT)
        return new_signing_properties

    def _apply_required_fields(
        self,
        *,
        request: AWSRequest,
        signing_properties: SigV4SigningProperties,
        identity: AWSCredentialIdentity,
    ) -> None:
        if "Host" not in request.fields:
            request.fields.set_field(
                Field(
                    name="Host",
                    values=[self._normalize_host_field(uri=request.destination)],
                )
            )
        # Apply required X-Amz-Date if neither X-Amz-Date nor Date are present.
        if "Date" not in request.fields and "X-Amz-Date" not in request.fields:
            request.fields.set_field(
                Field(name="X-Amz-Date", values=[signing_properties["date"]])
            )
        # Apply required X-Amz-Security-Token if token present on identity
        if (
            "X-Amz-Security-Token" not in request.fields
            and identity.session_token is not None
        ):
            request.fields.set_field(
                Field(name="X-Amz-Security-Token", values=[identity.session_token])
            )

    def _normalize_host_field(self, *, uri: URI) -> str:
        if uri.port is not None and DEFAULT_PORTS.get(uri.scheme) == uri.port:
            return uri.host
        return uri.netloc

    def _should_sha256_sign_payload(
        self,
        *,
        request: AWSRequest,
        signing_properties: SigV4SigningProperties,
    ) -> bool:
        # All insecure connections should be signed
        if request.destination.scheme != "https":
            return True

        return signing_properties.get("payload_signing_enabled", True)

    def _format_canonical_payload(
        self,
        *,
        request: AWSRequest,
        signing_properties: SigV4SigningProperties,
    ) -> str:
        checksum_field = request.fields.get("X-Amz-Content-SHA256")
        if checksum_field is not None and len(checksum_field.values) == 1:
            return checksum_field.values[0]

        if self._should_sha256_sign_payload(
            request=request, signing_properties=signing_properties
        ):
            payload_hash = hash_payload(request.body)
        else:
            payload_hash = UNSIGNED_PAYLOAD

        policy = signing_properties.get("uri_encoding", DEFAULT_URI_ENCODING)
        if policy.apply_checksum:
            request.fields.set_field(
                Field(name="X-Amz-Content-SHA256", values=[payload_hash])
            )
        return payload_hash
