# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Canonical request formation for the AWS Signature Version 4 algorithm.

The canonical request is the exact string the service recomputes and hashes on its
side. Any difference in ordering, casing or encoding, however small, surfaces only
as a signature mismatch reported by the remote service.
"""

import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from hashlib import sha256
from typing import TypeAlias
from urllib.parse import quote

from ._http import Fields
from .config import URIEncodingConfig
from .exceptions import MissingExpectedParameterException

HEADERS_EXCLUDED_FROM_SIGNING: tuple[str, ...] = (
    "accept",
    "accept-encoding",
    "authorization",
    "connection",
    "expect",
    "user-agent",
    "x-amzn-trace-id",
)

UNSIGNED_PAYLOAD: str = "UNSIGNED-PAYLOAD"
EMPTY_SHA256_HASH = "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"

QueryParams: TypeAlias = Mapping[str, str] | Iterable[tuple[str, str]]
Headers: TypeAlias = Mapping[str, str] | Fields

_CONSECUTIVE_SLASHES = re.compile(r"/{2,}")


@dataclass(frozen=True)
class CanonicalRequest:
    """The components of a canonical request.

    ``str()`` renders the protocol form::

        <HTTPMethod>\\n
        <CanonicalURI>\\n
        <CanonicalQueryString>\\n
        <CanonicalHeaders>\\n
        <SignedHeaders>\\n
        <HashedPayload>
    """

    method: str
    canonical_uri: str
    canonical_query: str
    canonical_headers: str
    signed_headers: str
    payload_hash: str

    def __str__(self) -> str:
        return (
            f"{self.method}\n"
            f"{self.canonical_uri}\n"
            f"{self.canonical_query}\n"
            f"{self.canonical_headers}\n"
            f"{self.signed_headers}\n"
            f"{self.payload_hash}"
        )

    def hexdigest(self) -> str:
        return sha256(str(self).encode()).hexdigest()


def canonicalize(
    method: str,
    path: str,
    query: QueryParams | None,
    headers: Headers,
    body: bytes | str | None,
    policy: URIEncodingConfig,
    *,
    payload_hash: str | None = None,
) -> CanonicalRequest:
    """Build the canonical request for a raw, unencoded request.

    :param method: The HTTP method.
    :param path: The raw request path, for example ``/my key.txt``.
    :param query: Raw query parameters as a mapping or as ``(key, value)`` pairs.
    :param headers: Headers to sign. Must contain ``host``.
    :param body: The raw request body.
    :param policy: The path encoding rules of the target service.
    :param payload_hash: Use this value instead of hashing ``body``, for example
        ``UNSIGNED-PAYLOAD``.
    """
    canonical_fields, signed_headers = canonical_headers(headers)
    return CanonicalRequest(
        method=method.upper(),
        canonical_uri=canonical_path(encode_path(path), policy),
        canonical_query=canonical_query_string(query),
        canonical_headers=canonical_fields,
        signed_headers=signed_headers,
        payload_hash=payload_hash if payload_hash is not None else hash_payload(body),
    )


def uri_encode(value: str, safe: str = "") -> str:
    """Percent-encode everything except RFC 3986 unreserved characters.

    Characters in ``safe`` are also left as is.
    """
    return quote(value, safe=safe)


def encode_path(path: str) -> str:
    """Percent-encode each segment of a raw path, producing its wire form.

    A non-empty path is always rooted: ``test.txt`` becomes ``/test.txt``, the
    path a transport puts on the request line.
    """
    if path and not path.startswith("/"):
        path = f"/{path}"
    return "/".join(uri_encode(segment) for segment in path.split("/"))


def canonical_path(encoded_path: str | None, policy: URIEncodingConfig) -> str:
    """Derive the canonical URI from an already percent-encoded path."""
    if not encoded_path:
        return "/" if policy.normalize_empty_path_to_slash else ""
    if not encoded_path.startswith("/"):
        encoded_path = f"/{encoded_path}"

    if policy.double_encode_path:
        normalized_path = _remove_dot_segments(encoded_path)
        return uri_encode(normalized_path, safe="/")
    # S3 style services sign the path exactly as sent.
    return encoded_path


def canonical_query_string(query: QueryParams | None) -> str:
    if not query:
        return ""

    pairs = query.items() if isinstance(query, Mapping) else query
    query_parts = ((uri_encode(key), uri_encode(value)) for key, value in pairs)
    # key-value pairs must be in sorted order for their encoded forms.
    return "&".join(f"{key}={value}" for key, value in sorted(query_parts))


def canonical_headers(headers: Headers) -> tuple[str, str]:
    """Return the canonical header block and the signed headers list."""
    normalized: dict[str, list[str]] = {}
    for name, value in _iter_header_values(headers):
        key = name.strip().lower()
        if key in HEADERS_EXCLUDED_FROM_SIGNING:
            continue
        normalized.setdefault(key, []).append(" ".join(value.split()))

    if "host" not in normalized:
        raise MissingExpectedParameterException(
            "The host header must be present in every signed request."
        )

    names = sorted(normalized)
    block = "".join(f"{name}:{','.join(normalized[name])}\n" for name in names)
    return block, ";".join(names)


def hash_payload(body: bytes | str | None) -> str:
    """Hex encoded SHA-256 digest of the raw body."""
    if body is None:
        return EMPTY_SHA256_HASH
    if isinstance(body, str):
        body = body.encode("utf-8")
    if not isinstance(body, bytes | bytearray | memoryview):
        raise TypeError(
            f"Request bodies must be bytes or str to be signed, got {type(body)}."
        )
    return sha256(body).hexdigest()


def _iter_header_values(headers: Headers) -> Iterator[tuple[str, str]]:
    if isinstance(headers, Fields):
        for fld in headers:
            for value in fld.values:
                yield fld.name, value
    else:
        yield from headers.items()


def _remove_dot_segments(path: str) -> str:
    """Removes dot segments and consecutive slashes from a path.

    Dot segments are removed per :rfc:`3986#section-5.2.4`.
    """
    output: list[str] = []
    for segment in path.split("/"):
        if segment == ".":
            continue
        elif segment != "..":
            output.append(segment)
        elif output:
            output.pop()
    if path.startswith("/") and (not output or output[0]):
        output.insert(0, "")
    if output and path.endswith(("/.", "/..")):
        output.append("")
    return _CONSECUTIVE_SLASHES.sub("/", "/".join(output))
