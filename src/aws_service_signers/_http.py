# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from __future__ import annotations

from collections import OrderedDict
from collections.abc import Iterable, Iterator, Mapping
from copy import deepcopy
from dataclasses import dataclass, field, replace
from urllib.parse import urlunparse


class Field:
    """A name-value pair representing a single header of an HTTP request.

    Field names are case insensitive. The name is preserved as supplied for
    transmission and normalized only for lookups and signing.
    """

    def __init__(self, *, name: str, values: Iterable[str] | None = None):
        self.name = name
        self.values: list[str] = list(values) if values is not None else []

    def add(self, value: str) -> None:
        """Append a value to a field."""
        self.values.append(value)

    def as_string(self, delimiter: str = ",") -> str:
        """Get the values joined by ``delimiter``.

        If the ``Field`` has zero values, the empty string is returned. A single
        value is returned unmodified.
        """
        if not self.values:
            return ""
        if len(self.values) == 1:
            return self.values[0]
        return delimiter.join(self.values)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Field):
            return False
        return self.name == other.name and self.values == other.values

    def __repr__(self) -> str:
        return f"Field(name={self.name!r}, values={self.values!r})"


class Fields:
    """Collection of header entries keyed by their lower-cased name."""

    def __init__(self, initial: Iterable[Field] | None = None):
        self.entries: OrderedDict[str, Field] = OrderedDict()
        for fld in initial or ():
            if fld.name.lower() in self.entries:
                raise ValueError(
                    "Field names of the initial list of fields must be unique. "
                    f"{fld.name!r} appears more than once."
                )
            self.set_field(fld)

    @classmethod
    def from_mapping(cls, headers: Mapping[str, str] | None) -> Fields:
        """Build fields from a plain mapping.

        Names which differ only in case are merged into one multi-valued field.
        """
        fields = cls()
        for name, value in (headers or {}).items():
            if name in fields:
                fields[name].add(value)
            else:
                fields.set_field(Field(name=name, values=[value]))
        return fields

    def set_field(self, field: Field) -> None:
        """Set or override the entry for ``field.name``."""
        self.entries[field.name.lower()] = field

    def get(self, key: str, default: Field | None = None) -> Field | None:
        return self[key] if key in self else default

    def __getitem__(self, name: str) -> Field:
        return self.entries[name.lower()]

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self.entries

    def __iter__(self) -> Iterator[Field]:
        yield from self.entries.values()

    def __len__(self) -> int:
        return len(self.entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Fields):
            return False
        return self.entries == other.entries

    def __repr__(self) -> str:
        return f"Fields({self.entries})"

    def as_dict(self) -> dict[str, str]:
        """Flatten into a ``name -> value`` mapping suitable for a transport."""
        return {fld.name: fld.as_string() for fld in self}


@dataclass(kw_only=True, frozen=True)
class URI:
    """Target location of an :py:class:`AWSRequest`.

    ``path`` and ``query`` hold their percent-encoded wire form.
    """

    scheme: str = "https"
    """For example ``http`` or ``https``."""

    host: str
    """The hostname, for example ``kms.us-east-1.amazonaws.com``."""

    port: int | None = None
    """An explicit port number."""

    path: str | None = None
    """Path component of the URI."""

    query: str | None = None
    """Query component of the URI as string."""

    @property
    def netloc(self) -> str:
        """Construct netloc string in format ``{host}:{port}``.

        The port is omitted when unset.
        """
        if self.port is not None:
            return f"{self.host}:{self.port}"
        return self.host

    def build(self) -> str:
        """Construct the string form ``{scheme}://{host}:{port}{path}?{query}``."""
        components = (
            self.scheme,
            self.netloc,
            self.path or "",
            "",  # params
            self.query or "",
            "",  # fragment
        )
        return urlunparse(components)

    def with_query(self, query: str | None) -> URI:
        return replace(self, query=query)


class AWSRequest:
    """A request being prepared for signing."""

    def __init__(
        self,
        *,
        destination: URI,
        method: str,
        body: bytes = b"",
        fields: Fields,
    ):
        self.destination = destination
        self.method = method
        self.body = body
        self.fields = fields

    def __deepcopy__(self, memo: dict[int, object] | None = None) -> AWSRequest:
        if memo is None:
            memo = {}

        if id(self) in memo:
            return memo[id(self)]  # type: ignore[return-value]

        # The destination and body are immutable and can be shared.
        new_instance = self.__class__(
            destination=self.destination,
            body=self.body,
            method=self.method,
            fields=deepcopy(self.fields, memo),
        )
        memo[id(self)] = new_instance
        return new_instance


@dataclass(kw_only=True, frozen=True)
class SignedRequest:
    """A fully signed request ready to be handed to a transport.

    A descriptor is built for exactly one send. Its signature is only valid for a
    short window, so it must not be stored and replayed.
    """

    method: str
    url: str
    headers: dict[str, str] = field(default_factory=dict)
    body: bytes = b""

    @classmethod
    def from_request(cls, request: AWSRequest) -> SignedRequest:
        return cls(
            method=request.method,
            url=request.destination.build(),
            headers=request.fields.as_dict(),
            body=request.body,
        )
