# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""Mapping of service error responses to typed exceptions."""

import json
import logging
from typing import Any, Final
from xml.etree import ElementTree

from .exceptions import AWSError, AWSServiceError, InvalidSignatureError

logger: Final = logging.getLogger(__name__)

INVALID_SIGNATURE_CODES: Final = frozenset(
    {"InvalidSignatureException", "SignatureDoesNotMatch"}
)

# Services disagree on the casing of these fields. The lists are a best-effort
# fallback order, not a contract.
_CODE_FIELDS: Final = ("__type", "code", "Code")
_MESSAGE_FIELDS: Final = ("Message", "message", "errorMessage")

INTERNAL_ERROR_CODE: Final = "InternalServiceError"
INTERNAL_ERROR_MESSAGE: Final = "An error occurred on the server side"


def classify_error(
    *,
    service: str,
    operation: str,
    status: int,
    body: bytes | str | None,
    error_class: type[AWSServiceError] = AWSServiceError,
    reason: str | None = None,
) -> AWSError | None:
    """Interpret a service response.

    :param service: Signing name of the service that answered.
    :param operation: Name of the operation that was called.
    :param status: HTTP status code of the response.
    :param body: Raw response body.
    :param error_class: The service specific error type to produce.
    :param reason: The HTTP reason phrase, used when the body carries no code.
    :returns: ``None`` for successful responses, otherwise the error to raise.
    """
    if status < 400:
        return None

    if status >= 500:
        return error_class(
            INTERNAL_ERROR_MESSAGE,
            code=INTERNAL_ERROR_CODE,
            operation=operation,
            service=service,
        )

    code, message = parse_error_body(body)
    if code is None:
        code = reason or f"HTTP{status}"
    if message is None:
        message = code
    logger.debug("%s.%s failed with %s: %s", service, operation, code, message)

    if code in INVALID_SIGNATURE_CODES:
        return InvalidSignatureError(message, code=code)
    return error_class(message, code=code, operation=operation, service=service)


def parse_error_body(body: bytes | str | None) -> tuple[str | None, str | None]:
    """Extract the error code and message from a JSON or XML error body."""
    if not body:
        return None, None
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    text = text.strip()

    if text.startswith("<"):
        return _parse_xml_error(text)

    try:
        document = json.loads(text)
    except json.JSONDecodeError:
        logger.debug("Error body is neither JSON nor XML: %r", text[:200])
        return None, None
    if not isinstance(document, dict):
        return None, None
    return _parse_json_error(document)


def parse_error_code(code: str | None) -> str | None:
    """Reduce an error type tag to its bare shape name.

    ``com.amazonaws.kms#NotFoundException`` and
    ``NotFoundException:http://internal.amazon.com/`` both become
    ``NotFoundException``.
    """
    if not code:
        return None

    code = code.split(":")[0]
    if "#" in code:
        code = code.split("#", 1)[1]
    return code or None


def _parse_json_error(document: dict[str, Any]) -> tuple[str | None, str | None]:
    code = parse_error_code(_first_string(document, _CODE_FIELDS))
    message = _first_string(document, _MESSAGE_FIELDS)
    return code, message


def _parse_xml_error(text: str) -> tuple[str | None, str | None]:
    try:
        root = ElementTree.fromstring(text)
    except ElementTree.ParseError:
        logger.debug("Unable to parse XML error body: %r", text[:200])
        return None, None

    # S3 answers <Error>, query protocols wrap it in <ErrorResponse>.
    error = root if _local_name(root.tag) == "Error" else None
    if error is None:
        error = next(
            (el for el in root.iter() if _local_name(el.tag) == "Error"), root
        )
    values = {_local_name(child.tag): (child.text or "") for child in error}
    return parse_error_code(values.get("Code")), values.get("Message") or None


def _first_string(document: dict[str, Any], keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = document.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]
