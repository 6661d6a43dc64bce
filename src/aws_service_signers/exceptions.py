# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from dataclasses import dataclass, field


class BaseAWSSDKException(Exception):
    """Top-level exception to capture SDK-related errors."""


class MissingExpectedParameterException(BaseAWSSDKException, ValueError):
    """Some APIs require specific signing properties to be present."""


class InvalidRequestError(BaseAWSSDKException, ValueError):
    """A request could not be built from the supplied inputs.

    Raised before any network interaction, for example for an unsupported HTTP
    method or an out of range presigned URL expiry.
    """


@dataclass(kw_only=True)
class AWSError(BaseAWSSDKException):
    """Base exception for errors reported by an AWS service."""

    message: str = field(default="", kw_only=False)
    """The human readable message of the error."""

    code: str = ""
    """A short code identifying the kind of error, such as ``ValidationException``."""

    def __post_init__(self):
        super().__init__(self.message)


@dataclass(kw_only=True)
class InvalidSignatureError(AWSError):
    """The service rejected the signature attached to a request.

    ``code`` holds the sub-code reported by the service, for example
    ``InvalidSignatureException`` or ``SignatureDoesNotMatch``. This almost always
    means the canonical request computed locally differs from the one the service
    computed.
    """


@dataclass(kw_only=True)
class AWSServiceError(AWSError):
    """An error returned by a service while performing an operation."""

    operation: str = ""
    """Name of the failed operation, for example ``GenerateDataKey``."""

    service: str = ""
    """Signing name of the service that reported the error."""


@dataclass(kw_only=True)
class KMSServiceError(AWSServiceError):
    """An error returned by the Key Management Service."""


@dataclass(kw_only=True)
class S3ServiceError(AWSServiceError):
    """An error returned by the Simple Storage Service."""


@dataclass(kw_only=True)
class SSMServiceError(AWSServiceError):
    """An error returned by the Systems Manager service."""


@dataclass(kw_only=True)
class SecretsManagerServiceError(AWSServiceError):
    """An error returned by Secrets Manager."""
