# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
"""AWS Service Signers builds AWS Signature Version 4 signed requests, either with an
``Authorization`` header or as presigned URLs, and maps service error responses to
typed exceptions."""

from __future__ import annotations

from ._http import AWSRequest, Field, Fields, SignedRequest, URI
from ._identity import AWSCredentialIdentity
from .canonical import CanonicalRequest, canonicalize
from .client import (
    KMS,
    S3,
    SECRETS_MANAGER,
    SSM,
    AWSClient,
    AWSServiceConfig,
    SigningMode,
)
from .config import AWSConfig, URIEncodingConfig
from .errors import classify_error
from .signers import CredentialScope, SigV4Signer, SigV4SigningProperties

__license__ = "Apache-2.0"
__version__ = "0.1.0"

__all__ = (
    "KMS",
    "S3",
    "SECRETS_MANAGER",
    "SSM",
    "URI",
    "AWSClient",
    "AWSConfig",
    "AWSCredentialIdentity",
    "AWSRequest",
    "AWSServiceConfig",
    "CanonicalRequest",
    "CredentialScope",
    "Field",
    "Fields",
    "SigV4Signer",
    "SigV4SigningProperties",
    "SignedRequest",
    "SigningMode",
    "URIEncodingConfig",
    "canonicalize",
    "classify_error",
)
