# Copyright Amazon.com, Inc. or its affiliates. All Rights Reserved.
# SPDX-License-Identifier: Apache-2.0
from ._service import AsyncServiceClient
from .http import AIOHTTPClient, HTTPClient, HTTPResponse
from .kms import KMSClient, KMSDataKey, KMSKey, KMSKeySize
from .ssm import SystemsManagerClient, SystemsManagerParameter

__all__ = (
    "AIOHTTPClient",
    "AsyncServiceClient",
    "HTTPClient",
    "HTTPResponse",
    "KMSClient",
    "KMSDataKey",
    "KMSKey",
    "KMSKeySize",
    "SystemsManagerClient",
    "SystemsManagerParameter",
)
