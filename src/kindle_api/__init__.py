"""Kindle Cloud Reader API client (read.amazon.com)."""

__version__ = "0.1.0"

from .api_client import KindleClient
from .auth import DeviceInfo, KindleSession
from .errors import (
    BadResponseError,
    ClientDefectError,
    DecodingError,
    HtmlDecodingError,
    InvalidSessionError,
    KindleError,
    MissingMetadataError,
    ServiceError,
    UnauthenticatedError,
)

__all__ = [
    "KindleClient",
    "KindleSession",
    "DeviceInfo",
    "KindleError",
    "UnauthenticatedError",
    "ServiceError",
    "BadResponseError",
    "DecodingError",
    "HtmlDecodingError",
    "MissingMetadataError",
    "ClientDefectError",
    "InvalidSessionError",
]
