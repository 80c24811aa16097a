import logging

from .async_socket import AIOSocket
from .client import Client
from .constants import HTTPVersion, Method
from .exceptions import (
    ClientError,
    ContentDecodingError,
    InvalidFileError,
    InvalidHeaderLine,
    InvalidHTTPVersionError,
    InvalidMethodError,
    InvalidStatusCode,
    InvalidURIError,
    InvalidVersion,
    MalformedChunkedBody,
    ResponseError,
    SliceHTTPError,
    TooManyInterimResponses,
    TransportError,
    UnsupportedDecompression,
)
from .http import HTTPRequest, HTTPResponse, read_http_response
from .logger_config import setup_logging

__version__ = "0.1.0"

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "AIOSocket",
    "Client",
    "ClientError",
    "ContentDecodingError",
    "HTTPRequest",
    "HTTPResponse",
    "HTTPVersion",
    "InvalidFileError",
    "InvalidHTTPVersionError",
    "InvalidHeaderLine",
    "InvalidMethodError",
    "InvalidStatusCode",
    "InvalidURIError",
    "InvalidVersion",
    "MalformedChunkedBody",
    "Method",
    "ResponseError",
    "SliceHTTPError",
    "TooManyInterimResponses",
    "TransportError",
    "UnsupportedDecompression",
    "read_http_response",
    "setup_logging",
]
