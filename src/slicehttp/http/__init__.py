from .reader import read_http_response, read_raw_response
from .request import HTTPRequest, build_request
from .response import HTTPResponse
from .status import response_code_as_text

__all__ = [
    "HTTPRequest",
    "HTTPResponse",
    "build_request",
    "read_http_response",
    "read_raw_response",
    "response_code_as_text",
]
