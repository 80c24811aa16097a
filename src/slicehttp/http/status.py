from types import MappingProxyType
from typing import Mapping, Optional, Union

UNKNOWN_REASON = "Unknown"

REASON_PHRASES: Mapping[int, str] = MappingProxyType(
    {
        # Informational 1xx
        100: "Continue",
        101: "Switching Protocols",
        # Success 2xx
        200: "OK",
        201: "Created",
        202: "Accepted",
        203: "Non-Authoritative Information",
        204: "No Content",
        205: "Reset Content",
        206: "Partial Content",
        # Redirection 3xx
        300: "Multiple Choices",
        301: "Moved Permanently",
        302: "Found",  # HTTP/1.1 wording
        303: "See Other",
        304: "Not Modified",
        305: "Use Proxy",
        # 306 is reserved
        307: "Temporary Redirect",
        # Client Error 4xx
        400: "Bad Request",
        401: "Unauthorized",
        402: "Payment Required",
        403: "Forbidden",
        404: "Not Found",
        405: "Method Not Allowed",
        406: "Not Acceptable",
        407: "Proxy Authentication Required",
        408: "Request Timeout",
        409: "Conflict",
        410: "Gone",
        411: "Length Required",
        412: "Precondition Failed",
        413: "Request Entity Too Large",
        414: "Request-URI Too Long",
        415: "Unsupported Media Type",
        416: "Requested Range Not Satisfiable",
        417: "Expectation Failed",
        # Server Error 5xx
        500: "Internal Server Error",
        501: "Not Implemented",
        502: "Bad Gateway",
        503: "Service Unavailable",
        504: "Gateway Timeout",
        505: "HTTP Version Not Supported",
        509: "Bandwidth Limit Exceeded",
    }
)

_HTTP10_PHRASES: Mapping[int, str] = MappingProxyType(
    {**REASON_PHRASES, 302: "Moved Temporarily"}
)


def response_code_as_text(
    code: Optional[int] = None, http11: bool = True
) -> Union[str, Mapping[int, str]]:
    """
    Look up the reason phrase for ``code``.

    With no code the whole (read-only) table is returned. Codes missing
    from the table give ``"Unknown"``, use ``is_known_code`` to validate.
    """
    messages = REASON_PHRASES if http11 else _HTTP10_PHRASES
    if code is None:
        return messages
    return messages.get(code, UNKNOWN_REASON)


def is_known_code(code) -> bool:
    return isinstance(code, int) and not isinstance(code, bool) and code in REASON_PHRASES
