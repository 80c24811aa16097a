import mimetypes
import os
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional, Tuple, Union
from urllib.parse import urlencode, urlsplit

from slicehttp.constants import (
    DEFAULT_HTTP_PORT,
    DEFAULT_HTTPS_PORT,
    DEFAULT_USER_AGENT,
    ISO_8859_1,
    HTTPVersion,
    Method,
)
from .parser import canonical_header_name

_CRLF = b"\r\n"
_DEFAULT_PORTS = {"http": DEFAULT_HTTP_PORT, "https": DEFAULT_HTTPS_PORT}


def _empty_headers() -> Dict[str, str]:
    return {}


@dataclass(frozen=True)
class HTTPRequest:
    """
    A request ready to be written to the wire.

    Attributes:
        method: GET, POST, PUT or DELETE.
        host: Host to connect to.
        port: Port to connect to.
        target: Path and query string, e.g. "/search?q=1".
        scheme: "http" or "https".
        headers: Extra headers, override the generated ones.
        body: Request payload.
        http_version: "1.0" or "1.1".
    """

    method: str
    host: str
    port: int
    target: str = "/"
    scheme: str = "http"
    headers: Dict[str, str] = field(default_factory=_empty_headers)
    body: bytes = b""
    http_version: str = HTTPVersion.HTTP11

    @property
    def is_secure(self) -> bool:
        return self.scheme == "https"

    @property
    def host_header(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port == _DEFAULT_PORTS.get(self.scheme):
            return host
        return f"{host}:{self.port}"

    def to_bytes(self) -> bytes:
        headers = {
            "Host": self.host_header,
            "User-Agent": DEFAULT_USER_AGENT,
            # one request per connection
            "Connection": "close",
        }
        if self.body or self.method in (Method.POST, Method.PUT):
            headers["Content-Length"] = str(len(self.body))
        for name, value in self.headers.items():
            headers[canonical_header_name(name)] = value

        parts = [f"{self.method} {self.target} HTTP/{self.http_version}".encode(), _CRLF]
        for name, value in headers.items():
            parts.append(f"{name}: {value}".encode(ISO_8859_1))
            parts.append(_CRLF)
        parts.append(_CRLF)
        parts.append(self.body)
        return b"".join(parts)


def encode_multipart(
    fields: Mapping[str, Any], files: Mapping[str, str], boundary: Optional[str] = None
) -> Tuple[bytes, str]:
    """Returns the multipart/form-data body and its Content-Type."""
    boundary = boundary or uuid.uuid4().hex
    delimiter = f"--{boundary}".encode()
    parts = []

    for name, value in fields.items():
        values = value if isinstance(value, (list, tuple)) else [value]
        for item in values:
            if not isinstance(item, bytes):
                item = str(item).encode()
            parts += [
                delimiter,
                _CRLF,
                f'Content-Disposition: form-data; name="{name}"'.encode(),
                _CRLF,
                _CRLF,
                item,
                _CRLF,
            ]

    for name, path in files.items():
        filename = os.path.basename(path)
        content_type = mimetypes.guess_type(filename)[0] or "application/octet-stream"
        with open(path, "rb") as f:
            content = f.read()
        parts += [
            delimiter,
            _CRLF,
            f'Content-Disposition: form-data; name="{name}"; filename="{filename}"'.encode(),
            _CRLF,
            f"Content-Type: {content_type}".encode(),
            _CRLF,
            _CRLF,
            content,
            _CRLF,
        ]

    parts += [delimiter, b"--", _CRLF]
    return b"".join(parts), f"multipart/form-data; boundary={boundary}"


def build_request(
    method: str,
    uri: str,
    headers: Optional[Mapping[str, str]] = None,
    params_get: Optional[Mapping[str, Any]] = None,
    params_post: Optional[Mapping[str, Any]] = None,
    raw_data: Optional[Union[bytes, str]] = None,
    files: Optional[Mapping[str, str]] = None,
    http_version: str = HTTPVersion.HTTP11,
) -> HTTPRequest:
    """
    Assemble an HTTPRequest.

    GET and DELETE requests carry no body. POST sends ``raw_data`` when
    given, a multipart form when files are attached, an urlencoded form
    otherwise. PUT sends ``raw_data`` or an urlencoded form.
    """
    url = urlsplit(uri)
    scheme = url.scheme.lower()
    port = url.port or _DEFAULT_PORTS[scheme]

    target = url.path or "/"
    query = url.query
    if params_get:
        encoded = urlencode(params_get, doseq=True)
        query = f"{query}&{encoded}" if query else encoded
    if query:
        target = f"{target}?{query}"

    request_headers = dict(headers or {})
    body = b""
    if method in (Method.POST, Method.PUT):
        header_names = {name.lower() for name in request_headers}
        if raw_data is not None:
            body = raw_data.encode() if isinstance(raw_data, str) else bytes(raw_data)
        elif method == Method.POST and files:
            body, content_type = encode_multipart(params_post or {}, files)
            request_headers["Content-Type"] = content_type
        else:
            body = urlencode(params_post or {}, doseq=True).encode()
            if "content-type" not in header_names:
                request_headers["Content-Type"] = "application/x-www-form-urlencoded"

    return HTTPRequest(
        method=method,
        host=url.hostname,
        port=port,
        target=target,
        scheme=scheme,
        headers=request_headers,
        body=body,
        http_version=http_version,
    )
