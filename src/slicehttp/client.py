import asyncio
import logging
import os
import ssl
from typing import Any, Callable, Dict, Iterable, Mapping, Optional, Union
from urllib.parse import urlsplit

from slicehttp.async_socket import AIOSocket
from slicehttp.constants import DEFAULT_TIMEOUT, HTTPVersion, Method
from slicehttp.exceptions import (
    ClientError,
    InvalidFileError,
    InvalidHTTPVersionError,
    InvalidMethodError,
    InvalidURIError,
)
from slicehttp.http.reader import ResponseFactory, read_http_response
from slicehttp.http.request import HTTPRequest, build_request
from slicehttp.http.response import HTTPResponse

logger = logging.getLogger(__name__)


class Client:
    """
    A small HTTP client performing one request per connection.

    Setters return the client so calls can be chained::

        client = Client("http://example.com/search")
        response = await client.set_parameter_get("q", "slice").request()

    Unless ``no_reset(True)`` was called, the request settings are cleared
    after every request.

    Attributes:
        timeout (Optional[float]): Seconds allowed for connecting, sending and
            reading the whole response. None disables the limit.
        ssl_context (Optional[ssl.SSLContext]): Context for https URIs.
            Defaults to ``ssl.create_default_context()``.
    """

    def __init__(
        self,
        uri: Optional[str] = None,
        method: Optional[str] = None,
        *,
        timeout: Optional[float] = DEFAULT_TIMEOUT,
        ssl_context: Optional[ssl.SSLContext] = None,
    ):
        self.timeout = timeout
        self.ssl_context = ssl_context

        self._uri: Optional[str] = None
        self._method: str = Method.GET
        self._headers: Dict[str, Any] = {}
        self._params_get: Dict[str, Any] = {}
        self._params_post: Dict[str, Any] = {}
        self._use_raw_data: bool = False
        self._raw_data: Optional[Union[bytes, str]] = None
        self._files: Dict[str, str] = {}
        self._http_version: str = HTTPVersion.HTTP11

        self._response = None
        self._last_request: Optional[HTTPRequest] = None
        self._no_reset: bool = False
        self._response_handler: ResponseFactory = HTTPResponse.from_string

        if uri is not None:
            self.set_uri(uri)
        if method is not None:
            self.set_method(method)

    def set_uri(self, uri: str) -> "Client":
        url = urlsplit(uri) if isinstance(uri, str) else None
        if url is None or url.scheme.lower() not in ("http", "https") or not url.hostname:
            raise InvalidURIError(f"Invalid URI: {uri!r}")
        try:
            url.port
        except ValueError as e:
            raise InvalidURIError(f"Invalid URI: {uri!r}") from e
        self._uri = uri
        return self

    def get_uri(self) -> Optional[str]:
        return self._uri

    def set_method(self, method: str = Method.GET) -> "Client":
        if method not in Method.ALLOWED:
            raise InvalidMethodError(f"Invalid method: {method!r}")
        self._method = method
        return self

    def get_method(self) -> str:
        return self._method

    def set_headers(
        self, name: Union[str, Mapping[str, Any], Iterable[str]], value: Any = None
    ) -> "Client":
        """
        Set, replace or remove request headers.

        Accepts a name and a value, a ``"Name: value"`` line, a mapping of
        names to values or a list of lines. A value of None or False
        removes the header.
        """
        if isinstance(name, Mapping):
            for key, val in name.items():
                self.set_headers(key, val)
            return self
        if not isinstance(name, str):
            for line in name:
                self.set_headers(line)
            return self

        if value is None and name.find(":") > 0:
            name, value = name.split(":", 1)
        name = name.strip()

        if value is None or value is False:
            self._headers.pop(name, None)
        else:
            if isinstance(value, str):
                value = value.strip()
            self._headers[name] = value
        return self

    def get_header(self, key: str) -> Any:
        return self._headers.get(key)

    def set_parameter_get(
        self, name: Union[str, Mapping[str, Any]], value: Any = None
    ) -> "Client":
        self._set_parameter(self._params_get, name, value)
        return self

    def set_parameter_post(
        self, name: Union[str, Mapping[str, Any]], value: Any = None
    ) -> "Client":
        self._set_parameter(self._params_post, name, value)
        return self

    @classmethod
    def _set_parameter(cls, params: Dict[str, Any], name, value) -> None:
        if isinstance(name, Mapping):
            for key, val in name.items():
                cls._set_parameter(params, key, val)
        elif value is None:
            params.pop(name, None)
        else:
            params[name] = value

    def raw_data(self, flag: bool = False) -> "Client":
        if not isinstance(flag, bool):
            raise TypeError(
                f"Invalid parameter type, expected bool, got {type(flag).__name__}"
            )
        self._use_raw_data = flag
        return self

    def set_raw_data(self, data: Union[bytes, str]) -> "Client":
        if not isinstance(data, (bytes, str)):
            raise TypeError(f"Invalid raw data type {type(data).__name__}")
        self.raw_data(True)
        self._raw_data = data
        return self

    def set_files(
        self, file: Union[str, Mapping[str, str], Iterable[str]], name: Optional[str] = None
    ) -> "Client":
        if isinstance(file, Mapping):
            for key, path in file.items():
                self.set_files(path, key)
            return self
        if not isinstance(file, (str, os.PathLike)):
            for path in file:
                self.set_files(path)
            return self

        if not os.path.isfile(file):
            raise InvalidFileError(f"Invalid file, {file} does not exist.")
        if name is None:
            name = f"file_contents_{len(self._files)}"
        self._files[name] = os.fspath(file)
        return self

    def get_files(self) -> Dict[str, str]:
        return dict(self._files)

    def set_http_version(self, version: str = HTTPVersion.HTTP11) -> "Client":
        if version not in HTTPVersion.ALLOWED:
            raise InvalidHTTPVersionError(f"Invalid HTTP version: {version!r}")
        self._http_version = version
        return self

    def set_response_handler(self, factory: Callable[[bytes], Any]) -> "Client":
        """
        Use ``factory`` instead of ``HTTPResponse.from_string`` to build
        responses, e.g. the ``from_string`` of an HTTPResponse subclass.
        """
        if not callable(factory):
            raise TypeError("Response handler must be callable")
        self._response_handler = factory
        return self

    def no_reset(self, flag: bool = False) -> "Client":
        if not isinstance(flag, bool):
            raise TypeError(
                f"Invalid parameter type, expected bool, got {type(flag).__name__}"
            )
        self._no_reset = flag
        return self

    def get_response(self):
        return self._response

    def get_last_request(self) -> Optional[HTTPRequest]:
        return self._last_request

    def build_request(self) -> HTTPRequest:
        if self._uri is None:
            raise ClientError("URI must be set before calling request method.")
        return build_request(
            self._method,
            self._uri,
            headers=self._headers,
            params_get=self._params_get,
            params_post=self._params_post,
            raw_data=self._raw_data if self._use_raw_data else None,
            files=self._files,
            http_version=self._http_version,
        )

    async def request(self, method: Optional[str] = None):
        """
        Send the configured request and return the parsed response.

        Raises:
            ClientError: If no URI was set
            TransportError: If the connection fails or nothing is received
            TimeoutError: If the exchange takes longer than ``timeout``
            ResponseError: If the response can not be parsed
        """
        if method is not None:
            self.set_method(method)
        request = self.build_request()

        try:
            response = await asyncio.wait_for(self._exchange(request), self.timeout)
        except asyncio.TimeoutError:
            raise TimeoutError(
                f"Timeout performing {request.method} {request.host_header}{request.target}"
            ) from None

        self._response = response
        self._last_request = request
        if not self._no_reset:
            self.reset()
        return self._response

    async def _exchange(self, request: HTTPRequest):
        ssl_context = None
        if request.is_secure:
            ssl_context = self.ssl_context or ssl.create_default_context()

        sock = await AIOSocket.open_connection(
            (request.host, request.port), ssl_context, server_hostname=request.host
        )
        async with sock:
            data = request.to_bytes()
            await sock.send(data)
            logger.debug(
                "Sent %s %s (%d bytes) to %s:%s",
                request.method,
                request.target,
                len(data),
                request.host,
                request.port,
            )
            return await read_http_response(sock, self._response_handler)

    def reset(self) -> "Client":
        self._uri = None
        self._method = Method.GET
        self._headers = {}
        self._params_get = {}
        self._params_post = {}
        self._use_raw_data = False
        self._raw_data = None
        self._files = {}
        self._http_version = HTTPVersion.HTTP11
        return self
