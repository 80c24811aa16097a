"""Tests for the request client."""

import asyncio
import gzip
import re
import socket
from pathlib import Path
from typing import Callable, List, Optional, Tuple

import pytest

from slicehttp import Client, HTTPResponse
from slicehttp.exceptions import (
    ClientError,
    InvalidFileError,
    InvalidHTTPVersionError,
    InvalidMethodError,
    InvalidURIError,
    TransportError,
)

OK_RESPONSE = b"HTTP/1.1 200 OK\r\nContent-Type: text/plain\r\nContent-Length: 5\r\n\r\nhello"


async def start_server(
    response: bytes, requests: List[bytes], release: Optional[asyncio.Event] = None
) -> Tuple[asyncio.AbstractServer, int]:
    """Serve ``response`` to every connection, recording what was received."""

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        try:
            head = await reader.readuntil(b"\r\n\r\n")
            length = re.search(rb"Content-Length: (\d+)", head)
            body = await reader.readexactly(int(length.group(1))) if length else b""
            requests.append(head + body)
            if release is not None:
                await release.wait()
            writer.write(response)
            await writer.drain()
        except (asyncio.IncompleteReadError, ConnectionError):
            pass
        finally:
            writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    return server, port


def exchange(
    response: bytes, configure: Callable[[Client], Client] = lambda client: client
) -> Tuple[object, List[bytes], Client]:
    """Run one request against a local server."""

    async def main() -> Tuple[object, List[bytes], Client]:
        requests: List[bytes] = []
        server, port = await start_server(response, requests)
        async with server:
            client = configure(Client(f"http://127.0.0.1:{port}/path"))
            result = await client.request()
        return result, requests, client

    return asyncio.run(main())


class TestClientSettings:
    """Verify request settings and their validation."""

    def test_uri(self) -> None:
        """Absolute http and https URIs are accepted."""
        client = Client("https://example.com/a")
        assert client.get_uri() == "https://example.com/a"
        assert client.set_uri("http://example.com") is client

    @pytest.mark.parametrize(
        "uri", ["example.com", "ftp://example.com/", "http://", "/relative", "http://h:port/", None]
    )
    def test_invalid_uri(self, uri: object) -> None:
        """Anything but an absolute http(s) URI is rejected."""
        with pytest.raises(InvalidURIError):
            Client().set_uri(uri)  # type: ignore[arg-type]

    def test_method(self) -> None:
        """Known methods are accepted, others rejected."""
        client = Client(method="POST")
        assert client.get_method() == "POST"
        with pytest.raises(InvalidMethodError):
            client.set_method("PATCH")

    def test_headers_forms(self) -> None:
        """Headers may be set by name, line, mapping or list of lines."""
        client = Client()
        client.set_headers("Accept", " text/html ")
        client.set_headers("X-Line: one")
        client.set_headers({"X-Map": "two", "X-Other": 3})
        client.set_headers(["X-List: four"])
        assert client.get_header("Accept") == "text/html"
        assert client.get_header("X-Line") == "one"
        assert client.get_header("X-Map") == "two"
        assert client.get_header("X-Other") == 3
        assert client.get_header("X-List") == "four"

    def test_headers_removal(self) -> None:
        """None or False removes a header."""
        client = Client().set_headers("A", "1").set_headers("B", "2")
        client.set_headers("A", None)
        client.set_headers("B", False)
        assert client.get_header("A") is None
        assert client.get_header("B") is None

    def test_parameters(self) -> None:
        """Parameters are set from pairs or mappings and removed with None."""
        client = Client("http://h/")
        client.set_parameter_get({"a": "1", "b": "2"}).set_parameter_get("b", None)
        client.set_parameter_post("c", "3")
        request = client.set_method("POST").build_request()
        assert request.target == "/?a=1"
        assert request.body == b"c=3"

    def test_raw_data_type_checks(self) -> None:
        """raw_data takes a bool and set_raw_data bytes or str."""
        client = Client()
        with pytest.raises(TypeError):
            client.raw_data("yes")  # type: ignore[arg-type]
        with pytest.raises(TypeError):
            client.set_raw_data(123)  # type: ignore[arg-type]

    def test_raw_data_can_be_disabled(self) -> None:
        """raw_data(False) goes back to the form body."""
        client = Client("http://h/", "POST").set_raw_data("raw").set_parameter_post("a", "1")
        assert client.build_request().body == b"raw"
        client.raw_data(False)
        assert client.build_request().body == b"a=1"

    def test_files(self, tmp_path: Path) -> None:
        """Files get generated names unless named."""
        first = tmp_path / "a.txt"
        second = tmp_path / "b.txt"
        first.write_text("a")
        second.write_text("b")
        client = Client().set_files(str(first)).set_files({"named": str(second)})
        assert client.get_files() == {"file_contents_0": str(first), "named": str(second)}

    def test_missing_file(self, tmp_path: Path) -> None:
        """Paths that do not exist are rejected."""
        with pytest.raises(InvalidFileError):
            Client().set_files(str(tmp_path / "missing.txt"))

    def test_http_version(self) -> None:
        """Only 1.0 and 1.1 are supported."""
        client = Client("http://h/").set_http_version("1.0")
        assert client.build_request().http_version == "1.0"
        with pytest.raises(InvalidHTTPVersionError):
            client.set_http_version("2.0")

    def test_response_handler_must_be_callable(self) -> None:
        """A non callable handler is rejected."""
        with pytest.raises(TypeError):
            Client().set_response_handler("not callable")  # type: ignore[arg-type]

    def test_request_without_uri(self) -> None:
        """A URI is required before requesting."""
        with pytest.raises(ClientError):
            asyncio.run(Client().request())

    def test_reset(self) -> None:
        """reset() restores every request setting."""
        client = Client("http://h/", "PUT").set_headers("A", "1").set_http_version("1.0")
        client.reset()
        assert client.get_uri() is None
        assert client.get_method() == "GET"
        assert client.get_header("A") is None
        with pytest.raises(ClientError):
            client.build_request()


class TestClientRequest:
    """Verify full exchanges against a local server."""

    def test_get(self) -> None:
        """A GET returns the parsed response."""
        response, requests, _ = exchange(
            OK_RESPONSE, lambda client: client.set_parameter_get("q", "x y")
        )
        assert isinstance(response, HTTPResponse)
        assert response.status_code == 200
        assert response.body == b"hello"
        assert requests[0].startswith(b"GET /path?q=x+y HTTP/1.1\r\n")
        assert b"Connection: close\r\n" in requests[0]

    def test_post_sends_body(self) -> None:
        """A POST sends its form body."""
        _, requests, _ = exchange(
            OK_RESPONSE,
            lambda client: client.set_method("POST").set_parameter_post({"a": "1"}),
        )
        assert requests[0].startswith(b"POST /path HTTP/1.1\r\n")
        assert requests[0].endswith(b"\r\n\r\na=1")

    def test_gzip_chunked_response(self) -> None:
        """Encoded responses are decoded on access."""
        compressed = gzip.compress(b"hello")
        raw = (
            b"HTTP/1.1 200 OK\r\nTransfer-Encoding: chunked\r\nContent-Encoding: gzip\r\n\r\n"
            + b"%x\r\n%s\r\n0\r\n\r\n" % (len(compressed), compressed)
        )
        response, _, _ = exchange(raw)
        assert response.body == b"hello"  # type: ignore[attr-defined]

    def test_continue_then_response(self) -> None:
        """An interim 100 Continue is skipped."""
        response, _, _ = exchange(
            b"HTTP/1.1 100 Continue\r\n\r\nHTTP/1.1 404 Not Found\r\nContent-Length: 7\r\n\r\nmissing"
        )
        assert response.status_code == 404  # type: ignore[attr-defined]
        assert response.body == b"missing"  # type: ignore[attr-defined]

    def test_state_is_reset_after_request(self) -> None:
        """Settings are cleared, the response and request are kept."""
        response, _, client = exchange(OK_RESPONSE)
        assert client.get_uri() is None
        assert client.get_response() is response
        assert client.get_last_request().target == "/path"

    def test_no_reset_keeps_state(self) -> None:
        """no_reset(True) keeps the settings for the next request."""
        _, _, client = exchange(OK_RESPONSE, lambda client: client.no_reset(True))
        assert client.get_uri() is not None

    def test_custom_response_handler(self) -> None:
        """The response handler builds the returned object."""

        class CustomResponse(HTTPResponse):
            pass

        response, _, _ = exchange(
            OK_RESPONSE, lambda client: client.set_response_handler(CustomResponse.from_string)
        )
        assert isinstance(response, CustomResponse)

    def test_timeout(self) -> None:
        """A server that never answers times out."""

        async def main() -> None:
            release = asyncio.Event()
            server, port = await start_server(OK_RESPONSE, [], release)
            async with server:
                try:
                    await Client(f"http://127.0.0.1:{port}/", timeout=0.2).request()
                finally:
                    release.set()

        with pytest.raises(TimeoutError, match="Timeout performing GET") as excinfo:
            asyncio.run(main())
        assert excinfo.value.__cause__ is None
        assert excinfo.value.__suppress_context__

    def test_connection_refused(self) -> None:
        """A closed port is a transport error."""
        with socket.socket() as sock:
            sock.bind(("127.0.0.1", 0))
            port = sock.getsockname()[1]

        with pytest.raises(TransportError):
            asyncio.run(Client(f"http://127.0.0.1:{port}/").request())

    def test_empty_reply(self) -> None:
        """A server closing without answering is a transport error."""
        with pytest.raises(TransportError):
            exchange(b"")
