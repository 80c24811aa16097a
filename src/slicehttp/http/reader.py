import logging
from typing import Any, Callable, Optional

from slicehttp.async_socket import AIOSocket
from slicehttp.constants import MAX_CHUNK_SIZE
from slicehttp.exceptions import TransportError
from .parser import extract_code, extract_headers
from .response import HTTPResponse

logger = logging.getLogger(__name__)

ResponseFactory = Callable[[bytes], Any]

_HEAD_END = b"\r\n\r\n"
_LAST_CHUNK = b"0\r\n\r\n"
_NO_BODY_CODES = (204, 304)


def _is_interim(code: Optional[int]) -> bool:
    # 101 ends the HTTP exchange, other 1xx are followed by the real response
    return code is not None and 100 <= code < 200 and code != 101


async def read_raw_response(
    sock: AIOSocket, head_only: bool = False, buffer_size: int = MAX_CHUNK_SIZE
) -> bytes:
    """
    Buffer a whole response from the socket.

    Interim 1xx heads (except 101) are read and dropped, the returned bytes
    start with the final response head.
    The body is read up to Content-Length when the server sent one, up to
    the last chunk for chunked bodies, otherwise until the server closes
    the connection.
    """
    buff = b""
    head_start = 0
    while True:
        head_end = buff.find(_HEAD_END, head_start)
        if head_end != -1:
            code = extract_code(buff[head_start:head_end])
            if not _is_interim(code):
                break
            logger.debug("Skipping interim %s response", code)
            head_start = head_end + len(_HEAD_END)
            continue

        chunk = await sock.recv(buffer_size)
        if not chunk:
            if not buff:
                raise TransportError(
                    "Connection closed before any response was received"
                )
            logger.debug("Connection closed while reading headers")
            return buff[head_start:] or buff
        buff += chunk

    body_start = head_end + len(_HEAD_END)
    if head_only or code in _NO_BODY_CODES:
        return buff[head_start:body_start]

    headers = extract_headers(buff[head_start:body_start])
    transfer_encoding = headers.get("Transfer-Encoding", [""])[-1].strip().lower()
    chunked = transfer_encoding == "chunked"

    expected_size = None
    if not chunked and "Content-Length" in headers:
        try:
            expected_size = body_start + int(headers["Content-Length"][-1])
        except ValueError:
            logger.debug("Ignoring invalid Content-Length %r", headers["Content-Length"])

    while expected_size is None or len(buff) < expected_size:
        if chunked and (
            buff.endswith(b"\r\n" + _LAST_CHUNK) or buff[body_start:] == _LAST_CHUNK
        ):
            break
        chunk = await sock.recv(buffer_size)
        if not chunk:
            if expected_size is not None:
                logger.warning(
                    "Connection closed after %d of %d body bytes",
                    len(buff) - body_start,
                    expected_size - body_start,
                )
            break
        buff += chunk

    logger.debug("Read %d response bytes", len(buff) - head_start)
    return buff[head_start:]


async def read_http_response(
    sock: AIOSocket,
    response_factory: Optional[ResponseFactory] = None,
    head_only: bool = False,
):
    raw = await read_raw_response(sock, head_only=head_only)
    factory = response_factory or HTTPResponse.from_string
    return factory(raw)
