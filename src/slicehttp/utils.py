import asyncio
import errno
import logging
import os
import socket
import ssl
from typing import Literal, Optional, Tuple

from slicehttp.exceptions import TransportError

logger = logging.getLogger(__name__)

_CONNECT_IN_PROGRESS = (errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EAGAIN)


async def create_nonblocking_socket_and_connect(
    remote_addr: Tuple[str, int],
    ssl_context: Optional[ssl.SSLContext] = None,
    server_hostname: Optional[str] = None,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> socket.socket:
    loop = loop or asyncio.get_event_loop()
    host, port = remote_addr
    try:
        infos = await loop.getaddrinfo(host, port, type=socket.SOCK_STREAM)
    except socket.gaierror as e:
        raise TransportError(f"Could not resolve {host}: {e}") from e

    family, type_, proto, _, sockaddr = infos[0]
    sock = socket.socket(family, type_, proto)
    sock.setblocking(False)

    try:
        error = sock.connect_ex(sockaddr)
        if error in _CONNECT_IN_PROGRESS:
            await wait_sock_ready_to_write(sock.fileno(), loop)
            error = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
        if error:
            raise TransportError(
                f"Connection to {host}:{port} failed: {os.strerror(error)}"
            )

        if ssl_context is not None:
            sock = ssl_context.wrap_socket(
                sock, do_handshake_on_connect=False, server_hostname=server_hostname
            )
            await do_ssl_handshake(sock, loop)
    except BaseException:
        sock.close()
        raise

    logger.debug("Connected to %s:%s", host, port)
    return sock


async def do_ssl_handshake(
    sock: ssl.SSLSocket, loop: Optional[asyncio.AbstractEventLoop] = None
) -> None:
    while True:
        try:
            sock.do_handshake()
            return
        except ssl.SSLWantReadError:
            await wait_sock_ready_to_read(sock.fileno(), loop)
        except ssl.SSLWantWriteError:
            await wait_sock_ready_to_write(sock.fileno(), loop)


def _socket_ready(
    action: Literal["read", "write"],
    sock_fd: int,
    future: asyncio.Future,
    loop: asyncio.AbstractEventLoop,
):
    func = {"read": loop.remove_reader, "write": loop.remove_writer}[action]
    func(sock_fd)
    if not future.done():
        future.set_result(None)


async def _wait_socket(
    action: Literal["read", "write"],
    sock_fd: int,
    loop: Optional[asyncio.AbstractEventLoop] = None,
):
    loop = loop or asyncio.get_event_loop()
    func = {"read": loop.add_reader, "write": loop.add_writer}[action]
    fut = loop.create_future()
    func(sock_fd, _socket_ready, action, sock_fd, fut, loop)
    try:
        return await fut
    finally:
        # cancelled (e.g. by a timeout) before the socket got ready
        if fut.cancelled():
            {"read": loop.remove_reader, "write": loop.remove_writer}[action](sock_fd)


async def wait_sock_ready_to_read(
    sock_fd: int, loop: Optional[asyncio.AbstractEventLoop] = None
):
    return await _wait_socket("read", sock_fd, loop)


async def wait_sock_ready_to_write(
    sock_fd: int, loop: Optional[asyncio.AbstractEventLoop] = None
):
    return await _wait_socket("write", sock_fd, loop)


async def send_to_nonblocking_socket(
    sock: socket.socket, data: bytes, loop: Optional[asyncio.AbstractEventLoop] = None
) -> int:
    total_sent = 0
    need_to_send = len(data)

    if sock.getblocking():
        sock.setblocking(False)

    while total_sent < need_to_send:
        try:
            total_sent += sock.send(data[total_sent:])
        except (BlockingIOError, InterruptedError, ssl.SSLWantWriteError):
            await wait_sock_ready_to_write(sock.fileno(), loop)
        except ssl.SSLWantReadError:
            await wait_sock_ready_to_read(sock.fileno(), loop)

    return total_sent


async def receive_from_nonblocking_socket(
    sock: socket.socket,
    buffer_size: int,
    loop: Optional[asyncio.AbstractEventLoop] = None,
) -> bytes:
    """Returns as soon as some data arrived, b"" once the peer closed."""
    if sock.getblocking():
        sock.setblocking(False)

    while True:
        try:
            return sock.recv(buffer_size)
        except (BlockingIOError, InterruptedError, ssl.SSLWantReadError):
            await wait_sock_ready_to_read(sock.fileno(), loop)
        except ssl.SSLWantWriteError:
            await wait_sock_ready_to_write(sock.fileno(), loop)
        except ssl.SSLZeroReturnError:
            return b""
