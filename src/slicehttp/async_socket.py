import asyncio
import logging
import socket
import ssl
from typing import Optional, Tuple

from slicehttp.utils import (
    create_nonblocking_socket_and_connect,
    receive_from_nonblocking_socket,
    send_to_nonblocking_socket,
)

logger = logging.getLogger(__name__)


class AIOSocket:
    """
    A connected non-blocking socket driven by the event loop's readers and
    writers. Every wait is registered on ``loop``.
    """

    def __init__(
        self,
        sock: socket.socket,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        remote_addr: Optional[Tuple[str, int]] = None,
    ):
        self.sock = sock
        self.loop = loop or asyncio.get_event_loop()
        self.remote_addr = remote_addr
        self.bytes_sent = 0
        self.bytes_received = 0

    @property
    def is_ssl(self) -> bool:
        return isinstance(self.sock, ssl.SSLSocket)

    @property
    def closed(self) -> bool:
        return self.sock.fileno() == -1

    async def send(self, data: bytes) -> int:
        sent = await send_to_nonblocking_socket(self.sock, data, self.loop)
        self.bytes_sent += sent
        return sent

    async def recv(self, buffer_size: int) -> bytes:
        data = await receive_from_nonblocking_socket(self.sock, buffer_size, self.loop)
        self.bytes_received += len(data)
        return data

    def close(self) -> None:
        if self.closed:
            return
        logger.debug(
            "Closing %r after %d bytes sent, %d received",
            self,
            self.bytes_sent,
            self.bytes_received,
        )
        self.sock.close()

    async def __aenter__(self) -> "AIOSocket":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __repr__(self) -> str:
        scheme = "tls" if self.is_ssl else "tcp"
        if self.remote_addr is None:
            return f"<AIOSocket {scheme} fd={self.sock.fileno()}>"
        host, port = self.remote_addr
        return f"<AIOSocket {scheme}://{host}:{port}>"

    @classmethod
    async def open_connection(
        cls,
        remote_addr: Tuple[str, int],
        ssl_context: Optional[ssl.SSLContext] = None,
        server_hostname: Optional[str] = None,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> "AIOSocket":
        loop = loop or asyncio.get_event_loop()
        sock = await create_nonblocking_socket_and_connect(
            remote_addr, ssl_context, server_hostname, loop
        )
        return cls(sock, loop=loop, remote_addr=remote_addr)
