import logging
import re
import struct
from typing import Callable, Dict, Optional

from slicehttp.exceptions import (
    ContentDecodingError,
    MalformedChunkedBody,
    UnsupportedDecompression,
)

try:
    import zlib
except ImportError:  # pragma: no cover - interpreters built without zlib
    zlib = None

logger = logging.getLogger(__name__)

GZIP_HEADER_SIZE = 10

_CHUNK_SIZE_RE = re.compile(rb"([0-9a-fA-F]+)[ \t]*(?:;[^\r\n]*)?(\r\n|\Z)")


def decode_chunked_body(body: bytes) -> bytes:
    """
    Join the payloads of a ``Transfer-Encoding: chunked`` body.

    Every chunk is ``<hex size>[;extension]\\r\\n<data>\\r\\n`` and the body
    ends with a zero sized chunk. Trailers after the last chunk are ignored.

    Raises:
        MalformedChunkedBody: If a chunk size line is invalid, or chunk data
            is shorter than announced or not followed by CRLF.
    """
    decoded = bytearray()
    while body.strip():
        match = _CHUNK_SIZE_RE.match(body)
        if match is None:
            raise MalformedChunkedBody(
                "Error parsing body - doesn't seem to be a chunked message"
            )

        length = int(match.group(1), 16)
        if length == 0:
            break
        if not match.group(2):
            raise MalformedChunkedBody(
                f"Missing CRLF after chunk size {match.group(1).decode()}"
            )

        start = match.end()
        end = start + length
        if body[end : end + 2] != b"\r\n":
            raise MalformedChunkedBody(
                f"Chunk of {length} bytes is truncated or not terminated by CRLF"
            )
        decoded += body[start:end]
        body = body[end + 2 :]

    return bytes(decoded)


def _require_zlib(encoding: str) -> None:
    if zlib is None:
        raise UnsupportedDecompression(
            f'zlib module is required in order to decode "{encoding}" encoding'
        )


def _inflate(data: bytes, wbits: int, encoding: str) -> bytes:
    decompressor = zlib.decompressobj(wbits)
    try:
        decoded = decompressor.decompress(data) + decompressor.flush()
    except zlib.error as e:
        raise ContentDecodingError(f"Failed to decode {encoding} body: {e}") from e
    if not decompressor.eof:
        raise ContentDecodingError(f"Failed to decode {encoding} body: data is truncated")
    return decoded


def decode_gzip(body: bytes) -> bytes:
    # fixed header only, FEXTRA/FNAME fields are not handled
    _require_zlib("gzip")
    return _inflate(body[GZIP_HEADER_SIZE:], -zlib.MAX_WBITS, "gzip")


def decode_deflate(body: bytes) -> bytes:
    """
    Inflate a ``Content-Encoding: deflate`` body.

    The encoding is supposed to be zlib wrapped, but some servers send raw
    deflate data. A zlib header read as a big endian short is always a
    multiple of 31, anything else is treated as raw deflate.
    """
    _require_zlib("deflate")
    if not body:
        return b""

    if len(body) >= 2:
        (zlib_header,) = struct.unpack(">H", body[:2])
        if zlib_header % 31 == 0:
            return _inflate(body, zlib.MAX_WBITS, "deflate")

    logger.debug("Deflate body has no zlib header, inflating it as raw deflate")
    return _inflate(body, -zlib.MAX_WBITS, "deflate")


CONTENT_DECODERS: Dict[str, Callable[[bytes], bytes]] = {
    "gzip": decode_gzip,
    "deflate": decode_deflate,
}


def decode_body(
    body: bytes,
    transfer_encoding: Optional[str] = None,
    content_encoding: Optional[str] = None,
) -> bytes:
    """Undo transfer encoding first, then content encoding."""
    if (transfer_encoding or "").strip().lower() == "chunked":
        body = decode_chunked_body(body)

    decoder = CONTENT_DECODERS.get((content_encoding or "").strip().lower())
    if decoder is not None:
        body = decoder(body)
    return body
