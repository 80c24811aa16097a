r"""Parsing of raw HTTP/1.x responses.

A raw response is the status line, header lines (``\r\n`` or bare ``\n``
terminated), one blank line and the body::

    HTTP/1.1 200 OK\r\n
    Content-Type: text/plain\r\n
    \r\n
    hello

The extractors below each look at the whole raw response independently and
return ``None`` when the piece they look for is missing, leaving validation
to ``HTTPResponse``.
"""
import re
from typing import Dict, List, Optional, Union

from slicehttp.constants import ISO_8859_1

RawResponse = Union[bytes, bytearray, str]

_VERSION_RE = re.compile(rb"HTTP/([\d.x]+) \d+")
_CODE_RE = re.compile(rb"HTTP/[\d.x]+ (\d+)")
_MESSAGE_RE = re.compile(rb"HTTP/[\d.x]+ \d+ ([^\r\n]+)")

_HEAD_BODY_SEPARATOR_RE = re.compile(rb"(?:\r?\n){2}")
# 'Location: ...' and 'Location:...' (no space) are both accepted
_HEADER_LINE_RE = re.compile(rb"([\w-]+):[ \t]*(.*?)[ \t]*$")
_CONTINUATION_LINE_RE = re.compile(rb"\s+(.+)$")


def to_bytes(raw: RawResponse) -> bytes:
    if isinstance(raw, str):
        return raw.encode(ISO_8859_1)
    return bytes(raw)


def canonical_header_name(name: str) -> str:
    """'content-TYPE' -> 'Content-Type'"""
    return "-".join(part.capitalize() for part in name.strip().lower().split("-"))


def extract_version(raw: RawResponse) -> Optional[str]:
    match = _VERSION_RE.match(to_bytes(raw))
    if match is None:
        return None
    return match.group(1).decode(ISO_8859_1)


def extract_code(raw: RawResponse) -> Optional[int]:
    match = _CODE_RE.match(to_bytes(raw))
    if match is None:
        return None
    return int(match.group(1))


def extract_message(raw: RawResponse) -> Optional[str]:
    match = _MESSAGE_RE.match(to_bytes(raw))
    if match is None:
        return None
    return match.group(1).decode(ISO_8859_1)


def split_head_and_body(raw: RawResponse) -> List[bytes]:
    return _HEAD_BODY_SEPARATOR_RE.split(to_bytes(raw), maxsplit=1)


def extract_headers(raw: RawResponse) -> Dict[str, List[str]]:
    """
    Parse the header block of a raw response.

    Returns:
        Dict[str, List[str]]: Title-Case header name to its values in the
        order they were received. A name seen once maps to a one item list.

    Lines starting with whitespace are folded into the value of the header
    right before them. Lines that are neither headers nor continuations
    (the status line included) are skipped.
    """
    headers: Dict[str, List[str]] = {}
    head = split_head_and_body(raw)[0]
    if not head:
        return headers

    last_header: Optional[str] = None
    for line in head.split(b"\n"):
        line = line.strip(b"\r\n")
        if not line:
            break

        match = _HEADER_LINE_RE.match(line)
        if match is not None:
            name = canonical_header_name(match.group(1).decode(ISO_8859_1))
            value = match.group(2).decode(ISO_8859_1)
            headers.setdefault(name, []).append(value)
            last_header = name
            continue

        match = _CONTINUATION_LINE_RE.match(line)
        if match is not None and last_header is not None:
            headers[last_header][-1] += match.group(1).decode(ISO_8859_1)

    return headers


def extract_body(raw: RawResponse) -> bytes:
    parts = split_head_and_body(raw)
    if len(parts) > 1:
        return parts[1].strip()
    return b""
