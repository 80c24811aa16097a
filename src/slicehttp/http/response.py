import codecs
import json
import logging
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from slicehttp.constants import ISO_8859_1, MAX_INTERIM_RESPONSES, HTTPVersion
from slicehttp.exceptions import (
    InvalidHeaderLine,
    InvalidStatusCode,
    InvalidVersion,
    TooManyInterimResponses,
)
from .decoders import decode_body
from .parser import (
    RawResponse,
    canonical_header_name,
    extract_body,
    extract_code,
    extract_headers,
    extract_message,
    extract_version,
    to_bytes,
)
from .status import is_known_code, response_code_as_text

logger = logging.getLogger(__name__)

HeaderValue = Union[str, List[str]]
HeadersInput = Union[Mapping[str, Any], Iterable[str]]

_VERSION_RE = re.compile(r"\d\.\d")
_CHARSET_RE = re.compile(r"charset=[\"']?([\w.:-]+)", re.IGNORECASE)


def _split_header_line(line: str) -> Tuple[str, str]:
    name, separator, value = line.partition(":")
    if not separator:
        raise InvalidHeaderLine(f"'{line}' is not a valid HTTP header")
    return name.strip(), value.strip()


def _normalize_headers(headers: Optional[HeadersInput]) -> Dict[str, Tuple[str, ...]]:
    if headers is None:
        return {}
    if isinstance(headers, str):
        headers = [headers]

    if isinstance(headers, Mapping):
        items = headers.items()
    else:
        items = (_split_header_line(line) for line in headers)

    collected: Dict[str, List[str]] = {}
    for name, value in items:
        if isinstance(value, (list, tuple)):
            values = [str(item) for item in value]
        else:
            values = [str(value)]
        collected.setdefault(canonical_header_name(name), []).extend(values)
    return {name: tuple(values) for name, values in collected.items()}


class HTTPResponse:
    """
    An HTTP response received from a server.

    Instances are immutable: every attribute is a read-only property and the
    raw body is never modified. Transfer and content encodings are only
    undone when ``body`` is read, ``raw_body`` keeps the bytes as received.

    Attributes:
        status_code (int): Status code, always one of the known codes.
        status_phrase (str): Reason phrase sent by the server, or the
            standard one for the code.
        http_version (str): Protocol version like ``"1.1"``.
        raw_body (bytes): Body as it was on the wire.
        body (bytes): Body with chunked and gzip/deflate encodings removed.
    """

    __slots__ = (
        "_status_code",
        "_headers",
        "_raw_body",
        "_http_version",
        "_status_phrase",
    )

    def __init__(
        self,
        status_code: int,
        headers: Optional[HeadersInput] = None,
        raw_body: Union[bytes, str] = b"",
        http_version: str = HTTPVersion.HTTP11,
        status_phrase: Optional[str] = None,
    ):
        """
        Validate and store a response.

        Args:
            status_code (int): Status code, must have a known reason phrase.
            headers (Mapping or Iterable[str], optional): Either a mapping of
                header name to a value or a list of values, or raw
                ``"Name: value"`` lines. Names are case-insensitive.
            raw_body (bytes, optional): Body as received. Defaults to b"".
            http_version (str, optional): Defaults to "1.1".
            status_phrase (str, optional): Defaults to the standard phrase.

        Raises:
            InvalidStatusCode: If the code is not a known status code
            InvalidHeaderLine: If a raw header line has no colon
            InvalidVersion: If the version is not like "1.1"
        """
        if not is_known_code(status_code):
            raise InvalidStatusCode(f"{status_code} is not a valid HTTP response code.")
        self._status_code = status_code

        self._headers = _normalize_headers(headers)

        if raw_body is None:
            raw_body = b""
        self._raw_body = to_bytes(raw_body)

        if not isinstance(http_version, str) or not _VERSION_RE.fullmatch(http_version):
            raise InvalidVersion(f"Invalid HTTP response version: {http_version}")
        self._http_version = http_version

        if isinstance(status_phrase, str):
            self._status_phrase = status_phrase
        else:
            self._status_phrase = response_code_as_text(
                status_code, http11=http_version != HTTPVersion.HTTP10
            )

    @classmethod
    def from_string(
        cls,
        response: RawResponse,
        max_interim_responses: int = MAX_INTERIM_RESPONSES,
    ) -> "HTTPResponse":
        """
        Parse a complete raw response.

        Servers sometimes send a ``100 Continue`` and the final response in
        one buffer. When the parsed response is a 100 without headers whose
        body starts with another status line, that body is parsed instead,
        at most ``max_interim_responses`` times.

        Raises:
            InvalidStatusCode: If there is no status line or the code is unknown
            InvalidVersion: If the protocol version is malformed
            TooManyInterimResponses: If more 100 responses are nested than allowed
        """
        raw = to_bytes(response)
        unwrapped = 0
        while True:
            code = extract_code(raw)
            headers = extract_headers(raw)
            body = extract_body(raw)
            if code == 100 and not headers and extract_code(body) is not None:
                unwrapped += 1
                if unwrapped > max_interim_responses:
                    raise TooManyInterimResponses(
                        f"More than {max_interim_responses} interim responses in one reply"
                    )
                logger.info("Unwrapping response sent after 100 Continue")
                raw = body
                continue
            break

        if code is None:
            raise InvalidStatusCode("No HTTP status line found in response")

        instance = cls(
            code, headers, body, extract_version(raw), extract_message(raw)
        )
        logger.debug(
            "Parsed response %s %s (%d header(s), %d body bytes)",
            instance.status_code,
            instance.status_phrase,
            len(instance._headers),
            len(instance.raw_body),
        )
        return instance

    @property
    def status_code(self) -> int:
        return self._status_code

    @property
    def status_phrase(self) -> str:
        return self._status_phrase

    @property
    def http_version(self) -> str:
        return self._http_version

    @property
    def raw_body(self) -> bytes:
        return self._raw_body

    @property
    def body(self) -> bytes:
        return decode_body(
            self._raw_body,
            self._last_header_value("Transfer-Encoding"),
            self._last_header_value("Content-Encoding"),
        )

    @property
    def headers(self) -> Dict[str, HeaderValue]:
        return self.get_headers()

    def is_error(self) -> bool:
        return self._status_code // 100 in (4, 5)

    def is_successful(self) -> bool:
        # 3xx is not successful
        return self._status_code // 100 in (1, 2)

    def is_redirect(self) -> bool:
        return self._status_code // 100 == 3

    def get_headers(self) -> Dict[str, HeaderValue]:
        """Headers by name, a list of values for names received more than once."""
        return {name: self._present(values) for name, values in self._headers.items()}

    def get_header(self, name: str) -> Optional[HeaderValue]:
        values = self._headers.get(canonical_header_name(name))
        if values is None:
            return None
        return self._present(values)

    def get_header_values(self, name: str) -> List[str]:
        return list(self._headers.get(canonical_header_name(name), ()))

    def get_headers_as_string(self, status_line: bool = True, br: str = "\n") -> str:
        lines = []
        if status_line:
            lines.append(
                f"HTTP/{self._http_version} {self._status_code} {self._status_phrase}{br}"
            )
        for name, values in self._headers.items():
            for value in values:
                lines.append(f"{name}: {value}{br}")
        return "".join(lines)

    def as_string(self, br: str = "\n") -> str:
        return self.get_headers_as_string(True, br) + br + self._raw_body.decode(ISO_8859_1)

    def text(self, encoding: Optional[str] = None) -> str:
        if encoding is None:
            match = _CHARSET_RE.search(self._last_header_value("Content-Type") or "")
            encoding = match.group(1) if match else ISO_8859_1
            try:
                codecs.lookup(encoding)
            except LookupError:
                logger.debug("Unknown charset %r, decoding as %s", encoding, ISO_8859_1)
                encoding = ISO_8859_1
        return self.body.decode(encoding, errors="replace")

    def json(self, **kwargs):
        return json.loads(self.body, **kwargs)

    def _last_header_value(self, name: str) -> Optional[str]:
        values = self._headers.get(canonical_header_name(name))
        return values[-1] if values else None

    @staticmethod
    def _present(values: Tuple[str, ...]) -> HeaderValue:
        return values[0] if len(values) == 1 else list(values)

    def _key(self):
        return (
            self._http_version,
            self._status_code,
            self._status_phrase,
            tuple(self._headers.items()),
            self._raw_body,
        )

    def __eq__(self, other):
        if not isinstance(other, HTTPResponse):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __str__(self):
        return self.as_string()

    def __bytes__(self):
        return self.as_string().encode(ISO_8859_1)

    def __repr__(self):
        return f"<{self.__class__.__name__} [{self._status_code} {self._status_phrase}]>"
