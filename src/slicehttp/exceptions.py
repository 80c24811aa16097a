class SliceHTTPError(Exception):
    pass


class ResponseError(SliceHTTPError, ValueError):
    """Raised when a raw response can not be turned into a valid HTTPResponse."""


class InvalidStatusCode(ResponseError):
    pass


class InvalidVersion(ResponseError):
    pass


class InvalidHeaderLine(ResponseError):
    pass


class MalformedChunkedBody(ResponseError):
    pass


class UnsupportedDecompression(ResponseError):
    """zlib is not available in this interpreter."""


class ContentDecodingError(ResponseError):
    pass


class TooManyInterimResponses(ResponseError):
    pass


class ClientError(SliceHTTPError):
    """Raised when a request is configured with invalid values."""


class InvalidURIError(ClientError):
    pass


class InvalidMethodError(ClientError):
    pass


class InvalidHTTPVersionError(ClientError):
    pass


class InvalidFileError(ClientError):
    pass


class TransportError(SliceHTTPError, ConnectionError):
    pass
