# Constants
DEFAULT_HTTP_PORT = 80
DEFAULT_HTTPS_PORT = 443
MAX_CHUNK_SIZE = 16 * 1024
DEFAULT_TIMEOUT = 30.0
MAX_INTERIM_RESPONSES = 10
DEFAULT_USER_AGENT = "slicehttp/0.1.0"
ISO_8859_1 = "iso-8859-1"


class Method:
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    ALLOWED = (GET, POST, PUT, DELETE)


class HTTPVersion:
    HTTP10 = "1.0"
    HTTP11 = "1.1"

    ALLOWED = (HTTP10, HTTP11)
