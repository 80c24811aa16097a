import sys

import uvloop

from slicehttp import Client, setup_logging

URI = "https://httpbin.org/gzip"


async def main(uri):
    client = Client(uri)
    client.set_headers({"Accept": "application/json", "Accept-Encoding": "gzip"})
    response = await client.request()

    print(response.get_headers_as_string())
    print(response.text())


if __name__ == "__main__":
    setup_logging()
    uvloop.run(main(sys.argv[1] if len(sys.argv) > 1 else URI))
