import asyncio

from slicehttp import Client, HTTPResponse


class JSONResponse(HTTPResponse):
    """Response that knows whether it carries JSON."""

    def is_json(self):
        return "json" in (self.get_header("content-type") or "")


async def main():
    client = Client("http://httpbin.org/get")
    # any callable taking the raw bytes works as a response handler
    client.set_response_handler(JSONResponse.from_string)
    client.set_parameter_get({"page": 1, "tags": ["a", "b"]})

    response = await client.request()
    print(type(response).__name__, response.status_code, response.is_json())
    if response.is_json():
        print(response.json()["args"])


if __name__ == "__main__":
    asyncio.run(main())
