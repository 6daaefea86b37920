# run this example using `make run-example EXAMPLE=custom_parser` from the root directory

import json
from typing import Any
from reqpool.errors import ParseError
from reqpool.pool import RequestPool, RequestDescriptor


def slideshow_only(text: str) -> Any:
    """Keep only the part of the payload we care about."""
    payload = json.loads(text)
    if "slideshow" not in payload:
        raise ParseError("response has no slideshow")
    return payload["slideshow"]["title"]


def main():
    pool = RequestPool("https://httpbin.org", parse_body=slideshow_only)
    results = pool.main([RequestDescriptor(key="json", path="/json"), RequestDescriptor(key="uuid", path="/uuid")])
    for key, envelope in results.items():
        print(f"{key}: body={envelope.body!r} error={envelope.error_message}")


if __name__ == "__main__":
    main()
