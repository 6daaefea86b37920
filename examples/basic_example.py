# run this example using `make run-example EXAMPLE=basic_example` from the root directory

import logging
from reqpool.config import TransportConfig
from reqpool.pool import RequestPool, RequestDescriptor


def main():
    logging.basicConfig(level=logging.INFO)
    pool = RequestPool(
        "https://jsonplaceholder.typicode.com",
        default_config=TransportConfig(headers={"Content-Type": "application/json"}),
    )
    results = pool.main(
        [
            RequestDescriptor(key="todo", path="/todos/1"),
            RequestDescriptor(key="users", path="/users"),
            RequestDescriptor(key="comments", path="/comments?postId=2"),
        ]
    )
    for key, envelope in results.items():
        print(f"{key}: errored={envelope.errored} status={envelope.status} took={envelope.round_trip_ms}ms")


if __name__ == "__main__":
    main()
