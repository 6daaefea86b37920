# run this example using `make run-example EXAMPLE=timeouts` from the root directory

from reqpool.config import TransportConfig
from reqpool.pool import RequestPool, RequestDescriptor
from reqpool.transport import AiohttpTransport


def main():
    pool = RequestPool("https://httpbin.org", transport=AiohttpTransport(timeout_s=10))
    results = pool.main(
        [
            RequestDescriptor(key="fast", path="/delay/1"),
            RequestDescriptor(key="slow", path="/delay/5", config=TransportConfig(timeout_s=2)),
        ]
    )
    for key, envelope in results.items():
        print(f"{key}: errored={envelope.errored} message={envelope.error_message}")


if __name__ == "__main__":
    main()
