# run this example using `make run-example EXAMPLE=callbacks` from the root directory

import asyncio
from typing import Any, List
from reqpool.envelope import ResultEnvelope
from reqpool.pool import RequestPool, RequestDescriptor

collected: List[Any] = []


def on_todo(envelope: ResultEnvelope[Any]) -> None:
    print(f"Callback Log -> todo loaded={envelope.loaded}")
    collected.append(envelope.body)


async def on_missing(envelope: ResultEnvelope[Any]) -> None:
    print(f"Callback Log -> FAILED: {envelope.error_message}")


async def run():
    pool = RequestPool("https://httpbin.org")
    results = await pool.dispatch_all(
        [
            RequestDescriptor(key="todo", path="/json", on_result=on_todo),
            RequestDescriptor(key="missing", path="/status/404", on_result=on_missing),
        ]
    )
    print(f"Final: {sorted(results)} collected={len(collected)}")


if __name__ == "__main__":
    asyncio.run(run())
