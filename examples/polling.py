# run this example using `make run-example EXAMPLE=polling` from the root directory

import asyncio
import datetime
import logging
from reqpool.polling import PollingFetcher, PollCallbacks


async def run():
    logging.basicConfig(level=logging.INFO)
    fetcher = PollingFetcher(
        "https://httpbin.org/status/503",
        interval=datetime.timedelta(seconds=1),
        max_attempts=4,
        callbacks=PollCallbacks(on_max_attempts_reached=lambda e: print(f"Gave up after {e.sequence} attempts")),
    )
    handle = await fetcher.poll()
    print(f"First attempt: errored={handle.result.errored} message={handle.result.error_message}")
    handle.on_update(lambda e: print(f"Attempt {e.sequence}: errored={e.errored} ping={e.round_trip_ms}ms"))
    final = await handle.wait()
    print(f"Final: loaded={final.loaded} sequence={final.sequence}")


if __name__ == "__main__":
    asyncio.run(run())
