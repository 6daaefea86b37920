# run this example using `make run-example EXAMPLE=stop_polling` from the root directory

import asyncio
import datetime
from reqpool.polling import PollingFetcher


async def run():
    stop = asyncio.Event()
    fetcher = PollingFetcher(
        "https://httpbin.org/status/500", interval=datetime.timedelta(milliseconds=500), stop_event=stop
    )
    handle = await fetcher.poll()
    await asyncio.sleep(2)
    stop.set()
    final = await handle.wait()
    print(f"Stopped after {final.sequence} attempts, last error: {final.error_message}")


if __name__ == "__main__":
    asyncio.run(run())
