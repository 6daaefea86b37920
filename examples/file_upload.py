# run this example using `make run-example EXAMPLE=file_upload FILE=path/to/file` from the root directory

import os
import asyncio
from reqpool.upload import FileUploader, UploadRules


async def run():
    uploader = FileUploader("https://httpbin.org/post")
    rules = UploadRules(allowed_types=("application/zip", "image/jpeg", "application/pdf"), max_size_mb=10)
    envelope = await uploader.upload(os.environ.get("FILE", "README.pdf"), rules)
    print(f"Upload: loaded={envelope.loaded} status={envelope.status}")


if __name__ == "__main__":
    asyncio.run(run())
