import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Self, Tuple

import aiohttp

from reqpool.config import TransportConfig, validate_target
from reqpool.envelope import ResultEnvelope, perform_attempt
from reqpool.errors import UploadValidationError
from reqpool.transport import AiohttpTransport, Transport

logger = logging.getLogger(__name__)

MEGABYTE: int = 1024 * 1024
DEFAULT_CONTENT_TYPE: str = "application/octet-stream"


@dataclass(frozen=True)
class UploadRules:
    allowed_types: Tuple[str, ...] = ()
    not_allowed_types: Tuple[str, ...] = ()
    max_size_mb: float | None = None
    min_size_mb: float | None = None

    def check(self: Self, content_type: str, size: int) -> None:
        if self.allowed_types and content_type not in self.allowed_types:
            raise UploadValidationError(
                f"Invalid file type {content_type!r}, please select one of the following file types: "
                f"{','.join(self.allowed_types)}"
            )
        if content_type in self.not_allowed_types:
            raise UploadValidationError(
                f"File type {content_type!r} is not accepted, refused types: {','.join(self.not_allowed_types)}"
            )
        if self.max_size_mb is not None and size > self.max_size_mb * MEGABYTE:
            raise UploadValidationError(f"Maximum file size is {self.max_size_mb} MB!")
        if self.min_size_mb is not None and size < self.min_size_mb * MEGABYTE:
            raise UploadValidationError(f"Minimum file size is {self.min_size_mb} MB!")


class FileUploader:
    def __init__(
        self: Self,
        url: str,
        config: TransportConfig = TransportConfig(),
        transport: Transport | None = None,
        field_name: str = "file",
    ) -> None:
        validate_target(url)
        self.url: str = url
        self.config: TransportConfig = config
        self.transport: Transport = transport if transport is not None else AiohttpTransport()
        self.field_name: str = field_name

    async def upload(
        self: Self, path: str | Path, rules: UploadRules = UploadRules(), content_type: str | None = None
    ) -> ResultEnvelope[Any]:
        file_path = Path(path)
        if content_type is None:
            content_type = mimetypes.guess_type(file_path.name)[0] or DEFAULT_CONTENT_TYPE
        try:
            size: int = file_path.stat().st_size
            rules.check(content_type, size)
            payload: bytes = file_path.read_bytes()
        except OSError as e:
            raise UploadValidationError(f"Cannot read file {file_path}: {e}") from e

        form = aiohttp.FormData()
        form.add_field(self.field_name, payload, filename=file_path.name, content_type=content_type)
        logger.debug("Uploading %s (%s) to %s", file_path.name, content_type, self.url)
        return await perform_attempt(self.transport, "POST", self.url, self.config, form)
