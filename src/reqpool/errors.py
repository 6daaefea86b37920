from typing import Self


class ReqPoolError(Exception):
    pass


class TransportError(ReqPoolError):
    pass


class HttpStatusError(ReqPoolError):
    def __init__(self: Self, status: int) -> None:
        self.status: int = status
        super().__init__(f"Request failed with status: {status}")


class ParseError(ReqPoolError, ValueError):
    pass


class ConfigurationError(ReqPoolError, ValueError):
    pass


class UploadValidationError(ConfigurationError):
    pass
