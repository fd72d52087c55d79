"""Custom errors and exceptions."""

from __future__ import annotations

from .enums import RpcErrorKind


class BridgeError(Exception):
    """Custom Exception for all errors."""

    error_code = 0

    def __init_subclass__(cls, *args, **kwargs) -> None:  # type: ignore[no-untyped-def]
        """Register a subclass."""
        super().__init_subclass__(*args, **kwargs)
        ERROR_MAP[cls.error_code] = cls


# mapping from error_code to Exception class
ERROR_MAP: dict[int, type] = {0: BridgeError, 999: BridgeError}


class RpcError(BridgeError):
    """Error raised when a request to the media server failed."""

    error_code = 1
    kind: RpcErrorKind = RpcErrorKind.UNREACHABLE


class RpcTimeoutError(RpcError):
    """Error raised when the media server did not answer in time."""

    error_code = 2
    kind = RpcErrorKind.TIMEOUT


class ServerUnreachableError(RpcError):
    """Error raised when the media server could not be reached or returned an error status."""

    error_code = 3
    kind = RpcErrorKind.UNREACHABLE


class MalformedResponseError(RpcError):
    """Error raised when the media server returned a body we can not use."""

    error_code = 4
    kind = RpcErrorKind.MALFORMED_RESPONSE


class ProtocolError(BridgeError):
    """Error raised when a valid response does not have the expected shape."""

    error_code = 5


class ConfigError(BridgeError):
    """Error raised when a (required) config value is missing or invalid."""

    error_code = 6


class AlreadyRegisteredError(BridgeError):
    """Error raised when a duplicate device is registered."""

    error_code = 7


class InvalidDataError(BridgeError):
    """Error raised when an object has invalid data."""

    error_code = 8
