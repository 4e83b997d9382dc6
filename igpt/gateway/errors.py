"""Error types raised by the gateway layer."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Invalid credential fields or node options, detected before any I/O."""


class AuthExchangeError(RuntimeError):
    """The token endpoint was unreachable, rejected the request, or sent garbage.

    ``status`` is the HTTP status code when the endpoint answered, ``cause``
    the underlying transport error when it did not. The message is a single
    line and never contains secret material.
    """

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status = status
        self.cause = cause

    def __repr__(self) -> str:
        return f"AuthExchangeError(status={self.status!r}, message={self.message!r})"
