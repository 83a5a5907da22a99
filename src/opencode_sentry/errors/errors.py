"""Error values reported to Sentry and reasons a telemetry feature degraded.

Hosts hand us errors in whatever shape they have: real exceptions, strings,
or plain dicts decoded from JSON. Sentry wants exceptions, so anything else
is wrapped in ReportedError before capture.
"""

from __future__ import annotations

from enum import StrEnum

from .types import JsonValue


class SkipReason(StrEnum):
    """Why a telemetry feature was skipped. Never surfaced to the host."""

    NO_DSN = "no_dsn"
    NO_TRACE_HEADER = "no_trace_header"
    INVALID_TRACE_IDS = "invalid_trace_ids"
    INCOMPATIBLE_RUNTIME = "incompatible_runtime"


class ReportedError(Exception):
    """Exception standing in for a non-exception error payload.

    The message is the stringified payload. The original value is kept on
    ``payload`` so it can be attached as extra context.
    """

    __slots__ = ("payload",)

    def __init__(self, message: str, payload: JsonValue | object = None) -> None:
        super().__init__(message)
        self.payload = payload

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""


def coerce_exception(value: object) -> BaseException:
    """Return ``value`` if it is an exception, otherwise wrap it.

    Dicts that look like serialized errors (a ``message`` key holding a
    string) use that message; everything else is stringified.

    Example:
        >>> str(coerce_exception("disk full"))
        'disk full'
        >>> coerce_exception({"name": "APIError", "message": "quota"}).message
        'quota'
    """
    if isinstance(value, BaseException):
        return value
    if isinstance(value, dict) and isinstance(msg := value.get("message"), str) and msg:
        return ReportedError(msg, value)
    return ReportedError(str(value), value)
