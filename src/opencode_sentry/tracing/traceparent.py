"""W3C Trace Context import from the ``TRACEPARENT`` environment variable.

Header format: ``version-traceId-parentSpanId-flags``, e.g.
``00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01``.

Parsing is deliberately loose: any header with exactly four hyphen-separated
segments is accepted as-is, anything else is treated as absent. Whether the
ids are usable by OpenTelemetry is decided later, in ``span_context()``.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from opentelemetry.trace import SpanContext, TraceFlags

TRACEPARENT_ENV = "TRACEPARENT"
SAMPLED_FLAGS = "01"


@dataclass(frozen=True, slots=True)
class TraceParent:
    """Parsed trace header of the parent process.

    Attributes:
        version: Header version token (not validated)
        trace_id: Trace id token, normally 32 hex chars
        span_id: Parent span id token, normally 16 hex chars
        flags: Raw flags token; only ``"01"`` means sampled
    """

    version: str
    trace_id: str
    span_id: str
    flags: str

    @property
    def sampled(self) -> bool:
        return self.flags == SAMPLED_FLAGS

    @property
    def trace_flags(self) -> TraceFlags:
        return TraceFlags(TraceFlags.SAMPLED if self.sampled else TraceFlags.DEFAULT)

    def to_header(self) -> str:
        return f"{self.version}-{self.trace_id}-{self.span_id}-{self.flags}"

    def span_context(self) -> SpanContext | None:
        """Remote OpenTelemetry SpanContext for this parent, or None if the ids are unusable."""
        try:
            trace_id, span_id = int(self.trace_id, 16), int(self.span_id, 16)
        except ValueError:
            return None
        ctx = SpanContext(trace_id=trace_id, span_id=span_id, is_remote=True, trace_flags=self.trace_flags)
        return ctx if ctx.is_valid else None


def parse_traceparent(header: str | None) -> TraceParent | None:
    """Parse a trace header into a TraceParent. Never raises.

    Example:
        >>> tp = parse_traceparent("00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01")
        >>> tp.trace_id, tp.sampled
        ('4bf92f3577b34da6a3ce929d0e0e4736', True)
        >>> parse_traceparent("00-abc-01") is None
        True
    """
    if not header:
        return None
    parts = header.split("-")
    if len(parts) != 4:
        return None
    return TraceParent(*parts)


def read_traceparent(environ: Mapping[str, str] | None = None) -> TraceParent | None:
    """Read and parse ``TRACEPARENT`` from the environment."""
    return parse_traceparent((os.environ if environ is None else environ).get(TRACEPARENT_ENV))
