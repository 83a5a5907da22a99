"""Continue the parent process's trace for the lifetime of this process.

OpenTelemetry treats "nothing active" as an empty context, so every span
started outside an explicit span scope would begin a new trace. The
RemoteParentRuntimeContext wraps the API's runtime context and answers
``get_current()`` with a root context carrying the remote parent whenever
the wrapped runtime has no active span. Explicitly entered spans still nest
normally because their contexts are returned untouched.

Usage:
    >>> from opencode_sentry.tracing import install_remote_parent, parse_traceparent
    >>> parent = parse_traceparent("00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01")
    >>> install_remote_parent(parent).is_ok()
    True
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

import opentelemetry.context as otel_context
from opentelemetry import trace
from opentelemetry.context.context import Context, _RuntimeContext

from opencode_sentry.errors import Err, Ok, Result, SkipReason
from opencode_sentry.logging import get_logger

if TYPE_CHECKING:
    from contextvars import Token

    from opentelemetry.trace import SpanContext

    from .traceparent import TraceParent

log = get_logger("opencode_sentry.tracing")

_RUNTIME_ATTR = "_RUNTIME_CONTEXT"
_REQUIRED_METHODS = ("get_current", "attach", "detach")

_lock = threading.Lock()
_installed: RemoteParentRuntimeContext | None = None


def has_active_span(ctx: Context) -> bool:
    """Whether ``ctx`` holds a span that somebody explicitly made current."""
    return trace.get_current_span(ctx) is not trace.INVALID_SPAN


def remote_root_context(parent: SpanContext) -> Context:
    """Empty context whose current span is a non-recording stand-in for ``parent``."""
    return trace.set_span_in_context(trace.NonRecordingSpan(parent), Context())


class RemoteParentRuntimeContext(_RuntimeContext):
    """Runtime context that falls back to a remote parent when no span is active.

    ``attach`` and ``detach`` go straight to the wrapped runtime context;
    only ``get_current`` applies the fallback.
    """

    __slots__ = ("delegate", "parent", "root")

    def __init__(self, delegate: _RuntimeContext, parent: SpanContext) -> None:
        self.delegate = delegate
        self.parent = parent
        self.root = remote_root_context(parent)

    def attach(self, context: Context) -> Token[Context]:
        return self.delegate.attach(context)

    def detach(self, token: Token[Context]) -> None:
        self.delegate.detach(token)

    def get_current(self) -> Context:
        current = self.delegate.get_current()
        return current if has_active_span(current) else self.root


def _compatible(runtime: object) -> bool:
    return runtime is not None and all(callable(getattr(runtime, m, None)) for m in _REQUIRED_METHODS)


def install_remote_parent(parent: TraceParent) -> Result[RemoteParentRuntimeContext, SkipReason]:
    """Make ``parent`` the default parent of every span started outside a span scope.

    Installs at most once per process; later calls return the installed
    wrapper. Returns Err when the ids are unusable or the OpenTelemetry
    runtime context cannot be wrapped. Never raises.
    """
    global _installed
    with _lock:
        if _installed is not None:
            log.debug("remote parent already installed", trace_id=trace.format_trace_id(_installed.parent.trace_id))
            return Ok(_installed)
        if (span_ctx := parent.span_context()) is None:
            log.debug("trace header has unusable ids", traceparent=parent.to_header())
            return Err(SkipReason.INVALID_TRACE_IDS)
        runtime = getattr(otel_context, _RUNTIME_ATTR, None)
        if not _compatible(runtime):
            log.debug("runtime context cannot be wrapped", runtime=type(runtime).__name__)
            return Err(SkipReason.INCOMPATIBLE_RUNTIME)
        wrapper = RemoteParentRuntimeContext(runtime, span_ctx)  # type: ignore[arg-type]
        setattr(otel_context, _RUNTIME_ATTR, wrapper)
        _installed = wrapper
    log.debug("continuing remote trace", trace_id=parent.trace_id, parent_span_id=parent.span_id,
              sampled=parent.sampled)
    return Ok(wrapper)


def uninstall_remote_parent() -> bool:
    """Restore the wrapped runtime context. Returns whether anything was removed."""
    global _installed
    with _lock:
        if _installed is None:
            return False
        if getattr(otel_context, _RUNTIME_ATTR, None) is _installed:
            setattr(otel_context, _RUNTIME_ATTR, _installed.delegate)
        _installed = None
    return True


def installed_remote_parent() -> RemoteParentRuntimeContext | None:
    """The installed wrapper, if any."""
    return _installed
