"""Tracing: trace-header import, remote-parent continuity, and AI span relabeling."""

from .continuity import (
    RemoteParentRuntimeContext,
    has_active_span,
    install_remote_parent,
    installed_remote_parent,
    remote_root_context,
    uninstall_remote_parent,
)
from .processor import GEN_AI_CHAT_OP, GEN_AI_SPAN_NAMES, GenAISpanProcessor, relabel_transaction
from .provider import configure_tracing
from .traceparent import TRACEPARENT_ENV, TraceParent, parse_traceparent, read_traceparent

__all__ = [
    # Trace header
    "TRACEPARENT_ENV",
    "TraceParent",
    "parse_traceparent",
    "read_traceparent",
    # Continuity
    "RemoteParentRuntimeContext",
    "has_active_span",
    "install_remote_parent",
    "installed_remote_parent",
    "remote_root_context",
    "uninstall_remote_parent",
    # Span relabeling
    "GEN_AI_CHAT_OP",
    "GEN_AI_SPAN_NAMES",
    "GenAISpanProcessor",
    "relabel_transaction",
    # Provider
    "configure_tracing",
]
