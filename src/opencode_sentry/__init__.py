"""opencode-sentry - Sentry AI observability for the opencode agent host.

Sends agent telemetry to Sentry:
- Model usage: AI SDK model-call spans are tagged ``gen_ai.chat`` with model and provider
- Tool execution: breadcrumbs for every tool call, captured exceptions for failures
- Session lifecycle: breadcrumbs on start and completion, captured session errors
- Distributed tracing: spans continue the trace named by ``TRACEPARENT``

Quick Start:
    >>> from opencode_sentry import create_sentry_plugin
    >>>
    >>> plugin = create_sentry_plugin()          # reads SENTRY_DSN, SENTRY_ENVIRONMENT, ...
    >>> hooks = await plugin({"project": {"id": "proj_1"}, "directory": ".", "worktree": "."})
    >>> host.register(hooks.hooks())

Distributed Tracing:
    $ TRACEPARENT="00-${TRACE_ID}-${SPAN_ID}-01" SENTRY_DSN="https://..." opencode run "Implement the feature"

    Every span started outside an explicit span scope becomes a child of the
    parent span named in the header. Explicitly nested spans nest normally.

Environment Variables:
    SENTRY_DSN                  Sentry DSN (telemetry is disabled without it)
    SENTRY_ENVIRONMENT          Environment name (default "development")
    SENTRY_RELEASE              Release (default "opencode@local")
    SENTRY_TRACES_SAMPLE_RATE   0.0-1.0 (default 1.0)
    SENTRY_DEBUG                "true" for verbose logging
    TRACEPARENT                 W3C trace context, ``00-<trace-id>-<parent-span-id>-<flags>``
"""

from __future__ import annotations

__version__ = "0.1.0"

# Plugin
from .plugin import (
    PluginHooks,
    PluginInput,
    SentryPlugin,
    create_sentry_plugin,
    default_plugin,
)

# Events
from .events import (
    LifecycleEvent,
    SessionCreated,
    SessionError,
    SessionIdle,
    ToolExecuteAfter,
    ToolExecuteBefore,
    parse_event,
)
from .router import EventRouter

# Client
from .client import SentryClient, TelemetryClient, init_sentry

# Tracing
from .tracing import (
    GenAISpanProcessor,
    RemoteParentRuntimeContext,
    TraceParent,
    configure_tracing,
    install_remote_parent,
    parse_traceparent,
    read_traceparent,
    uninstall_remote_parent,
)

# Config
from .config import SentrySettings, get_settings

# Errors
from .errors import ReportedError, SkipReason, coerce_exception

__all__ = [
    "__version__",
    # Plugin
    "PluginHooks", "PluginInput", "SentryPlugin", "create_sentry_plugin", "default_plugin",
    # Events
    "LifecycleEvent", "SessionCreated", "SessionError", "SessionIdle",
    "ToolExecuteAfter", "ToolExecuteBefore", "parse_event", "EventRouter",
    # Client
    "SentryClient", "TelemetryClient", "init_sentry",
    # Tracing
    "GenAISpanProcessor", "RemoteParentRuntimeContext", "TraceParent", "configure_tracing",
    "install_remote_parent", "parse_traceparent", "read_traceparent", "uninstall_remote_parent",
    # Config
    "SentrySettings", "get_settings",
    # Errors
    "ReportedError", "SkipReason", "coerce_exception",
]
