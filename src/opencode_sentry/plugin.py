"""Sentry AI observability plugin for the opencode agent host.

Building the plugin runs the one-time process setup, in order:

1. Resolve settings (explicit arguments, then ``SENTRY_*`` variables, then defaults)
2. Configure logging (``DEBUG`` when debug is on)
3. Initialize the Sentry SDK, if a DSN is configured
4. Configure the OpenTelemetry tracer provider (AI span relabeling, Sentry export)
5. Import ``TRACEPARENT`` and install the remote-parent continuity patch

Every step degrades on failure; the host never sees an exception from here.
Calling the plugin with the host's project record returns the hooks.

Example:
    >>> plugin = create_sentry_plugin(environment="production")
    >>> hooks = await plugin({"project": {"id": "proj_1"}, "directory": "/src/app", "worktree": "/src/app"})
    >>> await hooks.event({"type": "session.created", "properties": {"id": "ses_1"}})
    >>> await hooks.tool_execute_before({"tool": "bash"}, {"args": {"command": "ls"}})
"""

from __future__ import annotations

import os
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, ValidationError

from opencode_sentry.config import SentrySettings, get_settings
from opencode_sentry.errors import SkipReason
from opencode_sentry.logging import configure_logging, get_logger
from opencode_sentry.tracing import TRACEPARENT_ENV, configure_tracing, install_remote_parent, parse_traceparent

from .client import SentryClient, TelemetryClient, init_sentry
from .events import parse_event, tool_after, tool_before
from .router import FLUSH_TIMEOUT, EventRouter

if TYPE_CHECKING:
    from opentelemetry.sdk.trace import TracerProvider
    from sentry_sdk.transport import Transport

    from opencode_sentry.tracing import TraceParent

log = get_logger("opencode_sentry.plugin")

Hook = Callable[..., Awaitable[None]]


class Project(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None


class PluginInput(BaseModel):
    """What the host hands the plugin once per process."""

    model_config = ConfigDict(extra="ignore")

    project: Project | None = None
    directory: str | None = None
    worktree: str | None = None


@dataclass(slots=True)
class PluginHooks:
    """Async hooks the host calls for bus events and tool executions."""

    router: EventRouter

    async def event(self, payload: Mapping[str, Any]) -> None:
        # the host wraps bus events as {"event": {...}}; accept both shapes
        if isinstance(payload, Mapping) and "type" not in payload and isinstance(payload.get("event"), Mapping):
            payload = payload["event"]
        await self.router.dispatch(parse_event(payload))

    async def tool_execute_before(self, input: Mapping[str, Any], output: Mapping[str, Any] | None = None) -> None:  # noqa: A002
        await self.router.dispatch(tool_before(input, output) if isinstance(input, Mapping) else None)

    async def tool_execute_after(self, input: Mapping[str, Any], output: Mapping[str, Any] | None = None) -> None:  # noqa: A002
        await self.router.dispatch(tool_after(input, output) if isinstance(input, Mapping) else None)

    def hooks(self) -> dict[str, Hook]:
        """Hooks keyed by the host's hook names."""
        return {
            "event": self.event,
            "tool.execute.before": self.tool_execute_before,
            "tool.execute.after": self.tool_execute_after,
        }


@dataclass(slots=True)
class SentryPlugin:
    """A configured plugin. Call it with the host's project record to get hooks."""

    settings: SentrySettings
    client: TelemetryClient
    tracer_provider: TracerProvider | None = None
    remote_parent: TraceParent | None = None
    flush_timeout: float = FLUSH_TIMEOUT

    async def __call__(self, host: PluginInput | Mapping[str, Any] | None = None) -> PluginHooks:
        try:
            self._bind_project(host)
        except Exception:
            log.exception("failed to attach project context")
        return PluginHooks(EventRouter(self.client, flush_timeout=self.flush_timeout))

    def _bind_project(self, host: PluginInput | Mapping[str, Any] | None) -> None:
        info = host if isinstance(host, PluginInput) else PluginInput.model_validate(host or {})
        project_id = info.project.id if info.project else None
        self.client.set_context("opencode", {"project": project_id, "directory": info.directory,
                                             "worktree": info.worktree})
        if project_id:
            self.client.set_tag("project", project_id)


def create_sentry_plugin(
    *,
    dsn: str | None = None,
    environment: str | None = None,
    release: str | None = None,
    traces_sample_rate: float | None = None,
    debug: bool | None = None,
    record_inputs: bool = True,
    record_outputs: bool = True,
    client: TelemetryClient | None = None,
    transport: Transport | None = None,
    set_global_tracer: bool = True,
) -> SentryPlugin:
    """Create the plugin, running process-wide telemetry setup.

    Args:
        dsn: Sentry DSN (default ``SENTRY_DSN``; telemetry is disabled without one)
        environment: Environment tag (default ``SENTRY_ENVIRONMENT`` or "development")
        release: Release tag (default ``SENTRY_RELEASE`` or "opencode@local")
        traces_sample_rate: 0.0-1.0 (default ``SENTRY_TRACES_SAMPLE_RATE`` or 1.0)
        debug: Verbose logging (default: ``SENTRY_DEBUG == "true"``)
        record_inputs: Keep AI prompts on spans
        record_outputs: Keep AI responses on spans
        client: TelemetryClient to use instead of the Sentry SDK
        transport: Sentry transport replacing the SDK's HTTP transport
        set_global_tracer: Register the tracer provider globally

    Example:
        >>> plugin = create_sentry_plugin(dsn="https://key@o0.ingest.sentry.io/1", record_inputs=False)
    """
    settings = _resolve_settings(dsn=dsn, environment=environment, release=release,
                                 traces_sample_rate=traces_sample_rate, debug=debug)
    configure_logging(level="DEBUG" if settings.debug else "WARNING")

    if client is None:
        client = SentryClient()
        try:
            # Err only when no DSN is configured, so settings already read as disabled
            init_sentry(settings, record_inputs=record_inputs, record_outputs=record_outputs, transport=transport)
        except Exception:
            log.exception("sentry init failed, telemetry disabled")
            settings = settings.model_copy(update={"dsn": None})

    provider: TracerProvider | None = None
    try:
        provider = configure_tracing(settings, set_global=set_global_tracer)
    except Exception:
        log.exception("tracing setup failed")

    return SentryPlugin(settings=settings, client=client, tracer_provider=provider,
                        remote_parent=_continue_remote_trace(settings.traceparent))


def _resolve_settings(**explicit: object) -> SentrySettings:
    overrides = {k: v for k, v in explicit.items() if v is not None}
    try:
        return SentrySettings(**overrides) if overrides else get_settings()
    except ValidationError as e:
        log.warning("invalid sentry settings, telemetry disabled", errors=e.error_count())
        return SentrySettings.model_construct(traceparent=os.environ.get(TRACEPARENT_ENV))


def _continue_remote_trace(header: str | None) -> TraceParent | None:
    if (parent := parse_traceparent(header)) is None:
        log.debug("no distributed trace to continue",
                  reason=SkipReason.NO_TRACE_HEADER.value, traceparent=header)
        return None
    result = install_remote_parent(parent)
    result.inspect_err(lambda reason: log.debug("remote parent not installed", reason=reason.value))
    return parent if result.is_ok() else None


@lru_cache(maxsize=1)
def default_plugin() -> SentryPlugin:
    """Plugin configured entirely from the environment, built on first use."""
    return create_sentry_plugin()
