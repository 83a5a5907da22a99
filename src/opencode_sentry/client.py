"""Telemetry client: the narrow surface of the Sentry SDK the plugin uses.

The router and plugin only talk to a TelemetryClient, so tests can record
calls without a network and hosts can swap in their own sink.
"""

from __future__ import annotations

import platform
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal, Protocol, runtime_checkable

import sentry_sdk

from opencode_sentry.errors import Err, JsonDict, Ok, Result, SkipReason
from opencode_sentry.logging import get_logger
from opencode_sentry.tracing import relabel_transaction

from .privacy import BeforeSend, Event, scrub_ai_payloads

if TYPE_CHECKING:
    from sentry_sdk.transport import Transport

    from opencode_sentry.config import SentrySettings

log = get_logger("opencode_sentry.client")

BreadcrumbLevel = Literal["debug", "info", "warning", "error", "fatal"]

INITIAL_TAGS: dict[str, str] = {"runtime": platform.python_implementation().lower(), "app": "opencode"}


@runtime_checkable
class TelemetryClient(Protocol):
    """What the plugin needs from an observability SDK."""

    def add_breadcrumb(self, *, category: str, message: str, level: BreadcrumbLevel = "info",
                       data: JsonDict | None = None) -> None: ...
    def capture_exception(self, error: BaseException, *, tags: dict[str, str] | None = None) -> str | None: ...
    def set_context(self, key: str, value: JsonDict) -> None: ...
    def set_tag(self, key: str, value: str) -> None: ...
    def flush(self, timeout: float) -> None: ...


@dataclass(slots=True)
class SentryClient:
    """TelemetryClient backed by the process-wide ``sentry_sdk`` scope.

    Calls are no-ops until ``init_sentry`` has configured a DSN.
    """

    def add_breadcrumb(self, *, category: str, message: str, level: BreadcrumbLevel = "info",
                       data: JsonDict | None = None) -> None:
        sentry_sdk.add_breadcrumb(category=category, message=message, level=level, data=data or {})

    def capture_exception(self, error: BaseException, *, tags: dict[str, str] | None = None) -> str | None:
        return sentry_sdk.capture_exception(error, tags=tags or {})

    def set_context(self, key: str, value: JsonDict) -> None:
        sentry_sdk.set_context(key, value)

    def set_tag(self, key: str, value: str) -> None:
        sentry_sdk.set_tag(key, value)

    def flush(self, timeout: float) -> None:
        sentry_sdk.flush(timeout=timeout)


def transaction_hook(*, record_inputs: bool = True, record_outputs: bool = True) -> BeforeSend:
    """``before_send_transaction`` that applies AI span ops, then drops unrecorded AI payloads."""
    scrub = scrub_ai_payloads(record_inputs=record_inputs, record_outputs=record_outputs)

    def before_send_transaction(event: Event, hint: dict[str, object]) -> Event | None:
        return scrub(relabel_transaction(event), hint)

    return before_send_transaction


def init_sentry(
    settings: SentrySettings,
    *,
    record_inputs: bool = True,
    record_outputs: bool = True,
    transport: Transport | None = None,
) -> Result[None, SkipReason]:
    """Initialize the Sentry SDK for OpenTelemetry-instrumented tracing.

    Without a DSN nothing is initialized and telemetry stays disabled;
    the rest of the plugin keeps working against the inert SDK.

    Args:
        settings: Resolved settings
        record_inputs: Keep AI prompts on spans
        record_outputs: Keep AI responses on spans
        transport: Envelope sink replacing the SDK's HTTP transport
    """
    if not settings.enabled:
        log.info("sentry disabled", reason=SkipReason.NO_DSN.value)
        return Err(SkipReason.NO_DSN)

    sentry_sdk.init(
        dsn=settings.dsn,
        environment=settings.environment,
        release=settings.release,
        traces_sample_rate=settings.traces_sample_rate,
        debug=settings.debug,
        send_default_pii=True,
        instrumenter="otel",
        before_send_transaction=transaction_hook(record_inputs=record_inputs, record_outputs=record_outputs),
        transport=transport,
    )
    for key, value in INITIAL_TAGS.items():
        sentry_sdk.set_tag(key, value)
    log.info("sentry initialized", environment=settings.environment, release=settings.release,
             traces_sample_rate=settings.traces_sample_rate)
    return Ok(None)
