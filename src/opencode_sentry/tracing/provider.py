"""OpenTelemetry tracer provider wired to Sentry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from opentelemetry import trace
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider

from opencode_sentry.logging import get_logger

from .processor import GenAISpanProcessor

if TYPE_CHECKING:
    from opencode_sentry.config import SentrySettings

log = get_logger("opencode_sentry.tracing")

SERVICE = "opencode"


def configure_tracing(
    settings: SentrySettings,
    *,
    provider: TracerProvider | None = None,
    set_global: bool = True,
) -> TracerProvider:
    """Build (or extend) a tracer provider that relabels AI spans and, when enabled, ships them to Sentry.

    Args:
        settings: Resolved settings; Sentry export is added only when a DSN is set
        provider: Existing provider to extend instead of creating one
        set_global: Register the provider as the global OpenTelemetry tracer provider

    Example:
        >>> provider = configure_tracing(get_settings(), set_global=False)
        >>> tracer = provider.get_tracer("opencode")
    """
    provider = provider or TracerProvider(resource=Resource.create({SERVICE_NAME: SERVICE}))
    provider.add_span_processor(GenAISpanProcessor())

    if settings.enabled:
        from opentelemetry.propagate import set_global_textmap
        from sentry_sdk.integrations.opentelemetry import SentryPropagator, SentrySpanProcessor

        provider.add_span_processor(SentrySpanProcessor())
        set_global_textmap(SentryPropagator())

    if set_global:
        trace.set_tracer_provider(provider)
    log.debug("tracing configured", sentry_export=settings.enabled, global_provider=set_global)
    return provider
