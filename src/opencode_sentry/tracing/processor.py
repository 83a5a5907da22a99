"""Relabel AI SDK model-call spans for Sentry's AI monitoring.

The AI SDK emits generic spans; only the per-call ``doStream``/``doGenerate``
spans carry model and token data, so those are the ones marked as
``gen_ai.chat`` with canonical model/provider attributes.

GenAISpanProcessor marks the OpenTelemetry spans; relabel_transaction carries
the mark onto the Sentry transaction built from them.
"""

from __future__ import annotations

from collections.abc import Mapping, MutableMapping
from typing import TYPE_CHECKING, Any

from opentelemetry.sdk.trace import SpanProcessor

if TYPE_CHECKING:
    from opentelemetry.context import Context
    from opentelemetry.sdk.trace import ReadableSpan, Span

GEN_AI_SPAN_NAMES = frozenset({"ai.streamText.doStream", "ai.generateText.doGenerate"})
GEN_AI_CHAT_OP = "gen_ai.chat"

SENTRY_OP_ATTR = "sentry.op"
MODEL_ATTR = "gen_ai.request.model"
PROVIDER_ATTR = "gen_ai.system"

# destination -> sources, first present wins
ATTRIBUTE_SOURCES: dict[str, tuple[str, ...]] = {
    MODEL_ATTR: ("ai.model.id", "gen_ai.request.model"),
    PROVIDER_ATTR: ("ai.model.provider", "gen_ai.system"),
}


class GenAISpanProcessor(SpanProcessor):
    """Tag model-call spans with ``sentry.op = gen_ai.chat`` when they start.

    Example:
        >>> provider = TracerProvider()
        >>> provider.add_span_processor(GenAISpanProcessor())
        >>> with provider.get_tracer("ai").start_as_current_span(
        ...     "ai.streamText.doStream", attributes={"ai.model.id": "gpt-4"}) as span:
        ...     span.attributes["gen_ai.request.model"]
        'gpt-4'
    """

    def on_start(self, span: Span, parent_context: Context | None = None) -> None:
        if span.name not in GEN_AI_SPAN_NAMES:
            return
        span.set_attribute(SENTRY_OP_ATTR, GEN_AI_CHAT_OP)
        attrs = span.attributes or {}
        for dest, sources in ATTRIBUTE_SOURCES.items():
            if value := _first_present(attrs, sources):
                span.set_attribute(dest, value)

    def on_end(self, span: ReadableSpan) -> None:
        pass

    def shutdown(self) -> None:
        pass

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        return True


def _first_present(attrs: Mapping[str, object], keys: tuple[str, ...]) -> object | None:
    for key in keys:
        if value := attrs.get(key):
            return value
    return None


def relabel_transaction(event: dict[str, Any]) -> dict[str, Any]:
    """Copy ``sentry.op`` span attributes onto the ops of an outgoing transaction.

    SentrySpanProcessor names every op after its span and keeps attributes
    only as data: ``contexts.otel.attributes`` for the transaction's root span,
    ``spans[*].data`` for its children.

    Example:
        >>> event = {"contexts": {"trace": {"op": "ai.streamText.doStream"},
        ...                       "otel": {"attributes": {"sentry.op": "gen_ai.chat"}}}}
        >>> relabel_transaction(event)["contexts"]["trace"]["op"]
        'gen_ai.chat'
    """
    contexts = event.get("contexts") or {}
    root_attrs = (contexts.get("otel") or {}).get("attributes")
    if isinstance(trace_ctx := contexts.get("trace"), MutableMapping) and (op := _sentry_op(root_attrs)):
        trace_ctx["op"] = op
    for span in event.get("spans") or ():
        if isinstance(span, MutableMapping) and (op := _sentry_op(span.get("data"))):
            span["op"] = op
    return event


def _sentry_op(attrs: object) -> str | None:
    op = attrs.get(SENTRY_OP_ATTR) if isinstance(attrs, Mapping) else None
    return op if isinstance(op, str) and op else None
