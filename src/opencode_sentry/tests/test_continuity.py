"""Tests for remote-parent continuity of the OpenTelemetry runtime context."""

from __future__ import annotations

import opentelemetry.context as otel_context
import pytest
from opentelemetry import context, trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from opencode_sentry.errors import SkipReason
from opencode_sentry.tracing import (
    RemoteParentRuntimeContext,
    has_active_span,
    install_remote_parent,
    installed_remote_parent,
    parse_traceparent,
    uninstall_remote_parent,
)

HEADER = "00-4bf92f3577b34da6a3ce929d0e0e4736-00f067aa0ba902b7-01"
TRACE_ID = 0x4BF92F3577B34DA6A3CE929D0E0E4736
SPAN_ID = 0x00F067AA0BA902B7


@pytest.fixture
def exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def tracer(exporter: InMemorySpanExporter) -> trace.Tracer:
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(exporter))
    return provider.get_tracer("test")


def _install(header: str = HEADER) -> RemoteParentRuntimeContext:
    parent = parse_traceparent(header)
    assert parent is not None
    return install_remote_parent(parent).unwrap()


# ═════════════════════════════════════════════════════════════════════════════
# Context queries
# ═════════════════════════════════════════════════════════════════════════════


def test_without_patch_current_context_has_no_span() -> None:
    assert not has_active_span(context.get_current())


def test_query_without_active_span_returns_remote_parent() -> None:
    _install()

    span_ctx = trace.get_current_span(context.get_current()).get_span_context()

    assert span_ctx.trace_id == TRACE_ID
    assert span_ctx.span_id == SPAN_ID
    assert span_ctx.is_remote


def test_query_with_active_span_returns_that_span(tracer: trace.Tracer) -> None:
    _install()

    with tracer.start_as_current_span("explicit") as span:
        current = trace.get_current_span(context.get_current())
        assert current is span
        assert current.get_span_context().span_id != SPAN_ID
        assert not current.get_span_context().is_remote


def test_root_spans_become_children_of_remote_parent(tracer: trace.Tracer, exporter: InMemorySpanExporter) -> None:
    _install()

    with tracer.start_as_current_span("first"):
        pass
    tracer.start_span("second").end()

    first, second = exporter.get_finished_spans()
    for span in (first, second):
        assert span.context.trace_id == TRACE_ID
        assert span.parent is not None
        assert span.parent.span_id == SPAN_ID
        assert span.parent.is_remote


def test_explicit_spans_still_nest(tracer: trace.Tracer, exporter: InMemorySpanExporter) -> None:
    _install()

    with tracer.start_as_current_span("outer") as outer:
        with tracer.start_as_current_span("inner"):
            pass

    inner, finished_outer = exporter.get_finished_spans()
    assert inner.parent.span_id == outer.get_span_context().span_id  # type: ignore[union-attr]
    assert inner.context.trace_id == TRACE_ID
    assert finished_outer.parent.span_id == SPAN_ID  # type: ignore[union-attr]


def test_fallback_resumes_after_scope_exits(tracer: trace.Tracer) -> None:
    _install()

    with tracer.start_as_current_span("scoped"):
        pass

    assert trace.get_current_span().get_span_context().span_id == SPAN_ID


def test_unsampled_parent_yields_unsampled_children(tracer: trace.Tracer) -> None:
    _install(HEADER[:-2] + "00")

    span = tracer.start_span("child")

    assert not span.is_recording()
    assert span.get_span_context().trace_id == TRACE_ID


def test_attach_and_detach_pass_through() -> None:
    wrapper = _install()
    token = context.attach(context.set_value("request", "r-1"))
    try:
        current = context.get_current()
        assert current.get("request") == "r-1"
        # attached context was derived from the root, so it carries the remote parent
        assert trace.get_current_span(current).get_span_context().span_id == SPAN_ID
    finally:
        context.detach(token)
    assert context.get_current() is wrapper.root


# ═════════════════════════════════════════════════════════════════════════════
# Installation
# ═════════════════════════════════════════════════════════════════════════════


def test_install_wraps_runtime_context() -> None:
    original = otel_context._RUNTIME_CONTEXT

    wrapper = _install()

    assert otel_context._RUNTIME_CONTEXT is wrapper
    assert wrapper.delegate is original
    assert installed_remote_parent() is wrapper


def test_install_is_idempotent() -> None:
    first = _install()
    second = _install("00-11111111111111111111111111111111-2222222222222222-01")

    assert second is first
    assert not isinstance(first.delegate, RemoteParentRuntimeContext)
    assert first.parent.trace_id == TRACE_ID


def test_uninstall_restores_runtime_context() -> None:
    original = otel_context._RUNTIME_CONTEXT
    _install()

    assert uninstall_remote_parent() is True
    assert otel_context._RUNTIME_CONTEXT is original
    assert installed_remote_parent() is None
    assert uninstall_remote_parent() is False


def test_unusable_ids_skip_installation() -> None:
    original = otel_context._RUNTIME_CONTEXT
    parent = parse_traceparent("00-nothex-nothex-01")
    assert parent is not None

    result = install_remote_parent(parent)

    assert result.unwrap_err() is SkipReason.INVALID_TRACE_IDS
    assert otel_context._RUNTIME_CONTEXT is original


def test_incompatible_runtime_is_skipped_silently(monkeypatch: pytest.MonkeyPatch) -> None:
    runtime = object()
    monkeypatch.setattr(otel_context, "_RUNTIME_CONTEXT", runtime)
    parent = parse_traceparent(HEADER)
    assert parent is not None

    result = install_remote_parent(parent)

    assert result.unwrap_err() is SkipReason.INCOMPATIBLE_RUNTIME
    assert otel_context._RUNTIME_CONTEXT is runtime
    assert installed_remote_parent() is None


def test_missing_runtime_is_skipped_silently(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delattr(otel_context, "_RUNTIME_CONTEXT")
    parent = parse_traceparent(HEADER)
    assert parent is not None

    assert install_remote_parent(parent).unwrap_err() is SkipReason.INCOMPATIBLE_RUNTIME
