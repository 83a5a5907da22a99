"""Tests for stripping AI prompts and responses from transactions."""

from __future__ import annotations

from typing import Any

from opencode_sentry.privacy import scrub_ai_payloads


def transaction() -> dict[str, Any]:
    """Transaction shaped as SentrySpanProcessor builds it: root attributes under contexts.otel."""
    return {
        "type": "transaction",
        "transaction": "ai.generateText",
        "contexts": {
            "trace": {"op": "ai.generateText", "trace_id": "4bf92f3577b34da6a3ce929d0e0e4736"},
            "otel": {
                "attributes": {
                    "ai.prompt": "{\"prompt\":\"hi\"}",
                    "ai.response.text": "hello",
                    "ai.model.id": "claude-sonnet-4",
                },
                "resource": {"service.name": "opencode"},
            },
        },
        "spans": [
            {"op": "gen_ai.chat", "data": {"otel.kind": "INTERNAL", "ai.prompt.messages": "[...]",
                                           "gen_ai.completion": "yo", "gen_ai.system": "anthropic"}},
            {"op": "ai.toolCall", "data": {"ai.toolCall.args": "{}", "ai.toolCall.result": "ok",
                                           "ai.toolCall.name": "bash"}},
            {"op": "db"},
        ],
    }


def test_records_everything_by_default() -> None:
    assert scrub_ai_payloads()(transaction(), {}) == transaction()


def test_drops_inputs_only() -> None:
    event = scrub_ai_payloads(record_inputs=False)(transaction(), {})

    assert event is not None
    assert event["contexts"]["otel"]["attributes"] == {"ai.response.text": "hello", "ai.model.id": "claude-sonnet-4"}
    assert event["spans"][0]["data"] == {"otel.kind": "INTERNAL", "gen_ai.completion": "yo", "gen_ai.system": "anthropic"}
    assert event["spans"][1]["data"] == {"ai.toolCall.result": "ok", "ai.toolCall.name": "bash"}


def test_drops_outputs_only() -> None:
    event = scrub_ai_payloads(record_outputs=False)(transaction(), {})

    assert event is not None
    assert event["contexts"]["otel"]["attributes"] == {"ai.prompt": "{\"prompt\":\"hi\"}", "ai.model.id": "claude-sonnet-4"}
    assert event["spans"][0]["data"] == {"otel.kind": "INTERNAL", "ai.prompt.messages": "[...]", "gen_ai.system": "anthropic"}
    assert event["spans"][1]["data"] == {"ai.toolCall.args": "{}", "ai.toolCall.name": "bash"}


def test_leaves_resource_and_trace_context() -> None:
    event = scrub_ai_payloads(record_inputs=False, record_outputs=False)(transaction(), {})

    assert event is not None
    assert event["contexts"]["otel"]["resource"] == {"service.name": "opencode"}
    assert event["contexts"]["trace"] == transaction()["contexts"]["trace"]


def test_tolerates_sparse_events() -> None:
    hook = scrub_ai_payloads(record_inputs=False, record_outputs=False)

    assert hook({}, {}) == {}
    sparse = {"contexts": {"otel": None, "trace": None}, "spans": [None, {"data": None}]}
    assert hook(dict(sparse), {}) == sparse
