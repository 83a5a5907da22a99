"""Strip recorded AI prompts and completions from outgoing transactions.

AI instrumentation attaches prompts and responses as span attributes. When
the plugin is configured not to record inputs or outputs, those attributes
are removed in Sentry's ``before_send_transaction`` hook. SentrySpanProcessor
puts root span attributes in ``contexts.otel.attributes`` and child span
attributes in ``spans[*].data``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, MutableMapping
from typing import Any

INPUT_PREFIXES: tuple[str, ...] = ("ai.prompt", "gen_ai.prompt", "gen_ai.request.messages", "ai.toolCall.args")
OUTPUT_PREFIXES: tuple[str, ...] = ("ai.response", "gen_ai.completion", "gen_ai.response.text", "ai.toolCall.result")

Event = dict[str, Any]
BeforeSend = Callable[[Event, dict[str, Any]], Event | None]


def scrub_ai_payloads(*, record_inputs: bool = True, record_outputs: bool = True) -> BeforeSend:
    """Build a ``before_send_transaction`` hook honoring the record flags.

    Example:
        >>> hook = scrub_ai_payloads(record_inputs=False)
        >>> event = {"spans": [{"data": {"ai.prompt.messages": "[...]", "ai.model.id": "gpt-4"}}]}
        >>> hook(event, {})["spans"][0]["data"]
        {'ai.model.id': 'gpt-4'}
    """
    prefixes = (() if record_inputs else INPUT_PREFIXES) + (() if record_outputs else OUTPUT_PREFIXES)

    def before_send_transaction(event: Event, hint: dict[str, Any]) -> Event | None:
        if not prefixes:
            return event
        for data in _attribute_maps(event):
            _drop_prefixed(data, prefixes)
        return event

    return before_send_transaction


def _attribute_maps(event: Event) -> Iterator[MutableMapping[str, Any]]:
    contexts = event.get("contexts") or {}
    candidates = [
        (contexts.get("otel") or {}).get("attributes"),
        (contexts.get("trace") or {}).get("data"),
        *((s or {}).get("data") for s in event.get("spans") or ()),
    ]
    yield from (c for c in candidates if isinstance(c, MutableMapping))


def _drop_prefixed(data: MutableMapping[str, Any], prefixes: tuple[str, ...]) -> None:
    for key in [k for k in data if isinstance(k, str) and k.startswith(prefixes)]:
        del data[key]
