"""Recording TelemetryClient and in-memory Sentry transport for tests.

Routing can be verified without the Sentry SDK, and exported transactions
without a network.

Example:
    >>> client = RecordingClient()
    >>> hooks = await create_sentry_plugin(client=client, set_global_tracer=False)({})
    >>> await hooks.tool_execute_after({"tool": "bash"}, {"metadata": {"error": "exit 1"}})
    >>> client.assert_captured("exit 1", source="tool.execute")
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable

from sentry_sdk.transport import Transport

from opencode_sentry.client import BreadcrumbLevel
from opencode_sentry.errors import JsonDict

if TYPE_CHECKING:
    from sentry_sdk.envelope import Envelope


@dataclass(slots=True)
class Breadcrumb:
    category: str
    message: str
    level: str
    data: JsonDict


@dataclass(slots=True)
class CapturedException:
    error: BaseException
    tags: dict[str, str]

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass
class RecordingClient:
    """TelemetryClient that records every call.

    Args:
        flush_hook: Called with the timeout on each flush; use it to simulate a slow transport
    """

    breadcrumbs: list[Breadcrumb] = field(default_factory=list)
    exceptions: list[CapturedException] = field(default_factory=list)
    contexts: dict[str, JsonDict] = field(default_factory=dict)
    tags: dict[str, str] = field(default_factory=dict)
    flushes: list[float] = field(default_factory=list)
    flush_hook: Callable[[float], None] | None = None
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def add_breadcrumb(self, *, category: str, message: str, level: BreadcrumbLevel = "info",
                       data: JsonDict | None = None) -> None:
        self.breadcrumbs.append(Breadcrumb(category, message, level, dict(data or {})))

    def capture_exception(self, error: BaseException, *, tags: dict[str, str] | None = None) -> str | None:
        self.exceptions.append(CapturedException(error, dict(tags or {})))
        return None

    def set_context(self, key: str, value: JsonDict) -> None:
        self.contexts[key] = dict(value)

    def set_tag(self, key: str, value: str) -> None:
        self.tags[key] = value

    def flush(self, timeout: float) -> None:
        # runs in a worker thread when called by the router
        with self._lock:
            self.flushes.append(timeout)
        if self.flush_hook:
            self.flush_hook(timeout)

    # ─── Assertions ──────────────────────────────────────────────────

    def assert_breadcrumb(self, message: str, **data: object) -> Breadcrumb:
        for crumb in self.breadcrumbs:
            if crumb.message == message and all(crumb.data.get(k) == v for k, v in data.items()):
                return crumb
        raise AssertionError(f"No breadcrumb {message!r} with {data!r}; got {[b.message for b in self.breadcrumbs]}")

    def assert_captured(self, message: str, **tags: str) -> CapturedException:
        for captured in self.exceptions:
            if captured.message == message and all(captured.tags.get(k) == v for k, v in tags.items()):
                return captured
        raise AssertionError(f"No exception {message!r} with tags {tags!r}; got {[e.message for e in self.exceptions]}")

    def assert_nothing_captured(self) -> None:
        if self.exceptions:
            raise AssertionError(f"Captured {len(self.exceptions)} exception(s): {[e.message for e in self.exceptions]}")


class CapturingTransport(Transport):
    """Sentry transport that keeps envelopes in memory instead of sending them.

    Example:
        >>> transport = CapturingTransport("https://key@o0.ingest.sentry.io/1")
        >>> init_sentry(SentrySettings(dsn=transport.dsn), transport=transport)
        >>> ...  # finish some spans
        >>> transport.transactions[0]["contexts"]["trace"]["op"]
        'gen_ai.chat'
    """

    def __init__(self, dsn: str) -> None:
        super().__init__({"dsn": dsn})
        self.dsn = dsn
        self.envelopes: list[Envelope] = []

    def capture_envelope(self, envelope: Envelope) -> None:
        self.envelopes.append(envelope)

    @property
    def transactions(self) -> list[dict[str, Any]]:
        return [tx for e in self.envelopes if (tx := e.get_transaction_event()) is not None]
