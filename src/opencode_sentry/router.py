"""Route host lifecycle events to breadcrumbs, exception captures, and flushes.

| Event               | Action                                                   |
|---------------------|----------------------------------------------------------|
| session.created     | breadcrumb with the session id                           |
| session.error       | capture the error, tagged source=session.error           |
| session.idle        | breadcrumb, then flush bounded by ``flush_timeout``      |
| tool.execute.before | breadcrumb naming the tool and its argument names        |
| tool.execute.after  | capture the tool's error, tagged source=tool.execute     |

Handler failures are logged and swallowed so they never reach the host.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from opencode_sentry.errors import coerce_exception
from opencode_sentry.logging import get_logger, log_context

from .events import SessionCreated, SessionError, SessionIdle, ToolExecuteAfter, ToolExecuteBefore

if TYPE_CHECKING:
    from .client import TelemetryClient
    from .events import LifecycleEvent

log = get_logger("opencode_sentry.router")

FLUSH_TIMEOUT = 2.0


@dataclass(slots=True)
class EventRouter:
    """Dispatches LifecycleEvents to a TelemetryClient.

    Args:
        client: Where breadcrumbs, exceptions and flushes go
        flush_timeout: Upper bound in seconds on the session.idle flush

    Example:
        >>> router = EventRouter(SentryClient())
        >>> await router.dispatch(parse_event({"type": "session.idle"}))
    """

    client: TelemetryClient
    flush_timeout: float = FLUSH_TIMEOUT

    async def dispatch(self, event: LifecycleEvent | None) -> None:
        """Handle one event. ``None`` (an event kind we don't track) is ignored."""
        if event is None:
            return
        with log_context(kind=event.type):
            try:
                await self._handle(event)
            except Exception:
                log.exception("event handler failed")

    async def _handle(self, event: LifecycleEvent) -> None:
        match event:
            case SessionCreated(session_id=session_id):
                self.client.add_breadcrumb(category="session", message="Session created", level="info",
                                           data={"sessionId": session_id})
            case SessionError(error=error):
                if error:
                    self.client.capture_exception(coerce_exception(error), tags={"source": "session.error"})
            case SessionIdle():
                self.client.add_breadcrumb(category="session", message="Session completed", level="info")
                await self.flush()
            case ToolExecuteBefore(tool=tool, arg_keys=arg_keys):
                self.client.add_breadcrumb(category="tool", message=f"Tool: {tool}", level="info",
                                           data={"tool": tool, "argKeys": list(arg_keys)})
            case ToolExecuteAfter(tool=tool, error=error):
                if error:
                    self.client.capture_exception(coerce_exception(error),
                                                  tags={"source": "tool.execute", "tool": tool})

    async def flush(self) -> bool:
        """Flush buffered telemetry, giving up after ``flush_timeout``. Returns whether it finished in time."""
        try:
            await asyncio.wait_for(asyncio.to_thread(self.client.flush, self.flush_timeout),
                                   timeout=self.flush_timeout)
        except asyncio.TimeoutError:
            log.debug("flush timed out", timeout=self.flush_timeout)
            return False
        return True
