"""Typed host lifecycle events.

The host delivers bus events as ``{"type": ..., "properties": {...}}`` and
tool executions through separate before/after hooks. Both are normalized into
one closed union, discriminated on ``type``, so the router can match them
exhaustively.

Example:
    >>> parse_event({"type": "session.created", "properties": {"id": "ses_1"}})
    SessionCreated(type='session.created', session_id='ses_1')
    >>> parse_event({"type": "file.edited", "properties": {}}) is None
    True
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from opencode_sentry.logging import get_logger

log = get_logger("opencode_sentry.events")


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class SessionCreated(_Event):
    type: Literal["session.created"] = "session.created"
    session_id: str | None = None


class SessionError(_Event):
    """A session failed. ``error`` is whatever the host reported: exception, string, or dict."""

    type: Literal["session.error"] = "session.error"
    error: Any = None
    session_id: str | None = None


class SessionIdle(_Event):
    type: Literal["session.idle"] = "session.idle"
    session_id: str | None = None


class ToolExecuteBefore(_Event):
    """A tool is about to run. Only argument names are kept, never values."""

    type: Literal["tool.execute.before"] = "tool.execute.before"
    tool: str
    arg_keys: tuple[str, ...] = ()


class ToolExecuteAfter(_Event):
    type: Literal["tool.execute.after"] = "tool.execute.after"
    tool: str
    error: Any = None


LifecycleEvent = Annotated[
    Union[SessionCreated, SessionError, SessionIdle, ToolExecuteBefore, ToolExecuteAfter],
    Field(discriminator="type"),
]

_ADAPTER: TypeAdapter[LifecycleEvent] = TypeAdapter(LifecycleEvent)


def parse_event(payload: object) -> LifecycleEvent | None:
    """Normalize a host bus event. Unknown kinds and malformed payloads yield None."""
    if not isinstance(payload, Mapping):
        return None
    props = payload.get("properties")
    props = props if isinstance(props, Mapping) else {}
    match kind := payload.get("type"):
        case "session.created":
            data: dict[str, Any] = {"session_id": _session_id(props)}
        case "session.error":
            data = {"error": props.get("error"), "session_id": _as_str(props.get("sessionID"))}
        case "session.idle":
            data = {"session_id": _as_str(props.get("sessionID"))}
        case _:
            return None
    try:
        return _ADAPTER.validate_python({"type": kind, **data})
    except ValidationError as e:
        log.debug("dropping malformed event", kind=kind, errors=e.error_count())
        return None


def tool_before(input: Mapping[str, Any], output: Mapping[str, Any] | None = None) -> ToolExecuteBefore | None:  # noqa: A002
    """Event for the host's ``tool.execute.before`` hook."""
    if not (tool := _as_str(input.get("tool"))):
        return None
    return ToolExecuteBefore(tool=tool, arg_keys=_arg_keys((output or {}).get("args")))


def tool_after(input: Mapping[str, Any], output: Mapping[str, Any] | None = None) -> ToolExecuteAfter | None:  # noqa: A002
    """Event for the host's ``tool.execute.after`` hook. The error, if any, is read from ``output.metadata``."""
    if not (tool := _as_str(input.get("tool"))):
        return None
    metadata = (output or {}).get("metadata")
    return ToolExecuteAfter(tool=tool, error=metadata.get("error") if isinstance(metadata, Mapping) else None)


def _arg_keys(args: object) -> tuple[str, ...]:
    # positional argument lists are keyed by index
    match args:
        case Mapping():
            return tuple(str(k) for k in args)
        case list() | tuple():
            return tuple(str(i) for i in range(len(args)))
        case _:
            return ()


def _session_id(props: Mapping[str, Any]) -> str | None:
    # older hosts send the id flat, newer ones nest the whole session under "info"
    if (sid := props.get("id")) is None and isinstance(info := props.get("info"), Mapping):
        sid = info.get("id")
    return _as_str(sid)


def _as_str(value: object) -> str | None:
    return None if value is None else str(value)
