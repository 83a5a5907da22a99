"""Error handling for opencode_sentry.

- Result/Ok/Err: outcome of setup steps that degrade instead of raising
- ReportedError/coerce_exception: turn host error payloads into exceptions
- SkipReason: why a telemetry feature was skipped
"""

from .errors import ReportedError, SkipReason, coerce_exception
from .result import Err, Ok, Result
from .types import JsonDict, JsonMapping, JsonPrimitive, JsonValue

__all__ = [
    # Reported errors
    "ReportedError", "SkipReason", "coerce_exception",
    # Result
    "Result", "Ok", "Err",
    # Types
    "JsonDict", "JsonMapping", "JsonPrimitive", "JsonValue",
]
