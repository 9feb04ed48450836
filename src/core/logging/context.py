"""Context variables for structured logging."""

from contextvars import ContextVar
from typing import Dict, Optional

_operation: ContextVar[str] = ContextVar("operation", default="")
_trace_id: ContextVar[str] = ContextVar("trace_id", default="")
_request_id: ContextVar[str] = ContextVar("request_id", default="")


def set_log_context(
    operation: Optional[str] = None,
    trace_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> None:
    if operation is not None:
        _operation.set(operation)
    if trace_id is not None:
        _trace_id.set(trace_id)
    if request_id is not None:
        _request_id.set(request_id)


def get_log_context() -> Dict[str, str]:
    return {
        "operation": _operation.get(),
        "trace_id": _trace_id.get(),
        "request_id": _request_id.get(),
    }


def clear_log_context() -> None:
    _operation.set("")
    _trace_id.set("")
    _request_id.set("")
