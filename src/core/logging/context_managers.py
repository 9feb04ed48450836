"""Context managers for structured logging."""

from typing import Dict, Optional

from core.logging.context import get_log_context, set_log_context


class LogContext:
    """
    Context manager for temporary log context.

    Fields left as None keep their current value. The previous context is
    restored on exit, also when the block raises.

    Usage:
        with LogContext(operation="create_enrollment", trace_id=trace_id):
            # All logs in this block will have operation and trace_id
            await api.put(path, enrollment)
    """

    def __init__(
        self,
        operation: Optional[str] = None,
        trace_id: Optional[str] = None,
        request_id: Optional[str] = None,
    ):
        self.new_context = {
            "operation": operation,
            "trace_id": trace_id,
            "request_id": request_id,
        }
        self.old_context: Dict[str, str] = {}

    def __enter__(self) -> "LogContext":
        self.old_context = get_log_context()
        for key, value in self.new_context.items():
            if value is not None:
                set_log_context(**{key: value})
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        # Restore old context
        set_log_context(
            operation=self.old_context.get("operation", ""),
            trace_id=self.old_context.get("trace_id", ""),
            request_id=self.old_context.get("request_id", ""),
        )
        return False
