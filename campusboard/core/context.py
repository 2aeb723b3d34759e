"""Request context management using contextvars.

Each request gets a unique ID plus optional actor/trace information that can be
read anywhere in the call stack (log processors in particular) without
threading parameters through every call.
"""

from contextvars import ContextVar
from typing import Any
from uuid import UUID, uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
actor_id_var: ContextVar[str | None] = ContextVar("actor_id", default=None)
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID. If not provided, generates a new one.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_actor_id() -> str | None:
    """Get the acting user's ID for the current context."""
    return actor_id_var.get()


def set_actor_id(actor_id: str | UUID | None) -> None:
    """Set the acting user's ID for the current context."""
    actor_id_var.set(str(actor_id) if actor_id is not None else None)


def get_trace_id() -> str | None:
    """Get the current trace ID."""
    return trace_id_var.get()


def set_trace_id(trace_id: str | None) -> None:
    """Set the trace ID for the current context."""
    trace_id_var.set(trace_id)


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID for the current context."""
    correlation_id_var.set(correlation_id)


def get_context() -> dict[str, Any]:
    """Get all non-empty context variables as a dictionary."""
    context: dict[str, Any] = {}

    request_id = get_request_id()
    if request_id:
        context["request_id"] = request_id

    actor_id = get_actor_id()
    if actor_id:
        context["actor_id"] = actor_id

    trace_id = get_trace_id()
    if trace_id:
        context["trace_id"] = trace_id

    correlation_id = get_correlation_id()
    if correlation_id:
        context["correlation_id"] = correlation_id

    return context


def clear_context() -> None:
    """Clear all context variables.

    Called at the end of each request to prevent leakage between requests.
    """
    request_id_var.set("")
    actor_id_var.set(None)
    trace_id_var.set(None)
    correlation_id_var.set(None)

