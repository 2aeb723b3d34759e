# Core infrastructure
# Note: the Cassandra connection module (campusboard.core.database) is not
# imported here; it is loaded only when the Cassandra backend is selected.
from campusboard.core.context import (
    clear_context,
    get_actor_id,
    get_context,
    get_correlation_id,
    get_request_id,
    get_trace_id,
    set_actor_id,
    set_correlation_id,
    set_request_id,
    set_trace_id,
)
from campusboard.core.logging import configure_structlog, get_logger
from campusboard.core.middleware import RequestContextMiddleware


__all__ = [
    "RequestContextMiddleware",
    "clear_context",
    "configure_structlog",
    "get_actor_id",
    "get_context",
    "get_correlation_id",
    "get_logger",
    "get_request_id",
    "get_trace_id",
    "set_actor_id",
    "set_correlation_id",
    "set_request_id",
    "set_trace_id",
]
