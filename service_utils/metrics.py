import time
from functools import wraps

from flask import current_app, request
from prometheus_client import Counter, Histogram
from werkzeug.exceptions import HTTPException

from chainvote.exceptions import ChainVoteError

ROUTE_LABELS = ["blueprint", "endpoint", "method"]

REQUEST_COUNTER = Counter(
    "chainvote_request_total",
    "API requests by route and response status",
    ROUTE_LABELS + ["status"],
)
REQUEST_LATENCY = Histogram(
    "chainvote_request_latency_seconds",
    "API request latency",
    ROUTE_LABELS,
)
ERROR_COUNTER = Counter(
    "chainvote_request_errors_total",
    "API requests that raised, by error class",
    ROUTE_LABELS + ["error"],
)


def status_for(exc):
    """HTTP status the app-wide error handlers answer for an exception."""
    if isinstance(exc, ChainVoteError):
        return exc.status_code
    if isinstance(exc, HTTPException):
        return exc.code
    return 500


def metrics(fn):
    """Count, time and classify a route by the status it answers with."""

    @wraps(fn)
    def wrapper(*args, **kwargs):
        labels = {
            "blueprint": request.blueprint or "app",
            "endpoint": request.endpoint or fn.__name__,
            "method": request.method,
        }
        start = time.perf_counter()
        try:
            response = current_app.make_response(fn(*args, **kwargs))
        except Exception as e:
            ERROR_COUNTER.labels(error=type(e).__name__, **labels).inc()
            REQUEST_COUNTER.labels(status=str(status_for(e)), **labels).inc()
            raise
        finally:
            REQUEST_LATENCY.labels(**labels).observe(time.perf_counter() - start)
        REQUEST_COUNTER.labels(status=str(response.status_code), **labels).inc()
        return response

    return wrapper
