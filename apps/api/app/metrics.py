from __future__ import annotations

import re

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.requests import Request


http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "path", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "path"],
)

workflow_history_writes_total = Counter(
    "workflow_history_writes_total",
    "History entries written after tracked-field updates by entity kind and outcome",
    ["entity_kind", "outcome"],
)

workflow_history_write_duration_seconds = Histogram(
    "workflow_history_write_duration_seconds",
    "History write duration in seconds",
    ["entity_kind"],
)

activity_log_writes_total = Counter(
    "activity_log_writes_total",
    "Activity log writes by entity kind, action and outcome",
    ["entity_kind", "action", "outcome"],
)

visibility_fail_closed_total = Counter(
    "visibility_fail_closed_total",
    "Scoped queries answered with zero rows because no actor was resolved",
    ["resource"],
)


_UUID_RE = re.compile(
    r"\b[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[1-5][0-9a-fA-F]{3}-[89abAB][0-9a-fA-F]{3}-[0-9a-fA-F]{12}\b"
)
_INT_RE = re.compile(r"/\d+\b")
_PATH_PARAM_RE = re.compile(r"\{[^{}]+\}")


def _sanitize_path(path: str) -> str:
    without_uuids = _UUID_RE.sub("{id}", path)
    return _INT_RE.sub("/{id}", without_uuids)


def resolve_http_path_label(request: Request) -> str:
    route = request.scope.get("route")
    if route is not None:
        route_path = getattr(route, "path_format", None) or getattr(route, "path", None)
        if isinstance(route_path, str) and route_path:
            return _PATH_PARAM_RE.sub("{id}", route_path)
    return _sanitize_path(request.url.path)


def observe_http_request(method: str, path: str, status: int, duration: float) -> None:
    http_requests_total.labels(method=method, path=path, status=str(status)).inc()
    http_request_duration_seconds.labels(method=method, path=path).observe(duration)


def observe_history_write(entity_kind: str, outcome: str, duration: float | None = None) -> None:
    workflow_history_writes_total.labels(entity_kind=entity_kind, outcome=outcome).inc()
    if duration is not None:
        workflow_history_write_duration_seconds.labels(entity_kind=entity_kind).observe(duration)


def observe_activity_write(entity_kind: str, action: str, outcome: str) -> None:
    activity_log_writes_total.labels(entity_kind=entity_kind, action=action, outcome=outcome).inc()


def observe_visibility_fail_closed(resource: str) -> None:
    visibility_fail_closed_total.labels(resource=resource).inc()


def generate_metrics_payload() -> bytes:
    return generate_latest()


def metrics_content_type() -> str:
    return CONTENT_TYPE_LATEST
