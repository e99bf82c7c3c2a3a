"""Prometheus metrics owned by one application instance.

Each Metrics object has its own CollectorRegistry, so several apps (e.g.
in tests) never collide on metric names. Label values are bounded: the
path label is the route template, never the raw URL.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Histogram,
    generate_latest,
)

NAMESPACE = "spindle"


class Metrics:
    def __init__(self, namespace: str = NAMESPACE, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests processed",
            ["method", "path", "status"],
            namespace=namespace,
            registry=self.registry,
        )
        self.request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request latency",
            ["method", "path"],
            namespace=namespace,
            registry=self.registry,
        )
        self.users_created = Counter(
            "users_created_total",
            "Users created",
            namespace=namespace,
            registry=self.registry,
        )
        self.users_deleted = Counter(
            "users_deleted_total",
            "Users soft-deleted",
            namespace=namespace,
            registry=self.registry,
        )

    def observe_request(self, method: str, path: str, status: int, elapsed: float) -> None:
        self.requests_total.labels(method=method, path=path, status=str(status)).inc()
        self.request_duration.labels(method=method, path=path).observe(elapsed)

    def render(self) -> tuple[bytes, str]:
        """Return (payload, content_type) for the scrape endpoint."""
        return generate_latest(self.registry), CONTENT_TYPE_LATEST
