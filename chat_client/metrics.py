from prometheus_client import (
    Counter,
    Histogram,
    CollectorRegistry,
    generate_latest,
)

registry = CollectorRegistry()

client_requests_total = Counter(
    "chat_client_requests_total",
    "Total API calls by operation and outcome",
    ["operation", "outcome"],
    registry=registry,
)

client_request_duration_seconds = Histogram(
    "chat_client_request_duration_seconds",
    "API call latency in seconds (streams: until the last frame is read)",
    ["operation", "outcome"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1, 2, 5, 10, 30, 60, 120),
    registry=registry,
)

stream_frames_total = Counter(
    "chat_client_stream_frames_total",
    "Streamed frames seen by the client, by kind (payload, done, error)",
    ["kind"],
    registry=registry,
)


def observe_request(operation: str, outcome: str, duration: float) -> None:
    client_requests_total.labels(operation=operation, outcome=outcome).inc()
    client_request_duration_seconds.labels(
        operation=operation, outcome=outcome
    ).observe(duration)


def record_frame(kind: str) -> None:
    stream_frames_total.labels(kind=kind).inc()


__all__ = [
    "registry",
    "client_requests_total",
    "client_request_duration_seconds",
    "stream_frames_total",
    "observe_request",
    "record_frame",
    "generate_latest",
]
