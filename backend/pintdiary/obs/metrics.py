"""Central registry for Prometheus metrics used across the backend."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram


REQUEST_COUNTER = Counter(
	"pintdiary_http_requests_total",
	"Total HTTP requests processed",
	["route", "method", "status"],
)

REQUEST_LATENCY = Histogram(
	"pintdiary_http_request_duration_seconds",
	"HTTP request latency in seconds",
	["route", "method"],
	buckets=(0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0),
)

SOCKET_CLIENTS = Gauge(
	"pintdiary_socketio_clients",
	"Active Socket.IO clients per namespace",
	["namespace"],
)

SOCKET_EVENTS = Counter(
	"pintdiary_socketio_events_total",
	"Socket.IO events emitted per namespace",
	["namespace", "event"],
)

PINTS_WRITTEN = Counter(
	"pintdiary_pints_written_total",
	"Pint records created, edited or deleted",
	["action"],
)

AGGREGATE_FAILURES = Counter(
	"pintdiary_secondary_write_failures_total",
	"Secondary writes (counters, badges, counterpart friend writes) that failed and were swallowed",
	["operation"],
)

BADGES_AWARDED = Counter(
	"pintdiary_badges_awarded_total",
	"Badges awarded by the rule engine",
	["badge"],
)

FRIEND_CONNECTS = Counter(
	"pintdiary_friend_connects_total",
	"Friend connection attempts",
	["result"],
)

FEED_QUERIES = Counter(
	"pintdiary_feed_queries_total",
	"Friend feed queries",
	["mode"],
)

FEED_OWNER_TRUNCATIONS = Counter(
	"pintdiary_feed_owner_truncations_total",
	"Paginated feed requests whose friend set exceeded the owner-set query limit",
)

STORE_ERRORS = Counter(
	"pintdiary_store_errors_total",
	"Entity store calls that failed at the backend",
	["backend", "operation"],
)

STORE_UP = Gauge(
	"pintdiary_store_up",
	"Whether the entity store answered the last readiness probe",
	["backend"],
)

PLACES_LOOKUPS = Counter(
	"pintdiary_places_lookups_total",
	"Places provider lookups",
	["kind", "source"],
)

PHOTO_UPLOADS = Counter(
	"pintdiary_photo_uploads_total",
	"Pint photo uploads",
	["result"],
)


def observe_request(route: str, method: str, status: int, elapsed_seconds: float) -> None:
	REQUEST_COUNTER.labels(route=route, method=method, status=str(status)).inc()
	REQUEST_LATENCY.labels(route=route, method=method).observe(elapsed_seconds)


def socket_connected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).inc()


def socket_disconnected(namespace: str) -> None:
	SOCKET_CLIENTS.labels(namespace=namespace).dec()


def socket_event(namespace: str, event: str) -> None:
	SOCKET_EVENTS.labels(namespace=namespace, event=event).inc()


def inc_pint_written(action: str) -> None:
	PINTS_WRITTEN.labels(action=action).inc()


def inc_secondary_failure(operation: str) -> None:
	AGGREGATE_FAILURES.labels(operation=operation).inc()


def inc_badge_awarded(badge: str) -> None:
	BADGES_AWARDED.labels(badge=badge).inc()


def inc_friend_connect(result: str) -> None:
	FRIEND_CONNECTS.labels(result=result).inc()


def inc_feed_query(mode: str) -> None:
	FEED_QUERIES.labels(mode=mode).inc()


def inc_feed_truncation() -> None:
	FEED_OWNER_TRUNCATIONS.inc()


def inc_store_error(backend: str, operation: str) -> None:
	STORE_ERRORS.labels(backend=backend, operation=operation).inc()


def mark_store(backend: str, ok: bool) -> None:
	STORE_UP.labels(backend=backend).set(1 if ok else 0)


def inc_places_lookup(kind: str, source: str) -> None:
	PLACES_LOOKUPS.labels(kind=kind, source=source).inc()


def inc_photo_upload(result: str) -> None:
	PHOTO_UPLOADS.labels(result=result).inc()
