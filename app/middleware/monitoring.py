"""
Monitoring & Observability Middleware
Request tracking, structured request logs and Prometheus metrics.
"""

import logging
import time
import traceback
import uuid
from typing import Any, Callable, Dict

import structlog
from fastapi import Request, Response
from prometheus_client import Counter, Gauge, Histogram, generate_latest
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.settings import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Configure structured logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        (
            structlog.processors.JSONRenderer()
            if settings.monitoring.LOG_FORMAT == "json"
            else structlog.dev.ConsoleRenderer()
        ),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
    cache_logger_on_first_use=True,
)

struct_logger = structlog.get_logger()


class PrometheusMetrics:
    """Prometheus metrics collection"""

    def __init__(self) -> None:
        # HTTP metrics
        self.http_requests_total = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status_code"],
        )

        self.http_request_duration_seconds = Histogram(
            "http_request_duration_seconds",
            "HTTP request latency",
            ["method", "endpoint"],
            buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
        )

        self.active_connections = Gauge(
            "active_connections", "Number of active connections"
        )

        self.errors_total = Counter(
            "errors_total", "Total application errors", ["error_type", "endpoint"]
        )

        # Business metrics
        self.bookings_total = Counter(
            "bookings_total", "Bookings created, by initial booking status", ["status"]
        )

        self.booking_rejections_total = Counter(
            "booking_rejections_total", "Booking requests rejected", ["reason"]
        )

        self.booking_cancellations_total = Counter(
            "booking_cancellations_total", "Bookings cancelled by their owner"
        )

    def record_request(
        self, method: str, endpoint: str, status_code: int, duration: float
    ) -> None:
        """Record HTTP request metrics"""
        self.http_requests_total.labels(
            method=method, endpoint=endpoint, status_code=status_code
        ).inc()
        self.http_request_duration_seconds.labels(
            method=method, endpoint=endpoint
        ).observe(duration)

    def record_error(self, error_type: str, endpoint: str) -> None:
        """Record application error"""
        self.errors_total.labels(error_type=error_type, endpoint=endpoint).inc()

    def record_booking(self, status: str) -> None:
        self.bookings_total.labels(status=status).inc()

    def record_rejection(self, reason: str) -> None:
        self.booking_rejections_total.labels(reason=reason).inc()


# Registered once per process; the default registry rejects duplicate names
metrics = PrometheusMetrics()


def _endpoint_label(request: Request) -> str:
    """Route template rather than the raw path, to keep label cardinality bounded"""
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)


def _client_ip(request: Request) -> str:
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return str(forwarded.split(",")[0].strip())

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return str(real_ip.strip())

    return str(request.client.host) if request.client else "unknown"


class MonitoringMiddleware(BaseHTTPMiddleware):
    """
    Request monitoring:
    - request id assignment (``X-Request-ID`` header)
    - structured request logging
    - Prometheus request metrics
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        client_ip = _client_ip(request)

        struct_logger.info(
            "request_started",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            client_ip=client_ip,
        )

        start_time = time.time()
        metrics.active_connections.inc()
        try:
            response = await call_next(request)
            duration = time.time() - start_time

            if settings.monitoring.ENABLE_PROMETHEUS:
                metrics.record_request(
                    request.method,
                    _endpoint_label(request),
                    response.status_code,
                    duration,
                )

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration:.3f}s"

            struct_logger.info(
                "request_completed",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration=duration,
                client_ip=client_ip,
            )
            return response

        except Exception as e:
            duration = time.time() - start_time
            metrics.record_error(e.__class__.__name__, _endpoint_label(request))
            struct_logger.error(
                "request_failed",
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                duration=duration,
                error=str(e),
                error_type=e.__class__.__name__,
                traceback=traceback.format_exc(),
                client_ip=client_ip,
            )
            raise

        finally:
            metrics.active_connections.dec()


async def get_health_status() -> Dict[str, Any]:
    """Database and Redis reachability"""
    from app.core.database_manager import db_manager
    from app.utils.cache import get_redis

    db_health = await db_manager.health_check()

    try:
        await get_redis().ping()
        cache_health: Dict[str, Any] = {"status": "healthy"}
    except (RedisError, RuntimeError) as e:
        logger.warning(f"Redis health check failed: {e}")
        cache_health = {"status": "error", "message": str(e)}

    overall_status = "healthy"
    if db_health.get("status") != "healthy" or cache_health.get("status") != "healthy":
        overall_status = "degraded"

    return {
        "status": overall_status,
        "system": {
            "timestamp": time.time(),
            "version": settings.VERSION,
            "environment": settings.ENVIRONMENT,
        },
        "database": db_health,
        "cache": cache_health,
    }


async def get_prometheus_metrics() -> str:
    """Get Prometheus metrics"""
    return str(generate_latest().decode("utf-8"))
