"""Prometheus metrics for monitoring"""
from prometheus_client import Counter, Histogram, Gauge, CollectorRegistry
import time
from functools import wraps
from typing import Callable

registry = CollectorRegistry()

request_count = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status'],
    registry=registry
)

request_duration = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=registry
)

rate_requests = Counter(
    'rate_requests_total',
    'Carrier service rate requests by outcome',
    ['outcome'],
    registry=registry
)

rate_calculation_duration = Histogram(
    'rate_calculation_duration_seconds',
    'Time spent loading carriers and computing quotes',
    registry=registry
)

parcels_per_request = Histogram(
    'parcels_per_request',
    'Parcel count derived for each quoted order',
    buckets=(1, 2, 3, 4, 5, 10, 20, 50, 100),
    registry=registry
)

carrier_cache_hits = Counter(
    'carrier_cache_hits_total',
    'Carrier list served from Redis',
    registry=registry
)

carrier_cache_misses = Counter(
    'carrier_cache_misses_total',
    'Carrier list loaded from the repository',
    registry=registry
)

carrier_service_registrations = Counter(
    'carrier_service_registrations_total',
    'Carrier Service registration attempts against the Shopify Admin API',
    ['status'],
    registry=registry
)

redis_connected = Gauge(
    'redis_connected',
    'Redis connection status (1=connected, 0=disconnected)',
    registry=registry
)

db_connected = Gauge(
    'db_connected',
    'Database connection status (1=connected, 0=disconnected)',
    registry=registry
)


def track_duration(histogram: Histogram):
    """Decorator observing an async function's wall time on a histogram"""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            start_time = time.time()
            try:
                return await func(*args, **kwargs)
            finally:
                histogram.observe(time.time() - start_time)
        return wrapper
    return decorator


def get_metrics_text() -> str:
    """Generate Prometheus metrics in text format"""
    from prometheus_client import generate_latest
    return generate_latest(registry).decode('utf-8')
