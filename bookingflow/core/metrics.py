"""
Prometheus metrics for the booking journey and its gateways
"""

import time
import logging
from contextlib import asynccontextmanager

from prometheus_client import Counter, Histogram, REGISTRY

logger = logging.getLogger(__name__)


def _counter(name: str, documentation: str, labels: list) -> Counter:
    # Re-importing the module (e.g. under test reloads) must not re-register collectors
    try:
        return Counter(name, documentation, labels)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


def _histogram(name: str, documentation: str, labels: list) -> Histogram:
    try:
        return Histogram(name, documentation, labels)
    except ValueError:
        return REGISTRY._names_to_collectors[name]


BOOKINGS_CLASSIFIED = _counter(
    "bookingflow_bookings_classified_total",
    "Completed booking journeys by classification",
    ["classification"]
)

GATEWAY_FAILURES = _counter(
    "bookingflow_gateway_failures_total",
    "Failed calls to external collaborators",
    ["gateway"]
)

GATEWAY_DURATION = _histogram(
    "bookingflow_gateway_duration_seconds",
    "Duration of calls to external collaborators",
    ["gateway"]
)


class MetricsCollector:
    """Thin facade over the prometheus collectors"""

    def record_classification(self, classification: str) -> None:
        BOOKINGS_CLASSIFIED.labels(classification=classification).inc()

    def record_gateway_failure(self, gateway: str) -> None:
        GATEWAY_FAILURES.labels(gateway=gateway).inc()

    @asynccontextmanager
    async def track_gateway_call(self, gateway: str):
        """Time a gateway call and count it as failed if it raises"""
        start_time = time.perf_counter()
        try:
            yield
        except Exception:
            self.record_gateway_failure(gateway)
            raise
        finally:
            GATEWAY_DURATION.labels(gateway=gateway).observe(time.perf_counter() - start_time)


metrics_collector = MetricsCollector()
