"""In-process request counters reported by ``/health/metrics``."""

from collections import Counter
from typing import Any, Dict

SLOW_REQUEST_SECONDS = 2.0

# Statuses the pipeline produces for upstream failures (bad gateway, timeout).
UPSTREAM_FAILURE_STATUSES = (502, 504)


class GatewayMetrics:
    """Counts proxied requests per status and tracks their latency."""

    def __init__(self, slow_threshold: float = SLOW_REQUEST_SECONDS):
        self.slow_threshold = slow_threshold
        self.reset()

    def reset(self) -> None:
        self.statuses: Counter = Counter()
        self.total_duration = 0.0
        self.slow_requests = 0

    @property
    def request_count(self) -> int:
        return sum(self.statuses.values())

    def record(self, duration: float, status_code: int) -> bool:
        """Record one finished request; returns True when it counts as slow."""
        self.statuses[status_code] += 1
        self.total_duration += duration
        slow = duration >= self.slow_threshold
        if slow:
            self.slow_requests += 1
        return slow

    def get_summary(self) -> Dict[str, Any]:
        count = self.request_count
        errors = sum(n for code, n in self.statuses.items() if code >= 500)
        return {
            "total_requests": count,
            "average_duration_ms": round(self.total_duration / count * 1000, 2) if count else 0.0,
            "slow_requests": self.slow_requests,
            "origin_rejections": self.statuses[403],
            "upstream_errors": sum(self.statuses[code] for code in UPSTREAM_FAILURE_STATUSES),
            "errors": errors,
            "error_rate": round(errors / count * 100, 2) if count else 0.0,
        }


metrics = GatewayMetrics()
