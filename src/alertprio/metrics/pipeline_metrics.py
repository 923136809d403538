"""
Prometheus Metrics for the Alert Pipeline
"""
import time
from functools import wraps

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest

REGISTRY = CollectorRegistry()

# Counters
alerts_processed_total = Counter(
    "alertprio_alerts_processed_total",
    "Alerts kept after cleaning, by priority",
    ["priority"],
    registry=REGISTRY,
)

alerts_removed_total = Counter(
    "alertprio_alerts_removed_total",
    "Raw alerts dropped during cleaning",
    ["reason"],
    registry=REGISTRY,
)

new_alerts_total = Counter(
    "alertprio_new_alerts_total",
    "Alerts not present in the previous batch",
    ["priority"],
    registry=REGISTRY,
)

batches_total = Counter(
    "alertprio_batches_total",
    "Processed batches by trigger",
    ["trigger"],
    registry=REGISTRY,
)

blocked_ip_additions_total = Counter(
    "alertprio_blocked_ip_additions_total",
    "Source IPs newly added to a session's block set",
    ["session"],
    registry=REGISTRY,
)

notify_failures_total = Counter(
    "alertprio_notify_failures_total",
    "Notification subscribers that raised",
    registry=REGISTRY,
)

# Gauges
blocked_ips = Gauge(
    "alertprio_blocked_ips",
    "Size of each session's auto-blocked IP set",
    ["session"],
    registry=REGISTRY,
)

# Histograms
batch_latency = Histogram(
    "alertprio_batch_latency_seconds",
    "Batch processing latency in seconds",
    buckets=[0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5],
    registry=REGISTRY,
)


def observe_duration(metric):
    """Decorator to observe function duration"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                metric.observe(time.perf_counter() - start)
        return wrapper
    return decorator


def record_batch(result, trigger: str, session: str = "default") -> None:
    """Record counters for one BatchResult"""
    report = result.report
    batches_total.labels(trigger=trigger).inc()
    for priority, count in (
        ("Critical", report.critical_count),
        ("High", report.high_count),
        ("Medium", report.medium_count),
        ("Low", report.low_count),
    ):
        if count:
            alerts_processed_total.labels(priority=priority).inc(count)
    for reason, count in (
        ("missing_id", report.missing_id_removed),
        ("duplicate", report.exact_duplicates_removed),
        ("fake", report.fake_removed),
    ):
        if count:
            alerts_removed_total.labels(reason=reason).inc(count)
    for alert in result.new_alerts:
        new_alerts_total.labels(priority=alert.get("Priority", "Unknown")).inc()
    if result.newly_blocked:
        blocked_ip_additions_total.labels(session=session).inc(len(result.newly_blocked))
    blocked_ips.labels(session=session).set(len(result.blocked_ips))


def render_metrics() -> bytes:
    return generate_latest(REGISTRY)
