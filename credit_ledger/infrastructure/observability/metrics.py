"""Prometheus metrics for monitoring recalculations, lifecycle transitions and deposit intake"""

from prometheus_client import Counter, Histogram

# Recalculation metrics
recalculation_counter = Counter(
    "credit_ledger_recalculation_total",
    "Total contract recalculations",
    ["trigger"],  # movement_created | movement_validated | movement_cancelled | manual | scheduled
)

recalculation_duration_histogram = Histogram(
    "credit_ledger_recalculation_seconds",
    "Time spent recalculating one contract",
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0],
)

concurrency_conflict_counter = Counter(
    "credit_ledger_concurrency_conflicts_total",
    "Recalculations rejected by the snapshot version check",
)

# Lifecycle metrics
lifecycle_event_counter = Counter(
    "credit_ledger_lifecycle_events_total",
    "Lifecycle events emitted",
    ["event_type"],
)

# Deposit intake
deposit_rejection_counter = Counter(
    "credit_ledger_deposit_rejections_total",
    "Deposits refused before recording",
    ["reason"],  # overpayment | duplicate
)

business_hours_rejection_counter = Counter(
    "credit_ledger_business_hours_rejections_total",
    "Operations refused outside the business-hours window",
    ["operation"],  # deposit | origination | validation | cancellation
)

# Nightly jobs
scheduled_failure_counter = Counter(
    "credit_ledger_scheduled_failures_total",
    "Contracts that failed during the nightly refresh",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_recalculation(trigger: str, duration_seconds: float, event_types) -> None:
    """Record recalculation metrics and the lifecycle events it produced"""
    recalculation_counter.labels(trigger=trigger).inc()
    recalculation_duration_histogram.observe(duration_seconds)

    for event_type in event_types:
        lifecycle_event_counter.labels(event_type=event_type).inc()


def record_deposit_rejection(reason: str) -> None:
    deposit_rejection_counter.labels(reason=reason).inc()


def record_business_hours_rejection(operation: str) -> None:
    business_hours_rejection_counter.labels(operation=operation).inc()
