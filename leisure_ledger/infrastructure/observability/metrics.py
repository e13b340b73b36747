"""Prometheus metrics for settlements, loans, recovery and storage health"""

from prometheus_client import Counter, Histogram

# Settlement metrics
settlement_counter = Counter(
    "leisure_settlements_total",
    "Settled transactions",
    ["type"],  # study | leisure | loan
)

settled_minutes_counter = Counter(
    "leisure_settled_minutes_total",
    "Minutes moved through the ledger",
    ["type"],  # study | leisure | loan
)

realtime_deduction_counter = Counter(
    "leisure_realtime_deductions_total",
    "Whole leisure minutes deducted while a session was running",
)

# Loan metrics
loan_rejection_counter = Counter(
    "leisure_loan_rejections_total",
    "Loan requests refused by policy",
    ["reason"],  # positive_balance | exceeds_debt_limit | minimum_loan
)

# Recovery metrics
recovery_counter = Counter(
    "leisure_recoveries_total",
    "Start-up recoveries of an interrupted session",
    ["action"],  # resume_study | resume_leisure | settle_leisure
)

# Storage health
storage_fallback_counter = Counter(
    "leisure_storage_fallbacks_total",
    "Persistence calls served from memory because the store failed",
    ["operation"],  # get | set | remove
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_settlement(entry_type: str, minutes: float) -> None:
    """Record a settlement for volume monitoring"""
    settlement_counter.labels(type=entry_type).inc()
    if minutes > 0:
        settled_minutes_counter.labels(type=entry_type).inc(minutes)
