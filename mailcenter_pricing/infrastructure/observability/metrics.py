"""Prometheus metrics for pricing quotes, rate catalogue changes and invoicing webhooks"""

from prometheus_client import Counter, Histogram

from mailcenter_pricing.domain.models import RenewalPeriod

# Quote metrics
quote_counter = Counter(
    "mailcenter_pricing_quotes_total",
    "Price breakdowns calculated",
    ["kind", "renewal_period"],  # kind: price | renewal
)

rate_lookup_miss_counter = Counter(
    "mailcenter_rate_lookup_misses_total",
    "Rate lookups that found no effective configuration",
    ["lookup"],  # current | effective
)

rate_change_counter = Counter(
    "mailcenter_rate_changes_total",
    "Rate catalogue writes",
    ["action"],  # create | replace | delete
)

minor_transition_counter = Counter(
    "mailcenter_minor_transitions_total",
    "Minors found turning 18 inside a quoted renewal window",
)

# Webhook metrics
invoicing_latency_histogram = Histogram(
    "invoicing_webhook_latency_seconds",
    "Invoicing webhook response time",
    buckets=[0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

invoicing_failure_counter = Counter(
    "invoicing_webhook_failures_total",
    "Failed invoicing webhook deliveries",
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_quote(kind: str, renewal_period: RenewalPeriod) -> None:
    quote_counter.labels(kind=kind, renewal_period=RenewalPeriod(renewal_period).value).inc()


def record_rate_change(action: str) -> None:
    rate_change_counter.labels(action=action).inc()
