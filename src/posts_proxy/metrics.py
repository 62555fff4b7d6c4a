"""Shared OTel metrics instruments for the service."""

from opentelemetry import metrics

METER_NAME = "posts_proxy"

meter = metrics.get_meter(METER_NAME)

# Upstream API
upstream_requests_total = meter.create_counter(
    name="upstream_requests_total",
    description="Total requests sent to the upstream posts API",
    unit="1",
)

upstream_request_duration = meter.create_histogram(
    name="upstream_request_duration_seconds",
    description="Duration of upstream posts API round trips",
    unit="s",
)

# HTTP boundary
http_requests_total = meter.create_counter(
    name="http_requests_total",
    description="Total HTTP requests served",
    unit="1",
)

posts_listed_total = meter.create_counter(
    name="posts_listed_total",
    description="Paginated list requests, by whether a search term was applied",
    unit="1",
)
