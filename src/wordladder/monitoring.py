"""Monitoring configuration for the scheduling engine."""
from prometheus_client import Counter, start_http_server

# Review metrics
answers_recorded = Counter(
    "wordladder_answers_total",
    "Total number of answers recorded by the scheduling engine",
    ["outcome"],
)

words_rescheduled = Counter(
    "wordladder_words_rescheduled_total",
    "Total number of words manually rescheduled",
    ["option"],
)

# Materialization metrics
words_materialized = Counter(
    "wordladder_words_materialized_total",
    "Total number of progress records created on first touch",
)

materialization_failures = Counter(
    "wordladder_materialization_failures_total",
    "Total number of first-touch progress writes that failed",
)

# Session metrics
review_sessions_started = Counter(
    "wordladder_review_sessions_started_total",
    "Total number of review sessions started",
    ["review_type"],
)

review_sessions_finished = Counter(
    "wordladder_review_sessions_finished_total",
    "Total number of review sessions that ran out of due words",
    ["review_type"],
)

# Store metrics
store_errors = Counter(
    "wordladder_store_errors_total",
    "Total number of progress store errors",
    ["operation"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
