"""Monitoring configuration for the review scheduler."""
from prometheus_client import Counter, Histogram, start_http_server

# Learning metrics
reviews_recorded = Counter(
    "petwords_reviews_total",
    "Total number of review outcomes recorded",
    ["outcome"],
)

reviews_skipped = Counter(
    "petwords_reviews_skipped_total",
    "Total number of review outcomes skipped for unknown words",
)

quizzes_recorded = Counter(
    "petwords_quizzes_total",
    "Total number of quiz results recorded",
)

quiz_percentage = Histogram(
    "petwords_quiz_percentage",
    "Quiz scores in percent",
    buckets=[20, 40, 60, 80, 90, 100],
)

# Storage metrics
degraded_operations = Counter(
    "petwords_degraded_operations_total",
    "Total number of operations served from the local tier because the remote tier failed",
    ["operation"],
)

healed_records = Counter(
    "petwords_healed_records_total",
    "Total number of stored word records repaired on load",
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
