"""Prometheus metrics for study activity."""
from prometheus_client import Counter, Histogram, start_http_server

# Learning metrics
answers_recorded = Counter(
    "wordrecall_answers_total",
    "Total number of quiz answers applied to progress records",
    ["kind", "outcome"],
)

items_mastered = Counter(
    "wordrecall_items_mastered_total",
    "Total number of answers that moved an item into the mastered state",
    ["kind"],
)

study_sessions = Counter(
    "wordrecall_study_sessions_total",
    "Total number of finished study sessions",
    ["mode"],
)

# Queue metrics
queues_built = Counter(
    "wordrecall_queues_built_total",
    "Total number of study queues built",
    ["kind"],
)

queue_size = Histogram(
    "wordrecall_queue_size",
    "Number of items returned in a study queue",
    buckets=[0, 5, 10, 20, 50, 100],
)

# Store metrics
store_errors = Counter(
    "wordrecall_store_errors_total",
    "Total number of progress store failures",
    ["error_type"],
)


def start_monitoring(port: int = 9090) -> None:
    """Start the Prometheus metrics server."""
    start_http_server(port)
