"""Prometheus metrics."""

from prometheus_client import Counter, Histogram

# Workflow metrics
letter_transitions = Counter(
    "siades_letter_transitions_total",
    "Letter request transition attempts",
    ["action", "outcome"],
)

letter_transition_duration = Histogram(
    "siades_letter_transition_duration_seconds",
    "Letter request transition duration, including commit or rollback",
    ["action"],
)

# Signature metrics
signatures_issued = Counter(
    "siades_signatures_issued_total",
    "Digital signatures committed for approved letter requests",
)
