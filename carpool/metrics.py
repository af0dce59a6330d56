from prometheus_client import Counter, Histogram

# Trip offers
TRIPS_CREATED = Counter("carpool_trips_created_total", "Trips offered by drivers")
VALIDATION_FAILURES = Counter("carpool_validation_failures_total", "Rejected trip offers per field", ["field"])

# Seat reservation
JOIN_ATTEMPTS = Counter("carpool_join_attempts_total", "Join attempts by outcome", ["result"])
JOIN_LATENCY = Histogram("carpool_join_latency_seconds", "Latency of the seat compare-and-swap")
