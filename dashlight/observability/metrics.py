from prometheus_client import Counter, Histogram

# -------------------------
# HTTP
# -------------------------

HTTP_REQUESTS_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["path", "method", "status"],
)

# -------------------------
# Local (on-device model) metrics
# -------------------------

LOCAL_REQUESTS_TOTAL = Counter(
    "local_inference_requests_total",
    "Total local classifier runs",
    ["result", "model"],
)

LOCAL_INFERENCE_SECONDS = Histogram(
    "local_inference_seconds",
    "Time spent running the local classifier",
    ["model"],
)

# -------------------------
# Cloud fallback metrics
# -------------------------

REMOTE_REQUESTS_TOTAL = Counter(
    "remote_requests_total",
    "Total cloud provider calls",
    ["provider", "result"],  # result: ok | network | auth | parse | empty | failed
)

REMOTE_REQUEST_SECONDS = Histogram(
    "remote_request_seconds",
    "Cloud provider call latency in seconds",
    ["provider"],
)

# -------------------------
# Outcomes
# -------------------------

CLASSIFICATIONS_TOTAL = Counter(
    "classifications_total",
    "Classification outcomes by provenance",
    ["provenance", "escalated"],
)
