"""Prometheus metrics for the invoice API.

Exposes key metrics for monitoring:
- Request counts by endpoint and status
- Request duration histograms
- Invoice submission outcomes
- File upload outcomes and sizes

Based on Prometheus best practices:
https://prometheus.io/docs/practices/naming/
"""

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest

# Request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0),
)

# Invoice metrics
invoices_submitted_total = Counter(
    "invoices_submitted_total",
    "Total invoice submissions",
    ["status"],  # success, rejected, failed
)

# Upload metrics
files_uploaded_total = Counter(
    "files_uploaded_total",
    "Total files stored in the blob store",
    ["backend"],
)

file_upload_size_bytes = Histogram(
    "file_upload_size_bytes",
    "Uploaded file size in bytes",
    buckets=(1024, 10240, 102400, 1048576, 5242880),  # 1KB to 5MB
)


def get_metrics() -> tuple[bytes, str]:
    """Generate Prometheus metrics in text format.

    Returns:
        Tuple of (metrics bytes, content type)
    """
    return generate_latest(), CONTENT_TYPE_LATEST
