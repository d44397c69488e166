"""
Prometheus metrics definitions for the signing service and the uploader.
All metrics are registered here and can be imported by other modules.
"""
from prometheus_client import Counter, Histogram

# HTTP request metrics
http_requests_total = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'path', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'path'],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Signing service metrics
upload_grants_total = Counter(
    'upload_grants_total',
    'Total presigned upload URLs issued'
)

object_deletes_total = Counter(
    'object_deletes_total',
    'Total server-side object deletes',
    ['outcome']
)

# Uploader metrics (fed by MetricsProgressSink)
upload_events_total = Counter(
    'upload_events_total',
    'Upload progress events by status',
    ['status']
)

upload_batches_total = Counter(
    'upload_batches_total',
    'Total upload batches completed'
)

# Error metrics
errors_total = Counter(
    'errors_total',
    'Total errors',
    ['error_type']
)
