"""
Prometheus metrics registration and helpers.

Exports:
- observe_request(...): record HTTP request metrics
- observe_rag_query(...): record RAG answers by confidence and search latency
- observe_scorm_package(...): record SCORM ingestion outcomes
- observe_email(...): record sent/failed emails by kind
- metrics_latest(): return text exposition from correct registry (handles multiprocess)
- CONTENT_TYPE_LATEST: correct Prometheus content type
"""

import os
from prometheus_client import Counter, Histogram, CollectorRegistry, generate_latest, CONTENT_TYPE_LATEST
from prometheus_client import multiprocess


REQUEST_COUNTER = Counter(
    'carehub_http_requests_total', 'Total HTTP requests', ['endpoint', 'status']
)

REQUEST_LATENCY = Histogram(
    'carehub_http_request_latency_seconds', 'HTTP request latency seconds', ['endpoint']
)

RAG_QUERIES = Counter(
    'carehub_rag_queries_total', 'Total RAG answers', ['confidence']
)

RAG_SEARCH_LATENCY = Histogram(
    'carehub_rag_search_latency_seconds', 'Policy similarity search latency seconds'
)

RAG_BEST_SIMILARITY = Histogram(
    'carehub_rag_best_similarity_score', 'Best similarity score per search', buckets=[
        0.0, 0.1, 0.2, 0.4, 0.6, 0.7, 0.8, 0.9, 1.0
    ]
)

SCORM_PACKAGES = Counter(
    'carehub_scorm_packages_total', 'SCORM packages processed', ['status']
)

EMAILS_SENT = Counter(
    'carehub_emails_total', 'Emails sent', ['kind', 'status']
)


def observe_request(endpoint: str, status: int, latency_seconds: float) -> None:
    REQUEST_COUNTER.labels(endpoint=endpoint, status=str(status)).inc()
    REQUEST_LATENCY.labels(endpoint=endpoint).observe(latency_seconds)


def observe_rag_search(latency_seconds: float, best_score) -> None:
    RAG_SEARCH_LATENCY.observe(latency_seconds)
    if best_score is not None:
        RAG_BEST_SIMILARITY.observe(float(best_score))


def observe_rag_query(confidence: str) -> None:
    RAG_QUERIES.labels(confidence=confidence).inc()


def observe_scorm_package(success: bool) -> None:
    SCORM_PACKAGES.labels(status='success' if success else 'error').inc()


def observe_email(kind: str, success: bool) -> None:
    EMAILS_SENT.labels(kind=kind, status='sent' if success else 'failed').inc()


def metrics_latest() -> bytes:
    """Return the Prometheus text exposition, multiprocess-aware if configured."""
    prom_mp_dir = os.getenv('PROMETHEUS_MULTIPROC_DIR')
    if prom_mp_dir:
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        return generate_latest(registry)
    # Default registry
    return generate_latest()
