"""Prometheus metrics for the back-office API"""

import time
import logging
from contextlib import contextmanager
from prometheus_client import Counter, Histogram

logger = logging.getLogger(__name__)


# Project lifecycle metrics
project_status_transitions_total = Counter(
    'project_status_transitions_total',
    'Total number of applied project status transitions',
    ['from_status', 'to_status', 'source']
)

project_status_rejections_total = Counter(
    'project_status_rejections_total',
    'Total number of rejected project status transitions',
    ['reason']
)

# Labor cost metrics
labor_calculations_total = Counter(
    'labor_calculations_total',
    'Total number of labor cost aggregations'
)

# Notification metrics
notifications_total = Counter(
    'notifications_total',
    'Total number of notification emails',
    ['status']
)

# Document rendering metrics
pdf_render_duration_seconds = Histogram(
    'pdf_render_duration_seconds',
    'Time spent rendering PDF documents',
    ['document_type'],
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0]
)

# Object storage metrics
storage_operations_total = Counter(
    'storage_operations_total',
    'Total number of object storage operations',
    ['operation', 'status']
)


def record_transition(from_status: str, to_status: str, source: str = "explicit") -> None:
    """Record an applied status transition"""
    project_status_transitions_total.labels(
        from_status=from_status,
        to_status=to_status,
        source=source
    ).inc()


def record_rejection(reason: str) -> None:
    project_status_rejections_total.labels(reason=reason).inc()


@contextmanager
def track_pdf_render(document_type: str):
    """Time a PDF render and log slow ones"""
    start = time.perf_counter()
    try:
        yield
    finally:
        duration = time.perf_counter() - start
        pdf_render_duration_seconds.labels(document_type=document_type).observe(duration)
        if duration > 5.0:
            logger.warning(f"Slow {document_type} PDF render: {duration:.2f}s")
