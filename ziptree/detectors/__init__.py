"""Per-file detectors: signatures, content patterns and metrics."""

from .content import ContentScanner, Detector
from .metrics import FileMetrics, MetricsAggregator
from .signatures import validate_signature

__all__ = [
    "ContentScanner",
    "Detector",
    "FileMetrics",
    "MetricsAggregator",
    "validate_signature",
]
