"""Depth band classification and outline tracing."""

from .classifier import (
    DepthBandClassifier,
    HandCategory,
    boundary_mask,
    count_categories,
)
from .outline import OutlineTracer, TraceResult, TraceStatus, ContourPoint

__all__ = [
    "DepthBandClassifier",
    "HandCategory",
    "boundary_mask",
    "count_categories",
    "OutlineTracer",
    "TraceResult",
    "TraceStatus",
    "ContourPoint",
]
