"""Hand reference module."""

from .reference import (
    HandReference,
    HandReferencePair,
    HandReferenceResolver,
    HAND_TYPES,
)

__all__ = [
    "HandReference",
    "HandReferencePair",
    "HandReferenceResolver",
    "HAND_TYPES",
]
