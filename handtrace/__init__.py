"""
Hand Outline Tracing Package

Segments hands in depth-camera frames using wrist-anchored depth bands
and traces their outlines with Moore-neighbor boundary following.
"""

__version__ = "1.0.0"

from . import data
from . import geometry
from . import hand
from . import segmentation
from . import render
from . import utils
