"""
Interfaces module - UI adapters for the annotation core.

Provides adapters to connect the core annotation logic
with different UI frameworks.
"""

from .cv2_adapter import CV2AnnotationAdapter

__all__ = ['CV2AnnotationAdapter']
