"""
Core annotation module - UI-agnostic annotation logic.

This module provides the store, the interaction session and the render
layer. They can be driven by any UI framework (OpenCV window, web, tests).
"""

from .events import AnnotationEvent, EventEmitter, EventType
from .geometry import ImageFitMode, Size, Viewport
from .session import AnnotationSession
from .state import (
    Box,
    ClickMode,
    DetectionAnnotation,
    DetectionClass,
    DetectionProject,
    InteractionMode,
    KeypointAnnotation,
    KeypointDef,
    ModelType,
    PoseAnnotation,
    PoseClass,
    PoseProject,
    Visibility,
    new_project,
)
from .store import AnnotationStore

__all__ = [
    "AnnotationSession",
    "AnnotationStore",
    "AnnotationEvent",
    "EventType",
    "EventEmitter",
    "ImageFitMode",
    "Size",
    "Viewport",
    "Box",
    "ClickMode",
    "InteractionMode",
    "ModelType",
    "Visibility",
    "DetectionAnnotation",
    "DetectionClass",
    "DetectionProject",
    "KeypointAnnotation",
    "KeypointDef",
    "PoseAnnotation",
    "PoseClass",
    "PoseProject",
    "new_project",
]
