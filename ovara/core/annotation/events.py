"""
Event system for the annotation workflow.

Provides a decoupled way for the store and the interaction session to
notify UI components about state changes without depending on specific
UI frameworks.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(Enum):
    """Types of events that can occur during annotation."""

    # Project events
    PROJECT_ADDED = "project_added"
    PROJECT_DELETED = "project_deleted"
    PROJECT_UPDATED = "project_updated"

    # Class events
    CLASS_ADDED = "class_added"
    CLASS_DELETED = "class_deleted"
    KEYPOINT_ADDED = "keypoint_added"
    KEYPOINT_DELETED = "keypoint_deleted"

    # Annotation events
    ANNOTATION_ADDED = "annotation_added"
    ANNOTATION_DELETED = "annotation_deleted"
    IMAGE_DELETED = "image_deleted"

    # Image events
    IMAGE_LOADED = "image_loaded"
    IMAGE_LOAD_FAILED = "image_load_failed"

    # Session events
    DRAFT_CHANGED = "draft_changed"
    VIEWPORT_CHANGED = "viewport_changed"
    MODE_CHANGED = "mode_changed"



@dataclass
class AnnotationEvent:
    """Event that occurs during annotation."""

    event_type: EventType
    data: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        if self.data is None:
            self.data = {}


class EventEmitter:
    """
    Simple event emitter for pub/sub pattern.

    Allows components to subscribe to events without tight coupling.
    """

    def __init__(self):
        self._listeners: Dict[EventType, List[Callable]] = {}

    def on(self, event_type: EventType, callback: Callable[[AnnotationEvent], None]):
        """Subscribe to an event type."""
        if event_type not in self._listeners:
            self._listeners[event_type] = []
        self._listeners[event_type].append(callback)

    def off(self, event_type: EventType, callback: Callable[[AnnotationEvent], None]):
        """Unsubscribe from an event type."""
        if event_type in self._listeners:
            self._listeners[event_type].remove(callback)

    def emit(self, event: AnnotationEvent):
        """Emit an event to all subscribers."""
        for callback in list(self._listeners.get(event.event_type, [])):
            try:
                callback(event)
            except Exception:
                # A broken listener must not abort the mutation that emitted
                logger.exception(
                    "Error in event listener for %s", event.event_type.value
                )

    def clear(self):
        """Clear all event listeners."""
        self._listeners.clear()
