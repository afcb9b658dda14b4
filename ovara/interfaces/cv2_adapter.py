"""
OpenCV adapter for the annotation session.

Bridges the AnnotationSession with an OpenCV HighGUI window.
"""

import logging
from typing import Callable, Optional

import cv2
import numpy as np

from ..core.annotation import AnnotationEvent, AnnotationSession, EventType
from ..core.annotation.render import rasterize

logger = logging.getLogger(__name__)

# key -> (session method, argument)
KEY_BINDINGS = {
    ord("d"): ("set_click_mode", "drag"),
    ord("c"): ("set_click_mode", "click"),
    ord("a"): ("set_interaction_mode", "create"),
    ord("e"): ("set_interaction_mode", "edit"),
    ord("z"): ("set_interaction_mode", "zoom"),
    ord("f"): ("set_image_fit_mode", "fit"),
    ord("s"): ("set_image_fit_mode", "stretch"),
}


class CV2AnnotationAdapter:
    """
    Adapter connecting AnnotationSession to an OpenCV window.

    Provides:
    - Translation of OpenCV mouse callbacks into session pointer events
    - Keyboard shortcuts for the mode selectors
    - Rendering of the session scene into a BGR frame for ``cv2.imshow``
    """

    def __init__(
        self,
        session: AnnotationSession,
        update_image_callback: Optional[Callable] = None,
        cfg=None,
    ):
        """
        Initialize adapter.

        Args:
            session: Core annotation session
            update_image_callback: Called whenever the frame must be redrawn
            cfg: Render configuration (``cfg.render``), defaults if None
        """
        self.session = session
        self.update_image_callback = update_image_callback
        self.render_cfg = cfg.render if cfg is not None else None

        self._setup_event_handlers()

    def _setup_event_handlers(self):
        """Redraw whenever something visible changes."""
        for event_type in (
            EventType.DRAFT_CHANGED,
            EventType.VIEWPORT_CHANGED,
            EventType.MODE_CHANGED,
            EventType.IMAGE_LOADED,
            EventType.IMAGE_LOAD_FAILED,
        ):
            self.session.events.on(event_type, self._on_change)
        for event_type in (
            EventType.ANNOTATION_ADDED,
            EventType.ANNOTATION_DELETED,
        ):
            self.session.store.events.on(event_type, self._on_change)

    def _on_change(self, event: AnnotationEvent):
        if self.update_image_callback:
            self.update_image_callback()

    def on_mouse(self, event: int, x: int, y: int, flags: int, param=None):
        """Callback for ``cv2.setMouseCallback``."""
        if event == cv2.EVENT_LBUTTONDOWN:
            if flags & cv2.EVENT_FLAG_CTRLKEY:
                return
            self.session.pointer_down(x, y)
        elif event == cv2.EVENT_MOUSEMOVE:
            self.session.pointer_move(x, y)
            if not self._inside_frame(x, y):
                # HighGUI has no leave event
                self.session.pointer_leave()
            # Crosshair follows the pointer even without a draft
            self._on_change(None)
        elif event == cv2.EVENT_LBUTTONUP:
            self.session.pointer_up(x, y)
        elif event == cv2.EVENT_RBUTTONDOWN:
            self.session.context_action(x, y)

    def _inside_frame(self, x: int, y: int) -> bool:
        render_size = self.session.render_size
        if render_size is None:
            return False
        return 0 <= x < render_size.width and 0 <= y < render_size.height

    def on_key(self, key: int) -> bool:
        """
        Handle a key code from ``cv2.waitKey``.

        Returns:
            True if the key was bound to an action
        """
        key &= 0xFF
        if key == 27:  # Esc
            self.session.discard_draft()
            return True
        if ord("1") <= key <= ord("9"):
            return self.select_class_by_number(key - ord("0"))
        binding = KEY_BINDINGS.get(key)
        if binding is None:
            return False
        method, value = binding
        getattr(self.session, method)(value)
        return True

    def select_class_by_number(self, number: int) -> bool:
        project = self.session.project
        if project is None or not 1 <= number <= len(project.classes):
            logger.debug("No class number %d", number)
            return False
        self.session.select_class(project.classes[number - 1].id)
        return True

    def get_visualization(self) -> Optional[np.ndarray]:
        """
        Get visualization for display.

        Returns:
            RGB frame of the current render size, or None before an image
            has been loaded
        """
        image = self.session.image
        render_size = self.session.render_size
        if image is None or render_size is None:
            return None

        kwargs = {}
        if self.render_cfg is not None:
            kwargs = dict(
                box_thickness=self.render_cfg.box_thickness,
                font_scale=self.render_cfg.font_scale,
                dash_length=self.render_cfg.dash_length,
            )
        return rasterize(image, self.session.get_scene(), render_size, **kwargs)

    def get_bgr_frame(self) -> Optional[np.ndarray]:
        """Visualization converted for ``cv2.imshow``."""
        frame = self.get_visualization()
        if frame is None:
            return None
        return cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)
