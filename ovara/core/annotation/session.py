"""
Interaction session.

Turns raw pointer events into draft state and store mutations.
UI-agnostic - can be used with any interface (OpenCV window, web, tests).
"""

import logging
from typing import List, Optional, Union

import numpy as np

from ...config import default_config
from .events import AnnotationEvent, EventEmitter, EventType
from .geometry import (
    ImageFitMode,
    Point,
    Size,
    Viewport,
    clamp_viewport,
    compute_render_size,
    normalized_to_screen,
    rect_from_points,
    screen_to_normalized,
)
from .render import build_scene, hit_test
from .state import (
    Box,
    ClickMode,
    DetectionAnnotation,
    Draft,
    DrawingBox,
    InteractionMode,
    KeypointAnnotation,
    ModelType,
    PlacingKeypoints,
    PoseAnnotation,
    Visibility,
    ZoomBox,
)
from .store import AnnotationStore
from .utils import aspect_locked_end

logger = logging.getLogger(__name__)


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 1.0)


class AnnotationSession:
    """
    Editing session for one project.

    This class handles:
    - Mode selectors (click mode, interaction mode, image fit mode)
    - The single draft slot (box being drawn, keypoints being placed,
      zoom rectangle being dragged)
    - The zoom viewport
    - Committing finished gestures to the store

    Mode selectors are independent of each other. Gestures only touch the
    store when they complete; anything in progress lives in ``draft`` and
    is dropped on mode change or navigation.
    """

    def __init__(self, store: AnnotationStore, project_id: str, cfg=None):
        """
        Initialize annotation session.

        Args:
            store: Store shared with every other consumer
            project_id: Project being annotated
            cfg: Configuration, see :mod:`ovara.config`
        """
        if cfg is None:
            cfg = default_config()

        self.store = store
        self.project_id = project_id

        self.min_box_size = cfg.session.min_box_size
        self.zoom_aspect_lock = cfg.session.zoom_aspect_lock

        self.click_mode = ClickMode(cfg.session.click_mode)
        self.interaction_mode = InteractionMode(cfg.session.interaction_mode)
        self.image_fit_mode = ImageFitMode(cfg.session.image_fit_mode)
        self.selected_class_id: Optional[str] = None

        # Current image
        self.image_path: Optional[str] = None
        self.image_size: Optional[Size] = None
        self.container_size: Optional[Size] = None
        self._image: Optional[np.ndarray] = None

        self.draft: Draft = None
        self.viewport: Optional[Viewport] = None
        self.pointer: Optional[Point] = None

        # Event emitter for UI notifications
        self.events = EventEmitter()

    @property
    def project(self):
        return self.store.get_project(self.project_id)

    @property
    def image(self) -> Optional[np.ndarray]:
        return self._image

    @property
    def render_size(self) -> Optional[Size]:
        """Displayed image size, None until the image size is known."""
        if self.image_size is None:
            return None
        container = self.container_size or self.image_size
        return compute_render_size(container, self.image_size, self.image_fit_mode)

    # Image lifecycle

    def open_image(self, image_path: str):
        """
        Navigate to ``image_path``.

        Draft and viewport belong to the previous image and are dropped.
        The image size stays unknown until :meth:`load_image` or
        :meth:`set_image_size` is called.
        """
        self.image_path = image_path
        self.image_size = None
        self._image = None
        self.pointer = None
        self._set_draft(None)
        self._set_viewport(None)

    def load_image(self, image: np.ndarray, image_path: Optional[str] = None):
        """
        Load decoded pixels for the current (or a new) image.

        Args:
            image: RGB image as numpy array
            image_path: Path of the image; navigates when it differs
        """
        if image_path is not None and image_path != self.image_path:
            self.open_image(image_path)
        self._image = image
        height, width = image.shape[:2]
        self.set_image_size(width, height)

    def set_image_size(self, width: float, height: float):
        self.image_size = Size(width, height)
        self.events.emit(
            AnnotationEvent(
                EventType.IMAGE_LOADED,
                {"path": self.image_path, "width": width, "height": height},
            )
        )

    def fail_image(self, image_path: str, error: Exception):
        """
        Navigate to an image that could not be decoded.

        Its size stays unknown, so pointer input is ignored until the next
        navigation.
        """
        self.open_image(image_path)
        self.events.emit(
            AnnotationEvent(
                EventType.IMAGE_LOAD_FAILED, {"path": image_path, "error": str(error)}
            )
        )

    def set_container_size(self, width: float, height: float):
        self.container_size = Size(width, height)

    # Mode selectors

    def set_click_mode(self, mode: Union[ClickMode, str]):
        self._change_mode("click_mode", ClickMode(mode))

    def set_interaction_mode(self, mode: Union[InteractionMode, str]):
        self._change_mode("interaction_mode", InteractionMode(mode))

    def set_image_fit_mode(self, mode: Union[ImageFitMode, str]):
        self._change_mode("image_fit_mode", ImageFitMode(mode))

    def select_class(self, class_id: Optional[str]):
        if class_id == self.selected_class_id:
            return
        self.selected_class_id = class_id
        self._set_draft(None)

    def discard_draft(self):
        self._set_draft(None)

    def reset_viewport(self):
        self._set_viewport(None)

    # Pointer input

    def pointer_down(self, x: float, y: float):
        """Primary button pressed at screen position ``(x, y)``."""
        if not self._ready():
            return
        self.pointer = (x, y)

        if self.interaction_mode is InteractionMode.ZOOM:
            self._set_draft(ZoomBox((x, y), (x, y)))
            return
        if self.interaction_mode is InteractionMode.EDIT:
            logger.debug("Edit mode is not implemented, ignoring pointer down")
            return

        if isinstance(self.draft, PlacingKeypoints):
            nx, ny = self._to_normalized(x, y)
            self._advance_placement(
                KeypointAnnotation(
                    id=self.draft.current_keypoint.id,
                    x=nx,
                    y=ny,
                    visible=Visibility.LABELED_VISIBLE,
                )
            )
            return

        if self._selected_class() is None:
            logger.debug("No class selected, ignoring pointer down")
            return

        if self.click_mode is ClickMode.CLICK and isinstance(self.draft, DrawingBox):
            start = self.draft.start
            self._set_draft(None)
            self._finalize_box(start, (x, y))
            return

        self._set_draft(DrawingBox((x, y), (x, y)))

    def pointer_move(self, x: float, y: float):
        if not self._ready():
            return
        self.pointer = (x, y)

        if isinstance(self.draft, DrawingBox):
            self._set_draft(DrawingBox(self.draft.start, (x, y)))
        elif isinstance(self.draft, ZoomBox):
            start = self.draft.start
            self._set_draft(ZoomBox(start, self._zoom_end(start, x, y)))

    def pointer_up(self, x: float, y: float):
        if not self._ready():
            return
        self.pointer = (x, y)

        if isinstance(self.draft, ZoomBox):
            start = self.draft.start
            self._set_draft(None)
            self._finalize_zoom(start, self._zoom_end(start, x, y))
        elif isinstance(self.draft, DrawingBox) and self.click_mode is ClickMode.DRAG:
            start = self.draft.start
            self._set_draft(None)
            self._finalize_box(start, (x, y))

    def context_action(self, x: float, y: float):
        """
        Secondary button at ``(x, y)``.

        Zoom mode: restore the full image. Create mode: skip the current
        keypoint while placing, otherwise delete the topmost annotation
        under the pointer.
        """
        if not self._ready():
            return
        self.pointer = (x, y)

        if self.interaction_mode is InteractionMode.ZOOM:
            self._set_draft(None)
            self._set_viewport(None)
            return
        if self.interaction_mode is InteractionMode.EDIT:
            return

        if isinstance(self.draft, PlacingKeypoints):
            self._advance_placement(
                KeypointAnnotation.skipped(self.draft.current_keypoint.id)
            )
            return

        project = self.project
        idx = hit_test(
            project.annotations_for(self.image_path),
            x,
            y,
            self.render_size,
            self.viewport,
        )
        if idx is not None:
            self.store.delete_annotation_by_index(self.project_id, self.image_path, idx)

    def pointer_leave(self):
        self.pointer = None

    def get_scene(self) -> List:
        """Render primitives for the current frame."""
        if not self._ready():
            return []
        return build_scene(
            self.project,
            self.image_path,
            self.render_size,
            viewport=self.viewport,
            draft=self.draft,
            pointer=self.pointer,
            selected_class_id=self.selected_class_id,
        )

    # Gesture finalization

    def _finalize_box(self, start: Point, end: Point):
        # Only the part of the box that covers the image counts
        x, y, width, height = rect_from_points(
            self._clip_to_image(*start), self._clip_to_image(*end)
        )
        if width < self.min_box_size or height < self.min_box_size:
            logger.debug("Discarding %.1fx%.1f box", width, height)
            return

        project = self.project
        cls = self._selected_class()
        if cls is None:
            return

        nx1, ny1 = self._to_normalized(x, y)
        nx2, ny2 = self._to_normalized(x + width, y + height)
        bbox = Box(nx1, ny1, nx2 - nx1, ny2 - ny1)

        if project.model_type is ModelType.DETECTION:
            self._commit(
                DetectionAnnotation(class_id=cls.id, bbox=bbox, color=self._next_color())
            )
        elif project.model_type is ModelType.POSE:
            placing = PlacingKeypoints(
                class_id=cls.id, keypoints=cls.keypoints, base_box=bbox
            )
            if placing.is_complete:
                # Class without keypoints: nothing to place
                self._commit_placement(placing)
            else:
                self._set_draft(placing)
        else:
            raise AssertionError(f"Unhandled model type {project.model_type}")

    def _advance_placement(self, point: KeypointAnnotation):
        placing = self.draft
        placing = PlacingKeypoints(
            class_id=placing.class_id,
            keypoints=placing.keypoints,
            base_box=placing.base_box,
            current_index=placing.current_index + 1,
            points=placing.points + (point,),
        )
        if placing.is_complete:
            self._set_draft(None)
            self._commit_placement(placing)
        else:
            self._set_draft(placing)

    def _commit_placement(self, placing: PlacingKeypoints):
        self._commit(
            PoseAnnotation(
                class_id=placing.class_id,
                bbox=placing.base_box,
                color=self._next_color(),
                keypoints=placing.points,
            )
        )

    def _commit(self, annotation):
        self.store.add_annotation(self.project_id, self.image_path, annotation)

    def _finalize_zoom(self, start: Point, end: Point):
        x, y, width, height = rect_from_points(start, end)
        if width < self.min_box_size or height < self.min_box_size:
            logger.debug("Discarding %.1fx%.1f zoom box", width, height)
            return
        # Mapped through the current viewport, so zooming again goes deeper
        nx1, ny1 = screen_to_normalized(x, y, self.render_size, self.viewport)
        nx2, ny2 = screen_to_normalized(
            x + width, y + height, self.render_size, self.viewport
        )
        viewport = Viewport(nx1, ny1, nx2 - nx1, ny2 - ny1)
        self._set_viewport(clamp_viewport(viewport))

    def _zoom_end(self, start: Point, x: float, y: float) -> Point:
        if not self.zoom_aspect_lock:
            return x, y
        return aspect_locked_end(start, (x, y), self.render_size.aspect)

    # Helpers

    def _ready(self) -> bool:
        if self.image_path is None or self.image_size is None:
            return False
        if self.project is None:
            logger.debug("Project %s does not exist", self.project_id)
            return False
        return True

    def _selected_class(self):
        if self.selected_class_id is None:
            return None
        return self.project.get_class(self.selected_class_id)

    def _to_normalized(self, x: float, y: float) -> Point:
        nx, ny = screen_to_normalized(x, y, self.render_size, self.viewport)
        return _clamp(nx), _clamp(ny)

    def _clip_to_image(self, x: float, y: float) -> Point:
        """Move a screen point onto the nearest edge of the drawn image."""
        left, top = normalized_to_screen(0, 0, self.render_size, self.viewport)
        right, bottom = normalized_to_screen(1, 1, self.render_size, self.viewport)
        return min(max(x, left), right), min(max(y, top), bottom)

    def _next_color(self) -> str:
        return self.store.next_color(self.project_id, self.image_path)

    def _change_mode(self, attr: str, value):
        if getattr(self, attr) is value:
            return
        setattr(self, attr, value)
        self._set_draft(None)
        self.events.emit(
            AnnotationEvent(EventType.MODE_CHANGED, {attr: value.value})
        )

    def _set_draft(self, draft: Draft):
        if draft is None and self.draft is None:
            return
        self.draft = draft
        self.events.emit(AnnotationEvent(EventType.DRAFT_CHANGED, {"draft": draft}))

    def _set_viewport(self, viewport: Optional[Viewport]):
        if viewport == self.viewport:
            return
        self.viewport = viewport
        self.events.emit(
            AnnotationEvent(EventType.VIEWPORT_CHANGED, {"viewport": viewport})
        )
