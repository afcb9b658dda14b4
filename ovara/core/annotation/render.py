"""
Render and hit-test layer.

:func:`build_scene` turns a project snapshot, the viewport and the current
draft into a flat list of drawable primitives in screen coordinates.
:func:`rasterize` draws those primitives with OpenCV. Neither touches the
store.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from .geometry import (
    Point,
    Size,
    Viewport,
    image_to_screen,
    normalized_to_screen,
    rect_from_points,
)
from .state import (
    Annotation,
    Box,
    Draft,
    DrawingBox,
    ModelType,
    PlacingKeypoints,
    Project,
    Visibility,
    ZoomBox,
)
from .utils import hex_to_rgb, rect_contains

UNKNOWN_CLASS_LABEL = "?"

DRAFT_BOX_COLOR = "#1e90ff"
ZOOM_BOX_COLOR = "#ffd700"
PLACEMENT_COLOR = "#00ff00"
KEYPOINT_COLOR = "#00ffff"
CROSSHAIR_COLOR = "#ffffff"
LABEL_COLOR = "#ffffff"
CURSOR_LABEL_COLOR = "#ffff00"


@dataclass(frozen=True)
class ImagePrimitive:
    """Whole image scaled to ``width`` x ``height`` with its corner at ``x, y``."""

    x: float
    y: float
    width: float
    height: float
    role: str = "image"


@dataclass(frozen=True)
class RectPrimitive:
    x: float
    y: float
    width: float
    height: float
    color: str
    role: str
    dashed: bool = False


@dataclass(frozen=True)
class CirclePrimitive:
    x: float
    y: float
    radius: float
    color: str
    role: str


@dataclass(frozen=True)
class LinePrimitive:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str
    role: str
    dashed: bool = False


@dataclass(frozen=True)
class TextPrimitive:
    x: float
    y: float
    text: str
    color: str
    role: str


def box_to_screen(
    box: Box, render_size: Size, viewport: Optional[Viewport]
) -> Tuple[float, float, float, float]:
    """Normalized box -> screen rectangle ``(x, y, width, height)``."""
    start = normalized_to_screen(box.x, box.y, render_size, viewport)
    end = normalized_to_screen(
        box.x + box.width, box.y + box.height, render_size, viewport
    )
    return rect_from_points(start, end)


def hit_test(
    annotations: Sequence[Annotation],
    x: float,
    y: float,
    render_size: Size,
    viewport: Optional[Viewport] = None,
) -> Optional[int]:
    """
    Index of the topmost annotation whose box contains the screen point.

    Later annotations are drawn on top, so the list is searched from the
    end.
    """
    for idx in range(len(annotations) - 1, -1, -1):
        rect = box_to_screen(annotations[idx].bbox, render_size, viewport)
        if rect_contains(rect, x, y):
            return idx
    return None


def build_scene(
    project: Project,
    image_path: str,
    render_size: Size,
    viewport: Optional[Viewport] = None,
    draft: Draft = None,
    pointer: Optional[Point] = None,
    selected_class_id: Optional[str] = None,
) -> List:
    """
    Primitives for one frame, back to front.

    Args:
        project: Project snapshot to draw
        image_path: Image whose annotations are drawn
        render_size: Size of the displayed image
        viewport: Zoom window in normalized space, or None
        draft: In-progress gesture, if any
        pointer: Last pointer position in screen space
        selected_class_id: Class used for the floating label
    """
    scene = [_image_primitive(render_size, viewport)]

    for ann in project.annotations_for(image_path):
        scene.extend(_annotation_primitives(project, ann, render_size, viewport))

    scene.extend(_draft_primitives(draft, pointer, render_size, viewport))

    if pointer is not None:
        px, py = pointer
        scene.append(
            LinePrimitive(
                0, py, render_size.width, py, CROSSHAIR_COLOR, "crosshair", dashed=True
            )
        )
        scene.append(
            LinePrimitive(
                px, 0, px, render_size.height, CROSSHAIR_COLOR, "crosshair", dashed=True
            )
        )
        label = _cursor_label(project, draft, selected_class_id)
        if label:
            scene.append(
                TextPrimitive(px + 8, py - 8, label, CURSOR_LABEL_COLOR, "cursor_label")
            )

    return scene


def _image_primitive(render_size: Size, viewport: Optional[Viewport]):
    image_viewport = viewport.denormalize(render_size) if viewport else None
    x1, y1 = image_to_screen(0, 0, render_size, image_viewport)
    x2, y2 = image_to_screen(
        render_size.width, render_size.height, render_size, image_viewport
    )
    return ImagePrimitive(x1, y1, x2 - x1, y2 - y1)


def _annotation_primitives(project, ann, render_size, viewport):
    x, y, w, h = box_to_screen(ann.bbox, render_size, viewport)
    cls = project.get_class(ann.class_id)
    name = cls.name if cls is not None else UNKNOWN_CLASS_LABEL

    primitives = [
        RectPrimitive(x, y, w, h, ann.color, "annotation"),
        TextPrimitive(x, y - 5, name, LABEL_COLOR, "annotation_label"),
    ]

    if project.model_type is ModelType.POSE:
        for kp in ann.keypoints:
            if kp.visible == Visibility.NOT_LABELED:
                continue
            kx, ky = normalized_to_screen(kp.x, kp.y, render_size, viewport)
            definition = cls.get_keypoint(kp.id) if cls is not None else None
            primitives.append(CirclePrimitive(kx, ky, 3, KEYPOINT_COLOR, "keypoint"))
            primitives.append(
                TextPrimitive(
                    kx + 5,
                    ky - 5,
                    definition.name if definition is not None else kp.id,
                    LABEL_COLOR,
                    "keypoint_label",
                )
            )
    return primitives


def _draft_primitives(draft, pointer, render_size, viewport):
    if isinstance(draft, DrawingBox):
        # In click mode the second corner follows the pointer
        end = pointer if pointer is not None else draft.end
        x, y, w, h = rect_from_points(draft.start, end)
        return [RectPrimitive(x, y, w, h, DRAFT_BOX_COLOR, "draft_box", dashed=True)]

    if isinstance(draft, ZoomBox):
        x, y, w, h = rect_from_points(draft.start, draft.end)
        return [RectPrimitive(x, y, w, h, ZOOM_BOX_COLOR, "zoom_box", dashed=True)]

    if isinstance(draft, PlacingKeypoints):
        x, y, w, h = box_to_screen(draft.base_box, render_size, viewport)
        primitives = [
            RectPrimitive(x, y, w, h, PLACEMENT_COLOR, "base_box", dashed=True)
        ]
        for kp in draft.points:
            if kp.visible == Visibility.NOT_LABELED:
                continue
            kx, ky = normalized_to_screen(kp.x, kp.y, render_size, viewport)
            primitives.append(
                CirclePrimitive(kx, ky, 3, PLACEMENT_COLOR, "draft_keypoint")
            )
        return primitives

    return []


def _cursor_label(project, draft, selected_class_id) -> Optional[str]:
    if isinstance(draft, PlacingKeypoints) and draft.current_keypoint is not None:
        return draft.current_keypoint.name
    cls = project.get_class(selected_class_id)
    return cls.name if cls is not None else None


def rasterize(
    image: np.ndarray,
    primitives: Sequence,
    render_size: Size,
    box_thickness: int = 2,
    font_scale: float = 0.45,
    dash_length: int = 4,
) -> np.ndarray:
    """
    Draw a scene onto a new RGB frame of ``render_size``.

    Args:
        image: RGB image as numpy array (H, W, 3)
        primitives: Output of :func:`build_scene`
        render_size: Frame size in pixels

    Returns:
        RGB frame, uint8
    """
    width = max(int(round(render_size.width)), 1)
    height = max(int(round(render_size.height)), 1)
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    img_h, img_w = image.shape[:2]

    for prim in primitives:
        if isinstance(prim, ImagePrimitive):
            matrix = np.float32(
                [
                    [prim.width / img_w, 0, prim.x],
                    [0, prim.height / img_h, prim.y],
                ]
            )
            frame = cv2.warpAffine(
                np.ascontiguousarray(image, dtype=np.uint8),
                matrix,
                (width, height),
                flags=cv2.INTER_LINEAR,
            )
        elif isinstance(prim, RectPrimitive):
            color = hex_to_rgb(prim.color)
            x1, y1 = _px(prim.x), _px(prim.y)
            x2, y2 = _px(prim.x + prim.width), _px(prim.y + prim.height)
            if prim.dashed:
                for p1, p2 in (
                    ((x1, y1), (x2, y1)),
                    ((x2, y1), (x2, y2)),
                    ((x2, y2), (x1, y2)),
                    ((x1, y2), (x1, y1)),
                ):
                    _dashed_line(frame, p1, p2, color, 1, dash_length)
            else:
                cv2.rectangle(frame, (x1, y1), (x2, y2), color, box_thickness)
        elif isinstance(prim, CirclePrimitive):
            center = (_px(prim.x), _px(prim.y))
            radius = max(int(round(prim.radius)), 1)
            cv2.circle(frame, center, radius, hex_to_rgb(prim.color), -1)
            cv2.circle(frame, center, radius + 1, (0, 0, 0), 1)
        elif isinstance(prim, LinePrimitive):
            p1 = (_px(prim.x1), _px(prim.y1))
            p2 = (_px(prim.x2), _px(prim.y2))
            color = hex_to_rgb(prim.color)
            if prim.dashed:
                _dashed_line(frame, p1, p2, color, 1, dash_length)
            else:
                cv2.line(frame, p1, p2, color, 1)
        elif isinstance(prim, TextPrimitive):
            cv2.putText(
                frame,
                prim.text,
                (_px(prim.x), _px(prim.y)),
                cv2.FONT_HERSHEY_SIMPLEX,
                font_scale,
                hex_to_rgb(prim.color),
                1,
                cv2.LINE_AA,
            )
        else:
            raise TypeError(f"Unknown primitive: {type(prim).__name__}")

    return frame


def _px(value: float) -> int:
    return int(round(value))


def _dashed_line(frame, p1, p2, color, thickness, dash):
    length = float(np.hypot(p2[0] - p1[0], p2[1] - p1[1]))
    if length == 0:
        return
    steps = max(int(length // dash), 1)
    xs = np.linspace(p1[0], p2[0], steps + 1)
    ys = np.linspace(p1[1], p2[1], steps + 1)
    # Draw every other segment
    for i in range(0, steps, 2):
        cv2.line(
            frame,
            (int(round(xs[i])), int(round(ys[i]))),
            (int(round(xs[i + 1])), int(round(ys[i + 1]))),
            color,
            thickness,
        )
