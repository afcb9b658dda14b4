"""Builders and gesture helpers shared by the test modules."""

from ovara.config import default_config
from ovara.core.annotation import (
    AnnotationSession,
    Box,
    DetectionAnnotation,
    KeypointAnnotation,
    PoseAnnotation,
    Visibility,
)

IMAGE_PATH = "/data/images/img_001.jpg"
RENDER_WIDTH = 200
RENDER_HEIGHT = 150


def make_session(store, project_id, **session_overrides):
    """Session on IMAGE_PATH with a known 200x150 render size."""
    cfg = default_config()
    cfg.session.update(session_overrides)
    session = AnnotationSession(store, project_id, cfg)
    session.open_image(IMAGE_PATH)
    session.set_image_size(RENDER_WIDTH, RENDER_HEIGHT)
    return session


def detection_annotation(x, y, w, h, class_id="cat", color="#ff0000"):
    return DetectionAnnotation(class_id=class_id, bbox=Box(x, y, w, h), color=color)


def pose_annotation(keypoints, class_id="animal", color="#ff0000", bbox=None):
    """``keypoints`` is a list of ``(id, x, y, visibility)`` tuples."""
    return PoseAnnotation(
        class_id=class_id,
        bbox=bbox or Box(0.1, 0.1, 0.5, 0.5),
        color=color,
        keypoints=tuple(
            KeypointAnnotation(kp_id, x, y, Visibility(v)) for kp_id, x, y, v in keypoints
        ),
    )


def drag(session, start, end):
    """Full press-move-release gesture."""
    session.pointer_down(*start)
    session.pointer_move(*end)
    session.pointer_up(*end)
