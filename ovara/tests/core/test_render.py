"""
Tests for the render and hit-test layer.
"""

import numpy as np
import pytest

from ovara.core.annotation import Box, Size, Viewport, Visibility
from ovara.core.annotation.render import (
    UNKNOWN_CLASS_LABEL,
    CirclePrimitive,
    ImagePrimitive,
    LinePrimitive,
    RectPrimitive,
    TextPrimitive,
    box_to_screen,
    build_scene,
    hit_test,
    rasterize,
)
from ovara.core.annotation.state import (
    DrawingBox,
    KeypointAnnotation,
    PlacingKeypoints,
    ZoomBox,
)

from ..helpers import IMAGE_PATH, detection_annotation, pose_annotation

RENDER = Size(200, 150)


def by_role(scene, role):
    return [prim for prim in scene if prim.role == role]


class TestHitTest:
    def test_reverse_order(self):
        first = detection_annotation(0.1, 0.1, 0.5, 0.5)
        second = detection_annotation(0.2, 0.2, 0.5, 0.5)
        assert hit_test([first, second], 80, 60, RENDER) == 1
        # Only the first one covers this point
        assert hit_test([first, second], 25, 20, RENDER) == 0

    def test_miss(self):
        assert hit_test([detection_annotation(0.1, 0.1, 0.1, 0.1)], 150, 150, RENDER) is None
        assert hit_test([], 10, 10, RENDER) is None

    def test_respects_viewport(self):
        ann = detection_annotation(0.5, 0.5, 0.1, 0.1)
        viewport = Viewport(0.5, 0.5, 0.5, 0.5)
        assert hit_test([ann], 105, 105, RENDER) is None
        assert hit_test([ann], 10, 10, RENDER, viewport) == 0

    def test_box_to_screen(self):
        rect = box_to_screen(Box(0.1, 0.2, 0.5, 0.4), RENDER, None)
        assert rect == pytest.approx((20, 30, 100, 60))


class TestBuildScene:
    def test_image_first(self, detection_project):
        scene = build_scene(detection_project, IMAGE_PATH, RENDER)
        assert scene == [ImagePrimitive(0, 0, 200, 150)]

    def test_image_under_viewport(self, detection_project):
        scene = build_scene(
            detection_project, IMAGE_PATH, RENDER, viewport=Viewport(0.5, 0.5, 0.5, 0.5)
        )
        image = scene[0]
        assert (image.x, image.y) == pytest.approx((-200, -150))
        assert (image.width, image.height) == pytest.approx((400, 300))

    def test_annotations(self, store, detection_project):
        ann = detection_annotation(0.1, 0.2, 0.5, 0.4, color="#123456")
        project = store.add_annotation("det", IMAGE_PATH, ann)
        scene = build_scene(project, IMAGE_PATH, RENDER)

        (rect,) = by_role(scene, "annotation")
        assert (rect.x, rect.y, rect.width, rect.height) == pytest.approx(
            (20, 30, 100, 60)
        )
        assert rect.color == "#123456"
        (label,) = by_role(scene, "annotation_label")
        assert label.text == "cat"

    def test_only_current_image(self, store, detection_project):
        project = store.add_annotation(
            "det", "/data/images/other.jpg", detection_annotation(0, 0, 0.5, 0.5)
        )
        assert by_role(build_scene(project, IMAGE_PATH, RENDER), "annotation") == []

    def test_unknown_class_placeholder(self, store, detection_project):
        store.add_annotation(
            "det", IMAGE_PATH, detection_annotation(0, 0, 0.5, 0.5, class_id="gone")
        )
        scene = build_scene(store.get_project("det"), IMAGE_PATH, RENDER)
        (label,) = by_role(scene, "annotation_label")
        assert label.text == UNKNOWN_CLASS_LABEL

    def test_keypoints_skip_not_labeled(self, store, pose_project):
        ann = pose_annotation(
            [("head", 0.25, 0.5, Visibility.LABELED_VISIBLE), ("tail", 0, 0, 0)]
        )
        project = store.add_annotation("pose", IMAGE_PATH, ann)
        scene = build_scene(project, IMAGE_PATH, RENDER)

        (marker,) = by_role(scene, "keypoint")
        assert (marker.x, marker.y) == pytest.approx((50, 75))
        (label,) = by_role(scene, "keypoint_label")
        assert label.text == "head"

    def test_occluded_keypoint_drawn(self, store, pose_project):
        ann = pose_annotation([("head", 0.25, 0.5, 1), ("tail", 0.3, 0.3, 2)])
        project = store.add_annotation("pose", IMAGE_PATH, ann)
        assert len(by_role(build_scene(project, IMAGE_PATH, RENDER), "keypoint")) == 2

    def test_orphan_keypoint_uses_id(self, store, pose_project):
        ann = pose_annotation([("paw", 0.25, 0.5, 2)])
        project = store.add_annotation("pose", IMAGE_PATH, ann)
        (label,) = by_role(build_scene(project, IMAGE_PATH, RENDER), "keypoint_label")
        assert label.text == "paw"

    def test_drawing_box_follows_pointer(self, detection_project):
        draft = DrawingBox((10, 10), (10, 10))
        scene = build_scene(
            detection_project, IMAGE_PATH, RENDER, draft=draft, pointer=(50, 60)
        )
        (box,) = by_role(scene, "draft_box")
        assert (box.x, box.y, box.width, box.height) == (10, 10, 40, 50)
        assert box.dashed

    def test_zoom_box(self, detection_project):
        scene = build_scene(
            detection_project, IMAGE_PATH, RENDER, draft=ZoomBox((50, 50), (10, 20))
        )
        (box,) = by_role(scene, "zoom_box")
        assert (box.x, box.y, box.width, box.height) == (10, 20, 40, 30)

    def test_placement(self, pose_project):
        animal = pose_project.get_class("animal")
        draft = PlacingKeypoints(
            class_id="animal",
            keypoints=animal.keypoints,
            base_box=Box(0.1, 0.1, 0.5, 0.5),
            current_index=1,
            points=(KeypointAnnotation("head", 0.2, 0.2),),
        )
        scene = build_scene(
            pose_project,
            IMAGE_PATH,
            RENDER,
            draft=draft,
            pointer=(30, 30),
            selected_class_id="animal",
        )
        assert len(by_role(scene, "base_box")) == 1
        assert len(by_role(scene, "draft_keypoint")) == 1
        (label,) = by_role(scene, "cursor_label")
        assert label.text == "tail"

    def test_crosshair_and_class_label(self, detection_project):
        scene = build_scene(
            detection_project,
            IMAGE_PATH,
            RENDER,
            pointer=(30, 40),
            selected_class_id="cat",
        )
        horizontal, vertical = by_role(scene, "crosshair")
        assert (horizontal.y1, horizontal.y2, horizontal.x2) == (40, 40, 200)
        assert (vertical.x1, vertical.x2, vertical.y2) == (30, 30, 150)
        (label,) = by_role(scene, "cursor_label")
        assert label.text == "cat"

    def test_no_pointer_no_guides(self, detection_project):
        scene = build_scene(detection_project, IMAGE_PATH, RENDER, selected_class_id="cat")
        assert by_role(scene, "crosshair") == []
        assert by_role(scene, "cursor_label") == []

    def test_does_not_mutate(self, store, detection_project):
        project = store.add_annotation(
            "det", IMAGE_PATH, detection_annotation(0, 0, 0.5, 0.5)
        )
        before = project.to_dict()
        build_scene(project, IMAGE_PATH, RENDER, pointer=(1, 1), selected_class_id="cat")
        assert project.to_dict() == before
        assert store.get_project("det") is project


class TestRasterize:
    def test_frame_shape(self, test_image):
        frame = rasterize(test_image, [ImagePrimitive(0, 0, 200, 150)], RENDER)
        assert frame.shape == (150, 200, 3)
        assert frame.dtype == np.uint8
        np.testing.assert_allclose(frame.astype(int), test_image.astype(int), atol=1)

    def test_draws_primitives(self):
        image = np.zeros((150, 200, 3), dtype=np.uint8)
        scene = [
            ImagePrimitive(0, 0, 200, 150),
            RectPrimitive(20, 20, 50, 50, "#ff0000", "annotation"),
            CirclePrimitive(150, 100, 4, "#00ff00", "keypoint"),
            LinePrimitive(0, 140, 200, 140, "#0000ff", "crosshair", dashed=True),
            TextPrimitive(100, 30, "cat", "#ffffff", "annotation_label"),
        ]
        frame = rasterize(image, scene, RENDER)
        assert tuple(frame[20, 45]) == (255, 0, 0)
        assert tuple(frame[100, 150]) == (0, 255, 0)
        assert frame[140, :, 2].max() == 255
        assert frame[:, :, 2].min() == 0
        assert frame[20:40, 100:140].any()

    def test_unknown_primitive(self, test_image):
        with pytest.raises(TypeError):
            rasterize(test_image, [object()], RENDER)
