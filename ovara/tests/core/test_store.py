"""
Tests for AnnotationStore.

Every mutation must return a new snapshot, leave older snapshots intact and
degrade to a no-op on unknown identifiers.
"""

import random

import pytest

from ovara.core.annotation import (
    AnnotationStore,
    DetectionClass,
    EventType,
    KeypointDef,
    PoseClass,
    new_project,
)

from ..helpers import IMAGE_PATH, detection_annotation, pose_annotation


@pytest.fixture
def recorded(store):
    events = []
    for event_type in EventType:
        store.events.on(event_type, events.append)
    return events


class TestProjects:
    def test_add_and_get(self, store):
        project = new_project("p1", "First", "detection")
        assert store.add_project(project) is project
        assert store.get_project("p1") is project
        assert store.projects == (project,)

    def test_duplicate_id_is_noop(self, store):
        store.add_project(new_project("p1", "First", "detection"))
        assert store.add_project(new_project("p1", "Other", "pose")) is None
        assert store.get_project("p1").name == "First"
        assert len(store.projects) == 1

    def test_delete(self, store, detection_project):
        assert store.delete_project("det") is detection_project
        assert store.get_project("det") is None
        assert store.delete_project("det") is None

    def test_unknown_project_mutations_are_noops(self, store):
        ann = detection_annotation(0.1, 0.1, 0.2, 0.2)
        assert store.add_annotation("missing", IMAGE_PATH, ann) is None
        assert store.delete_annotation_by_index("missing", IMAGE_PATH, 0) is None
        assert store.add_class("missing", DetectionClass("cat", "cat")) is None
        assert store.delete_class("missing", "cat") is None
        assert store.update_image_paths("missing", ["a.jpg"]) is None
        assert store.delete_image("missing", IMAGE_PATH) is None
        assert store.projects == ()

    def test_update_image_paths_keeps_timestamp(self, store, detection_project):
        updated = store.update_image_paths("det", ["/x/a.jpg", "/x/b.jpg"])
        assert updated.image_paths == ("/x/a.jpg", "/x/b.jpg")
        assert updated.updated_at == detection_project.updated_at

    def test_update_image_dir_touches(self, store, detection_project):
        updated = store.update_image_dir("det", "/elsewhere")
        assert updated.image_dir == "/elsewhere"
        assert updated.updated_at is not None


class TestAnnotations:
    def test_add_returns_new_snapshot(self, store, detection_project):
        ann = detection_annotation(0.1, 0.1, 0.2, 0.2)
        updated = store.add_annotation("det", IMAGE_PATH, ann)

        assert updated is store.get_project("det")
        assert updated.annotations_for(IMAGE_PATH) == (ann,)
        # Older snapshot is untouched
        assert detection_project.annotations_for(IMAGE_PATH) == ()

    def test_add_bumps_updated_at(self, store, detection_project):
        updated = store.add_annotation(
            "det", IMAGE_PATH, detection_annotation(0.1, 0.1, 0.2, 0.2)
        )
        assert updated.updated_at is not None
        assert updated.created_at == detection_project.created_at

    def test_appends_in_order(self, store, detection_project):
        first = detection_annotation(0.1, 0.1, 0.2, 0.2)
        second = detection_annotation(0.3, 0.3, 0.2, 0.2)
        store.add_annotation("det", IMAGE_PATH, first)
        store.add_annotation("det", IMAGE_PATH, second)
        assert store.get_project("det").annotations_for(IMAGE_PATH) == (first, second)

    def test_rejects_wrong_variant(self, store, detection_project):
        ann = pose_annotation([("head", 0.2, 0.2, 2)])
        assert store.add_annotation("det", IMAGE_PATH, ann) is None
        assert store.get_project("det") is detection_project

    def test_delete_by_index(self, store, detection_project):
        first = detection_annotation(0.1, 0.1, 0.2, 0.2)
        second = detection_annotation(0.3, 0.3, 0.2, 0.2)
        store.add_annotation("det", IMAGE_PATH, first)
        store.add_annotation("det", IMAGE_PATH, second)

        updated = store.delete_annotation_by_index("det", IMAGE_PATH, 0)
        assert updated.annotations_for(IMAGE_PATH) == (second,)

    @pytest.mark.parametrize("index", [-1, 1, 5])
    def test_delete_out_of_range_is_noop(self, store, detection_project, index):
        store.add_annotation("det", IMAGE_PATH, detection_annotation(0, 0, 0.5, 0.5))
        before = store.get_project("det")
        assert store.delete_annotation_by_index("det", IMAGE_PATH, index) is None
        assert store.get_project("det") is before

    def test_other_images_untouched(self, store, detection_project):
        other = "/data/images/img_002.jpg"
        ann = detection_annotation(0.1, 0.1, 0.2, 0.2)
        store.add_annotation("det", other, ann)
        store.add_annotation("det", IMAGE_PATH, ann)
        store.delete_annotation_by_index("det", IMAGE_PATH, 0)
        assert store.get_project("det").annotations_for(other) == (ann,)

    def test_delete_image(self, store, detection_project):
        store.add_annotation("det", IMAGE_PATH, detection_annotation(0, 0, 0.5, 0.5))
        updated = store.delete_image("det", IMAGE_PATH)
        assert IMAGE_PATH not in updated.image_paths
        assert IMAGE_PATH not in updated.annotations
        assert store.delete_image("det", IMAGE_PATH) is None


class TestClasses:
    def test_add_class(self, store, detection_project):
        updated = store.add_class("det", DetectionClass("dog", "dog"))
        assert [c.id for c in updated.classes] == ["cat", "dog"]
        assert updated.class_index("dog") == 1

    def test_rejects_duplicate_and_wrong_variant(self, store, detection_project):
        assert store.add_class("det", DetectionClass("cat", "Cat again")) is None
        assert store.add_class("det", PoseClass("person", "person")) is None
        assert store.get_project("det") is detection_project

    def test_delete_class_keeps_annotations(self, store, detection_project):
        ann = detection_annotation(0.1, 0.1, 0.2, 0.2)
        store.add_annotation("det", IMAGE_PATH, ann)
        updated = store.delete_class("det", "cat")
        assert updated.classes == ()
        assert updated.annotations_for(IMAGE_PATH) == (ann,)

    def test_keypoint_definitions(self, store, pose_project):
        updated = store.add_keypoint_definition(
            "pose", "animal", KeypointDef("paw", "paw")
        )
        keypoints = updated.get_class("animal").keypoints
        assert [kp.id for kp in keypoints] == ["head", "tail", "paw"]

        updated = store.delete_keypoint_definition("pose", "animal", "head")
        keypoints = updated.get_class("animal").keypoints
        assert [kp.id for kp in keypoints] == ["tail", "paw"]

    def test_duplicate_keypoint_is_noop(self, store, pose_project):
        assert (
            store.add_keypoint_definition("pose", "animal", KeypointDef("head", "x"))
            is None
        )
        assert store.delete_keypoint_definition("pose", "animal", "nope") is None
        assert store.add_keypoint_definition("pose", "nope", KeypointDef("a", "a")) is None

    def test_keypoints_only_on_pose_projects(self, store, detection_project):
        assert (
            store.add_keypoint_definition("det", "cat", KeypointDef("head", "head"))
            is None
        )

    def test_deleting_keypoint_leaves_annotations(self, store, pose_project):
        ann = pose_annotation([("head", 0.2, 0.2, 2), ("tail", 0.4, 0.4, 2)])
        store.add_annotation("pose", IMAGE_PATH, ann)
        updated = store.delete_keypoint_definition("pose", "animal", "tail")
        assert updated.annotations_for(IMAGE_PATH) == (ann,)


class TestEvents:
    def test_mutation_emits(self, store, detection_project, recorded):
        store.add_annotation("det", IMAGE_PATH, detection_annotation(0, 0, 0.5, 0.5))
        assert len(recorded) == 1
        event = recorded[0]
        assert event.event_type == EventType.ANNOTATION_ADDED
        assert event.data == {"project_id": "det", "image_path": IMAGE_PATH}

    def test_noop_does_not_emit(self, store, detection_project, recorded):
        store.delete_annotation_by_index("det", IMAGE_PATH, 0)
        store.add_class("det", DetectionClass("cat", "cat"))
        store.delete_project("missing")
        assert recorded == []

    def test_broken_listener_does_not_abort(self, store, detection_project):
        def broken(event):
            raise RuntimeError("listener failure")

        store.events.on(EventType.ANNOTATION_ADDED, broken)
        updated = store.add_annotation(
            "det", IMAGE_PATH, detection_annotation(0, 0, 0.5, 0.5)
        )
        assert len(updated.annotations_for(IMAGE_PATH)) == 1


class TestColors:
    def test_next_color_skips_used(self, store, detection_project, palette):
        assert store.next_color("det", IMAGE_PATH) == palette[0]
        store.add_annotation(
            "det", IMAGE_PATH, detection_annotation(0, 0, 0.5, 0.5, color=palette[0])
        )
        assert store.next_color("det", IMAGE_PATH) == palette[1]

    def test_next_color_falls_back_to_palette(self, palette):
        store = AnnotationStore(palette=palette, rng=random.Random(0))
        store.add_project(new_project("det", "d", "detection"))
        store.add_class("det", DetectionClass("cat", "cat"))
        for color in palette:
            store.add_annotation(
                "det", IMAGE_PATH, detection_annotation(0, 0, 0.5, 0.5, color=color)
            )
        assert store.next_color("det", IMAGE_PATH) in palette

    def test_default_palette_from_colormap(self):
        store = AnnotationStore()
        assert len(store.palette) == 10
        assert store.palette[0] == "#1f77b4"
