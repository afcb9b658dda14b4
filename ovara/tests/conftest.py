"""
Test fixtures for ovara tests.

Provides reusable fixtures for stores, projects, sessions and test data.
"""

import numpy as np
import pytest

from ovara.config import default_config
from ovara.core.annotation import (
    AnnotationStore,
    DetectionClass,
    KeypointDef,
    PoseClass,
    new_project,
)

from .helpers import IMAGE_PATH, RENDER_HEIGHT, RENDER_WIDTH, make_session


@pytest.fixture
def test_image():
    """RGB test image matching the default render size."""
    return np.random.randint(0, 255, (RENDER_HEIGHT, RENDER_WIDTH, 3), dtype=np.uint8)


@pytest.fixture
def cfg():
    return default_config()


@pytest.fixture
def palette():
    return ["#ff0000", "#00ff00", "#0000ff"]


@pytest.fixture
def store(palette):
    return AnnotationStore(palette=palette)


@pytest.fixture
def detection_project(store):
    """Detection project with a single class "cat"."""
    project = new_project(
        "det", "Cats", "detection", image_dir="/data/images", image_paths=[IMAGE_PATH]
    )
    store.add_project(project)
    store.add_class("det", DetectionClass("cat", "cat"))
    return store.get_project("det")


@pytest.fixture
def pose_project(store):
    """Pose project with class "animal" whose keypoints are head, tail."""
    project = new_project(
        "pose", "Animals", "pose", image_dir="/data/images", image_paths=[IMAGE_PATH]
    )
    store.add_project(project)
    store.add_class(
        "pose",
        PoseClass(
            "animal",
            "animal",
            (KeypointDef("head", "head"), KeypointDef("tail", "tail")),
        ),
    )
    return store.get_project("pose")


@pytest.fixture
def detection_session(store, detection_project):
    session = make_session(store, detection_project.id)
    session.select_class("cat")
    return session


@pytest.fixture
def pose_session(store, pose_project):
    session = make_session(store, pose_project.id)
    session.select_class("animal")
    return session
