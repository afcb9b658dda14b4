"""
Annotation store.

Owns the project collection. Every mutation builds a new project snapshot
(copying the nested collection it touches) and installs it with a single
assignment, so readers holding an older snapshot are never affected.

Mutations never raise on unknown identifiers: they log and return None.
"""

import logging
import random
from dataclasses import replace
from typing import Callable, Iterable, Optional, Sequence, Tuple

from .events import AnnotationEvent, EventEmitter, EventType
from .state import (
    Annotation,
    KeypointDef,
    LabelClass,
    ModelType,
    Project,
    utcnow_iso,
)
from .utils import make_palette, pick_color

logger = logging.getLogger(__name__)


class AnnotationStore:
    """
    Authoritative, process-local collection of projects.

    The store is passed by reference to every consumer. The interaction
    session is the only writer during annotation; renderers only read
    snapshots.
    """

    def __init__(
        self,
        projects: Iterable[Project] = (),
        palette: Optional[Sequence[str]] = None,
        colormap: str = "tab10",
        rng: Optional[random.Random] = None,
    ):
        """
        Initialize the store.

        Args:
            projects: Initial projects, e.g. loaded from disk
            palette: Colors handed out by :meth:`next_color`
            colormap: Matplotlib colormap used when no palette is given
            rng: Random source for the exhausted-palette fallback
        """
        self._projects: Tuple[Project, ...] = tuple(projects)
        self.palette = list(palette) if palette else make_palette(colormap)
        self._rng = rng or random.Random()
        self.events = EventEmitter()

    @property
    def projects(self) -> Tuple[Project, ...]:
        """Current snapshot of all projects."""
        return self._projects

    def get_project(self, project_id: str) -> Optional[Project]:
        index = self._index_of(project_id)
        return None if index is None else self._projects[index]

    # Project collection

    def add_project(self, project: Project) -> Optional[Project]:
        if self._index_of(project.id) is not None:
            logger.warning("Project %s already exists, not adding it", project.id)
            return None
        self._projects = self._projects + (project,)
        self._emit(EventType.PROJECT_ADDED, project_id=project.id)
        return project

    def delete_project(self, project_id: str) -> Optional[Project]:
        project = self.get_project(project_id)
        if project is None:
            logger.debug("delete_project: unknown project %s", project_id)
            return None
        self._projects = tuple(p for p in self._projects if p.id != project_id)
        self._emit(EventType.PROJECT_DELETED, project_id=project_id)
        return project

    def update_image_paths(
        self, project_id: str, image_paths: Iterable[str]
    ) -> Optional[Project]:
        """Replace the image list. Re-listing a folder is not an edit, so
        ``updated_at`` is left alone."""
        paths = tuple(image_paths)
        return self._update(
            project_id,
            lambda project: replace(project, image_paths=paths),
            EventType.PROJECT_UPDATED,
            touch=False,
        )

    def update_image_dir(self, project_id: str, image_dir: str) -> Optional[Project]:
        return self._update(
            project_id,
            lambda project: replace(project, image_dir=image_dir),
            EventType.PROJECT_UPDATED,
        )

    # Annotations

    def add_annotation(
        self, project_id: str, image_path: str, annotation: Annotation
    ) -> Optional[Project]:
        """Append ``annotation`` to the list of ``image_path``."""

        def updater(project):
            if not isinstance(annotation, project.annotation_type):
                logger.warning(
                    "Refusing %s annotation in %s project %s",
                    annotation.model_type.value,
                    project.model_type.value,
                    project.id,
                )
                return project
            annotations = dict(project.annotations)
            annotations[image_path] = project.annotations_for(image_path) + (
                annotation,
            )
            return replace(project, annotations=annotations)

        return self._update(
            project_id,
            updater,
            EventType.ANNOTATION_ADDED,
            image_path=image_path,
        )

    def delete_annotation_by_index(
        self, project_id: str, image_path: str, index: int
    ) -> Optional[Project]:
        """Remove the annotation at ``index``; out of range is a no-op."""

        def updater(project):
            current = project.annotations_for(image_path)
            if not 0 <= index < len(current):
                logger.debug(
                    "No annotation %d on %s (has %d)", index, image_path, len(current)
                )
                return project
            annotations = dict(project.annotations)
            annotations[image_path] = current[:index] + current[index + 1:]
            return replace(project, annotations=annotations)

        return self._update(
            project_id,
            updater,
            EventType.ANNOTATION_DELETED,
            image_path=image_path,
            index=index,
        )

    def delete_image(self, project_id: str, image_path: str) -> Optional[Project]:
        """Drop an image from the project together with its annotations."""

        def updater(project):
            if (
                image_path not in project.image_paths
                and image_path not in project.annotations
            ):
                return project
            annotations = {
                path: anns
                for path, anns in project.annotations.items()
                if path != image_path
            }
            return replace(
                project,
                image_paths=tuple(p for p in project.image_paths if p != image_path),
                annotations=annotations,
            )

        return self._update(
            project_id, updater, EventType.IMAGE_DELETED, image_path=image_path
        )

    def next_color(self, project_id: str, image_path: str) -> str:
        """First palette color unused on this image, random once exhausted."""
        project = self.get_project(project_id)
        used = (
            [ann.color for ann in project.annotations_for(image_path)]
            if project is not None
            else []
        )
        return pick_color(self.palette, used, self._rng)

    # Classes

    def add_class(self, project_id: str, label_class: LabelClass) -> Optional[Project]:
        """
        Append a class. The class variant must match the project model type.
        """

        def updater(project):
            if not isinstance(label_class, project.class_type):
                logger.warning(
                    "Refusing %s class in %s project %s",
                    label_class.model_type.value,
                    project.model_type.value,
                    project.id,
                )
                return project
            if project.get_class(label_class.id) is not None:
                logger.warning("Class %s already exists", label_class.id)
                return project
            return replace(project, classes=project.classes + (label_class,))

        return self._update(
            project_id, updater, EventType.CLASS_ADDED, class_id=label_class.id
        )

    def delete_class(self, project_id: str, class_id: str) -> Optional[Project]:
        """
        Remove a class.

        Annotations that reference it are kept: they are shown as "?" and
        skipped on export.
        """

        def updater(project):
            if project.get_class(class_id) is None:
                return project
            return replace(
                project,
                classes=tuple(c for c in project.classes if c.id != class_id),
            )

        return self._update(
            project_id, updater, EventType.CLASS_DELETED, class_id=class_id
        )

    def add_keypoint_definition(
        self, project_id: str, class_id: str, keypoint: KeypointDef
    ) -> Optional[Project]:
        """Append a keypoint to a pose class. Stored annotations are not touched."""

        def change(cls):
            if cls.get_keypoint(keypoint.id) is not None:
                logger.warning("Keypoint %s already exists on %s", keypoint.id, cls.id)
                return cls
            return replace(cls, keypoints=cls.keypoints + (keypoint,))

        return self._update(
            project_id,
            self._pose_class_updater(class_id, change),
            EventType.KEYPOINT_ADDED,
            class_id=class_id,
            keypoint_id=keypoint.id,
        )

    def delete_keypoint_definition(
        self, project_id: str, class_id: str, keypoint_id: str
    ) -> Optional[Project]:
        """Remove a keypoint from a pose class. Stored annotations are not touched."""

        def change(cls):
            if cls.get_keypoint(keypoint_id) is None:
                return cls
            return replace(
                cls,
                keypoints=tuple(kp for kp in cls.keypoints if kp.id != keypoint_id),
            )

        return self._update(
            project_id,
            self._pose_class_updater(class_id, change),
            EventType.KEYPOINT_DELETED,
            class_id=class_id,
            keypoint_id=keypoint_id,
        )

    # Internals

    def _index_of(self, project_id: str) -> Optional[int]:
        for idx, project in enumerate(self._projects):
            if project.id == project_id:
                return idx
        return None

    @staticmethod
    def _pose_class_updater(class_id: str, change: Callable):
        def updater(project):
            if project.model_type is not ModelType.POSE:
                logger.warning(
                    "Keypoints are only defined for pose projects, %s is %s",
                    project.id,
                    project.model_type.value,
                )
                return project
            cls = project.get_class(class_id)
            if cls is None:
                return project
            changed = change(cls)
            if changed is cls:
                return project
            return replace(
                project,
                classes=tuple(
                    changed if c.id == class_id else c for c in project.classes
                ),
            )

        return updater

    def _update(
        self,
        project_id: str,
        updater: Callable[[Project], Project],
        event_type: EventType,
        touch: bool = True,
        **event_data,
    ) -> Optional[Project]:
        """
        Replace one project with ``updater(project)``.

        An updater returning its input unchanged means "nothing to do": no
        timestamp bump and no event.
        """
        index = self._index_of(project_id)
        if index is None:
            logger.debug("%s: unknown project %s", event_type.value, project_id)
            return None

        original = self._projects[index]
        updated = updater(original)
        if updated is original:
            return None
        if touch:
            updated = replace(updated, updated_at=utcnow_iso())

        projects = list(self._projects)
        projects[index] = updated
        self._projects = tuple(projects)

        self._emit(event_type, project_id=project_id, **event_data)
        return updated

    def _emit(self, event_type: EventType, **data):
        self.events.emit(AnnotationEvent(event_type, data))
