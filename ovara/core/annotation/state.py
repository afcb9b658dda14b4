"""
Data model for annotation projects.

Projects, classes and annotations are frozen dataclasses: the store replaces
them wholesale instead of editing them in place, so a reader holding a
reference never sees a half-applied change.

Projects and annotations come in two variants keyed by :class:`ModelType`.
Code that branches on the variant checks ``model_type`` explicitly.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import ClassVar, Dict, Optional, Tuple, Union

from .geometry import Point


class ModelType(Enum):
    DETECTION = "detection"
    POSE = "pose"


class Visibility(IntEnum):
    """Label quality of a keypoint, numbered as in the YOLO pose format."""

    NOT_LABELED = 0
    LABELED_NOT_VISIBLE = 1
    LABELED_VISIBLE = 2


class ClickMode(Enum):
    """How a box is drawn: press-drag-release, or two separate clicks."""

    DRAG = "drag"
    CLICK = "click"


class InteractionMode(Enum):
    CREATE = "create"
    EDIT = "edit"
    ZOOM = "zoom"


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class Box:
    """Axis-aligned box, normalized to the image size."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Point:
        return self.x + self.width / 2, self.y + self.height / 2

    def to_dict(self):
        return {
            "x": self.x,
            "y": self.y,
            "width": self.width,
            "height": self.height,
        }

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            x=float(data["x"]),
            y=float(data["y"]),
            width=float(data["width"]),
            height=float(data["height"]),
        )


@dataclass(frozen=True)
class KeypointDef:
    """Named keypoint slot of a pose class."""

    id: str
    name: str

    def to_dict(self):
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict):
        return cls(id=data["id"], name=data["name"])


@dataclass(frozen=True)
class DetectionClass:
    model_type: ClassVar[ModelType] = ModelType.DETECTION

    id: str
    name: str

    def to_dict(self):
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict):
        return cls(id=data["id"], name=data["name"])


@dataclass(frozen=True)
class PoseClass:
    """
    Label class of a pose project.

    The order of ``keypoints`` is the placement and export order. Stored
    annotations refer to keypoints by id, never by position.
    """

    model_type: ClassVar[ModelType] = ModelType.POSE

    id: str
    name: str
    keypoints: Tuple[KeypointDef, ...] = ()

    def get_keypoint(self, keypoint_id: str) -> Optional[KeypointDef]:
        for keypoint in self.keypoints:
            if keypoint.id == keypoint_id:
                return keypoint
        return None

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "keypoints": [kp.to_dict() for kp in self.keypoints],
        }

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            id=data["id"],
            name=data["name"],
            keypoints=tuple(KeypointDef.from_dict(kp) for kp in data.get("keypoints", [])),
        )


LabelClass = Union[DetectionClass, PoseClass]


@dataclass(frozen=True)
class KeypointAnnotation:
    """
    A placed (or skipped) keypoint.

    ``x`` and ``y`` carry no meaning when ``visible`` is ``NOT_LABELED``.
    """

    id: str
    x: float
    y: float
    visible: Visibility = Visibility.LABELED_VISIBLE

    @classmethod
    def skipped(cls, keypoint_id: str):
        return cls(id=keypoint_id, x=0.0, y=0.0, visible=Visibility.NOT_LABELED)

    def to_dict(self):
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "visible": int(self.visible),
        }

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            id=data["id"],
            x=float(data["x"]),
            y=float(data["y"]),
            visible=Visibility(int(data["visible"])),
        )


@dataclass(frozen=True)
class DetectionAnnotation:
    model_type: ClassVar[ModelType] = ModelType.DETECTION

    class_id: str
    bbox: Box
    color: str

    def to_dict(self):
        return {
            "class_id": self.class_id,
            "bbox": self.bbox.to_dict(),
            "color": self.color,
        }

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            class_id=data["class_id"],
            bbox=Box.from_dict(data["bbox"]),
            color=data["color"],
        )


@dataclass(frozen=True)
class PoseAnnotation:
    """Box plus exactly one keypoint entry per keypoint of its class."""

    model_type: ClassVar[ModelType] = ModelType.POSE

    class_id: str
    bbox: Box
    color: str
    keypoints: Tuple[KeypointAnnotation, ...] = ()

    def to_dict(self):
        return {
            "class_id": self.class_id,
            "bbox": self.bbox.to_dict(),
            "color": self.color,
            "keypoints": [kp.to_dict() for kp in self.keypoints],
        }

    @classmethod
    def from_dict(cls, data: dict):
        return cls(
            class_id=data["class_id"],
            bbox=Box.from_dict(data["bbox"]),
            color=data["color"],
            keypoints=tuple(
                KeypointAnnotation.from_dict(kp) for kp in data.get("keypoints", [])
            ),
        )


Annotation = Union[DetectionAnnotation, PoseAnnotation]


@dataclass(frozen=True)
class _Project:
    id: str
    name: str
    image_dir: str = ""
    image_paths: Tuple[str, ...] = ()
    # image path -> annotations on that image; replaced, never mutated
    annotations: Dict[str, Tuple[Annotation, ...]] = field(
        default_factory=dict, hash=False
    )
    created_at: str = field(default_factory=utcnow_iso)
    updated_at: Optional[str] = None

    def get_class(self, class_id: Optional[str]):
        for cls in self.classes:
            if cls.id == class_id:
                return cls
        return None

    def class_index(self, class_id: str) -> Optional[int]:
        for idx, cls in enumerate(self.classes):
            if cls.id == class_id:
                return idx
        return None

    def annotations_for(self, image_path: str) -> Tuple[Annotation, ...]:
        return self.annotations.get(image_path, ())

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "model_type": self.model_type.value,
            "image_dir": self.image_dir,
            "image_paths": list(self.image_paths),
            "classes": [cls.to_dict() for cls in self.classes],
            "annotations": {
                path: [ann.to_dict() for ann in anns]
                for path, anns in self.annotations.items()
            },
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


@dataclass(frozen=True)
class DetectionProject(_Project):
    model_type: ClassVar[ModelType] = ModelType.DETECTION
    class_type: ClassVar[type] = DetectionClass
    annotation_type: ClassVar[type] = DetectionAnnotation

    classes: Tuple[DetectionClass, ...] = ()


@dataclass(frozen=True)
class PoseProject(_Project):
    model_type: ClassVar[ModelType] = ModelType.POSE
    class_type: ClassVar[type] = PoseClass
    annotation_type: ClassVar[type] = PoseAnnotation

    classes: Tuple[PoseClass, ...] = ()


Project = Union[DetectionProject, PoseProject]

PROJECT_TYPES = {
    ModelType.DETECTION: DetectionProject,
    ModelType.POSE: PoseProject,
}


def new_project(
    project_id: str,
    name: str,
    model_type: Union[ModelType, str],
    image_dir: str = "",
    image_paths=(),
) -> Project:
    """Create an empty project of the given model type."""
    project_cls = PROJECT_TYPES[ModelType(model_type)]
    return project_cls(
        id=project_id,
        name=name,
        image_dir=image_dir,
        image_paths=tuple(image_paths),
    )


def project_from_dict(data: dict) -> Project:
    project_cls = PROJECT_TYPES[ModelType(data["model_type"])]
    return project_cls(
        id=data["id"],
        name=data["name"],
        image_dir=data.get("image_dir", ""),
        image_paths=tuple(data.get("image_paths", [])),
        classes=tuple(
            project_cls.class_type.from_dict(cls) for cls in data.get("classes", [])
        ),
        annotations={
            path: tuple(project_cls.annotation_type.from_dict(ann) for ann in anns)
            for path, anns in data.get("annotations", {}).items()
        },
        created_at=data.get("created_at") or utcnow_iso(),
        updated_at=data.get("updated_at"),
    )


# Draft state. Owned by the interaction session, never persisted.


@dataclass(frozen=True)
class DrawingBox:
    """Box being drawn, in screen coordinates."""

    start: Point
    end: Point


@dataclass(frozen=True)
class PlacingKeypoints:
    """Keypoints being placed inside an already finalized box."""

    class_id: str
    keypoints: Tuple[KeypointDef, ...]
    base_box: Box
    current_index: int = 0
    points: Tuple[KeypointAnnotation, ...] = ()

    @property
    def current_keypoint(self) -> Optional[KeypointDef]:
        if self.current_index < len(self.keypoints):
            return self.keypoints[self.current_index]
        return None

    @property
    def is_complete(self) -> bool:
        return self.current_index >= len(self.keypoints)


@dataclass(frozen=True)
class ZoomBox:
    """Zoom rectangle being dragged, in screen coordinates."""

    start: Point
    end: Point


Draft = Union[DrawingBox, PlacingKeypoints, ZoomBox, None]
