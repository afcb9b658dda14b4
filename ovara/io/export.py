"""
YOLO label export.

One ``<image stem>.txt`` file per annotated image plus ``classes.txt``.
Every line is ``class cx cy w h`` with normalized values; pose lines append
``x y visible`` for every keypoint of every class, in class order.
"""

import logging
from gettext import gettext as _
from pathlib import Path
from typing import List, Optional

import numpy as np

from ..core.annotation.state import ModelType, Project, Visibility
from ..errors import ExportError
from ..utils.misc import try_tqdm

logger = logging.getLogger(__name__)

CLASSES_FILE = "classes.txt"
MISSING_KEYPOINT = "0 0 0"


def format_number(value: float) -> str:
    """Shortest positional form: ``1.0`` -> ``1``, ``1e-05`` -> ``0.00001``."""
    return np.format_float_positional(float(value), trim="-")


def label_file_name(image_path: str) -> str:
    """``/data/img_01.jpg`` -> ``img_01.txt``"""
    return Path(image_path).with_suffix(".txt").name


def keypoint_order(project: Project) -> List[str]:
    """Ids of every keypoint of every class, in definition order."""
    if project.model_type is not ModelType.POSE:
        return []
    return [kp.id for cls in project.classes for kp in cls.keypoints]


def format_annotation(project: Project, annotation, keypoint_ids=None) -> Optional[str]:
    """
    Label line for one annotation.

    Returns None when the annotation's class no longer exists. Keypoints
    that are not defined anymore are dropped; defined keypoints the
    annotation lacks are written as ``0 0 0``.
    """
    class_idx = project.class_index(annotation.class_id)
    if class_idx is None:
        logger.debug("Skipping annotation of unknown class %s", annotation.class_id)
        return None

    box = annotation.bbox
    cx, cy = box.center
    fields = [str(class_idx)]
    fields += [format_number(value) for value in (cx, cy, box.width, box.height)]

    if project.model_type is ModelType.POSE:
        if keypoint_ids is None:
            keypoint_ids = keypoint_order(project)
        placed = {kp.id: kp for kp in annotation.keypoints}
        for kp_id in keypoint_ids:
            kp = placed.get(kp_id)
            if kp is not None and kp.visible == Visibility.LABELED_VISIBLE:
                fields.append(
                    f"{format_number(kp.x)} {format_number(kp.y)} {int(kp.visible)}"
                )
            else:
                fields.append(MISSING_KEYPOINT)
    elif project.model_type is not ModelType.DETECTION:
        raise AssertionError(f"Unhandled model type {project.model_type}")

    return " ".join(fields)


def label_lines(project: Project, image_path: str) -> List[str]:
    keypoint_ids = keypoint_order(project)
    lines = []
    for annotation in project.annotations_for(image_path):
        line = format_annotation(project, annotation, keypoint_ids)
        if line is not None:
            lines.append(line)
    return lines


def export_yolo_labels(project: Project, output_dir: Optional[Path] = None) -> List[Path]:
    """
    Write label files for every image with at least one annotation.

    Args:
        project: Project snapshot to export
        output_dir: Target folder, defaults to the project image folder

    Returns:
        Paths of the written files, ``classes.txt`` last

    Raises:
        ExportError: If a file cannot be written. Files already written
            are left in place; the project itself is never modified.
    """
    output_dir = Path(output_dir or project.image_dir)
    written = []

    labelled = [path for path in project.image_paths if project.annotations_for(path)]
    try:
        output_dir.mkdir(parents=True, exist_ok=True)
        for image_path in try_tqdm(labelled, desc=_("Writing labels")):
            target = output_dir / label_file_name(image_path)
            target.write_text("\n".join(label_lines(project, image_path)))
            written.append(target)

        classes_file = output_dir / CLASSES_FILE
        classes_file.write_text("\n".join(cls.name.strip() for cls in project.classes))
        written.append(classes_file)
    except OSError as e:
        logger.error("Export of project %s failed: %s", project.id, e)
        raise ExportError(
            _("Could not write labels to {folder}: {error}").format(
                folder=output_dir, error=e
            )
        ) from e

    logger.info(
        "Exported %d label files for project %s to %s",
        len(written) - 1,
        project.name,
        output_dir,
    )
    return written
