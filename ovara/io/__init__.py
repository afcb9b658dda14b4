"""
Collaborators at the edge of the annotation core: image files on disk,
label export and project persistence.
"""

from .export import export_yolo_labels
from .images import list_image_paths, read_image
from .persistence import load_projects, load_store, save_projects

__all__ = [
    "export_yolo_labels",
    "list_image_paths",
    "read_image",
    "load_projects",
    "load_store",
    "save_projects",
]
