"""Image enumeration and decoding."""

import logging
from gettext import gettext as _
from pathlib import Path
from typing import Iterable, List, Optional

import cv2
import numpy as np

from ..errors import ImageLoadError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSIONS = (".jpg", ".jpeg", ".png", ".bmp", ".tif", ".tiff", ".webp")


def list_image_paths(
    directory: Path, extensions: Optional[Iterable[str]] = None
) -> List[str]:
    """
    Image files directly inside ``directory``, sorted by name.

    Args:
        directory: Folder to scan (not recursive)
        extensions: Accepted suffixes, case-insensitive

    Raises:
        ImageLoadError: If ``directory`` is not a readable folder
    """
    directory = Path(directory)
    allowed = {ext.lower() for ext in (extensions or DEFAULT_EXTENSIONS)}
    if not directory.is_dir():
        raise ImageLoadError(
            _("Image folder does not exist: {folder}").format(folder=directory)
        )
    try:
        paths = [
            str(item)
            for item in directory.iterdir()
            if item.is_file() and item.suffix.lower() in allowed
        ]
    except OSError as e:
        raise ImageLoadError(str(e)) from e
    paths.sort()
    logger.debug("Found %d images in %s", len(paths), directory)
    return paths


def read_image(path: Path) -> np.ndarray:
    """
    Decode an image file.

    Returns:
        RGB image as numpy array (H, W, 3)

    Raises:
        ImageLoadError: If the file is missing or cannot be decoded
    """
    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        logger.error("Failed to decode %s", path)
        raise ImageLoadError(_("Could not read image: {path}").format(path=path))
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
