"""
Coordinate transforms between annotation, image and screen space.

Three spaces are involved:

* normalized space: ``[0, 1] x [0, 1]`` relative to the image, used for
  storage;
* image space: pixels of the whole image drawn at the current render size;
* screen space: pixels of the render area, after the viewport (zoom window)
  has been applied.

All functions here are pure and can be tested in isolation.
"""

from enum import Enum
from typing import NamedTuple, Optional, Tuple, Union


class ImageFitMode(Enum):
    """How the image is laid out inside its container."""

    FIT = "fit"
    STRETCH = "stretch"


class Size(NamedTuple):
    width: float
    height: float

    @property
    def aspect(self) -> float:
        return self.width / self.height


class Viewport(NamedTuple):
    """Visible sub-rectangle of the image."""

    x: float
    y: float
    width: float
    height: float

    def denormalize(self, render_size: Size) -> "Viewport":
        """Normalized viewport -> image space at ``render_size``."""
        return Viewport(
            denormalize(self.x, render_size.width),
            denormalize(self.y, render_size.height),
            denormalize(self.width, render_size.width),
            denormalize(self.height, render_size.height),
        )

    def normalize(self, render_size: Size) -> "Viewport":
        """Image-space viewport -> normalized space."""
        return Viewport(
            normalize(self.x, render_size.width),
            normalize(self.y, render_size.height),
            normalize(self.width, render_size.width),
            normalize(self.height, render_size.height),
        )


Point = Tuple[float, float]


def normalize(value: float, extent: float) -> float:
    """Map ``[0, extent]`` to ``[0, 1]``. ``extent`` must be positive."""
    return value / extent


def denormalize(value: float, extent: float) -> float:
    """Map ``[0, 1]`` to ``[0, extent]``."""
    return value * extent


def image_to_screen(
    x: float, y: float, render_size: Size, viewport: Optional[Viewport]
) -> Point:
    """
    Project an image-space point onto the screen.

    The visible viewport rectangle is stretched over the whole render
    area. Without a viewport this is the identity.
    """
    if viewport is None:
        return x, y
    scale_x = render_size.width / viewport.width
    scale_y = render_size.height / viewport.height
    return (x - viewport.x) * scale_x, (y - viewport.y) * scale_y


def screen_to_image(
    x: float, y: float, render_size: Size, viewport: Optional[Viewport]
) -> Point:
    """Exact inverse of :func:`image_to_screen`."""
    if viewport is None:
        return x, y
    scale_x = render_size.width / viewport.width
    scale_y = render_size.height / viewport.height
    return x / scale_x + viewport.x, y / scale_y + viewport.y


def screen_to_normalized(
    x: float, y: float, render_size: Size, viewport: Optional[Viewport]
) -> Point:
    """
    Screen pixel -> normalized image coordinate.

    Args:
        viewport: Current zoom window in normalized space, or None
    """
    image_viewport = viewport.denormalize(render_size) if viewport else None
    ix, iy = screen_to_image(x, y, render_size, image_viewport)
    return normalize(ix, render_size.width), normalize(iy, render_size.height)


def normalized_to_screen(
    x: float, y: float, render_size: Size, viewport: Optional[Viewport]
) -> Point:
    """Normalized image coordinate -> screen pixel."""
    image_viewport = viewport.denormalize(render_size) if viewport else None
    return image_to_screen(
        denormalize(x, render_size.width),
        denormalize(y, render_size.height),
        render_size,
        image_viewport,
    )


def clamp_viewport(viewport: Viewport) -> Viewport:
    """
    Fit a normalized viewport inside the image.

    A viewport larger than the image on either axis is shrunk, keeping its
    aspect ratio. It is then shifted back inside without changing its size.
    """
    scale = max(viewport.width, viewport.height, 1.0)
    width = viewport.width / scale
    height = viewport.height / scale
    x = min(max(viewport.x, 0.0), 1.0 - width)
    y = min(max(viewport.y, 0.0), 1.0 - height)
    return Viewport(x, y, width, height)


def rect_from_points(start: Point, end: Point) -> Tuple[float, float, float, float]:
    """Rectangle ``(x, y, width, height)`` spanned by two corners."""
    (x1, y1), (x2, y2) = start, end
    return min(x1, x2), min(y1, y2), abs(x2 - x1), abs(y2 - y1)


def compute_render_size(
    container: Size,
    image_size: Size,
    mode: Union[ImageFitMode, str] = ImageFitMode.FIT,
) -> Size:
    """
    Size of the displayed image inside ``container``.

    ``stretch`` fills the container. ``fit`` keeps the image aspect ratio
    and fills the constrained axis.
    """
    mode = ImageFitMode(mode)
    if mode is ImageFitMode.STRETCH:
        return Size(container.width, container.height)

    if container.aspect > image_size.aspect:
        # Container is wider than the image: height is the constraint
        height = container.height
        return Size(height * image_size.aspect, height)
    width = container.width
    return Size(width, width / image_size.aspect)
