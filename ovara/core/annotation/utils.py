"""
Pure utility functions for annotation logic.

These functions have no side effects and can be tested in isolation.
"""

import random
from typing import Iterable, List, Optional, Sequence, Tuple


def make_palette(colormap: str = "tab10", size: Optional[int] = None) -> List[str]:
    """
    Build a list of hex colors from a matplotlib colormap.

    Args:
        colormap: Matplotlib colormap name
        size: Number of colors. Defaults to the colormap size for
            qualitative maps and 10 for continuous ones.

    Returns:
        Hex strings like ``"#1f77b4"``
    """
    import matplotlib.pyplot as plt
    from matplotlib.colors import to_hex

    cmap = plt.get_cmap(colormap)
    if size is None:
        size = cmap.N if cmap.N <= 20 else 10
    return [to_hex(cmap(idx / size)) for idx in range(size)]


def pick_color(
    palette: Sequence[str],
    used: Iterable[str],
    rng: Optional[random.Random] = None,
) -> str:
    """
    First palette color that is not in ``used``.

    Falls back to a uniformly random palette entry once every color is
    taken.
    """
    used = set(used)
    for color in palette:
        if color not in used:
            return color
    return (rng or random).choice(palette)


def hex_to_rgb(color: str) -> Tuple[int, int, int]:
    """Convert a matplotlib color spec (``"#ff0000"``, ``"red"``) to 0-255 RGB."""
    from matplotlib.colors import to_rgb

    r, g, b = to_rgb(color)
    return int(round(r * 255)), int(round(g * 255)), int(round(b * 255))


def rect_contains(
    rect: Tuple[float, float, float, float], x: float, y: float
) -> bool:
    """Inclusive point-in-rectangle test for ``(x, y, width, height)``."""
    rx, ry, rw, rh = rect
    return rx <= x <= rx + rw and ry <= y <= ry + rh


def aspect_locked_end(
    start: Tuple[float, float], end: Tuple[float, float], aspect: float
) -> Tuple[float, float]:
    """
    Move ``end`` so the rectangle from ``start`` has width/height == ``aspect``.

    The shorter side is extended to match the longer one, keeping the drag
    direction on both axes.
    """
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    if abs(dx) >= abs(dy) * aspect:
        dy = _with_sign(abs(dx) / aspect, dy)
    else:
        dx = _with_sign(abs(dy) * aspect, dx)
    return start[0] + dx, start[1] + dy


def _with_sign(magnitude: float, reference: float) -> float:
    return -magnitude if reference < 0 else magnitude
