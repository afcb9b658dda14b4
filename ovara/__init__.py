"""ovara: bounding box and keypoint annotation for detection and pose datasets."""

from pathlib import Path

__version__ = (Path(__file__).parent / "VERSION").read_text().strip()
