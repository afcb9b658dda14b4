"""
Project collection persistence.

The whole collection is the unit of storage: it is written to one JSON
file, through a temporary file that replaces the target, so a failed save
never leaves a truncated file behind.
"""

import json
import logging
import os
import tempfile
from gettext import gettext as _
from pathlib import Path
from typing import Iterable, List

from ..core.annotation.state import Project, project_from_dict
from ..core.annotation.store import AnnotationStore
from ..errors import PersistenceError

logger = logging.getLogger(__name__)

FORMAT_VERSION = 1


def dump_projects(projects: Iterable[Project]) -> dict:
    return {
        "version": FORMAT_VERSION,
        "projects": [project.to_dict() for project in projects],
    }


def parse_projects(data: dict) -> List[Project]:
    version = data.get("version", FORMAT_VERSION)
    if version != FORMAT_VERSION:
        raise PersistenceError(
            _("Unsupported state file version: {version}").format(version=version)
        )
    return [project_from_dict(item) for item in data.get("projects", [])]


def save_projects(projects: Iterable[Project], path: Path):
    """
    Write every project to ``path``.

    Args:
        projects: Usually ``store.projects``
        path: JSON file, replaced atomically
    """
    path = Path(path)
    data = dump_projects(projects)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent)
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_name, str(path))
        except BaseException:
            os.unlink(tmp_name)
            raise
    except OSError as e:
        logger.error("Saving projects to %s failed: %s", path, e)
        raise PersistenceError(
            _("Could not save projects to {path}: {error}").format(path=path, error=e)
        ) from e
    logger.debug("Saved %d projects to %s", len(data["projects"]), path)


def load_projects(path: Path) -> List[Project]:
    """
    Read the project collection from ``path``.

    A missing file is an empty collection.
    """
    path = Path(path)
    if not path.exists():
        logger.debug("No state file at %s, starting empty", path)
        return []
    try:
        with path.open("r") as f:
            data = json.load(f)
        return parse_projects(data)
    except PersistenceError:
        raise
    except (OSError, ValueError, KeyError, TypeError) as e:
        logger.error("Loading projects from %s failed: %s", path, e)
        raise PersistenceError(
            _("Could not load projects from {path}: {error}").format(path=path, error=e)
        ) from e


def load_store(path: Path, **store_kwargs) -> AnnotationStore:
    """Build an :class:`AnnotationStore` from the state file at ``path``."""
    return AnnotationStore(load_projects(path), **store_kwargs)
