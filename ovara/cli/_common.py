import logging
import sys
from gettext import gettext as _
from pathlib import Path

logger = logging.getLogger(__name__)


def add_state_argument(subparser):
    subparser.add_argument(
        "state", type=Path, help=_("JSON file holding every project")
    )


def add_project_argument(subparser):
    subparser.add_argument("project", type=str, help=_("Project id or name"))


def resolve_project(store, key: str):
    """Find a project by id, then by name. Exits when there is no match."""
    project = store.get_project(key)
    if project is not None:
        return project
    matches = [p for p in store.projects if p.name == key]
    if len(matches) == 1:
        return matches[0]
    if matches:
        logger.error(_("Project name {name} is ambiguous, use its id").format(name=key))
    else:
        logger.error(_("Project not found: {key}").format(key=key))
    sys.exit(1)


def resolve_class(project, key: str):
    """Find a class by id, then by name. Exits when there is no match."""
    cls = project.get_class(key)
    if cls is not None:
        return cls
    for cls in project.classes:
        if cls.name == key:
            return cls
    logger.error(_("Class not found: {key}").format(key=key))
    sys.exit(1)
