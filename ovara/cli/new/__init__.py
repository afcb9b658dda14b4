import logging
import uuid
from gettext import gettext as _
from pathlib import Path

from ovara.cli._common import add_state_argument

logger = logging.getLogger(__name__)

COMMAND_DESCRIPTION = _("Create a project from a folder of images")


def command(subparser):
    add_state_argument(subparser)
    subparser.add_argument("name", type=str, help=_("Project name"))
    subparser.add_argument("images", type=Path, help=_("Folder with the images"))
    subparser.add_argument(
        "-t",
        "--model-type",
        dest="model_type",
        choices=["detection", "pose"],
        default="detection",
        help=_("Kind of labels; cannot be changed later"),
    )

    def handle(args):
        from ovara.core.annotation import new_project
        from ovara.io import list_image_paths, load_store, save_projects

        store = load_store(args.state, colormap=args.cfg.store.colormap)
        image_paths = list_image_paths(args.images, args.cfg.images.extensions)
        project = new_project(
            uuid.uuid4().hex,
            args.name,
            args.model_type,
            image_dir=str(args.images),
            image_paths=image_paths,
        )
        store.add_project(project)
        save_projects(store.projects, args.state)
        logger.info(
            _("Created project {name} with {count} images").format(
                name=project.name, count=len(image_paths)
            )
        )
        print(project.id)

    return handle
