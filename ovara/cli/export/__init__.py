import logging
from gettext import gettext as _
from pathlib import Path

from ovara.cli._common import add_project_argument, add_state_argument, resolve_project

logger = logging.getLogger(__name__)

COMMAND_DESCRIPTION = _("Export annotations as YOLO label files")


def command(subparser):
    add_state_argument(subparser)
    add_project_argument(subparser)
    subparser.add_argument(
        "-o",
        "--output",
        dest="output",
        type=Path,
        default=None,
        help=_("Where to write the label files (default: the image folder)"),
    )

    def handle(args):
        from ovara.io import export_yolo_labels, load_store

        store = load_store(args.state, colormap=args.cfg.store.colormap)
        project = resolve_project(store, args.project)
        written = export_yolo_labels(project, args.output)
        print(_("Wrote {count} files").format(count=len(written)))

    return handle
