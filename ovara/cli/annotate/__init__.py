# flake8: noqa E501

from gettext import gettext as _

from ovara.cli._common import add_project_argument, add_state_argument

COMMAND_DESCRIPTION = _("Interactively annotate the images of a project")


def command(subparser):
    add_state_argument(subparser)
    add_project_argument(subparser)
    subparser.add_argument(
        "-i", "--index", dest="index", type=int, default=0, help=_("First image to show")
    )
    subparser.add_argument("--width", dest="width", type=int, default=1280)
    subparser.add_argument("--height", dest="height", type=int, default=800)
    subparser.add_argument(
        "-c",
        "--class",
        dest="class_name",
        type=str,
        help=_("Class selected at start (name or id)"),
    )

    def handle(args):
        from .annotator import handle as annotator_handle

        annotator_handle(args)

    return handle
