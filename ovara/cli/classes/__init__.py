import logging
import sys
import uuid
from gettext import gettext as _

from ovara.cli._common import (
    add_project_argument,
    add_state_argument,
    resolve_class,
    resolve_project,
)

logger = logging.getLogger(__name__)

COMMAND_DESCRIPTION = _("List, add or remove label classes and keypoints")

ACTIONS = ["list", "add", "remove", "add-keypoint", "remove-keypoint"]


def command(subparser):
    add_state_argument(subparser)
    add_project_argument(subparser)
    subparser.add_argument("action", choices=ACTIONS)
    subparser.add_argument(
        "name", type=str, nargs="?", help=_("Class name (or id for removal)")
    )
    subparser.add_argument(
        "-k",
        "--keypoints",
        dest="keypoints",
        type=str,
        nargs="+",
        default=[],
        help=_("Keypoint names, in placement order (pose projects)"),
    )

    def handle(args):
        from ovara.core.annotation import (
            DetectionClass,
            KeypointDef,
            ModelType,
            PoseClass,
        )
        from ovara.io import load_store, save_projects

        store = load_store(args.state, colormap=args.cfg.store.colormap)
        project = resolve_project(store, args.project)

        if args.action == "list":
            for idx, cls in enumerate(project.classes):
                keypoints = getattr(cls, "keypoints", ())
                names = ", ".join(kp.name for kp in keypoints)
                print(f"{idx}\t{cls.id}\t{cls.name}" + (f"\t[{names}]" if names else ""))
            return

        if not args.name:
            logger.error(_("A class name is required for {action}").format(action=args.action))
            sys.exit(1)

        def keypoint_defs():
            return tuple(KeypointDef(uuid.uuid4().hex, name) for name in args.keypoints)

        if args.action == "add":
            if project.model_type is ModelType.POSE:
                new_class = PoseClass(uuid.uuid4().hex, args.name, keypoint_defs())
            else:
                new_class = DetectionClass(uuid.uuid4().hex, args.name)
            store.add_class(project.id, new_class)
        elif args.action == "remove":
            store.delete_class(project.id, resolve_class(project, args.name).id)
        elif args.action == "add-keypoint":
            cls = resolve_class(project, args.name)
            for keypoint in keypoint_defs():
                store.add_keypoint_definition(project.id, cls.id, keypoint)
        elif args.action == "remove-keypoint":
            cls = resolve_class(project, args.name)
            by_name = {kp.name: kp.id for kp in getattr(cls, "keypoints", ())}
            for name in args.keypoints:
                store.delete_keypoint_definition(
                    project.id, cls.id, by_name.get(name, name)
                )

        save_projects(store.projects, args.state)

    return handle
