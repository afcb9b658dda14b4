from gettext import gettext as _

from ovara.cli._common import add_state_argument, resolve_project

COMMAND_DESCRIPTION = _("Show the projects in a state file")


def command(subparser):
    add_state_argument(subparser)
    subparser.add_argument(
        "project", type=str, nargs="?", help=_("Only show this project")
    )

    def handle(args):
        from ovara.io import load_store

        store = load_store(args.state, colormap=args.cfg.store.colormap)
        projects = store.projects
        if args.project:
            projects = [resolve_project(store, args.project)]

        for project in projects:
            annotated = sum(1 for path in project.image_paths if project.annotations_for(path))
            total = sum(len(anns) for anns in project.annotations.values())
            print(f"{project.id}  {project.name}  ({project.model_type.value})")
            print("  " + _("images: {annotated}/{count} annotated").format(
                annotated=annotated, count=len(project.image_paths)
            ))
            print("  " + _("annotations: {total}").format(total=total))
            print("  " + _("classes: {names}").format(
                names=", ".join(cls.name for cls in project.classes) or "-"
            ))
            print("  " + _("updated: {when}").format(when=project.updated_at or project.created_at))

    return handle
