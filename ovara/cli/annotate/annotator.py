import logging
from gettext import gettext as _

import cv2

from ovara.cli._common import resolve_class, resolve_project
from ovara.core.annotation import AnnotationSession, EventType
from ovara.errors import ImageLoadError
from ovara.interfaces import CV2AnnotationAdapter
from ovara.io import load_store, read_image, save_projects

logger = logging.getLogger(__name__)

WINDOW_NAME = "ovara"

HELP = _(
    "mouse: left draw/place, right delete/skip | 1-9 class | "
    "d/c drag/click | a/z create/zoom | f/s fit/stretch | "
    "n/p next/prev | Esc cancel | q quit"
)


def handle(args):
    store = load_store(args.state, colormap=args.cfg.store.colormap)
    project = resolve_project(store, args.project)
    if not project.image_paths:
        logger.error(_("Project {name} has no images").format(name=project.name))
        return

    session = AnnotationSession(store, project.id, args.cfg)
    session.set_container_size(args.width, args.height)
    if args.class_name:
        session.select_class(resolve_class(project, args.class_name).id)

    dirty = []

    def on_store_change(event):
        dirty.append(event)

    store.events.on(EventType.ANNOTATION_ADDED, on_store_change)
    store.events.on(EventType.ANNOTATION_DELETED, on_store_change)

    needs_redraw = [True]

    def request_redraw():
        needs_redraw[0] = True

    adapter = CV2AnnotationAdapter(session, request_redraw, args.cfg)

    cv2.namedWindow(WINDOW_NAME, cv2.WINDOW_AUTOSIZE)
    cv2.setMouseCallback(WINDOW_NAME, adapter.on_mouse)
    print(HELP)

    index = min(max(args.index, 0), len(project.image_paths) - 1)

    def show(idx):
        image_path = project.image_paths[idx]
        session.open_image(image_path)
        try:
            session.load_image(read_image(image_path))
        except ImageLoadError as e:
            logger.error(str(e))
            session.fail_image(image_path, e)
        cv2.setWindowTitle(
            WINDOW_NAME, f"{WINDOW_NAME} - [{idx + 1}/{len(project.image_paths)}] {image_path}"
        )
        request_redraw()

    def save():
        if dirty:
            save_projects(store.projects, args.state)
            dirty.clear()

    show(index)
    try:
        while True:
            if needs_redraw[0]:
                frame = adapter.get_bgr_frame()
                if frame is not None:
                    cv2.imshow(WINDOW_NAME, frame)
                needs_redraw[0] = False
            key = cv2.waitKey(20)
            if key < 0:
                continue
            key &= 0xFF
            if key == ord("q"):
                break
            if key in (ord("n"), ord("p")):
                save()
                step = 1 if key == ord("n") else -1
                index = (index + step) % len(project.image_paths)
                show(index)
            elif adapter.on_key(key):
                request_redraw()
    finally:
        save()
        cv2.destroyAllWindows()
