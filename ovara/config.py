"""
Default configuration.

Values can be overridden from the environment, see
:func:`ovara.utils.env.load_cfg_from_env`.
"""

import os

from easydict import EasyDict as edict

from .utils.env import load_cfg_from_env


def default_config() -> edict:
    return edict(
        session=dict(
            # Boxes smaller than this (in screen pixels, per side) are discarded
            min_box_size=5,
            zoom_aspect_lock=True,
            click_mode="drag",
            interaction_mode="create",
            image_fit_mode="fit",
        ),
        store=dict(
            colormap="tab10",
        ),
        render=dict(
            box_thickness=2,
            font_scale=0.45,
            dash_length=4,
        ),
        images=dict(
            extensions=[".jpg", ".jpeg", ".png", ".bmp", ".tif", ".tiff", ".webp"],
        ),
    )


def get_config(env=None) -> edict:
    """Return the defaults with ``OVARA_*`` environment overrides applied."""
    if env is None:
        env = os.environ
    return load_cfg_from_env(default_config(), env)
