import importlib.util
import sys
from pathlib import Path

from tqdm import tqdm


def load_module(script_path: Path, module_name="module"):
    spec = importlib.util.spec_from_file_location(module_name, str(script_path))
    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


def try_tqdm(iterable, **kwargs):
    # disable=None hides the bar when stderr is not a terminal
    kwargs.setdefault("disable", None)
    return tqdm(iterable, **kwargs)
