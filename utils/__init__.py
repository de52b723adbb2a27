"""Utilities package

Auto-import all submodules by default so the running-series helpers are
available as utils.*. To opt-out a module from auto-import, set a
module-level variable `__utils_autoload__ = False` in that module.
"""

import importlib
import pkgutil
from typing import List

__all__: List[str] = []

def _autoload_submodules():
    pkg = __name__
    for modinfo in pkgutil.iter_modules(__path__):  # type: ignore[name-defined]
        name = modinfo.name
        if name.startswith("_"):
            continue
        module = importlib.import_module(f"{pkg}.{name}")
        if not getattr(module, "__utils_autoload__", True):
            continue
        # only re-export what the module declares public
        for attr in getattr(module, "__all__", []):
            globals()[attr] = getattr(module, attr)
            __all__.append(attr)

_autoload_submodules()
