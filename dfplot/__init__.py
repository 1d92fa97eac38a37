"""dfplot public API proxy.

The submodules are loaded explicitly and the symbols listed in their
``__all__`` are forwarded here, so ``import dfplot as dp; dp.e2e_plot(...)``
works without star-imports.
"""

from __future__ import annotations

from typing import Dict

from . import group as _group
from . import io as _io
from . import pp as _pp
from . import scaler as _scaler
from . import utils as _utils

__all__ = [  # pyright: ignore[reportUnsupportedDunderAll]
    *getattr(_utils, "__all__", []),
    *getattr(_io, "__all__", []),
    *getattr(_group, "__all__", []),
    *getattr(_scaler, "__all__", []),
    *getattr(_pp, "__all__", []),
]


def _export(module: object, namespace: Dict[str, object]) -> None:
    """Export all symbols from a module's __all__ into the given namespace.

    Args:
        module: Module object to export from.
        namespace: Dictionary (typically globals()) to populate with exported symbols.
    """
    for name in getattr(module, "__all__", []):
        namespace[name] = getattr(module, name)


_export(_utils, globals())
_export(_io, globals())
_export(_group, globals())
_export(_scaler, globals())
_export(_pp, globals())
