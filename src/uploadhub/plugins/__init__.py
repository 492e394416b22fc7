"""Finding and importing uploadhub plugins.

Importing a plugin module is what registers it, because each plugin class
is wrapped in `@plugin`. Built-in backends live under
`uploadhub.plugins.uploaders`; third-party ones are advertised through the
`uploadhub.plugins` entry point group.
"""

import importlib
import logging
import pkgutil

from uploadhub.plugins.utils import iter_entry_points

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "uploadhub.plugins"
_BUILTIN_PACKAGES = ("uploadhub.plugins.uploaders",)


def _import_quietly(module_path: str, origin: str) -> None:
    try:
        importlib.import_module(module_path)
    except Exception as exc:
        logger.error("Could not import %s plugin module %s: %s", origin, module_path, exc, exc_info=True)


def _builtin_modules() -> list[str]:
    modules = []
    for package_path in _BUILTIN_PACKAGES:
        package = importlib.import_module(package_path)
        modules.extend(
            f"{package_path}.{info.name}"
            for info in pkgutil.iter_modules(package.__path__)
            if not info.name.startswith("_")
        )
    return modules


def discover_all_plugins() -> None:
    """Register every built-in and installed plugin.

    A module that fails to import is logged and skipped.
    """
    for module_path in _builtin_modules():
        _import_quietly(module_path, "built-in")

    for point in iter_entry_points(ENTRY_POINT_GROUP):
        _import_quietly(point.module, f"external '{point.name}'")


__all__ = ["ENTRY_POINT_GROUP", "discover_all_plugins"]
