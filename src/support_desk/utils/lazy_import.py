"""Deferred imports for optional driver dependencies."""

from collections.abc import Callable
from importlib import import_module

__all__ = [
    "lazy_import",
]


def lazy_import(
    module_name: str,
    name: str | None = None,
) -> Callable[[], object]:
    """Lazily import a module or an attribute from a module.

    The returned loader performs the import on first call, so drivers such as
    motor or redis are only required when the adapter using them connects.
    """

    def _load() -> object:
        mod = import_module(module_name)
        return getattr(mod, name) if name else mod

    return _load
