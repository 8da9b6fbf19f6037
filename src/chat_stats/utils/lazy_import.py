from collections.abc import Callable
from functools import cache
from importlib import import_module
from typing import Any


def lazy_import(
    module_name: str,
    name: str | None = None,
) -> Callable[[], Any]:
    """Defer importing a driver until the first connection needs it.

    Keeps Motor and redis off the import path of code that only builds
    pipelines or parses parameters. The loaded object is memoized.
    """

    @cache
    def _load() -> Any:
        module = import_module(module_name)
        return getattr(module, name) if name else module

    return _load
