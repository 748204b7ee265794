"""Grovesmith web application package.

The FastAPI application is imported on first attribute access so that the
core package can be used without building the app or its tables.
"""
from __future__ import annotations

from importlib import import_module
from types import ModuleType
from typing import Any, List, Optional

_IMPL_MODULE: Optional[ModuleType] = None

__all__: List[str] = []


def _load_impl() -> ModuleType:
    global _IMPL_MODULE
    if _IMPL_MODULE is not None:
        return _IMPL_MODULE
    module = import_module(".application", __name__)
    _IMPL_MODULE = module
    __all__.extend(name for name in getattr(module, "__all__", ()) if name not in __all__)
    return module


def __getattr__(name: str) -> Any:
    if name.startswith("__"):
        raise AttributeError(name)
    return getattr(_load_impl(), name)


def __dir__() -> List[str]:
    return sorted(set(globals()) | set(dir(_load_impl())))
