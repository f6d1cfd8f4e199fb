from __future__ import annotations

import importlib
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vcx_agent.platform.protocols import NativeLibrary


def _resolve(spec: str):
    module_path, sep, attr = spec.partition(":")
    if not sep or not module_path or not attr:
        raise ValueError(f"Expected 'module:callable', got {spec!r}")
    try:
        mod = importlib.import_module(module_path)
    except ModuleNotFoundError as e:
        raise ImportError(
            f"Cannot import native binding module {module_path!r}. "
            "Install the wrapper for your native library or fix VCX_AGENT_NATIVE_FACTORY."
        ) from e
    try:
        return getattr(mod, attr)
    except AttributeError as e:
        raise ImportError(f"Module {module_path!r} has no attribute {attr!r}") from e


def load_native_library(spec: str | None) -> NativeLibrary:
    """
    Instantiate the native library binding lazily (no import-time side effects).

    ``spec`` names a zero-argument factory as ``package.module:callable``.
    In tests, pass a fake NativeLibrary directly instead.
    """
    if not spec:
        raise RuntimeError(
            "No native library configured. Pass --native module:factory "
            "or set VCX_AGENT_NATIVE_FACTORY."
        )
    factory = _resolve(spec)
    return factory()
