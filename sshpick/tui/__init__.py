"""
Terminal UI package for sshpick.

This module exposes the public entry point for running the Textual host
selector. The implementation lives in ``sshpick.tui.app``; it is imported
lazily so that running ``python -m sshpick.tui.app`` does not emit the
``RuntimeWarning`` that occurs when the module is imported twice before being
executed.
"""

from __future__ import annotations

from typing import Any

__all__ = ["main"]


def main(*args: Any, **kwargs: Any) -> Any:
    """Entry point used by the ``sshpick`` console script."""
    from .app import main as _app_main

    return _app_main(*args, **kwargs)
