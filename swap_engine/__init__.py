"""
Swap quoting, routing and execution engine.

Submodules are imported lazily so that importing the package does not
configure logging or read settings as a side effect.
"""

__all__ = [
    "settings",
    "log",
]
