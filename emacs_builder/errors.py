"""
errors.py

Responsibility: the common base for every failure that aborts a build run.

Each module defines its own subclasses next to the code that raises them; the
CLI only needs to know about `BuilderError`.
"""

from __future__ import annotations


class BuilderError(RuntimeError):
    pass
