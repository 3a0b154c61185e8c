"""Shared (non-domain) exceptions."""

from __future__ import annotations

from typing import Callable, TypeVar

T = TypeVar("T")


class ToolError(Exception):
    """A collaborator lookup (restaurants, geocoding, storage, routing) failed."""

    def __init__(self, collaborator: str, message: str):
        self.collaborator = collaborator
        super().__init__(f"{collaborator} lookup failed: {message}")


def guarded_call(collaborator: str, fn: Callable[[], T]) -> T:
    """Run an injected collaborator; anything it raises surfaces as ``ToolError``."""
    try:
        return fn()
    except ToolError:
        raise
    except Exception as exc:
        raise ToolError(collaborator, f"{type(exc).__name__}: {exc}") from exc
