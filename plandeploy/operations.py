"""
Operation registry - extension points around a deployment.

Other modules register handlers for the "preprocess" and "postprocess"
hooks. Plan.deploy() fetches them from the registry it is given and hands
them to the processor unmodified; the processor decides how to run them.

Usage:
    from plandeploy.operations import operations

    def stamp_revision(entity, plan_name):
        ...

    operations.register("preprocess", "stamp_revision", stamp_revision)
"""

from dataclasses import dataclass
from typing import Any, Callable

PREPROCESS = "preprocess"
POSTPROCESS = "postprocess"

# callback(entity, plan_name)
OperationCallback = Callable[..., Any]


@dataclass(frozen=True)
class OperationInfo:
    """A registered hook handler."""
    name: str
    hook: str
    callback: OperationCallback
    description: str = ""


class OperationRegistry:
    """Registry of hook handlers keyed by hook name, then operation name."""

    def __init__(self) -> None:
        self._hooks: dict[str, dict[str, OperationInfo]] = {}

    def register(
        self,
        hook: str,
        name: str,
        callback: OperationCallback,
        description: str = "",
    ) -> None:
        """
        Register a handler for a hook.

        Registering the same name twice on one hook replaces the handler.

        Args:
            hook: Extension point ("preprocess" or "postprocess")
            name: Unique operation name within the hook
            callback: Handler called by processors
            description: Human-readable description
        """
        self._hooks.setdefault(hook, {})[name] = OperationInfo(
            name=name, hook=hook, callback=callback, description=description,
        )

    def unregister(self, hook: str, name: str) -> None:
        self._hooks.get(hook, {}).pop(name, None)

    def get_info(self, hook: str) -> dict[str, OperationInfo]:
        """Return a copy of the handlers for a hook, in registration order."""
        return dict(self._hooks.get(hook, {}))

    def clear(self) -> None:
        """Remove all handlers (for testing)."""
        self._hooks.clear()


# Global registry instance
operations = OperationRegistry()
