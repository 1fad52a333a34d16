"""Base protocols and registries for plandeploy plugins.

This module defines the core abstractions:
- Aggregator: Protocol for strategies that decide which entities belong to a plan
- Processor: Protocol for strategies that push and publish entities to endpoints
- Service: Protocol for the transport that talks to a single endpoint
- PluginRegistry: Dispatch mechanism for plugin identifier -> factory

Plugins are constructed from a stored identifier plus an opaque config map.
Every plugin module registers its factories on the global registries below
when it is imported.
"""

from typing import Any, Callable, Iterator, Mapping, Protocol, runtime_checkable, TYPE_CHECKING

from plandeploy.errors import UnknownPluginError
from plandeploy.schemas import Endpoint, Entity

if TYPE_CHECKING:
    from plandeploy.operations import OperationInfo
    from plandeploy.plan import Plan


# Nested "why was this pulled in" mapping returned by Aggregator.get_entities():
# {entity_type: {entity_id: True | {dep_type: {dep_id: ...}}}}
EntityTree = dict[str, dict[str, Any]]


@runtime_checkable
class Aggregator(Protocol):
    """Protocol for entity aggregators.

    Constructed with (plan, config). The plan reference lets an aggregator
    read the plan name and debug flag.
    """

    plan: "Plan"
    config: dict[str, Any]

    def get_entities(self) -> EntityTree:
        """Return the nested entity mapping for the plan."""
        ...

    def get_iterator(self) -> Iterator[Entity]:
        """Return a fresh iterator over the plan's entities."""
        ...


@runtime_checkable
class Processor(Protocol):
    """Protocol for deployment processors.

    Constructed with (aggregator, config). Processors own the actual transfer;
    whether a deploy or publish call finishes synchronously is up to them.
    """

    aggregator: Aggregator
    config: dict[str, Any]

    def pre_process(self, operations: Mapping[str, "OperationInfo"]) -> None:
        ...

    def deploy(self, deployment_id: str, endpoint: Endpoint, lock_name: str) -> None:
        ...

    def publish(self, deployment_id: str, endpoint: Endpoint, lock_name: str) -> None:
        ...

    def post_process(self, operations: Mapping[str, "OperationInfo"]) -> None:
        ...


@runtime_checkable
class Service(Protocol):
    """Protocol for endpoint transport services.

    Constructed with (endpoint, config).
    """

    def deploy(self, deployment_id: str, entities: list[Entity]) -> None:
        """Transfer entities to the endpoint without making them live."""
        ...

    def publish(self, deployment_id: str, entities: list[Entity]) -> None:
        """Make previously transferred entities live on the endpoint."""
        ...


class PluginRegistry:
    """Registry mapping plugin identifiers to factories."""

    def __init__(self, kind: str) -> None:
        self.kind = kind
        self._factories: dict[str, Callable[..., Any]] = {}

    def register(self, plugin_id: str, factory: Callable[..., Any]) -> None:
        """Register a factory (usually a class) for a plugin identifier.

        Args:
            plugin_id: Identifier stored in plan/endpoint definitions
            factory: Callable building the plugin from its constructor args
        """
        self._factories[plugin_id] = factory

    def unregister(self, plugin_id: str) -> None:
        self._factories.pop(plugin_id, None)

    def get(self, plugin_id: str) -> Callable[..., Any]:
        """Get the factory for a plugin identifier.

        Raises:
            UnknownPluginError: If plugin_id is not registered
        """
        if plugin_id not in self._factories:
            raise UnknownPluginError(
                f"Unknown {self.kind} plugin: {plugin_id}. Registered: {self.list_ids()}"
            )
        return self._factories[plugin_id]

    def has(self, plugin_id: str) -> bool:
        return plugin_id in self._factories

    def create(self, plugin_id: str, *args: Any) -> Any:
        """Build a plugin instance."""
        return self.get(plugin_id)(*args)

    def list_ids(self) -> list[str]:
        """List registered plugin identifiers."""
        return list(self._factories.keys())


# Global registry instances
aggregator_plugins = PluginRegistry("aggregator")
processor_plugins = PluginRegistry("processor")
service_plugins = PluginRegistry("service")
