"""plandeploy plugins package.

Provides the pluggable strategies used by plans and endpoints:
- Aggregators: ManagedAggregator ("managed")
- Processors: MemoryProcessor ("memory"), BatchProcessor ("batch")
- Services: RestJSONService ("rest_json"), DirectoryService ("directory")

Importing this package registers the built-in plugins with the global
registries.
"""

from plandeploy.plugins.base import (
    Aggregator,
    EntityTree,
    PluginRegistry,
    Processor,
    Service,
    aggregator_plugins,
    processor_plugins,
    service_plugins,
)
from plandeploy.plugins import aggregators  # noqa: F401
from plandeploy.plugins import processors  # noqa: F401
from plandeploy.plugins import services  # noqa: F401

__all__ = [
    "Aggregator",
    "EntityTree",
    "PluginRegistry",
    "Processor",
    "Service",
    "aggregator_plugins",
    "processor_plugins",
    "service_plugins",
]
