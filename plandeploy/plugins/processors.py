"""Processors - push a plan's entities to endpoints.

Provides:
- MemoryProcessor ("memory"): gathers all entities in memory and pushes them
  to each endpoint in a single service call
- BatchProcessor ("batch"): same, but pushes in fixed-size chunks

Both run pre/post-process operations by calling each operation's callback
with (entity, plan_name) for every entity in the plan.
"""

import logging
from typing import Any, Mapping, Optional, TYPE_CHECKING

from plandeploy.errors import ConfigError
from plandeploy.plugins.base import Aggregator, Service, processor_plugins
from plandeploy.schemas import Endpoint, Entity

if TYPE_CHECKING:
    from plandeploy.operations import OperationInfo

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50


class MemoryProcessor:
    """Processor that materializes the entity list once and reuses it."""

    def __init__(self, aggregator: Optional[Aggregator], config: dict[str, Any]):
        self.aggregator = aggregator
        self.config = config
        self._entities: Optional[list[Entity]] = None
        self._services: dict[str, Service] = {}

    @property
    def debug(self) -> bool:
        return bool(self.config.get("debug"))

    @property
    def plan_name(self) -> str:
        if self.aggregator is None:
            return ""
        return self.aggregator.plan.name

    def entities(self) -> list[Entity]:
        """All entities of the plan, gathered on first use."""
        if self._entities is None:
            if self.aggregator is None:
                self._entities = []
            else:
                self._entities = list(self.aggregator.get_iterator())
            if self.debug:
                logger.info(f"Plan '{self.plan_name}': gathered {len(self._entities)} entities")
        return self._entities

    def _service(self, endpoint: Endpoint) -> Service:
        if endpoint.name not in self._services:
            self._services[endpoint.name] = endpoint.create_service()
        return self._services[endpoint.name]

    def _run_operations(self, operations: Mapping[str, "OperationInfo"]) -> None:
        for op in operations.values():
            if self.debug:
                logger.info(f"Plan '{self.plan_name}': running {op.hook} operation {op.name}")
            for entity in self.entities():
                op.callback(entity, self.plan_name)

    def pre_process(self, operations: Mapping[str, "OperationInfo"]) -> None:
        self._run_operations(operations)

    def deploy(self, deployment_id: str, endpoint: Endpoint, lock_name: str) -> None:
        entities = self.entities()
        logger.info(
            f"Deploying {len(entities)} entities to {endpoint.name} "
            f"(deployment={deployment_id}, lock={lock_name})"
        )
        self._service(endpoint).deploy(deployment_id, entities)

    def publish(self, deployment_id: str, endpoint: Endpoint, lock_name: str) -> None:
        logger.info(f"Publishing deployment {deployment_id} on {endpoint.name}")
        self._service(endpoint).publish(deployment_id, self.entities())

    def post_process(self, operations: Mapping[str, "OperationInfo"]) -> None:
        self._run_operations(operations)


class BatchProcessor(MemoryProcessor):
    """Processor that pushes entities in chunks of `batch_size`."""

    def __init__(self, aggregator: Optional[Aggregator], config: dict[str, Any]):
        super().__init__(aggregator, config)
        try:
            self.batch_size = int(config.get("batch_size", DEFAULT_BATCH_SIZE))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"batch_size must be an integer: {e}") from e
        if self.batch_size < 1:
            raise ConfigError(f"batch_size must be at least 1, got {self.batch_size}")

    def deploy(self, deployment_id: str, endpoint: Endpoint, lock_name: str) -> None:
        entities = self.entities()
        service = self._service(endpoint)
        for start in range(0, len(entities), self.batch_size):
            batch = entities[start:start + self.batch_size]
            logger.info(
                f"Deploying entities {start + 1}-{start + len(batch)} of {len(entities)} "
                f"to {endpoint.name} (deployment={deployment_id}, lock={lock_name})"
            )
            service.deploy(deployment_id, batch)


processor_plugins.register("memory", MemoryProcessor)
processor_plugins.register("batch", BatchProcessor)
