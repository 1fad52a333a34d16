"""
Plan - a named deployment configuration and the deploy protocol.

A Plan says what to deploy (aggregator plugin + config), how to push it
(processor plugin + config) and where to send it (endpoint names).

Deploy protocol (Plan.deploy):
1. Load plugins if needed; refuse fetch-only plans and plans without endpoints
2. Take the lock "deploy_plan_{name}" (non-blocking)
3. Log STARTED, run preprocess operations, log PROCESSING
4. Deploy pass: resolve each endpoint and push to it
5. Publish pass: publish on every endpoint resolved in step 4
6. Run postprocess operations, release the lock

No endpoint is published until every endpoint has been deployed to. Any
error after the lock is taken releases the lock, is logged as FAILED and is
re-raised unchanged.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Iterator, Optional

from plandeploy.deploy_log import DeploymentLog
from plandeploy.endpoints import EndpointResolver
from plandeploy.errors import InvalidEndpointError, MalformedPlanError, PlanAlreadyRunningError, PlanError
from plandeploy.locks import LockService
from plandeploy.operations import POSTPROCESS, PREPROCESS, OperationRegistry
from plandeploy.plugins import Aggregator, EntityTree, Processor, aggregator_plugins, processor_plugins
from plandeploy.schemas import DeployStatus, Endpoint, Entity

logger = logging.getLogger(__name__)

LOCK_PREFIX = "deploy_plan_"

# Fields that may be stored as JSON strings and are decoded by Plan.load()
SERIALIZED_FIELDS = ("aggregator_config", "processor_config", "endpoints")


@dataclass
class DeployContext:
    """
    Collaborators used by Plan.deploy().

    Attributes:
        endpoints: Resolves endpoint names to Endpoints
        log: Deployment log receiving status transitions
        locks: Lock service providing the per-plan lock
        operations: Registry of preprocess/postprocess operations
    """
    endpoints: EndpointResolver
    log: DeploymentLog
    locks: LockService
    operations: OperationRegistry = field(default_factory=OperationRegistry)


@dataclass
class Plan:
    """
    A deployment plan.

    Attributes:
        name: Unique plan name, used for locking and logging
        title: Human-readable title
        description: Free-form description
        debug: Propagated to plugin configs as "debug"
        aggregator_plugin: Aggregator plugin identifier
        aggregator_config: Options for the aggregator
        processor_plugin: Processor plugin identifier (empty = fetch-only)
        processor_config: Options for the processor
        endpoints: Endpoint names, in deploy order
        aggregator: Live aggregator, set by load()
        processor: Live processor, set by load()
    """
    name: str
    title: str = ""
    description: str = ""
    debug: bool = False
    aggregator_plugin: str = ""
    aggregator_config: Any = field(default_factory=dict)
    processor_plugin: str = ""
    processor_config: Any = field(default_factory=dict)
    endpoints: Any = field(default_factory=list)
    aggregator: Optional[Aggregator] = field(default=None, repr=False, compare=False)
    processor: Optional[Processor] = field(default=None, repr=False, compare=False)

    @property
    def lock_name(self) -> str:
        return LOCK_PREFIX + self.name

    @property
    def fetch_only(self) -> bool:
        """True if the plan can gather entities but never push them."""
        return not self.processor_plugin

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self) -> None:
        """
        Decode serialized fields and build the aggregator and processor.

        Safe to call repeatedly: decoded fields and existing plugin instances
        are left alone.
        """
        for name in SERIALIZED_FIELDS:
            value = getattr(self, name)
            if isinstance(value, (str, bytes)):
                setattr(self, name, json.loads(value) if value else None)
        self.endpoints = _normalize_endpoints(self.endpoints)
        if self.aggregator_config is None:
            self.aggregator_config = {}
        if self.processor_config is None:
            self.processor_config = {}

        if self.aggregator_plugin and self.aggregator is None:
            self.aggregator = aggregator_plugins.create(
                self.aggregator_plugin,
                self,
                {**self.aggregator_config, "debug": self.debug},
            )
        if self.processor_plugin and self.processor is None:
            self.processor = processor_plugins.create(
                self.processor_plugin,
                self.aggregator,
                {**self.processor_config, "debug": self.debug},
            )

    # -------------------------------------------------------------------------
    # Entities
    # -------------------------------------------------------------------------

    def _require_aggregator(self) -> Aggregator:
        if self.aggregator is None:
            self.load()
        if self.aggregator is None:
            raise MalformedPlanError(self.name, f"Plan '{self.name}' has no aggregator")
        return self.aggregator

    def get_entities(self) -> EntityTree:
        """Entities in the plan, with the dependency chain that pulled each in."""
        return self._require_aggregator().get_entities()

    def get_iterator(self) -> Iterator[Entity]:
        """A fresh iterator over the plan's entities."""
        return self._require_aggregator().get_iterator()

    # -------------------------------------------------------------------------
    # Deploy
    # -------------------------------------------------------------------------

    def deploy(self, context: DeployContext) -> str:
        """
        Deploy the plan to all of its endpoints.

        Args:
            context: Collaborators for this deployment

        Returns:
            The deployment id

        Raises:
            MalformedPlanError: Fetch-only plan or no endpoints (nothing locked or logged)
            PlanAlreadyRunningError: The plan's lock is held (nothing logged)
            PlanError: Invalid endpoint or no endpoint selected
            Exception: Any error from plugins or collaborators, unchanged
        """
        if self.processor is None:
            self.load()
        if self.processor is None or self.fetch_only:
            raise MalformedPlanError(
                self.name, f"Plan '{self.name}' is fetch-only and can't be deployed"
            )
        if not self.endpoints:
            raise MalformedPlanError(self.name, f"Plan '{self.name}' has no endpoints")

        lock_name = self.lock_name
        if not context.locks.try_acquire(lock_name):
            raise PlanAlreadyRunningError(self.name, lock_name)

        deployment_id: Optional[str] = None
        try:
            deployment_id = context.log.start(self.name, DeployStatus.STARTED)
            logger.info(f"Deploying plan {self.name} (deployment={deployment_id})")

            self.processor.pre_process(context.operations.get_info(PREPROCESS))
            context.log.record(deployment_id, DeployStatus.PROCESSING)

            endpoints = self._deploy_pass(context, deployment_id, lock_name)

            for endpoint in endpoints:
                self.processor.publish(deployment_id, endpoint, lock_name)

            self.processor.post_process(context.operations.get_info(POSTPROCESS))
        except Exception as e:
            context.locks.release(lock_name)
            if deployment_id is not None:
                try:
                    context.log.record(deployment_id, DeployStatus.FAILED, error=e)
                except Exception:
                    logger.exception(
                        f"Could not record failure of plan {self.name} (deployment={deployment_id})"
                    )
            logger.error(f"Deployment of plan {self.name} failed: {e}")
            raise

        context.locks.release(lock_name)
        logger.info(f"Plan {self.name} deployed (deployment={deployment_id})")
        return deployment_id

    def _deploy_pass(self, context: DeployContext, deployment_id: str, lock_name: str) -> list[Endpoint]:
        """Resolve each endpoint and deploy to it, returning the resolved ones in order."""
        resolved: list[Endpoint] = []
        unselected = False

        for endpoint_name in self.endpoints:
            if not endpoint_name:
                # Present in the selection map but not checked
                unselected = True
                continue

            try:
                endpoint = context.endpoints.resolve(endpoint_name)
            except InvalidEndpointError as e:
                raise PlanError(
                    self.name,
                    f"Can't deploy plan {self.name} to endpoint {endpoint_name}: {e}",
                    endpoint_name=endpoint_name,
                ) from e
            if endpoint is None:
                raise PlanError(
                    self.name,
                    f"Can't deploy plan {self.name} to endpoint {endpoint_name}: endpoint is invalid",
                    endpoint_name=endpoint_name,
                )

            resolved.append(endpoint)
            self.processor.deploy(deployment_id, endpoint, lock_name)

        if not resolved and unselected:
            raise PlanError(self.name, f"Can't deploy plan {self.name}: no endpoint is selected")

        return resolved

    # -------------------------------------------------------------------------
    # Serialization
    # -------------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize stored fields (never the live plugins)."""
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "debug": self.debug,
            "aggregator_plugin": self.aggregator_plugin,
            "aggregator_config": self.aggregator_config,
            "processor_plugin": self.processor_plugin,
            "processor_config": self.processor_config,
            "endpoints": self.endpoints,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Plan":
        """Deserialize from a stored definition."""
        return cls(
            name=data["name"],
            title=data.get("title") or "",
            description=data.get("description") or "",
            debug=bool(data.get("debug", False)),
            aggregator_plugin=data.get("aggregator_plugin") or "",
            aggregator_config=data.get("aggregator_config", {}),
            processor_plugin=data.get("processor_plugin") or "",
            processor_config=data.get("processor_config", {}),
            endpoints=data.get("endpoints", []),
        )


def _normalize_endpoints(value: Any) -> list[Any]:
    """
    Turn stored endpoints into an ordered list of names.

    A mapping is a selection map (name -> name, or a falsy value when the
    endpoint is available but not selected); its values are kept in order.
    """
    if value is None:
        return []
    if isinstance(value, dict):
        return list(value.values())
    return list(value)
