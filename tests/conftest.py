import pytest

from plandeploy.deploy_log import InMemoryDeploymentLog
from plandeploy.endpoints import EndpointRegistry
from plandeploy.locks import InMemoryLockService
from plandeploy.operations import OperationRegistry
from plandeploy.plan import DeployContext, Plan
from plandeploy.plugins import aggregator_plugins, processor_plugins
from plandeploy.schemas import Entity


class RecordingAggregator:
    """Aggregator returning two fixed entities."""

    def __init__(self, plan, config):
        self.plan = plan
        self.config = config

    def get_entities(self):
        return {"node": {"1": True}, "user": {"7": {"node": {"1": True}}}}

    def get_iterator(self):
        return iter([Entity("user", "7"), Entity("node", "1", dependencies=())])


class RecordingProcessor:
    """
    Processor that records every call.

    config["fail_on"] = {"deploy": "prod"} raises RuntimeError when deploy()
    is called for the prod endpoint (same for the other methods).
    """

    def __init__(self, aggregator, config):
        self.aggregator = aggregator
        self.config = config
        self.calls = []

    def _maybe_fail(self, method, target=None):
        fail_on = self.config.get("fail_on") or {}
        if method in fail_on and fail_on[method] in (target, "*"):
            raise RuntimeError(f"{method} failed on {target}")

    def pre_process(self, operations):
        self.calls.append(("pre_process", list(operations)))
        self._maybe_fail("pre_process", "*")

    def deploy(self, deployment_id, endpoint, lock_name):
        self.calls.append(("deploy", endpoint.name, deployment_id, lock_name))
        self._maybe_fail("deploy", endpoint.name)

    def publish(self, deployment_id, endpoint, lock_name):
        self.calls.append(("publish", endpoint.name, deployment_id, lock_name))
        self._maybe_fail("publish", endpoint.name)

    def post_process(self, operations):
        self.calls.append(("post_process", list(operations)))
        self._maybe_fail("post_process", "*")

    def call_names(self):
        return [c[0] if len(c) == 2 else f"{c[0]}:{c[1]}" for c in self.calls]


class RecordingLockService(InMemoryLockService):
    """InMemoryLockService that counts acquire/release calls."""

    def __init__(self):
        super().__init__()
        self.acquired = []
        self.released = []

    def try_acquire(self, name):
        result = super().try_acquire(name)
        self.acquired.append((name, result))
        return result

    def release(self, name):
        self.released.append(name)
        super().release(name)


@pytest.fixture(autouse=True)
def recording_plugins():
    """Register the recording plugins as "static" and "recording"."""
    created = {"aggregator": [], "processor": []}

    def make_aggregator(plan, config):
        aggregator = RecordingAggregator(plan, config)
        created["aggregator"].append(aggregator)
        return aggregator

    def make_processor(aggregator, config):
        processor = RecordingProcessor(aggregator, config)
        created["processor"].append(processor)
        return processor

    aggregator_plugins.register("static", make_aggregator)
    processor_plugins.register("recording", make_processor)
    yield created
    aggregator_plugins.unregister("static")
    processor_plugins.unregister("recording")


@pytest.fixture
def endpoint_registry(tmp_path):
    return EndpointRegistry({
        "staging": {"service": "directory", "service_config": {"path": str(tmp_path / "staging")}},
        "prod": {"service": "directory", "service_config": {"path": str(tmp_path / "prod")}},
        "qa": {"service": "directory", "service_config": {"path": str(tmp_path / "qa")}},
        "retired": {"service": "directory", "enabled": False},
    })


@pytest.fixture
def lock_service():
    return RecordingLockService()


@pytest.fixture
def deploy_log():
    return InMemoryDeploymentLog()


@pytest.fixture
def operation_registry():
    return OperationRegistry()


@pytest.fixture
def context(endpoint_registry, deploy_log, lock_service, operation_registry):
    return DeployContext(
        endpoints=endpoint_registry,
        log=deploy_log,
        locks=lock_service,
        operations=operation_registry,
    )


@pytest.fixture
def make_plan():
    """Build a plan wired to the recording plugins."""

    def _make(name="site-sync", endpoints=("staging", "prod"), **kwargs):
        data = {
            "name": name,
            "aggregator_plugin": "static",
            "processor_plugin": "recording",
            "endpoints": endpoints if isinstance(endpoints, (dict, str)) else list(endpoints),
        }
        data.update(kwargs)
        return Plan.from_dict(data)

    return _make
