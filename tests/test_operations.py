"""Tests for the operation registry."""

from plandeploy.operations import POSTPROCESS, PREPROCESS, OperationInfo, OperationRegistry, operations


def _noop(entity, plan_name):
    pass


def test_register_and_get_info():
    registry = OperationRegistry()

    registry.register(PREPROCESS, "stamp", _noop, description="Stamp revision")

    info = registry.get_info(PREPROCESS)
    assert list(info) == ["stamp"]
    assert info["stamp"] == OperationInfo(name="stamp", hook="preprocess", callback=_noop, description="Stamp revision")


def test_hooks_are_separate():
    registry = OperationRegistry()
    registry.register(PREPROCESS, "stamp", _noop)

    assert registry.get_info(POSTPROCESS) == {}


def test_registration_order_kept():
    registry = OperationRegistry()
    for name in ("c", "a", "b"):
        registry.register(POSTPROCESS, name, _noop)

    assert list(registry.get_info(POSTPROCESS)) == ["c", "a", "b"]


def test_reregister_replaces():
    registry = OperationRegistry()
    registry.register(PREPROCESS, "stamp", _noop)

    def other(entity, plan_name):
        pass

    registry.register(PREPROCESS, "stamp", other)

    assert registry.get_info(PREPROCESS)["stamp"].callback is other


def test_get_info_returns_copy():
    registry = OperationRegistry()
    registry.register(PREPROCESS, "stamp", _noop)

    registry.get_info(PREPROCESS).clear()

    assert "stamp" in registry.get_info(PREPROCESS)


def test_unregister_and_clear():
    registry = OperationRegistry()
    registry.register(PREPROCESS, "stamp", _noop)
    registry.register(POSTPROCESS, "notify", _noop)

    registry.unregister(PREPROCESS, "stamp")
    registry.unregister(PREPROCESS, "missing")
    assert registry.get_info(PREPROCESS) == {}

    registry.clear()
    assert registry.get_info(POSTPROCESS) == {}


def test_global_registry():
    assert isinstance(operations, OperationRegistry)
