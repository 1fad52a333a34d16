"""Tests for plandeploy.deploy_log module.

Tests ULID generation and both deployment log backends.
"""

import json

import pytest

from plandeploy.deploy_log import (
    FileDeploymentLog,
    InMemoryDeploymentLog,
    UnknownDeploymentError,
    generate_ulid,
)
from plandeploy.schemas import DeployStatus


class TestGenerateUlid:

    def test_length_and_alphabet(self):
        ulid = generate_ulid()

        assert len(ulid) == 26
        assert set(ulid) <= set("0123456789ABCDEFGHJKMNPQRSTVWXYZ")

    def test_sorts_by_timestamp(self):
        earlier = generate_ulid(timestamp_ms=1_700_000_000_000)
        later = generate_ulid(timestamp_ms=1_700_000_000_001)

        assert earlier[:10] < later[:10]
        assert earlier < later

    def test_timestamp_prefix(self):
        assert generate_ulid(timestamp_ms=0)[:10] == "0000000000"
        assert generate_ulid(timestamp_ms=31)[:10] == "000000000Z"

    def test_unique(self):
        assert len({generate_ulid() for _ in range(100)}) == 100


@pytest.fixture(params=["memory", "file"])
def log(request, tmp_path):
    if request.param == "memory":
        return InMemoryDeploymentLog()
    return FileDeploymentLog(tmp_path / "deployments")


class TestDeploymentLog:

    def test_start_creates_record(self, log):
        deployment_id = log.start("site-sync")

        record = log.get(deployment_id)
        assert record.deployment_id == deployment_id
        assert record.plan_name == "site-sync"
        assert record.statuses() == [DeployStatus.STARTED]
        assert record.started_at is not None

    def test_record_appends(self, log):
        deployment_id = log.start("site-sync")

        log.record(deployment_id, DeployStatus.PROCESSING)
        log.record(deployment_id, DeployStatus.DEPLOYED)
        log.record(deployment_id, DeployStatus.PUBLISHED)

        record = log.get(deployment_id)
        assert record.statuses() == [
            DeployStatus.STARTED,
            DeployStatus.PROCESSING,
            DeployStatus.DEPLOYED,
            DeployStatus.PUBLISHED,
        ]
        assert record.status == DeployStatus.PUBLISHED

    def test_error_stored_with_class_name(self, log):
        deployment_id = log.start("site-sync")

        log.record(deployment_id, DeployStatus.FAILED, error=ValueError("boom"))

        entry = log.get(deployment_id).entries[-1]
        assert entry.status == DeployStatus.FAILED
        assert entry.error == "ValueError: boom"

    def test_unknown_deployment(self, log):
        with pytest.raises(UnknownDeploymentError):
            log.record("01NOPE", DeployStatus.FAILED)

        assert log.get("01NOPE") is None

    def test_list_filters_by_plan(self, log):
        first = log.start("site-sync")
        log.start("newsletter")
        second = log.start("site-sync")

        ids = [r.deployment_id for r in log.list("site-sync")]

        assert set(ids) == {first, second}
        assert len(log.list()) == 3

    def test_status_accepts_plain_string(self, log):
        deployment_id = log.start("site-sync")

        log.record(deployment_id, "processing")

        assert log.get(deployment_id).status == DeployStatus.PROCESSING


class TestFileDeploymentLog:

    def test_one_json_document_per_deployment(self, tmp_path):
        log = FileDeploymentLog(tmp_path)
        deployment_id = log.start("site-sync")
        log.record(deployment_id, DeployStatus.FAILED, error=RuntimeError("down"))

        data = json.loads((tmp_path / f"{deployment_id}.json").read_text())

        assert data["plan_name"] == "site-sync"
        assert [e["status"] for e in data["entries"]] == ["started", "failed"]
        assert data["entries"][-1]["error"] == "RuntimeError: down"

    def test_visible_to_other_instances(self, tmp_path):
        deployment_id = FileDeploymentLog(tmp_path).start("site-sync")

        assert FileDeploymentLog(tmp_path).get(deployment_id).plan_name == "site-sync"

    def test_list_sorted_by_id(self, tmp_path):
        log = FileDeploymentLog(tmp_path)
        ids = [log.start("site-sync") for _ in range(3)]

        assert [r.deployment_id for r in log.list()] == sorted(ids)


def test_in_memory_clear():
    log = InMemoryDeploymentLog()
    log.start("site-sync")

    log.clear()

    assert log.list() == []
