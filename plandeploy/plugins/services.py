"""Endpoint services - the transport between a processor and one endpoint.

Provides:
- RestJSONService ("rest_json"): POSTs entities as JSON to the endpoint's API
- DirectoryService ("directory"): stages entities as JSON files on disk and
  publishes them by copying the staged tree into place

Both are built from (endpoint, config) where config is the endpoint's
service_config plus its debug flag.
"""

import json
import logging
import shutil
from pathlib import Path
from typing import Any

import requests

from plandeploy.errors import ConfigError, ServiceError
from plandeploy.plugins.base import service_plugins
from plandeploy.schemas import Endpoint, Entity

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class RestJSONService:
    """
    Service that talks to a JSON HTTP API.

    Config:
        url: Base URL; requests go to {url}/deploy and {url}/publish
        token: Optional bearer token
        timeout: Request timeout in seconds (default 30)
    """

    def __init__(self, endpoint: Endpoint, config: dict[str, Any]):
        if not config.get("url"):
            raise ConfigError(f"Endpoint '{endpoint.name}': rest_json service requires 'url'")
        self.endpoint = endpoint
        self.config = config
        self.base_url = str(config["url"]).rstrip("/")
        self.token = config.get("token")
        self.timeout = config.get("timeout", DEFAULT_TIMEOUT)
        self.session = requests.Session()

    def _post(self, action: str, body: dict[str, Any]) -> None:
        url = f"{self.base_url}/{action}"
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        if self.config.get("debug"):
            logger.info(f"POST {url} ({len(body.get('entities', []))} entities)")

        try:
            response = self.session.post(url, json=body, headers=headers, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            raise ServiceError(
                f"Endpoint '{self.endpoint.name}' rejected {action}: {e}",
                status_code=status,
            ) from e

    def deploy(self, deployment_id: str, entities: list[Entity]) -> None:
        self._post("deploy", {
            "deployment_id": deployment_id,
            "entities": [e.to_dict() for e in entities],
        })

    def publish(self, deployment_id: str, entities: list[Entity]) -> None:
        self._post("publish", {
            "deployment_id": deployment_id,
            "entities": [{"type": e.type, "id": e.id} for e in entities],
        })


class DirectoryService:
    """
    Service that deploys into a local directory.

    Layout:
        {path}/
            staging/
                {endpoint_name}/
                    {deployment_id}/
                        {type}/{id}.json
            published/
                {type}/{id}.json

    Staging is per endpoint, so several endpoints may share one path.

    Config:
        path: Root directory of the target
    """

    def __init__(self, endpoint: Endpoint, config: dict[str, Any]):
        if not config.get("path"):
            raise ConfigError(f"Endpoint '{endpoint.name}': directory service requires 'path'")
        self.endpoint = endpoint
        self.config = config
        self.root = Path(config["path"]).expanduser()

    def staging_dir(self, deployment_id: str) -> Path:
        return self.root / "staging" / self.endpoint.name / deployment_id

    @property
    def published_dir(self) -> Path:
        return self.root / "published"

    def deploy(self, deployment_id: str, entities: list[Entity]) -> None:
        staging = self.staging_dir(deployment_id)
        staging.mkdir(parents=True, exist_ok=True)
        for entity in entities:
            entity_path = staging / entity.type / f"{entity.id}.json"
            entity_path.parent.mkdir(parents=True, exist_ok=True)
            with open(entity_path, "w") as f:
                json.dump(entity.to_dict(), f, indent=2)
        if self.config.get("debug"):
            logger.info(f"Staged {len(entities)} entities in {staging}")

    def publish(self, deployment_id: str, entities: list[Entity]) -> None:
        staging = self.staging_dir(deployment_id)
        if not staging.exists():
            raise ServiceError(
                f"Endpoint '{self.endpoint.name}': nothing staged for deployment {deployment_id}"
            )
        shutil.copytree(staging, self.published_dir, dirs_exist_ok=True)
        shutil.rmtree(staging)
        if self.config.get("debug"):
            logger.info(f"Published deployment {deployment_id} to {self.published_dir}")


service_plugins.register("rest_json", RestJSONService)
service_plugins.register("directory", DirectoryService)
