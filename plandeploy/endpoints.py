"""
Endpoint registry - resolves endpoint names referenced by plans.

resolve(name) returns:
- an Endpoint when the name is configured and usable
- None when no endpoint with that name exists
and raises InvalidEndpointError when the endpoint is configured but
disabled or its definition is broken.

Example endpoints.yaml:
    endpoints:
      staging:
        title: Staging site
        service: rest_json
        service_config:
          url: https://staging.example.com/api/deploy
          token: secret
      prod:
        service: directory
        service_config:
          path: /srv/site/content
        enabled: false
"""

import logging
from pathlib import Path
from typing import Any, Optional, Protocol, runtime_checkable

import yaml

from plandeploy.errors import ConfigError, InvalidEndpointError
from plandeploy.schemas import Endpoint

logger = logging.getLogger(__name__)


@runtime_checkable
class EndpointResolver(Protocol):
    """Anything that can resolve an endpoint name."""

    def resolve(self, name: str) -> Optional[Endpoint]:
        ...


class EndpointRegistry:
    """In-memory endpoint registry."""

    def __init__(self, definitions: Optional[dict[str, dict[str, Any]]] = None):
        self._definitions: dict[str, dict[str, Any]] = dict(definitions or {})
        self._cache: dict[str, Endpoint] = {}

    def add(self, name: str, definition: dict[str, Any]) -> None:
        self._definitions[name] = definition
        self._cache.pop(name, None)

    def list(self) -> list[str]:
        """Names of all configured endpoints, enabled or not."""
        return list(self._definitions.keys())

    def resolve(self, name: str) -> Optional[Endpoint]:
        if name in self._cache:
            return self._cache[name]

        definition = self._definitions.get(name)
        if definition is None:
            return None

        if not isinstance(definition, dict):
            raise InvalidEndpointError(
                name, f"Endpoint '{name}' is misconfigured: expected a mapping, got {type(definition).__name__}"
            )

        if not definition.get("enabled", True):
            raise InvalidEndpointError(name, f"Endpoint '{name}' is disabled")

        try:
            endpoint = Endpoint.from_dict(name, definition)
        except (KeyError, TypeError, AttributeError) as e:
            raise InvalidEndpointError(name, f"Endpoint '{name}' is misconfigured: {e}") from e

        self._cache[name] = endpoint
        return endpoint


class YamlEndpointRegistry(EndpointRegistry):
    """Endpoint registry loaded from a YAML file with an `endpoints` mapping."""

    def __init__(self, path: Path | str):
        self._path = Path(path)
        super().__init__(self._load_file())

    @property
    def path(self) -> Path:
        return self._path

    def _load_file(self) -> dict[str, dict[str, Any]]:
        if not self._path.exists():
            logger.warning(f"Endpoints file not found: {self._path}")
            return {}

        try:
            with open(self._path) as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {self._path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{self._path}: expected a mapping with an 'endpoints' key")

        endpoints = data.get("endpoints") or {}
        if not isinstance(endpoints, dict):
            raise ConfigError(f"{self._path}: 'endpoints' must be a mapping")
        return {str(name): definition or {} for name, definition in endpoints.items()}

    def reload(self) -> None:
        """Re-read the file and drop cached endpoints."""
        self._definitions = self._load_file()
        self._cache.clear()
