"""Tests for endpoint resolution."""

import pytest
import yaml

from plandeploy.endpoints import EndpointRegistry, EndpointResolver, YamlEndpointRegistry
from plandeploy.errors import ConfigError, InvalidEndpointError
from plandeploy.plugins.services import DirectoryService


class TestEndpointRegistry:

    def test_resolve(self):
        registry = EndpointRegistry({
            "staging": {"title": "Staging", "service": "rest_json", "service_config": {"url": "https://x"}},
        })

        endpoint = registry.resolve("staging")

        assert endpoint.name == "staging"
        assert endpoint.title == "Staging"
        assert endpoint.service == "rest_json"
        assert endpoint.service_config == {"url": "https://x"}

    def test_title_defaults_to_name(self):
        registry = EndpointRegistry({"staging": {"service": "directory"}})

        assert registry.resolve("staging").title == "staging"

    def test_unknown_is_none(self):
        assert EndpointRegistry().resolve("nowhere") is None

    def test_disabled_is_invalid(self):
        registry = EndpointRegistry({"prod": {"service": "directory", "enabled": False}})

        with pytest.raises(InvalidEndpointError, match="disabled") as exc_info:
            registry.resolve("prod")

        assert exc_info.value.endpoint_name == "prod"

    def test_missing_service_is_invalid(self):
        registry = EndpointRegistry({"prod": {"title": "Prod"}})

        with pytest.raises(InvalidEndpointError, match="misconfigured"):
            registry.resolve("prod")

    def test_non_mapping_definition_is_invalid(self):
        registry = EndpointRegistry({"staging": "https://example.com"})

        with pytest.raises(InvalidEndpointError, match="expected a mapping") as exc_info:
            registry.resolve("staging")

        assert exc_info.value.endpoint_name == "staging"

    def test_resolve_is_cached(self):
        registry = EndpointRegistry({"staging": {"service": "directory"}})

        assert registry.resolve("staging") is registry.resolve("staging")

    def test_add_replaces_definition(self):
        registry = EndpointRegistry({"staging": {"service": "directory"}})
        registry.resolve("staging")

        registry.add("staging", {"service": "rest_json"})

        assert registry.resolve("staging").service == "rest_json"
        assert registry.list() == ["staging"]

    def test_is_resolver(self):
        assert isinstance(EndpointRegistry(), EndpointResolver)

    def test_endpoint_creates_service(self, tmp_path):
        registry = EndpointRegistry({
            "local": {"service": "directory", "debug": True, "service_config": {"path": str(tmp_path)}},
        })

        service = registry.resolve("local").create_service()

        assert isinstance(service, DirectoryService)
        assert service.config == {"path": str(tmp_path), "debug": True}


class TestYamlEndpointRegistry:

    def _write(self, path, data):
        with open(path, "w") as f:
            yaml.dump(data, f)

    def test_loads_endpoints(self, tmp_path):
        path = tmp_path / "endpoints.yaml"
        self._write(path, {"endpoints": {
            "staging": {"service": "directory", "service_config": {"path": "/srv/staging"}},
            "prod": {"service": "directory", "enabled": False},
        }})

        registry = YamlEndpointRegistry(path)

        assert sorted(registry.list()) == ["prod", "staging"]
        assert registry.resolve("staging").service_config == {"path": "/srv/staging"}
        with pytest.raises(InvalidEndpointError):
            registry.resolve("prod")

    def test_missing_file_is_empty(self, tmp_path, caplog):
        registry = YamlEndpointRegistry(tmp_path / "missing.yaml")

        assert registry.list() == []
        assert "not found" in caplog.text

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "endpoints.yaml"
        path.write_text("endpoints: [unclosed\n")

        with pytest.raises(ConfigError, match="Invalid YAML"):
            YamlEndpointRegistry(path)

    def test_endpoints_must_be_mapping(self, tmp_path):
        path = tmp_path / "endpoints.yaml"
        self._write(path, {"endpoints": ["staging"]})

        with pytest.raises(ConfigError, match="must be a mapping"):
            YamlEndpointRegistry(path)

    def test_top_level_must_be_mapping(self, tmp_path):
        path = tmp_path / "endpoints.yaml"
        path.write_text("- staging\n- prod\n")

        with pytest.raises(ConfigError, match="expected a mapping"):
            YamlEndpointRegistry(path)

    def test_reload(self, tmp_path):
        path = tmp_path / "endpoints.yaml"
        self._write(path, {"endpoints": {"staging": {"service": "directory"}}})
        registry = YamlEndpointRegistry(path)
        registry.resolve("staging")

        self._write(path, {"endpoints": {"staging": {"service": "rest_json"}}})
        registry.reload()

        assert registry.resolve("staging").service == "rest_json"
