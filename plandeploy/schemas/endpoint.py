"""
Endpoint schema - a named deployment target.

An Endpoint names the transport service used to reach the target and the
service configuration (URL, directory, credentials).
"""

from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from plandeploy.plugins.base import Service


@dataclass(frozen=True)
class Endpoint:
    """
    A resolved endpoint.

    Attributes:
        name: Unique endpoint name referenced by plans
        service: Service plugin identifier (e.g. "rest_json", "directory")
        title: Human-readable title
        service_config: Options passed to the service factory
        debug: Propagated to the service config
    """
    name: str
    service: str
    title: str = ""
    service_config: dict[str, Any] = field(default_factory=dict)
    debug: bool = False

    def create_service(self) -> "Service":
        """Build the transport service for this endpoint."""
        from plandeploy.plugins.base import service_plugins

        return service_plugins.create(self.service, self, {**self.service_config, "debug": self.debug})

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "service": self.service,
            "service_config": self.service_config,
            "debug": self.debug,
        }

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> "Endpoint":
        return cls(
            name=name,
            service=data["service"],
            title=data.get("title", name),
            service_config=data.get("service_config") or {},
            debug=bool(data.get("debug", False)),
        )
