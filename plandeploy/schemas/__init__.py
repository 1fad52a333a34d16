"""
plandeploy.schemas - Data structures shared by the deploy core and its plugins.

Entity -> Endpoint -> DeploymentRecord

- Entity: A unit of content gathered by an aggregator, with dependency refs
- Endpoint: A resolved deployment target and the service used to reach it
- DeploymentRecord: The status history of one deployment, keyed by a ULID
"""

from .entity import (
    Entity,
    EntityRef,
)
from .endpoint import (
    Endpoint,
)
from .deployment import (
    DeploymentRecord,
    DeployStatus,
    StatusEntry,
    ULID,
    format_error,
)

__all__ = [
    # Entity
    "Entity",
    "EntityRef",
    # Endpoint
    "Endpoint",
    # Deployment
    "DeploymentRecord",
    "DeployStatus",
    "StatusEntry",
    "ULID",
    "format_error",
]
