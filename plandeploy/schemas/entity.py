"""
Entity schema - a unit of content gathered by an aggregator.

Entities are identified by (type, id). Dependencies are references to other
entities that must exist on the target before this entity can be used there.
"""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class EntityRef:
    """Reference to an entity by type and id."""
    type: str
    id: str

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "EntityRef":
        return cls(type=str(data["type"]), id=str(data["id"]))

    def to_dict(self) -> dict[str, str]:
        return {"type": self.type, "id": self.id}


@dataclass(frozen=True)
class Entity:
    """
    A content entity to be deployed.

    Attributes:
        type: Entity type name (e.g. "node", "taxonomy_term")
        id: Entity identifier, unique within its type
        data: Payload sent to the endpoint
        dependencies: Entities this one references
    """
    type: str
    id: str
    data: dict[str, Any] = field(default_factory=dict)
    dependencies: tuple[EntityRef, ...] = field(default_factory=tuple)

    @property
    def ref(self) -> EntityRef:
        return EntityRef(self.type, self.id)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON output."""
        result: dict[str, Any] = {
            "type": self.type,
            "id": self.id,
            "data": self.data,
        }
        if self.dependencies:
            result["dependencies"] = [d.to_dict() for d in self.dependencies]
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Entity":
        """Deserialize from dictionary."""
        return cls(
            type=str(data["type"]),
            id=str(data["id"]),
            data=data.get("data") or {},
            dependencies=tuple(EntityRef.from_dict(d) for d in data.get("dependencies") or []),
        )
