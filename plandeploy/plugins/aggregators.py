"""ManagedAggregator - entities listed explicitly in the plan configuration.

Config:
    entities:
      - type: node
        id: "12"
        data: {title: "About us"}
        dependencies:
          - {type: user, id: "3"}
    known_entities:
      - type: user
        id: "3"
        data: {name: "editor"}
        dependencies:
          - {type: role, id: "editor"}

Entities listed under `entities` are included directly. `known_entities`
holds definitions that are only deployed when something depends on them.
Dependencies are pulled in transitively; get_entities() records the chain
of entities that pulled each dependency in:

    {
        "node": {"12": True},
        "user": {"3": {"node": {"12": True}}},
        "role": {"editor": {"user": {"3": {"node": {"12": True}}}}},
    }

A dependency that is also listed directly is marked True. Dependencies
without a definition show up in get_entities() but can't be yielded by
get_iterator(), since there is no payload to send.
"""

import logging
from typing import Any, Iterator, TYPE_CHECKING

from plandeploy.errors import ConfigError
from plandeploy.plugins.base import EntityTree, aggregator_plugins
from plandeploy.schemas import Entity, EntityRef

if TYPE_CHECKING:
    from plandeploy.plan import Plan

logger = logging.getLogger(__name__)


class ManagedAggregator:
    """Aggregator over an explicit list of entities."""

    def __init__(self, plan: "Plan", config: dict[str, Any]):
        self.plan = plan
        self.config = config
        self._entities = self._parse_entities("entities", config.get("entities") or [])
        known = self._parse_entities("known_entities", config.get("known_entities") or [])
        self._index: dict[EntityRef, Entity] = {e.ref: e for e in known}
        self._index.update((e.ref, e) for e in self._entities)

    def _parse_entities(self, key: str, raw: list[Any]) -> list[Entity]:
        if not isinstance(raw, list):
            raise ConfigError(
                f"Plan '{self.plan.name}': managed aggregator '{key}' must be a list"
            )
        entities = []
        for item in raw:
            try:
                entities.append(Entity.from_dict(item))
            except (KeyError, TypeError) as e:
                raise ConfigError(
                    f"Plan '{self.plan.name}': invalid managed entity {item!r}: {e}"
                ) from e
        return entities

    @property
    def debug(self) -> bool:
        return bool(self.config.get("debug"))

    def get_entities(self) -> EntityTree:
        tree: EntityTree = {}
        for entity in self._entities:
            tree.setdefault(entity.type, {})[entity.id] = True
        for entity in self._entities:
            self._add_dependencies(tree, entity, True)
        return tree

    def _add_dependencies(self, tree: EntityTree, entity: Entity, why: Any) -> None:
        # A ref already in the tree has been walked (or is direct and walked
        # from the top), which also stops dependency cycles.
        for dep in entity.dependencies:
            bucket = tree.setdefault(dep.type, {})
            if dep.id in bucket:
                continue
            dep_why = {entity.type: {entity.id: why}}
            bucket[dep.id] = dep_why
            dep_entity = self._index.get(dep)
            if dep_entity is not None:
                self._add_dependencies(tree, dep_entity, dep_why)

    def get_iterator(self) -> Iterator[Entity]:
        return self._iterate()

    def _iterate(self) -> Iterator[Entity]:
        visited: set[EntityRef] = set()

        def walk(entity: Entity) -> Iterator[Entity]:
            visited.add(entity.ref)
            for dep in entity.dependencies:
                if dep in visited:
                    continue
                dep_entity = self._index.get(dep)
                if dep_entity is None:
                    visited.add(dep)
                    logger.warning(
                        f"Plan '{self.plan.name}': dependency {dep.type}/{dep.id} "
                        f"of {entity.type}/{entity.id} has no definition, skipping"
                    )
                    continue
                yield from walk(dep_entity)
            if self.debug:
                logger.info(f"Plan '{self.plan.name}': aggregated {entity.type}/{entity.id}")
            yield entity

        for entity in self._entities:
            if entity.ref not in visited:
                yield from walk(entity)


aggregator_plugins.register("managed", ManagedAggregator)
