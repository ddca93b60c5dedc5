# core/registry.py
"""
Entity registry: an explicit build step producing an immutable registry.

Usage pattern:
    registry = (
        RegistryBuilder()
        .register(ApplicationLogEntity())
        .register(ThreadDumpsEntity())
        .build()
    )
    Orchestrator(registry=registry)

The registry is injected into the scanner and watcher; nothing mutates it
after build(), so it can never change while a scan is running.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Optional, Tuple

from .interfaces import CompositeEntity, Entity

log = logging.getLogger(__name__)


class EntityRegistry:
    """
    Registration-ordered, read-only collection of entities.
    """

    __slots__ = ("_entities",)

    def __init__(self, entities: Tuple[Entity, ...] = ()) -> None:
        self._entities = tuple(entities)

    def __iter__(self) -> Iterator[Entity]:
        return iter(self._entities)

    def __len__(self) -> int:
        return len(self._entities)

    def __repr__(self) -> str:
        return f"EntityRegistry({[e.name for e in self._entities]!r})"

    @property
    def entities(self) -> Tuple[Entity, ...]:
        return self._entities

    def names(self) -> List[str]:
        return [e.name for e in self._entities]

    def by_name(self, name: str) -> Optional[Entity]:
        """Return the first entity registered under name, if any."""
        for e in self._entities:
            if e.name == name:
                return e
        return None

    def composites(self) -> List[CompositeEntity]:
        return [e for e in self._entities if isinstance(e, CompositeEntity)]


class RegistryBuilder:
    """
    Collects entities at startup. No de-duplication is performed:
    registering the same logical entity twice produces duplicate
    classification attempts. We only warn about it.
    """

    def __init__(self) -> None:
        self._entities: List[Entity] = []

    def register(self, entity: Entity) -> "RegistryBuilder":
        if any(existing.name == entity.name for existing in self._entities):
            log.warning("Entity %r registered more than once; paths will be classified twice", entity.name)
        self._entities.append(entity)
        return self

    def build(self) -> EntityRegistry:
        return EntityRegistry(tuple(self._entities))
