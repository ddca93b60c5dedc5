# services/filters.py
"""
Filter index: one visibility toggle per recognized instance, grouped by
entity, in a deterministic order for presentation.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping

from core.models import FilterEntry, FilterGroup
from core.registry import EntityRegistry

from .aggregator import LogAggregator

log = logging.getLogger(__name__)


class FilterIndex:
    def __init__(self) -> None:
        self._groups: List[FilterGroup] = []

    def build(self, registry: EntityRegistry, aggregator: LogAggregator) -> List[FilterGroup]:
        """
        Rebuild the groups from the aggregator's current instances.
        Groups are sorted by entity name, entries by display label.
        """
        by_name: Dict[str, FilterGroup] = {}
        # Duplicate registrations share a name; the first one provides labels and color.
        seen = set()
        for entity in registry:
            if entity.name in seen:
                continue
            seen.add(entity.name)
            for inst in aggregator.instances(entity.name):
                group = by_name.setdefault(entity.name, FilterGroup(entity_name=entity.name))
                group.entries.append(FilterEntry(
                    id=inst.id,
                    label=entity.display_name(inst.path),
                    entity_name=entity.name,
                    color=entity.color,
                    checked=inst.visible,
                ))

        groups = sorted(by_name.values(), key=lambda g: g.entity_name)
        for g in groups:
            g.entries.sort(key=lambda e: (e.label.lower(), e.id))
        self._groups = groups
        return groups

    def groups(self) -> List[FilterGroup]:
        return list(self._groups)

    def is_empty(self) -> bool:
        return not self._groups

    def set_visibility(self, instance_id: str, checked: bool) -> bool:
        """
        Update every entry with this id. Unknown ids are ignored so stale
        UI state never raises; returns whether anything changed.
        """
        found = False
        for g in self._groups:
            for entry in g.entries:
                if entry.id == instance_id:
                    entry.checked = checked
                    found = True
        if not found:
            log.debug("Ignoring visibility change for unknown id %s", instance_id)
        return found

    def apply(self, states: Mapping[str, bool]) -> int:
        """Apply many toggles at once; returns how many ids matched."""
        return sum(1 for iid, checked in states.items() if self.set_visibility(iid, checked))

    def visible_ids(self) -> List[str]:
        return [e.id for g in self._groups for e in g.entries if e.checked]

    def clear(self) -> None:
        self._groups = []
