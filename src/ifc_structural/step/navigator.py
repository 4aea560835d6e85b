"""Read-only graph traversal over an EntityStore.

IFC expresses most relationships as separate relation entities
(IfcRelDefinesByType, IfcRelContainedInSpatialStructure, ...) whose
attribute 4 lists the related objects and attribute 5 names the relating
one. Finding "the storey that contains this beam" therefore means
searching relations that point *at* the beam. `Navigator.inverse` does
that through a lazily built index, one per (keyword, attribute index).

No method here raises on a broken graph: wrong tags, out-of-range
indices and dangling references all yield None or an empty list.
"""

from __future__ import annotations

from ifc_structural.step.store import EntityStore, RawEntity
from ifc_structural.step.values import Number, Reference, Text, ValueList


class Navigator:
    """Typed attribute access and relation lookup for one store."""

    def __init__(self, store: EntityStore):
        self.store = store
        self._inverse: dict[tuple[str, int], dict[int, list[RawEntity]]] = {}

    # ── Attribute access ──────────────────────────────────────────────

    @staticmethod
    def text(entity: RawEntity | None, index: int) -> str | None:
        if entity is None:
            return None
        value = entity.attr(index)
        return value.value if isinstance(value, Text) else None

    @staticmethod
    def number(entity: RawEntity | None, index: int) -> float | None:
        if entity is None:
            return None
        value = entity.attr(index)
        return value.value if isinstance(value, Number) else None

    @staticmethod
    def numbers(entity: RawEntity | None, index: int) -> list[float]:
        """Numeric items of a list attribute; non-numbers are skipped."""
        if entity is None:
            return []
        value = entity.attr(index)
        if not isinstance(value, ValueList):
            return []
        return [item.value for item in value if isinstance(item, Number)]

    def ref(self, entity: RawEntity | None, index: int) -> RawEntity | None:
        """Follow a single reference attribute."""
        if entity is None:
            return None
        value = entity.attr(index)
        if not isinstance(value, Reference):
            return None
        return self.store.get(value.id)

    def ref_list(self, entity: RawEntity | None, index: int) -> list[RawEntity]:
        """Follow a list of references; dangling ones are skipped."""
        if entity is None:
            return []
        value = entity.attr(index)
        if not isinstance(value, ValueList):
            return []
        found = []
        for item in value:
            if isinstance(item, Reference):
                target = self.store.get(item.id)
                if target is not None:
                    found.append(target)
        return found

    # ── Relations ─────────────────────────────────────────────────────

    def inverse(
        self, entity: RawEntity, relation_keyword: str, related_index: int = 4
    ) -> list[RawEntity]:
        """Relations of a keyword whose list at related_index contains entity.

        A single Reference at related_index counts as a one-item list, so
        one-to-one relations work the same way.
        """
        index = self._inverse_index(relation_keyword.upper(), related_index)
        return list(index.get(entity.id, ()))

    def related(
        self,
        entity: RawEntity,
        relation_keyword: str,
        related_index: int = 4,
        relating_index: int = 5,
    ) -> list[RawEntity]:
        """Entities on the relating side of every inverse relation."""
        found = []
        for relation in self.inverse(entity, relation_keyword, related_index):
            target = self.ref(relation, relating_index)
            if target is not None:
                found.append(target)
        return found

    def first_related(
        self,
        entity: RawEntity,
        relation_keyword: str,
        related_index: int = 4,
        relating_index: int = 5,
    ) -> RawEntity | None:
        found = self.related(entity, relation_keyword, related_index, relating_index)
        return found[0] if found else None

    def by_type(self, *keywords: str) -> list[RawEntity]:
        return self.store.by_type(*keywords)

    def _inverse_index(self, keyword: str, related_index: int) -> dict[int, list[RawEntity]]:
        key = (keyword, related_index)
        index = self._inverse.get(key)
        if index is None:
            index = {}
            for relation in self.store.by_type(keyword):
                value = relation.attr(related_index)
                items = value.items if isinstance(value, ValueList) else (value,)
                seen: set[int] = set()
                for item in items:
                    if isinstance(item, Reference) and item.id not in seen:
                        seen.add(item.id)
                        index.setdefault(item.id, []).append(relation)
            self._inverse[key] = index
        return index
