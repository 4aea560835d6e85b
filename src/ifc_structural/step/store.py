"""Entity store: the parsed table of a STEP physical file.

Reads `#id = TYPE(attributes);` statements into immutable RawEntity
records indexed by id, by IFC GlobalId and by type keyword. Parsing is
best-effort: a malformed statement is dropped and recorded in
`EntityStore.rejected`, the rest of the file still loads.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path

from ifc_structural.errors import FileError, StatementParseError
from ifc_structural.models.ifc_id import is_valid_ifc_id
from ifc_structural.step.values import NULL, AttributeValue, Text, parse_attributes

logger = logging.getLogger(__name__)

_STATEMENT_RE = re.compile(
    r"^#(\d+)\s*=\s*([A-Za-z_][A-Za-z0-9_]*)\s*\((.*)\)\s*;\s*$", re.DOTALL
)


@dataclass(frozen=True)
class RawEntity:
    """One parsed entity statement."""

    id: int
    type: str
    attributes: tuple[AttributeValue, ...] = ()

    def attr(self, index: int) -> AttributeValue:
        """Attribute at index, Null when out of range."""
        if 0 <= index < len(self.attributes):
            return self.attributes[index]
        return NULL

    @property
    def global_id(self) -> str | None:
        """Attribute 0 when it is shaped like an IFC GlobalId."""
        first = self.attr(0)
        if isinstance(first, Text) and is_valid_ifc_id(first.value):
            return first.value
        return None

    def __str__(self) -> str:
        return f"#{self.id}={self.type}"


def parse_statement(statement: str) -> RawEntity:
    """Parse one complete `#id = TYPE(...);` statement.

    Raises:
        StatementParseError: if the statement does not have that shape.
    """
    m = _STATEMENT_RE.match(statement.strip())
    if not m:
        raise StatementParseError(statement, "not an entity statement")
    entity_id = int(m.group(1))
    if entity_id <= 0:
        raise StatementParseError(statement, "entity id must be positive")
    return RawEntity(
        id=entity_id,
        type=m.group(2).upper(),
        attributes=parse_attributes(m.group(3)),
    )


class EntityStore:
    """Read-only entity table with O(1) lookups.

    Iteration yields entities in file order. When an id appears twice the
    later statement replaces the earlier one (keeping the earlier file
    position) and the replacement is recorded in `rejected`.
    """

    def __init__(
        self,
        entities: Iterable[RawEntity] = (),
        rejected: Iterable[StatementParseError] = (),
        source: str | None = None,
    ):
        self.source = source
        self.rejected: list[StatementParseError] = list(rejected)
        self._entities: dict[int, RawEntity] = {}
        for entity in entities:
            if entity.id in self._entities:
                error = StatementParseError(
                    str(entity), f"duplicate id #{entity.id}, earlier statement replaced"
                )
                logger.warning("%s", error)
                self.rejected.append(error)
            self._entities[entity.id] = entity

        self._position: dict[int, int] = {}
        self._by_type: dict[str, list[RawEntity]] = {}
        self._by_guid: dict[str, RawEntity] = {}
        for position, entity in enumerate(self._entities.values()):
            self._position[entity.id] = position
            self._by_type.setdefault(entity.type, []).append(entity)
            guid = entity.global_id
            if guid is not None:
                self._by_guid.setdefault(guid, entity)

    # ── Construction ──────────────────────────────────────────────────

    @classmethod
    def from_lines(cls, lines: Iterable[str], source: str | None = None) -> EntityStore:
        """Parse physical lines.

        Lines accumulate until a trimmed line ends with `;`. Buffers that
        don't start with `#` (header and section markers) are skipped;
        buffers that start with `#` but don't parse are rejected.
        """
        entities: list[RawEntity] = []
        rejected: list[StatementParseError] = []
        buffer: list[str] = []

        def flush() -> None:
            statement = "".join(buffer).strip()
            buffer.clear()
            if not statement.startswith("#"):
                return
            try:
                entities.append(parse_statement(statement))
            except StatementParseError as e:
                logger.warning("Dropped statement: %s", e)
                rejected.append(e)

        for line in lines:
            stripped = line.strip()
            if not stripped:
                continue
            buffer.append(stripped)
            if stripped.endswith(";"):
                flush()
        if buffer:
            statement = "".join(buffer).strip()
            if statement.startswith("#"):
                error = StatementParseError(statement, "unterminated statement")
                logger.warning("Dropped statement: %s", error)
                rejected.append(error)

        store = cls(entities, rejected, source=source)
        logger.debug(
            "Parsed %d entities (%d rejected) from %s",
            len(store), len(store.rejected), source or "<text>",
        )
        return store

    @classmethod
    def from_text(cls, text: str, source: str | None = None) -> EntityStore:
        return cls.from_lines(text.splitlines(), source=source)

    @classmethod
    def from_path(cls, path: str | Path) -> EntityStore:
        """Read and parse a file. Undecodable bytes are replaced.

        Raises:
            FileError: if the file is missing or unreadable.
        """
        path = Path(path)
        try:
            data = path.read_bytes()
        except OSError as e:
            raise FileError(f"Cannot read {path}: {e.strerror or e}") from e
        return cls.from_text(data.decode("utf-8", errors="replace"), source=path.name)

    # ── Lookups ───────────────────────────────────────────────────────

    def get(self, entity_id: int) -> RawEntity | None:
        return self._entities.get(entity_id)

    def by_global_id(self, guid: str) -> RawEntity | None:
        return self._by_guid.get(guid)

    def by_type(self, *keywords: str) -> list[RawEntity]:
        """Entities of any of the given type keywords, in file order."""
        found: list[RawEntity] = []
        for keyword in dict.fromkeys(k.upper() for k in keywords):
            found.extend(self._by_type.get(keyword, ()))
        if len(keywords) > 1:
            found.sort(key=lambda e: self._position[e.id])
        return found

    def position(self, entity: RawEntity) -> int:
        """File-order position of an entity."""
        return self._position[entity.id]

    def __iter__(self) -> Iterator[RawEntity]:
        return iter(self._entities.values())

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities
