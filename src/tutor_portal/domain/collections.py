"""Pure helpers for keeping mirrored entity lists in sync."""

from collections.abc import Sequence
from typing import Protocol, TypeVar
from uuid import UUID


class Identified(Protocol):
    """Anything with a stable identifier."""

    @property
    def id(self) -> UUID: ...


E = TypeVar("E", bound=Identified)


def merge_entity(collection: Sequence[E], incoming: E) -> list[E]:
    """Insert or replace ``incoming`` by id and return a new list.

    A matching entry is replaced at its current position; otherwise the
    entity is appended. The input is never modified and a fresh list is
    returned even when the incoming entity equals the stored one.
    """
    merged = list(collection)
    for index, current in enumerate(merged):
        if current.id == incoming.id:
            merged[index] = incoming
            return merged
    merged.append(incoming)
    return merged


def remove_entity(collection: Sequence[E], entity_id: UUID) -> list[E]:
    """Return a new list without the entity carrying ``entity_id``."""
    return [entity for entity in collection if entity.id != entity_id]
