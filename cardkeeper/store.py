"""
Normalized Client-Side Store

DESIGN DECISION: Each page used to keep its own copy of the lists it
fetched. Instead, every entity type has one store keyed by id, and every
page renders from it. Writes update the store only after the backend
confirms them, so a failed delete leaves the list exactly as it was.

The store is not a cache of record. `load` flows replace its contents
wholesale from the backend; nothing here is persisted.
"""

from typing import Callable, Generic, Iterable, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel


T = TypeVar("T", bound=BaseModel)


class EntityStore(Generic[T]):
    """Entities of one type, keyed by their `id`."""

    def __init__(self, sort_key: Optional[Callable[[T], object]] = None, reverse: bool = False):
        self._items: dict[UUID, T] = {}
        self._loaded = False
        self._sort_key = sort_key
        self._reverse = reverse

    @property
    def is_loaded(self) -> bool:
        """True once a full fetch has populated the store."""
        return self._loaded

    def replace_all(self, items: Iterable[T]) -> None:
        self._items = {item.id: item for item in items}
        self._loaded = True

    def upsert(self, item: T) -> None:
        self._items[item.id] = item

    def remove(self, item_id: UUID) -> Optional[T]:
        return self._items.pop(item_id, None)

    def get(self, item_id: UUID) -> Optional[T]:
        return self._items.get(item_id)

    def values(self) -> list[T]:
        """All entities, in the store's display order."""
        items = list(self._items.values())
        if self._sort_key is not None:
            items.sort(key=self._sort_key, reverse=self._reverse)
        return items

    def invalidate(self) -> None:
        """Drop everything; the next page render triggers a fresh load."""
        self._items.clear()
        self._loaded = False

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._items
