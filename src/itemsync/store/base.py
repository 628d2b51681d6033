"""Primary store contract consumed by the synchronizer."""

from typing import Any, Protocol

from itemsync.schemas import Item


class ItemStore(Protocol):
    """Authoritative, strongly-consistent item storage.

    Implementations are blocking; callers on the event loop run them in
    a worker thread.
    """

    def create(self, fields: dict[str, Any]) -> Item:
        """Insert a new item and assign its id.

        Raises:
            DuplicateError: If a unique field collides.
        """
        ...

    def get(self, item_id: str) -> Item:
        """Fetch one item.

        Raises:
            NotFoundError: If the id does not exist.
        """
        ...

    def find_many(self) -> list[Item]:
        """Point-in-time snapshot of every item, ordered by name."""
        ...

    def update(self, item_id: str, patch: dict[str, Any]) -> Item:
        """Apply the supplied fields and return the updated item.

        Raises:
            NotFoundError: If the id does not exist.
            DuplicateError: If a unique field collides.
        """
        ...

    def delete(self, item_id: str) -> None:
        """Remove an item.

        Raises:
            NotFoundError: If the id does not exist.
        """
        ...

    def count(self) -> int:
        """Number of stored items."""
        ...

    def ping(self) -> None:
        """Raise if the store cannot serve queries."""
        ...

    def close(self) -> None:
        """Release the underlying connection."""
        ...
