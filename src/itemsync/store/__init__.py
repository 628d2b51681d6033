"""Primary item store."""

from itemsync.store.base import ItemStore
from itemsync.store.sqlite import SqliteItemStore

__all__ = ["ItemStore", "SqliteItemStore"]
