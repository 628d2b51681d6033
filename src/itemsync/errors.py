"""Domain error hierarchy shared by the store, index and sync layers."""


class ItemSyncError(Exception):
    """Base class for all service errors."""


class NotFoundError(ItemSyncError):
    """Raised when an item id is absent from the primary store."""

    def __init__(self, item_id: str) -> None:
        """Initialize not-found error.

        Args:
            item_id: Identifier that was looked up.
        """
        super().__init__(f"Item not found: {item_id}")
        self.item_id = item_id


class DuplicateError(ItemSyncError):
    """Raised when a write violates a primary-store uniqueness constraint."""

    def __init__(self, field: str, value: str) -> None:
        """Initialize duplicate error.

        Args:
            field: Name of the unique field.
            value: Conflicting value.
        """
        super().__init__(f"Item with {field}={value!r} already exists")
        self.field = field
        self.value = value


class IndexEngineError(ItemSyncError):
    """Raised by index engines when a call to the search backend fails."""

    def __init__(self, message: str, connectivity: bool = False) -> None:
        """Initialize engine error.

        Args:
            message: Error description.
            connectivity: True when the backend could not be reached.
        """
        super().__init__(message)
        self.connectivity = connectivity


class SearchIndexError(ItemSyncError):
    """Raised when mirroring a primary-store mutation into the index fails."""

    def __init__(self, operation: str, item_id: str, reason: str) -> None:
        """Initialize index sync error.

        Args:
            operation: Index operation that failed (create, update, ...).
            item_id: Item whose document could not be written.
            reason: Underlying failure description.
        """
        super().__init__(f"Index {operation} failed for {item_id}: {reason}")
        self.operation = operation
        self.item_id = item_id
        self.reason = reason


class SearchUnavailableError(ItemSyncError):
    """Raised when a search cannot be served because the index is down."""

    def __init__(self, reason: str) -> None:
        super().__init__(f"Search index unavailable: {reason}")
        self.reason = reason
