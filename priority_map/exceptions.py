class PriorityMapError(Exception):
    """Base class for every error raised by a PriorityMap."""


class EmptyMapError(PriorityMapError):
    """Raised when an operation needs at least one bucket and the map has none."""


class PriorityNotFoundError(PriorityMapError, LookupError):
    def __init__(self, priority: int):
        super().__init__(f"Priority {priority} doesn't exist within PriorityMap")
        self.priority = priority


class BucketIndexError(PriorityMapError, IndexError):
    def __init__(self, priority: int, index: int, size: int):
        super().__init__(
            f"Index {index} out of range for priority {priority} (bucket size {size})"
        )
        self.priority = priority
        self.index = index
        self.size = size


class InvalidStateError(PriorityMapError):
    """Raised when a bulk operation's preconditions do not hold."""


class CorruptStoreError(PriorityMapError):
    """Raised by a strict MapStore.load() when the store file can't be parsed."""
