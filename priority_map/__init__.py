from .core import NOT_FOUND, PriorityMap
from .exceptions import (
    BucketIndexError,
    CorruptStoreError,
    EmptyMapError,
    InvalidStateError,
    PriorityMapError,
    PriorityNotFoundError,
)
from .storage import MapStore

__all__ = [
    "NOT_FOUND",
    "PriorityMap",
    "MapStore",
    "PriorityMapError",
    "EmptyMapError",
    "PriorityNotFoundError",
    "BucketIndexError",
    "InvalidStateError",
    "CorruptStoreError",
]
