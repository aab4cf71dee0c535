import bisect
import json
import logging
import threading
from functools import cmp_to_key
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Iterable,
    Iterator,
    List,
    Mapping,
    Optional,
    Sequence,
    Tuple,
    TypeVar,
)

from .exceptions import (
    BucketIndexError,
    EmptyMapError,
    InvalidStateError,
    PriorityNotFoundError,
)

log = logging.getLogger("priority_map")

T = TypeVar("T")

# returned by priority_of() when no bucket holds the element
NOT_FOUND = -1

Comparator = Callable[[int, int], int]
MergeFn = Callable[[List[T], List[T]], Iterable[T]]


# plain `==`, no identity shortcut like `in` and list.remove() take
def _contains(seq: Iterable[T], element: T) -> bool:
    return any(e == element for e in seq)


def _index(seq: List[T], element: T) -> int:
    for i, e in enumerate(seq):
        if e == element:
            return i
    raise ValueError("element not in bucket")


class PriorityMap(Generic[T]):
    """
    Thread-safe map of integer priorities to FIFO buckets of elements.

    Buckets are kept in ascending order of the active ordering: natural int
    order, or `comparator(a, b)` returning <0, 0 or >0 like a classic cmp
    function. The highest priority is the last key in that order.

    A priority is present only while its bucket holds at least one element;
    every operation that can empty a bucket deletes it. Elements are matched
    with `==`, never by identity.

    All public methods take one re-entrant lock for their whole duration, so
    each call is atomic with respect to every other. Callbacks passed to
    `for_each`, `split_by_predicate` and `merge_with_custom_logic` run while
    the lock is held; they may read the same map but should not mutate it.
    Every sequence handed back to callers is a copy.
    """

    def __init__(self, comparator: Optional[Comparator] = None):
        self._comparator = comparator
        self._sort_key = cmp_to_key(comparator) if comparator else None
        self._buckets: Dict[int, List[T]] = {}
        self._order: List[int] = []
        self._lock = threading.RLock()

    # -- internal helpers, callers must hold the lock -------------------------

    def _new_empty(self) -> "PriorityMap[T]":
        return PriorityMap(self._comparator)

    def _require_not_empty(self, action: str) -> None:
        if not self._buckets:
            raise EmptyMapError(f"PriorityMap is empty, can't {action}")

    def _require_priority(self, priority: int) -> List[T]:
        bucket = self._buckets.get(priority)
        if bucket is None:
            raise PriorityNotFoundError(priority)
        return bucket

    def _bucket_for(self, priority: int) -> List[T]:
        bucket = self._buckets.get(priority)
        if bucket is None:
            # order first: an unorderable priority must not leave a dict entry
            bisect.insort(self._order, priority, key=self._sort_key)
            bucket = self._buckets[priority] = []
        return bucket

    def _set_bucket(self, priority: int, elements: List[T]) -> None:
        if not elements:
            self._drop(priority)
            return
        self._bucket_for(priority)
        self._buckets[priority] = elements

    def _drop(self, priority: int) -> Optional[List[T]]:
        bucket = self._buckets.pop(priority, None)
        if bucket is not None:
            self._order.remove(priority)
            log.debug("Removed bucket for priority %s", priority)
        return bucket

    def _drop_if_empty(self, priority: int) -> None:
        if not self._buckets[priority]:
            self._drop(priority)

    def _lookup(self, element: T) -> Optional[int]:
        for priority in self._order:
            if _contains(self._buckets[priority], element):
                return priority
        return None

    def _snapshot(self) -> List[T]:
        return [e for p in self._order for e in self._buckets[p]]

    def _install(self, items: Iterable[Tuple[int, List[T]]]) -> None:
        for priority, elements in items:
            if elements and priority not in self._buckets:
                self._bucket_for(priority).extend(elements)

    # -- queries --------------------------------------------------------------

    def count(self) -> int:
        with self._lock:
            return sum(len(b) for b in self._buckets.values())

    def is_empty(self) -> bool:
        with self._lock:
            return not self._buckets

    def exists(self, element: T) -> bool:
        with self._lock:
            return any(_contains(b, element) for b in self._buckets.values())

    def priority_of(self, element: T) -> int:
        """
        Priority of the first bucket, in iteration order, holding an element
        equal to `element`; NOT_FOUND otherwise. When equal elements live in
        several buckets only the lowest-ordered one is reported.
        """
        with self._lock:
            priority = self._lookup(element)
            return NOT_FOUND if priority is None else priority

    def elements_at(self, priority: int) -> List[T]:
        with self._lock:
            return list(self._buckets.get(priority, ()))

    def all_priorities(self) -> List[int]:
        with self._lock:
            self._require_not_empty("get priorities")
            return list(self._order)

    def all_elements(self) -> List[T]:
        with self._lock:
            return self._snapshot()

    def to_list(self) -> List[T]:
        return self.all_elements()

    def to_bucket_list(self) -> List[List[T]]:
        with self._lock:
            return [list(self._buckets[p]) for p in self._order]

    def highest_priority(self) -> int:
        with self._lock:
            self._require_not_empty("get the highest priority")
            return self._order[-1]

    def lowest_priority(self) -> int:
        with self._lock:
            self._require_not_empty("get the lowest priority")
            return self._order[0]

    def peek_highest(self) -> Optional[T]:
        """First element of the highest bucket, left in place."""
        with self._lock:
            self._require_not_empty("peek highest priority")
            bucket = self._buckets[self._order[-1]]
            if not bucket:
                return None
            return bucket[0]

    def highest_bucket(self) -> List[T]:
        with self._lock:
            self._require_not_empty("retrieve elements with the highest priority")
            return list(self._buckets[self._order[-1]])

    def get_at(self, priority: int, index: int) -> T:
        with self._lock:
            self._require_not_empty("get any elements")
            bucket = self._require_priority(priority)
            if not 0 <= index < len(bucket):
                raise BucketIndexError(priority, index, len(bucket))
            return bucket[index]

    def priority_range(self, min_priority: int, max_priority: int) -> List[T]:
        """Elements of every bucket with min_priority <= p <= max_priority."""
        with self._lock:
            return [
                e
                for p in self._order
                if min_priority <= p <= max_priority
                for e in self._buckets[p]
            ]

    def contains_duplicates(self) -> bool:
        with self._lock:
            return self.unique_count() < self.count()

    def unique_count(self) -> int:
        # equality only; elements need not be hashable
        with self._lock:
            seen: List[T] = []
            for element in self._snapshot():
                if not _contains(seen, element):
                    seen.append(element)
            return len(seen)

    def min_bucket_size(self) -> int:
        with self._lock:
            self._require_not_empty("compute bucket sizes")
            return min(len(b) for b in self._buckets.values())

    def max_bucket_size(self) -> int:
        with self._lock:
            self._require_not_empty("compute bucket sizes")
            return max(len(b) for b in self._buckets.values())

    def priority_counts(self) -> Dict[int, int]:
        with self._lock:
            return {p: len(self._buckets[p]) for p in self._order}

    def priority_exists(self, priority: int) -> bool:
        with self._lock:
            return priority in self._buckets

    def has_elements_at(self, priority: int) -> bool:
        with self._lock:
            return bool(self._buckets.get(priority))

    def has_elements_at_all(self, priorities: Iterable[int]) -> bool:
        with self._lock:
            return all(self.has_elements_at(p) for p in priorities)

    def try_get_bucket(self, priority: int) -> Optional[List[T]]:
        with self._lock:
            bucket = self._buckets.get(priority)
            return list(bucket) if bucket is not None else None

    # -- adding ---------------------------------------------------------------

    def add(self, element: T, priority: int) -> None:
        with self._lock:
            self._bucket_for(priority).append(element)

    def bulk_add(self, items: Any) -> None:
        """
        Add a mapping element -> priority, or an iterable of (element, priority).

        All or nothing: a malformed pair or a priority that cannot be ordered
        raises with the map exactly as it was before the call.
        """
        source = items.items() if isinstance(items, Mapping) else items
        pairs = [(element, priority) for element, priority in source]
        with self._lock:
            sizes = {p: len(b) for p, b in self._buckets.items()}
            try:
                for element, priority in pairs:
                    self._bucket_for(priority).append(element)
            except Exception:
                self._truncate_to(sizes)
                raise

    def _truncate_to(self, sizes: Dict[int, int]) -> None:
        for priority in list(self._order):
            if priority in sizes:
                del self._buckets[priority][sizes[priority]:]
            else:
                self._drop(priority)

    def add_bucket(self, elements: Iterable[T], priority: int) -> bool:
        """
        Install `elements` verbatim as the bucket for `priority`.

        Returns False, leaving the map untouched, when the priority is already
        present. An empty `elements` installs nothing but still returns True.
        """
        items = list(elements)
        with self._lock:
            if priority in self._buckets:
                return False
            self._install([(priority, items)])
            return True

    def add_or_update(self, element: T, priority: int) -> None:
        with self._lock:
            bucket = self._buckets.get(priority)
            if bucket is None:
                self._bucket_for(priority).append(element)
            elif not _contains(bucket, element):
                bucket.append(element)

    def add_or_update_bucket(self, elements: Iterable[T], priority: int) -> None:
        items = list(elements)
        with self._lock:
            bucket = self._buckets.get(priority)
            if bucket is None:
                self._install([(priority, items)])
                return
            for element in items:
                if not _contains(bucket, element):
                    bucket.append(element)

    # -- removing -------------------------------------------------------------

    def remove_highest(self) -> T:
        """Pop the oldest element of the highest bucket."""
        with self._lock:
            self._require_not_empty("remove highest priority")
            priority = self._order[-1]
            element = self._buckets[priority].pop(0)
            self._drop_if_empty(priority)
            return element

    def remove_highest_bucket(self) -> List[T]:
        with self._lock:
            self._require_not_empty("remove highest priority bucket")
            return self._drop(self._order[-1])

    def remove_at(self, priority: int, index: int) -> T:
        with self._lock:
            self._require_not_empty("remove any elements")
            bucket = self._require_priority(priority)
            if not 0 <= index < len(bucket):
                raise BucketIndexError(priority, index, len(bucket))
            element = bucket.pop(index)
            self._drop_if_empty(priority)
            return element

    def remove_element(self, element: T) -> bool:
        """Remove every element equal to `element`; False if there was none."""
        with self._lock:
            self._require_not_empty("remove any elements")
            touched = False
            for priority in list(self._order):
                bucket = self._buckets[priority]
                kept = [e for e in bucket if not e == element]
                if len(kept) != len(bucket):
                    touched = True
                    self._set_bucket(priority, kept)
            return touched

    def clear_priority(self, priority: int) -> bool:
        with self._lock:
            self._require_not_empty("remove bucket")
            return self._drop(priority) is not None

    def clear(self) -> None:
        with self._lock:
            for bucket in self._buckets.values():
                bucket.clear()
            self._buckets.clear()
            self._order.clear()

    def reset(self) -> None:
        with self._lock:
            self._buckets = {}
            self._order = []

    # -- reorganizing ---------------------------------------------------------

    def update_priority(self, element: T, new_priority: int) -> None:
        """
        Move one occurrence of `element` from its current bucket (see
        priority_of) to the end of the bucket for `new_priority`.
        """
        with self._lock:
            current = self._lookup(element)
            if current is None:
                raise InvalidStateError("Object does not exist within PriorityMap")
            # target first so an unorderable new_priority fails before any change
            target = self._bucket_for(new_priority)
            bucket = self._buckets[current]
            del bucket[_index(bucket, element)]
            target.append(element)
            self._drop_if_empty(current)

    def move_priority(self, source: int, destination: int) -> None:
        """Append the source bucket to the destination bucket, then drop source."""
        with self._lock:
            if source == destination or source not in self._buckets:
                return
            target = self._bucket_for(destination)
            moved = self._drop(source)
            target.extend(moved)
            log.debug("Moved %d elements from priority %s to %s",
                      len(moved), source, destination)

    def merge_priorities(self, priorities: Sequence[int], destination: int) -> None:
        with self._lock:
            for priority in priorities:
                self.move_priority(priority, destination)

    def merge_with_custom_logic(
        self,
        priorities: Sequence[int],
        destination: int,
        merge_fn: MergeFn,
    ) -> None:
        """
        Fold each present source bucket into the destination with
        `merge_fn(existing, incoming)` and drop the sources.

        `merge_fn` receives copies. Nothing is committed until every call has
        returned, so an exception from `merge_fn` leaves the map unchanged.
        An empty final result removes the destination bucket.
        """
        with self._lock:
            merged = list(self._buckets.get(destination, ()))
            consumed: List[int] = []
            for priority in priorities:
                if priority == destination or priority in consumed:
                    continue
                source = self._buckets.get(priority)
                if source is None:
                    continue
                merged = list(merge_fn(list(merged), list(source)))
                consumed.append(priority)
            if not consumed:
                return
            self._set_bucket(destination, merged)
            for priority in consumed:
                self._drop(priority)
            log.debug("Merged priorities %s into %s", consumed, destination)

    def reverse_order(self) -> None:
        with self._lock:
            for bucket in self._buckets.values():
                bucket.reverse()

    def trim_excess(self) -> None:
        # rebuilding each list drops any over-allocation
        with self._lock:
            for priority in self._order:
                self._buckets[priority] = list(self._buckets[priority])

    def for_each(self, action: Callable[[T], Any]) -> None:
        with self._lock:
            for element in self._snapshot():
                action(element)

    def split_by_predicate(
        self, predicate: Callable[[T], bool]
    ) -> Tuple["PriorityMap[T]", "PriorityMap[T]"]:
        with self._lock:
            satisfying, not_satisfying = self._new_empty(), self._new_empty()
            for priority in self._order:
                yes: List[T] = []
                no: List[T] = []
                for element in self._buckets[priority]:
                    (yes if predicate(element) else no).append(element)
                satisfying._install([(priority, yes)])
                not_satisfying._install([(priority, no)])
            return satisfying, not_satisfying

    def clone(self) -> "PriorityMap[T]":
        with self._lock:
            copy = self._new_empty()
            copy._install((p, list(self._buckets[p])) for p in self._order)
            return copy

    @classmethod
    def merge_static_structures(
        cls,
        source_buckets: Mapping[int, Sequence[T]],
        priorities: Sequence[int],
        comparator: Optional[Comparator] = None,
    ) -> "PriorityMap[T]":
        """
        Build a new map pairing priorities[i] with source_buckets[i].

        Missing indices count as empty buckets and are skipped. A priority
        listed twice keeps its first bucket.
        """
        if len(priorities) > len(source_buckets):
            raise InvalidStateError(
                "Number of priorities cannot be greater than the number of buckets"
            )
        merged = cls(comparator)
        for i, priority in enumerate(priorities):
            merged.add_bucket(source_buckets.get(i, ()), priority)
        return merged

    # -- serialization ----------------------------------------------------------

    def to_dict(self) -> Dict[str, Dict[str, List[T]]]:
        with self._lock:
            return {
                "priority_map": {str(p): list(self._buckets[p]) for p in self._order}
            }

    def serialize(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], comparator: Optional[Comparator] = None
    ) -> "PriorityMap[T]":
        raw = data["priority_map"]
        if not isinstance(raw, Mapping):
            raise TypeError("'priority_map' must be an object")
        items = []
        for key, elements in raw.items():
            if not isinstance(elements, list):
                raise TypeError(f"bucket {key!r} must be a list")
            items.append((int(key), list(elements)))
        pmap = cls(comparator)
        pmap._install(items)
        return pmap

    @classmethod
    def deserialize(
        cls, text: str, comparator: Optional[Comparator] = None
    ) -> Optional["PriorityMap[T]"]:
        """Parse `serialize()` output into a new map, or None if malformed."""
        try:
            return cls.from_dict(json.loads(text), comparator)
        except (ValueError, TypeError, KeyError) as e:
            log.error("Failed to deserialize PriorityMap: %s", e)
            return None

    # -- python protocol --------------------------------------------------------

    def __len__(self) -> int:
        return self.count()

    def __contains__(self, element: object) -> bool:
        return self.exists(element)

    def __iter__(self) -> Iterator[T]:
        return iter(self.all_elements())

    def __repr__(self) -> str:
        with self._lock:
            inner = ", ".join(f"{p}: {self._buckets[p]!r}" for p in self._order)
        return f"PriorityMap({{{inner}}})"
