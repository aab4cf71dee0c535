import os, json, threading, logging
from typing import Optional

from .core import PriorityMap, Comparator
from .exceptions import CorruptStoreError

log = logging.getLogger("priority_map")


class MapStore:
    """
    Thread-safe JSON file store for a PriorityMap.
    Schema:
    {
      "priority_map": {
        "1": ["low", ...],
        "5": ["urgent", ...]
      }
    }
    Keys appear in the map's iteration order; elements must be JSON values.
    """
    def __init__(self, path: str = "data/priority_map.json", comparator: Optional[Comparator] = None):
        self.path = path
        self.comparator = comparator
        self._lock = threading.RLock()
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)

    def load(self, strict: bool = False) -> PriorityMap:
        """Stored map, or an empty one when the file is missing.

        An unreadable or corrupt file also gives an empty map, unless `strict`
        is set, in which case CorruptStoreError is raised instead.
        """
        with self._lock:
            if not os.path.exists(self.path):
                return PriorityMap(self.comparator)
            try:
                with open(self.path, "r", encoding="utf-8") as f:
                    text = f.read()
            except OSError as e:
                log.error("Failed to read priority map store %s: %s", self.path, e)
                if strict:
                    raise CorruptStoreError(f"Cannot read {self.path}: {e}") from e
                return PriorityMap(self.comparator)
            pmap = PriorityMap.deserialize(text, self.comparator)
            if pmap is None:
                if strict:
                    raise CorruptStoreError(f"Priority map store {self.path} is corrupt")
                log.error("Priority map store %s is corrupt; starting empty", self.path)
                return PriorityMap(self.comparator)
            log.info("Loaded %d elements from %s", len(pmap), self.path)
            return pmap

    def save(self, pmap: PriorityMap) -> None:
        # write-then-rename so readers never see a half-written file
        tmp = self.path + ".tmp"
        with self._lock:
            try:
                with open(tmp, "w", encoding="utf-8") as f:
                    json.dump(pmap.to_dict(), f)
                os.replace(tmp, self.path)
            except (OSError, TypeError) as e:
                log.error("Failed to save priority map store %s: %s", self.path, e)
                if os.path.exists(tmp):
                    os.remove(tmp)
                raise
