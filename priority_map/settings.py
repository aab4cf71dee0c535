from __future__ import annotations
import os
from typing import Optional, Callable, TypeVar
from dotenv import load_dotenv

# Load .env exactly once, as soon as the package is imported
load_dotenv()

_T = TypeVar("_T")

def _coerce(val: Optional[str], caster: Callable[[str], _T], default: _T) -> _T:
    if val is None or val == "":
        return default
    try:
        return caster(val)
    except ValueError:
        return default

def env_str(key: str, default: str = "") -> str:
    return os.getenv(key, default)

def env_int(key: str, default: int = 0) -> int:
    return _coerce(os.getenv(key), int, default)

def env_bool(key: str, default: bool = False) -> bool:
    v = os.getenv(key)
    if v is None: return default
    v = v.strip().lower()
    if v in ("1", "true", "yes", "y", "on"): return True
    if v in ("0", "false", "no", "n", "off"): return False
    return default

# Typed getters for the CLI defaults
def store_path() -> str:
    return env_str("PRIORITY_MAP_STORE", "data/priority_map.json")

def log_level() -> str:
    return env_str("PRIORITY_MAP_LOG_LEVEL", "INFO")

def descending() -> bool:
    return env_bool("PRIORITY_MAP_DESCENDING", False)

def preview_limit() -> int:
    return env_int("PRIORITY_MAP_PREVIEW_LIMIT", 10)
