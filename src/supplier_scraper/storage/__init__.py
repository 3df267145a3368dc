"""Persistence helpers: result cache and raw response capture."""

from .cache_key import canonicalize
from .response_dump import ResponseDump
from .sqlite_store import ResultCache

__all__ = ["ResultCache", "ResponseDump", "canonicalize"]
