"""Local cache engines and the fallback-aware project cache."""

from .base import CacheBackend, VideoBlob
from .json_file import JsonFileCacheBackend
from .sqlite import SqliteCacheBackend
from .store import LocalProjectCache

__all__ = [
    "CacheBackend",
    "VideoBlob",
    "JsonFileCacheBackend",
    "SqliteCacheBackend",
    "LocalProjectCache",
]
