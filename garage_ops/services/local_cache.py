"""
Local durable cache for entity collections
Full-snapshot mirror used when Supabase cannot be reached at startup
"""

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class CacheBackend(ABC):
    """Abstract base class for collection snapshot caches"""

    @abstractmethod
    def write(self, key: str, items: List[Dict[str, Any]]) -> None:
        """Replace the snapshot stored under key"""
        pass

    @abstractmethod
    def read(self, key: str) -> List[Dict[str, Any]]:
        """Last snapshot for key, or [] if missing or unreadable"""
        pass


class LocalFileCache(CacheBackend):
    """One JSON file per collection key"""

    def __init__(self, data_directory: str = "./garage_cache"):
        self.data_directory = data_directory
        os.makedirs(data_directory, exist_ok=True)

    def _get_file_path(self, key: str) -> str:
        return os.path.join(self.data_directory, f"{key}.json")

    def write(self, key: str, items: List[Dict[str, Any]]) -> None:
        file_path = self._get_file_path(key)
        fd, temp_path = tempfile.mkstemp(
            prefix=f"{key}.",
            suffix=".tmp",
            dir=self.data_directory,
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(items, handle, indent=2, default=str, ensure_ascii=False)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(temp_path, file_path)
        except Exception:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise

    def read(self, key: str) -> List[Dict[str, Any]]:
        file_path = self._get_file_path(key)
        if not os.path.exists(file_path):
            return []
        try:
            with open(file_path, "r", encoding="utf-8") as handle:
                data = json.load(handle)
        except (OSError, ValueError) as e:
            logger.warning(f"⚠️ Cache file for {key} is unreadable, ignoring it: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"⚠️ Cache file for {key} does not hold a list, ignoring it")
            return []
        return [item for item in data if isinstance(item, dict)]

