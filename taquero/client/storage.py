"""
Persisted local buckets for the client stores.
Each store keeps its last-known state under one named bucket. JSON files are
the default; set REDIS_URL to share buckets through Redis.
"""
import copy
import json
import logging
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Optional

from taquero.core.config import settings

logger = logging.getLogger(__name__)


class BucketStorage(ABC):
    """Named key/value buckets holding JSON-serializable store state."""

    @abstractmethod
    def load(self, bucket: str) -> Optional[Dict[str, Any]]:
        """Return the saved state, or None when the bucket is empty."""

    @abstractmethod
    def save(self, bucket: str, state: Dict[str, Any]) -> None:
        """Replace the bucket contents."""

    @abstractmethod
    def delete(self, bucket: str) -> None:
        """Drop the bucket."""


class MemoryBucketStorage(BucketStorage):
    """Process-local buckets. State is copied in and out."""

    def __init__(self):
        self._buckets: Dict[str, Dict[str, Any]] = {}

    def load(self, bucket: str) -> Optional[Dict[str, Any]]:
        state = self._buckets.get(bucket)
        return copy.deepcopy(state) if state is not None else None

    def save(self, bucket: str, state: Dict[str, Any]) -> None:
        self._buckets[bucket] = copy.deepcopy(state)

    def delete(self, bucket: str) -> None:
        self._buckets.pop(bucket, None)


class FileBucketStorage(BucketStorage):
    """One ``<bucket>.json`` file per bucket under a directory."""

    def __init__(self, directory: Optional[str] = None):
        self.directory = Path(directory or settings.cache_dir)

    def _path(self, bucket: str) -> Path:
        return self.directory / f"{bucket}.json"

    def load(self, bucket: str) -> Optional[Dict[str, Any]]:
        path = self._path(bucket)
        if not path.exists():
            return None
        try:
            with path.open("r", encoding="utf-8") as f:
                state = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable bucket {bucket}: {e}")
            return None
        return state if isinstance(state, dict) else None

    def save(self, bucket: str, state: Dict[str, Any]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(bucket)
        tmp_path = path.with_suffix(".json.tmp")
        with tmp_path.open("w", encoding="utf-8") as f:
            json.dump(state, f, default=str)
        os.replace(tmp_path, path)

    def delete(self, bucket: str) -> None:
        path = self._path(bucket)
        if path.exists():
            path.unlink()


class RedisBucketStorage(BucketStorage):
    """Redis-backed buckets with in-memory fallback."""

    def __init__(self, redis_url: Optional[str] = None):
        self._redis = None
        self._fallback = MemoryBucketStorage()
        redis_url = redis_url or settings.redis_url
        if redis_url:
            try:
                import redis
                self._redis = redis.from_url(
                    redis_url, socket_connect_timeout=2, decode_responses=True,
                )
                self._redis.ping()
                logger.info("Redis bucket storage connected")
            except Exception as e:
                logger.warning(f"Redis unavailable, using memory buckets: {e}")
                self._redis = None

    @property
    def is_connected(self) -> bool:
        return self._redis is not None

    def load(self, bucket: str) -> Optional[Dict[str, Any]]:
        try:
            if self._redis:
                val = self._redis.get(bucket)
                return json.loads(val) if val else None
        except Exception as e:
            logger.warning(f"Redis read of {bucket} failed, using memory bucket: {e}")
        return self._fallback.load(bucket)

    def save(self, bucket: str, state: Dict[str, Any]) -> None:
        self._fallback.save(bucket, state)
        try:
            if self._redis:
                self._redis.set(bucket, json.dumps(state, default=str))
        except Exception as e:
            logger.warning(f"Redis write of {bucket} failed, kept in memory: {e}")

    def delete(self, bucket: str) -> None:
        self._fallback.delete(bucket)
        try:
            if self._redis:
                self._redis.delete(bucket)
        except Exception as e:
            logger.warning(f"Redis delete of {bucket} failed: {e}")


def get_bucket_storage() -> BucketStorage:
    """Storage chosen by settings: Redis when REDIS_URL is set, JSON files otherwise."""
    if settings.redis_url:
        return RedisBucketStorage(settings.redis_url)
    return FileBucketStorage(settings.cache_dir)
