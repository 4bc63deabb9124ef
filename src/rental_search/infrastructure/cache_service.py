"""In-memory store for search tasks and their reports."""

from __future__ import annotations

from typing import Any

from cachetools import TTLCache

from ..config import get_settings


class CacheService:
    """
    Service holding search task state.

    Running tasks are pinned in a plain dict and never expire, so a long
    search stays reachable for progress and stop requests. Finished tasks
    move into a TTL-bounded cache. Entries live only in this process;
    nothing is written to disk.
    """

    def __init__(
        self,
        task_cache_ttl: int | None = None,
        task_cache_size: int | None = None,
    ) -> None:
        """
        Initialize cache service with configurable TTL and size.

        Args:
            task_cache_ttl: TTL for finished tasks in seconds (default from config)
            task_cache_size: Max number of finished tasks kept (default from config)
        """
        settings = get_settings()

        self._active_tasks: dict[str, dict[str, Any]] = {}
        self._task_cache: TTLCache[str, dict[str, Any]] = TTLCache(
            maxsize=task_cache_size or settings.task_cache_size,
            ttl=task_cache_ttl or settings.task_cache_ttl,
        )

    def get_task(self, task_id: str) -> dict[str, Any] | None:
        """
        Get task data by task_id.

        Args:
            task_id: Task identifier

        Returns:
            Task data dict or None if not found/expired
        """
        task_data = self._active_tasks.get(task_id)
        if task_data is not None:
            return task_data
        return self._task_cache.get(task_id)

    def set_task(
        self,
        task_id: str,
        task_data: dict[str, Any],
        *,
        active: bool = False,
    ) -> None:
        """
        Store task data.

        Args:
            task_id: Task identifier
            task_data: Task data to store
            active: Pin the entry until finish_task is called
        """
        if active:
            self._task_cache.pop(task_id, None)
            self._active_tasks[task_id] = task_data
        else:
            self._active_tasks.pop(task_id, None)
            self._task_cache[task_id] = task_data

    def update_task(self, task_id: str, **changes: Any) -> None:
        """
        Merge changes into an existing task entry.

        Does nothing when the entry is gone.

        Args:
            task_id: Task identifier
            **changes: Keys to overwrite
        """
        if task_id in self._active_tasks:
            self._active_tasks[task_id] = {**self._active_tasks[task_id], **changes}
            return
        task_data = self._task_cache.get(task_id)
        if task_data is not None:
            self._task_cache[task_id] = {**task_data, **changes}

    def finish_task(self, task_id: str, **changes: Any) -> None:
        """
        Merge final changes and let the entry expire from now on.

        Does nothing when the entry is gone.

        Args:
            task_id: Task identifier
            **changes: Keys to overwrite
        """
        task_data = self._active_tasks.pop(task_id, None)
        if task_data is None:
            task_data = self._task_cache.get(task_id)
        if task_data is None:
            return
        self._task_cache[task_id] = {**task_data, **changes}

    def clear_task_cache(self) -> None:
        """Clear all running and finished task entries."""
        self._active_tasks.clear()
        self._task_cache.clear()
