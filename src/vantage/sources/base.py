"""Snapshot source abstraction with retry logic."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Awaitable, Callable, Optional, Protocol, Sequence, TypeVar, runtime_checkable

from ..models.snapshot import Snapshot
from ..utils.sanitize import sanitize_error

T = TypeVar("T")


class DashboardUnavailableError(RuntimeError):
    """The snapshot could not be read completely, so no dashboard is produced."""

    def __init__(self, reason: str):
        self.reason = sanitize_error(reason)
        super().__init__(f"Unable to compute dashboard: {self.reason}")


@runtime_checkable
class SnapshotSource(Protocol):
    """Protocol that all snapshot sources must implement."""

    name: str

    async def fetch(self) -> Snapshot: ...


def chunk(items: Sequence[T], size: int) -> list[list[T]]:
    size = max(1, int(size))
    return [list(items[start:start + size]) for start in range(0, len(items), size)]


async def gather_all(*operations: Awaitable[T]) -> list[T]:
    """Await every operation concurrently; the first failure cancels the rest."""
    tasks = [asyncio.ensure_future(operation) for operation in operations]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise


class BaseSource:
    """Base class with shared retry logic and config handling."""

    name: str = "base"

    def __init__(self, source_config: dict):
        self.config = source_config
        self.max_attempts = max(1, int(source_config.get("retry_attempts", 3)))
        self.retry_delay = source_config.get("retry_delay_seconds", 2)
        self.batch_size = max(1, int(source_config.get("batch_size", 500)))

    async def fetch(self) -> Snapshot:
        raise NotImplementedError

    def is_retryable(self, error: Exception) -> bool:
        return False

    async def with_retry(self, operation: Callable[[], Awaitable[T]], what: str) -> T:
        """Run ``operation``, retrying transient failures with linear backoff."""
        for attempt in range(1, self.max_attempts + 1):
            try:
                return await operation()
            except DashboardUnavailableError:
                raise
            except Exception as e:
                if not self.is_retryable(e) or attempt >= self.max_attempts:
                    raise DashboardUnavailableError(f"{what} failed: {e}") from e
                await asyncio.sleep(self.retry_delay * min(attempt, 3))
        raise DashboardUnavailableError(f"{what} failed: max retries exceeded")


def get_snapshot_source(
    config: dict,
    source_override: Optional[str] = None,
    path_override: Optional[str] = None,
    endpoint_override: Optional[str] = None,
) -> BaseSource:
    """Factory function to create the configured snapshot source."""
    source_config = dict(config.get("source", {}))

    if path_override:
        source_config["path"] = path_override
    if endpoint_override:
        source_config["endpoint"] = endpoint_override

    if endpoint_override:
        inferred = "http"
    elif path_override:
        inferred = "file"
    else:
        inferred = source_config.get("type", "file")
    source_type = source_override or inferred

    if source_type == "file":
        from .file import FileSnapshotSource
        project_path = config.get("_project_path")
        return FileSnapshotSource(source_config, base_path=Path(project_path) if project_path else None)
    elif source_type == "http":
        from .http import HttpSnapshotSource
        return HttpSnapshotSource(source_config)
    else:
        raise ValueError(f"Unknown snapshot source: {source_type}")
