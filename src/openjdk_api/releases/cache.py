"""
TTL cache and refresh queue for raw GitHub release collections.

Each repository name maps to one CacheEntry. Reads never block on an entry
that already holds data unless it is very stale; refreshes run on a fixed-size
pool of worker tasks draining a FIFO queue, which bounds the number of
concurrent GitHub calls regardless of how many requests are waiting.

Entry lifecycle:

    EMPTY -> FETCHING -> FRESH -> STALE -> FETCHING -> FRESH -> ...

When running without a GitHub token the whole cache is snapshotted to disk
after every successful refresh and reloaded on start, because a cold start
against the unauthenticated rate limit is expensive.
"""

import asyncio
import os
import time
from dataclasses import replace
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

from openjdk_api.config import ApiSettings
from openjdk_api.constants import (
    LEGACY_RELEASES_CACHE_FILE,
    NEW_RELEASES_CACHE_FILE,
    NEW_REPO_SUFFIX,
    RATE_LIMITED_BACKOFF_DIVISOR,
)
from openjdk_api.exceptions import (
    RateLimitError,
    RepositoryNotFoundError,
    UpstreamError,
)
from openjdk_api.log_utils import logger

from .async_client import AsyncGitHubClient
from .files import atomic_write_json, read_json
from .interfaces import CacheEntry

RawReleases = List[Dict[str, Any]]


class ReleaseCache:
    """
    Owns cached release collections keyed by repository name.

    Use as an async context manager, or call start() and close() explicitly:

        async with ReleaseCache(client, settings) as cache:
            releases = await cache.get("openjdk11-binaries")
    """

    def __init__(
        self,
        client: AsyncGitHubClient,
        settings: Optional[ApiSettings] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Create a cache around an upstream client.

        Parameters:
            client (AsyncGitHubClient): Fetcher used by the refresh workers.
            settings (Optional[ApiSettings]): Cooldowns, worker count, cache directory and refresh interval.
            clock (Callable[[], float]): Source of epoch seconds; injectable for tests.
        """
        self.client = client
        self.settings = settings or ApiSettings(github_token=client.github_token)
        self._clock = clock

        self._entries: Dict[str, CacheEntry] = {}
        self._pending: Dict[str, "asyncio.Future[RawReleases]"] = {}
        self._queue: "asyncio.Queue[str]" = asyncio.Queue()
        self._workers: List["asyncio.Task[None]"] = []
        self._refresh_task: Optional["asyncio.Task[None]"] = None
        self._save_lock = asyncio.Lock()
        self._dirty = False
        self._stats = {"hits": 0, "stale": 0, "misses": 0, "refreshes": 0, "failures": 0}

    # ------------------------------------------------------------------
    # lifecycle
    # ------------------------------------------------------------------

    @property
    def authenticated(self) -> bool:
        return bool(self.client.github_token)

    @property
    def persistence_enabled(self) -> bool:
        """Snapshots are only kept when unauthenticated; with a token cold starts are cheap."""
        return not self.authenticated

    @property
    def cooldown(self) -> float:
        return self.settings.cooldown_for(self.authenticated)

    @property
    def very_stale_after(self) -> float:
        return self.settings.very_stale_after_for(self.authenticated)

    async def __aenter__(self) -> "ReleaseCache":
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def start(self) -> None:
        """Load the persisted snapshot (unauthenticated only) and start the refresh workers."""
        if self.persistence_enabled:
            await self.load()
        self._ensure_workers()
        if self.settings.refresh_interval > 0 and self._refresh_task is None:
            self._refresh_task = asyncio.create_task(self._periodic_refresh())

    async def close(self) -> None:
        """Stop the workers, flush an unsaved snapshot and close the upstream client."""
        tasks: List["asyncio.Task[None]"] = list(self._workers)
        if self._refresh_task is not None:
            tasks.append(self._refresh_task)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._workers = []
        self._refresh_task = None

        for repo, future in list(self._pending.items()):
            if not future.done():
                future.cancel()
            self._pending.pop(repo, None)

        if self.persistence_enabled and self._dirty:
            await self.save()
        await self.client.close()

    def _ensure_workers(self) -> None:
        if self._workers:
            return
        self._workers = [
            asyncio.create_task(self._worker(index), name=f"release-refresh-{index}")
            for index in range(self.settings.workers)
        ]
        logger.debug(f"Started {len(self._workers)} release refresh workers")

    # ------------------------------------------------------------------
    # reads
    # ------------------------------------------------------------------

    def entry(self, repo: str) -> Optional[CacheEntry]:
        return self._entries.get(repo)

    def keys(self) -> List[str]:
        return list(self._entries)

    def stats(self) -> Dict[str, int]:
        return dict(self._stats)

    async def get(self, repo: str) -> RawReleases:
        """
        Return the raw releases of a repository.

        A fresh entry is returned as is. A stale entry is returned immediately
        while a background refresh is queued, unless it is very stale, in which
        case the caller waits for the refresh (which falls back to the stale
        data if the fetch fails). An unseen repository is fetched and waited
        for.

        Raises:
            UpstreamError: Only when the fetch fails and no data was ever cached for the repository.
        """
        entry = self._entries.get(repo)
        now = self._clock()

        if entry is None or not entry.has_data:
            self._stats["misses"] += 1
            logger.debug(f"Cache miss for {repo}; fetching")
            return await asyncio.shield(self._enqueue(repo))

        if now < entry.next_eligible_refresh:
            self._stats["hits"] += 1
            return entry.data or []

        self._stats["stale"] += 1
        future = self._enqueue(repo)
        if now - entry.fetched_at > self.very_stale_after:
            logger.debug(f"Cache entry for {repo} is very stale; waiting for refresh")
            return await asyncio.shield(future)

        logger.debug(f"Serving stale cache entry for {repo}; refresh queued")
        return entry.data or []

    def refresh_all(self, repos: Optional[Iterable[str]] = None) -> int:
        """
        Queue a refresh for the given repositories, or every cached one.

        Returns:
            int: Number of repositories queued (already-pending ones are not queued twice).
        """
        queued = 0
        for repo in list(repos) if repos is not None else self.keys():
            if repo not in self._pending:
                queued += 1
            self._enqueue(repo)
        return queued

    async def join(self) -> None:
        """Wait until every queued refresh has been processed."""
        await self._queue.join()

    def _enqueue(self, repo: str) -> "asyncio.Future[RawReleases]":
        future = self._pending.get(repo)
        if future is not None:
            return future

        self._ensure_workers()
        future = asyncio.get_running_loop().create_future()
        # A waiter may have gone away; never leave an exception unretrieved
        future.add_done_callback(
            lambda f: f.exception() if not f.cancelled() else None
        )
        self._pending[repo] = future
        self._queue.put_nowait(repo)
        return future

    # ------------------------------------------------------------------
    # refresh workers
    # ------------------------------------------------------------------

    async def _worker(self, index: int) -> None:
        while True:
            repo = await self._queue.get()
            try:
                await self._refresh(repo)
            finally:
                self._queue.task_done()

    async def _periodic_refresh(self) -> None:
        interval = self.settings.refresh_interval
        while True:
            await asyncio.sleep(interval)
            queued = self.refresh_all()
            logger.info(f"Scheduled refresh of {queued} release repositories")

    async def _refresh(self, repo: str) -> None:
        previous = self._entries.get(repo) or CacheEntry(key=repo)
        error: Optional[BaseException] = None
        succeeded = False

        try:
            data = await self.client.get_releases(repo)
        except RateLimitError as e:
            error = e
            self._stats["failures"] += 1
            backoff = self.cooldown / RATE_LIMITED_BACKOFF_DIVISOR
            logger.warning(f"Rate limited refreshing {repo}; retrying in {backoff:.0f}s")
            self._entries[repo] = replace(
                previous, next_eligible_refresh=self._clock() + backoff
            )
        except RepositoryNotFoundError:
            now = self._clock()
            logger.info(f"Repository {repo} does not exist; backing off")
            if previous.has_data:
                self._entries[repo] = replace(
                    previous,
                    next_eligible_refresh=now + self.settings.not_found_cooldown,
                )
            else:
                self._entries[repo] = CacheEntry(
                    key=repo,
                    data=[],
                    fetched_at=now,
                    next_eligible_refresh=now + self.settings.not_found_cooldown,
                )
        except asyncio.CancelledError:
            self._resolve(repo, None, asyncio.CancelledError())
            raise
        except Exception as e:
            error = e
            self._stats["failures"] += 1
            backoff = self.cooldown / RATE_LIMITED_BACKOFF_DIVISOR
            retryable = not isinstance(e, UpstreamError) or e.is_retryable
            if previous.has_data and retryable:
                logger.warning(f"Refresh of {repo} failed, keeping stale data: {e}")
            elif previous.has_data:
                logger.error(f"Refresh of {repo} hit a non-retryable error, keeping stale data: {e}")
            else:
                logger.error(f"Refresh of {repo} failed with no cached data: {e}")
            self._entries[repo] = replace(
                previous, next_eligible_refresh=self._clock() + backoff
            )
        else:
            now = self._clock()
            self._entries[repo] = CacheEntry(
                key=repo,
                data=data,
                fetched_at=now,
                next_eligible_refresh=now + self.cooldown,
            )
            self._stats["refreshes"] += 1
            succeeded = True
            logger.debug(f"Refreshed {repo}: {len(data)} releases")

        self._resolve(repo, self._entries[repo].data, error)

        if succeeded and self.persistence_enabled:
            self._dirty = True
            await self.save()

    def _resolve(
        self, repo: str, data: Optional[RawReleases], error: Optional[BaseException]
    ) -> None:
        future = self._pending.pop(repo, None)
        if future is None or future.done():
            return
        if data is not None:
            future.set_result(data)
        elif isinstance(error, asyncio.CancelledError):
            future.cancel()
        else:
            future.set_exception(error or RuntimeError(f"No data for {repo}"))

    # ------------------------------------------------------------------
    # persistence
    # ------------------------------------------------------------------

    def snapshot_path(self, name: str) -> str:
        return os.path.join(self.settings.cache_dir, name)

    @staticmethod
    def _snapshot_file_for(repo: str) -> str:
        if repo.endswith(NEW_REPO_SUFFIX):
            return NEW_RELEASES_CACHE_FILE
        return LEGACY_RELEASES_CACHE_FILE

    async def save(self) -> bool:
        """
        Write the new and legacy snapshots atomically.

        Each file maps repository name to {"cacheTime": epoch millis, "body": raw releases}.

        Returns:
            bool: True if both files were written.
        """
        snapshots: Dict[str, Dict[str, Any]] = {
            NEW_RELEASES_CACHE_FILE: {},
            LEGACY_RELEASES_CACHE_FILE: {},
        }
        for repo, entry in list(self._entries.items()):
            if not entry.has_data:
                continue
            snapshots[self._snapshot_file_for(repo)][repo] = {
                "cacheTime": int(entry.fetched_at * 1000),
                "body": entry.data,
            }

        async with self._save_lock:
            results = [
                await atomic_write_json(self.snapshot_path(name), snapshot)
                for name, snapshot in snapshots.items()
            ]
        ok = all(results)
        if ok:
            self._dirty = False
        return ok

    async def load(self) -> int:
        """
        Load persisted snapshots into the cache.

        Loaded entries keep their original fetch time, so they are served or
        refreshed according to the usual staleness rules.

        Returns:
            int: Number of repositories loaded.
        """
        loaded = 0
        seen: Set[str] = set()
        for name in (NEW_RELEASES_CACHE_FILE, LEGACY_RELEASES_CACHE_FILE):
            snapshot = await read_json(self.snapshot_path(name))
            if snapshot is None:
                continue
            if not isinstance(snapshot, dict):
                logger.warning(f"Ignoring malformed cache snapshot {name}")
                continue
            for repo, record in snapshot.items():
                if repo in seen or not isinstance(record, dict):
                    continue
                body = record.get("body")
                cache_time = record.get("cacheTime")
                if not isinstance(body, list) or not isinstance(cache_time, (int, float)):
                    logger.debug(f"Skipping malformed snapshot record for {repo}")
                    continue
                fetched_at = cache_time / 1000
                self._entries[repo] = CacheEntry(
                    key=repo,
                    data=body,
                    fetched_at=fetched_at,
                    next_eligible_refresh=fetched_at + self.cooldown,
                )
                seen.add(repo)
                loaded += 1

        if loaded:
            logger.info(f"Loaded {loaded} cached release repositories from disk")
        return loaded
