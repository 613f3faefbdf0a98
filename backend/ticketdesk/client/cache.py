"""Client-side keyed query cache.

Every logical resource (e.g. "tickets") gets one entry holding its current state,
the views subscribed to it, the fetcher used to (re)load it and the in-flight load.
Writes go through ``mutate``: the mutation runs, and only when it succeeds is the
key invalidated, which moves it to ``loading`` and refetches in the background.
Subscribers see every transition in the same order.
"""
from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Dict, List, Optional

logger = logging.getLogger(__name__)

EMPTY = "empty"
LOADING = "loading"
SUCCESS = "success"
ERROR = "error"

Fetcher = Callable[[], Awaitable[Any]]
Listener = Callable[["QueryState"], None]


@dataclass(frozen=True)
class QueryState:
    status: str = EMPTY
    data: Any = None
    error: Optional[BaseException] = None
    updated_at: Optional[float] = None

    @property
    def is_loading(self) -> bool:
        return self.status == LOADING

    @property
    def is_success(self) -> bool:
        return self.status == SUCCESS

    @property
    def is_error(self) -> bool:
        return self.status == ERROR


class Subscription:
    def __init__(self, cache: "QueryCache", key: str, callback: Listener):
        self._cache = cache
        self.key = key
        self.callback = callback
        self.closed = False

    def close(self) -> None:
        """Stop receiving updates. Requests already sent are not aborted."""
        if not self.closed:
            self.closed = True
            self._cache._unsubscribe(self)


@dataclass
class _Entry:
    state: QueryState = field(default_factory=QueryState)
    subscribers: List[Subscription] = field(default_factory=list)
    fetcher: Optional[Fetcher] = None
    inflight: Optional[asyncio.Task] = None
    generation: int = 0
    mutation_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


class QueryCache:
    def __init__(self) -> None:
        self._entries: Dict[str, _Entry] = {}

    def _entry(self, key: str) -> _Entry:
        entry = self._entries.get(key)
        if entry is None:
            entry = self._entries[key] = _Entry()
        return entry

    def get_state(self, key: str) -> QueryState:
        entry = self._entries.get(key)
        return entry.state if entry else QueryState()

    def get_data(self, key: str) -> Any:
        return self.get_state(key).data

    def subscribe(self, key: str, callback: Listener) -> Subscription:
        sub = Subscription(self, key, callback)
        self._entry(key).subscribers.append(sub)
        return sub

    def subscriber_count(self, key: str) -> int:
        entry = self._entries.get(key)
        return len(entry.subscribers) if entry else 0

    def _unsubscribe(self, sub: Subscription) -> None:
        entry = self._entries.get(sub.key)
        if entry and sub in entry.subscribers:
            entry.subscribers.remove(sub)

    def _set_state(self, entry: _Entry, state: QueryState) -> None:
        entry.state = state
        for sub in list(entry.subscribers):
            if sub.closed:
                continue
            try:
                sub.callback(state)
            except Exception:
                # One broken view must not stop the others from rendering
                logger.exception("Subscriber of %r failed while handling %s", sub.key, state.status)

    async def fetch(self, key: str, fetcher: Fetcher) -> Any:
        """Load ``key``, sharing the call with any load already in flight.

        Raises whatever the fetcher raised; the entry then keeps its previous data
        next to the error.
        """
        entry = self._entry(key)
        entry.fetcher = fetcher
        task = entry.inflight
        if task is None or task.done():
            task = self._start_fetch(key, entry)
        # shield: a caller that goes away must not cancel the load other views share
        return await asyncio.shield(task)

    def invalidate(self, key: str) -> Optional[asyncio.Task]:
        """Mark ``key`` stale and refetch it in the background.

        Returns the refetch task, or None when the key was never fetched.
        A newer refetch always wins over an older one still in flight.
        """
        entry = self._entries.get(key)
        if entry is None or entry.fetcher is None:
            return None
        return self._start_fetch(key, entry)

    async def wait_for_fetch(self, key: str) -> QueryState:
        """Wait until the current load of ``key`` (if any) settles and return the state."""
        entry = self._entries.get(key)
        while entry is not None and entry.inflight is not None and not entry.inflight.done():
            task = entry.inflight
            await asyncio.wait({task})
        return self.get_state(key)

    async def mutate(self, key: str, mutation: Callable[..., Awaitable[Any]], *args: Any, **kwargs: Any) -> Any:
        """Run a write against the resource behind ``key``.

        Mutations on the same key run one at a time. On success the key is
        invalidated and the mutation result returned; on failure the error is
        re-raised and the cached state is left untouched.
        """
        entry = self._entry(key)
        async with entry.mutation_lock:
            result = await mutation(*args, **kwargs)
        self.invalidate(key)
        return result

    def _start_fetch(self, key: str, entry: _Entry) -> asyncio.Task:
        entry.generation += 1
        generation = entry.generation
        self._set_state(entry, replace(entry.state, status=LOADING))
        task = asyncio.create_task(self._run_fetch(key, entry, generation))
        task.add_done_callback(_retrieve_exception)
        entry.inflight = task
        return task

    async def _run_fetch(self, key: str, entry: _Entry, generation: int) -> Any:
        try:
            data = await entry.fetcher()
        except Exception as e:
            if generation == entry.generation:
                self._set_state(entry, replace(entry.state, status=ERROR, error=e, updated_at=time.time()))
            else:
                logger.debug("Dropping stale failed fetch of %r (generation %d)", key, generation)
            raise
        if generation == entry.generation:
            self._set_state(entry, QueryState(status=SUCCESS, data=data, updated_at=time.time()))
        else:
            logger.debug("Dropping stale fetch result of %r (generation %d)", key, generation)
        return data

    async def close(self) -> None:
        tasks = [e.inflight for e in self._entries.values() if e.inflight and not e.inflight.done()]
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        for entry in self._entries.values():
            entry.subscribers.clear()


def _retrieve_exception(task: asyncio.Task) -> None:
    # Background refetches may fail with nobody awaiting them; the error lives on in the state
    if not task.cancelled() and task.exception() is not None:
        logger.debug("Background fetch failed: %r", task.exception())
