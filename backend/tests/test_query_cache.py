import asyncio

import pytest

from ticketdesk.client.cache import QueryCache


class FakeBackend:
    """In-memory stand-in for the tickets endpoint, counting reads."""

    def __init__(self, items=None, delay=0.0):
        self.items = list(items or [])
        self.delay = delay
        self.reads = 0
        self.fail_reads = False

    async def read(self):
        self.reads += 1
        snapshot = list(self.items)
        await asyncio.sleep(self.delay)
        if self.fail_reads:
            raise RuntimeError("backend unavailable")
        return snapshot

    async def add(self, item):
        await asyncio.sleep(0)
        self.items.append(item)
        return item

    async def reject(self, item):
        await asyncio.sleep(0)
        raise ValueError("duplicate telephone")


@pytest.mark.asyncio
async def test_fetch_moves_empty_to_loading_to_success():
    cache = QueryCache()
    backend = FakeBackend(["a"])
    seen = []
    cache.subscribe("tickets", lambda s: seen.append(s.status))

    assert cache.get_state("tickets").status == "empty"
    data = await cache.fetch("tickets", backend.read)

    assert data == ["a"]
    assert seen == ["loading", "success"]
    assert cache.get_data("tickets") == ["a"]


@pytest.mark.asyncio
async def test_concurrent_fetches_share_one_call():
    cache = QueryCache()
    backend = FakeBackend(["a"], delay=0.01)

    results = await asyncio.gather(*(cache.fetch("tickets", backend.read) for _ in range(5)))

    assert backend.reads == 1
    assert all(r == ["a"] for r in results)


@pytest.mark.asyncio
async def test_fetch_error_keeps_previous_data():
    cache = QueryCache()
    backend = FakeBackend(["a"])
    await cache.fetch("tickets", backend.read)

    backend.fail_reads = True
    with pytest.raises(RuntimeError):
        await cache.fetch("tickets", backend.read)

    state = cache.get_state("tickets")
    assert state.status == "error"
    assert state.data == ["a"]
    assert isinstance(state.error, RuntimeError)


@pytest.mark.asyncio
async def test_successful_mutation_invalidates_and_all_subscribers_converge():
    cache = QueryCache()
    backend = FakeBackend(["a"])
    list_view, detail_view = [], []
    cache.subscribe("tickets", list_view.append)
    cache.subscribe("tickets", detail_view.append)
    await cache.fetch("tickets", backend.read)

    await cache.mutate("tickets", backend.add, "b")
    state = await cache.wait_for_fetch("tickets")

    assert state.status == "success"
    assert state.data == ["a", "b"]
    assert backend.reads == 2
    assert [s.status for s in list_view] == ["loading", "success", "loading", "success"]
    assert list_view == detail_view
    # previous data stays visible while the refetch runs
    assert list_view[2].data == ["a"]


@pytest.mark.asyncio
async def test_failed_mutation_surfaces_error_without_invalidating():
    cache = QueryCache()
    backend = FakeBackend(["a"])
    await cache.fetch("tickets", backend.read)
    seen = []
    cache.subscribe("tickets", seen.append)

    with pytest.raises(ValueError):
        await cache.mutate("tickets", backend.reject, "b")

    assert seen == []
    assert backend.reads == 1
    state = cache.get_state("tickets")
    assert state.status == "success"
    assert state.data == ["a"]


@pytest.mark.asyncio
async def test_mutations_on_same_key_run_one_at_a_time():
    cache = QueryCache()
    active = 0
    peak = 0

    async def slow_write():
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1

    await asyncio.gather(*(cache.mutate("tickets", slow_write) for _ in range(3)))
    assert peak == 1


@pytest.mark.asyncio
async def test_last_refetch_wins():
    cache = QueryCache()
    release_first = asyncio.Event()
    calls = 0

    async def fetcher():
        nonlocal calls
        calls += 1
        if calls == 2:
            # the older refetch resolves after the newer one
            await release_first.wait()
            return ["old"]
        return ["new"] if calls == 3 else ["initial"]

    await cache.fetch("tickets", fetcher)
    older = cache.invalidate("tickets")
    newer = cache.invalidate("tickets")
    await newer
    release_first.set()
    await older

    assert cache.get_data("tickets") == ["new"]


@pytest.mark.asyncio
async def test_invalidate_without_fetcher_is_noop():
    cache = QueryCache()
    assert cache.invalidate("tickets") is None
    assert cache.get_state("tickets").status == "empty"


@pytest.mark.asyncio
async def test_closed_subscription_gets_no_updates_but_request_completes():
    cache = QueryCache()
    backend = FakeBackend(["a"], delay=0.01)
    seen = []
    sub = cache.subscribe("tickets", seen.append)

    task = asyncio.create_task(cache.fetch("tickets", backend.read))
    await asyncio.sleep(0)
    sub.close()
    await task

    assert [s.status for s in seen] == ["loading"]
    assert cache.subscriber_count("tickets") == 0
    assert cache.get_data("tickets") == ["a"]


@pytest.mark.asyncio
async def test_cancelled_caller_does_not_cancel_shared_fetch():
    cache = QueryCache()
    backend = FakeBackend(["a"], delay=0.02)

    abandoned = asyncio.create_task(cache.fetch("tickets", backend.read))
    await asyncio.sleep(0)
    other = asyncio.create_task(cache.fetch("tickets", backend.read))
    await asyncio.sleep(0)
    abandoned.cancel()

    assert await other == ["a"]
    assert backend.reads == 1


@pytest.mark.asyncio
async def test_failing_subscriber_does_not_block_others():
    cache = QueryCache()
    backend = FakeBackend(["a"])
    seen = []

    def broken(state):
        raise RuntimeError("render failed")

    cache.subscribe("tickets", broken)
    cache.subscribe("tickets", seen.append)
    await cache.fetch("tickets", backend.read)
    assert [s.status for s in seen] == ["loading", "success"]


@pytest.mark.asyncio
async def test_close_cancels_background_refetch():
    cache = QueryCache()
    backend = FakeBackend(["a"])
    await cache.fetch("tickets", backend.read)
    backend.delay = 10
    task = cache.invalidate("tickets")
    await asyncio.sleep(0)

    await cache.close()

    assert task.cancelled()
    assert cache.subscriber_count("tickets") == 0


@pytest.mark.asyncio
async def test_successful_mutation_moves_error_state_back_to_loading():
    cache = QueryCache()
    backend = FakeBackend(["a"])
    backend.fail_reads = True
    with pytest.raises(RuntimeError):
        await cache.fetch("tickets", backend.read)
    assert cache.get_state("tickets").status == "error"

    seen = []
    cache.subscribe("tickets", seen.append)
    backend.fail_reads = False
    await cache.mutate("tickets", backend.add, "b")
    state = await cache.wait_for_fetch("tickets")

    assert [s.status for s in seen] == ["loading", "success"]
    assert state.data == ["a", "b"]
    assert state.error is None
