"""
Tests for navigation history and its key-value stores.

Tests cover:
- TTL stores (in-memory and database) with a controllable clock
- Stack ordering, de-duplication and depth limit
- Back navigation and context restore
- Session isolation
"""

from datetime import datetime, timedelta, timezone

import pytest

from navigation import InMemoryTTLStore, NavigationTracker, SqlKeyValueStore
from navigation.tracker import MAX_STACK_DEPTH


class FakeClock:
    """Clock advanced manually by the test."""

    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        if isinstance(self.now, datetime):
            self.now = self.now + timedelta(seconds=seconds)
        else:
            self.now += seconds


@pytest.fixture
def memory_clock():
    return FakeClock(1000.0)


@pytest.fixture
def sql_clock():
    return FakeClock(datetime(2025, 3, 4, 9, 30, tzinfo=timezone.utc))


@pytest.fixture(params=["memory", "sql"])
def store_and_clock(request, memory_clock, sql_clock, session_factory):
    if request.param == "memory":
        return InMemoryTTLStore(clock=memory_clock), memory_clock
    return SqlKeyValueStore(session_factory, clock=sql_clock), sql_clock


@pytest.fixture
def tracker():
    return NavigationTracker(InMemoryTTLStore())


# =============================================================
# TEST: Stores
# =============================================================

class TestKeyValueStores:
    """Behavior shared by both store implementations."""

    def test_set_get(self, store_and_clock):
        store, _ = store_and_clock

        store.set("navigation:a", {"current_page": "/trades"}, ttl_seconds=60)

        assert store.get("navigation:a") == {"current_page": "/trades"}
        assert store.get("navigation:missing") is None

    def test_overwrite(self, store_and_clock):
        store, _ = store_and_clock

        store.set("k", {"v": 1}, ttl_seconds=60)
        store.set("k", {"v": 2}, ttl_seconds=60)

        assert store.get("k") == {"v": 2}

    def test_expiry(self, store_and_clock):
        store, clock = store_and_clock
        store.set("k", {"v": 1}, ttl_seconds=60)

        clock.advance(59)
        assert store.get("k") == {"v": 1}

        clock.advance(1)
        assert store.get("k") is None

    def test_set_renews_ttl(self, store_and_clock):
        store, clock = store_and_clock
        store.set("k", {"v": 1}, ttl_seconds=60)

        clock.advance(50)
        store.set("k", {"v": 1}, ttl_seconds=60)
        clock.advance(50)

        assert store.get("k") == {"v": 1}

    def test_delete(self, store_and_clock):
        store, _ = store_and_clock
        store.set("k", {"v": 1}, ttl_seconds=60)

        store.delete("k")
        store.delete("k")

        assert store.get("k") is None

    def test_purge_expired(self, store_and_clock):
        store, clock = store_and_clock
        store.set("old", {"v": 1}, ttl_seconds=10)
        store.set("new", {"v": 2}, ttl_seconds=100)

        clock.advance(20)

        assert store.purge_expired() == 1
        assert store.get("new") == {"v": 2}

    def test_values_are_copies(self, store_and_clock):
        store, _ = store_and_clock
        value = {"stack": ["/a"]}
        store.set("k", value, ttl_seconds=60)

        value["stack"].append("/b")
        store.get("k")["stack"].append("/c")

        assert store.get("k") == {"stack": ["/a"]}


# =============================================================
# TEST: Tracker
# =============================================================

class TestNavigationTracker:
    """Test back-button history."""

    def test_fresh_session(self, tracker):
        state = tracker.state("s1")

        assert state["current_page"] == "/"
        assert state["navigation_stack"] == []
        assert state["can_go_back"] is False

    def test_track(self, tracker):
        result = tracker.track("s1", "/trades", previous_page="/")

        assert result == {"session_id": "s1", "stack_depth": 1}
        state = tracker.state("s1")
        assert state["current_page"] == "/trades"
        assert state["navigation_stack"] == ["/"]
        assert state["last_activity"]

    def test_revisited_page_moves_to_top(self, tracker):
        tracker.track("s1", "/b", previous_page="/a")
        tracker.track("s1", "/c", previous_page="/b")
        tracker.track("s1", "/b", previous_page="/a")

        assert tracker.state("s1")["navigation_stack"] == ["/b", "/a"]

    def test_depth_limit(self, tracker):
        for index in range(MAX_STACK_DEPTH + 5):
            tracker.track("s1", f"/page/{index + 1}", previous_page=f"/page/{index}")

        stack = tracker.state("s1")["navigation_stack"]
        assert len(stack) == MAX_STACK_DEPTH
        assert stack[0] == "/page/5"
        assert stack[-1] == f"/page/{MAX_STACK_DEPTH + 4}"

    def test_back_restores_context(self, tracker):
        tracker.track("s1", "/trade/42", previous_page="/trades", page_context={"filter": "week"})
        tracker.track("s1", "/trade/42", previous_page="/trades", page_context={"sort": "pnl"})

        result = tracker.back("s1")

        assert result["redirect_to"] == "/trades"
        assert result["restore_context"]["filter"] == "week"
        assert result["restore_context"]["sort"] == "pnl"
        assert "last_updated" in result["restore_context"]
        assert result["navigation_available"] is False

    def test_back_pops_in_order(self, tracker):
        tracker.track("s1", "/b", previous_page="/a")
        tracker.track("s1", "/c", previous_page="/b")

        assert tracker.back("s1")["redirect_to"] == "/b"
        assert tracker.back("s1")["redirect_to"] == "/a"

    def test_back_with_empty_history(self, tracker):
        assert tracker.back("s1") == {
            "redirect_to": "/",
            "restore_context": {},
            "navigation_available": False,
        }

    def test_sessions_isolated(self, tracker):
        tracker.track("s1", "/b", previous_page="/a")

        assert tracker.state("s2")["navigation_stack"] == []

    def test_default_session(self, tracker):
        assert tracker.track(None, "/b", previous_page="/a")["session_id"] == "default"
        assert tracker.state("default")["navigation_stack"] == ["/a"]

    def test_clear(self, tracker):
        tracker.track("s1", "/b", previous_page="/a")

        tracker.clear("s1")

        assert tracker.state("s1")["navigation_stack"] == []

    def test_state_expires(self, memory_clock):
        tracker = NavigationTracker(InMemoryTTLStore(clock=memory_clock), ttl_seconds=30)
        tracker.track("s1", "/b", previous_page="/a")

        memory_clock.advance(31)

        assert tracker.state("s1")["can_go_back"] is False

    def test_sql_backed(self, session_factory):
        tracker = NavigationTracker(SqlKeyValueStore(session_factory))
        tracker.track("s1", "/b", previous_page="/a", page_context={"tab": "risk"})

        assert tracker.state("s1")["available_contexts"] == ["/a"]
        assert tracker.back("s1")["restore_context"]["tab"] == "risk"
