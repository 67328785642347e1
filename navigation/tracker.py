"""
Navigation - Tracker.

============================================================
PURPOSE
============================================================
Back-button history per browser session.

STATE (one store entry per session)
    navigation_stack   previously visited pages, most recent last,
                       no duplicates, at most 10
    page_contexts      page -> saved UI context (+ last_updated)
    current_page
    last_activity

============================================================
"""

import logging
from typing import Any, Dict, Optional

from storage.models import utcnow

from .stores import KeyValueStore


logger = logging.getLogger(__name__)


MAX_STACK_DEPTH = 10
DEFAULT_REDIRECT = "/"
DEFAULT_SESSION = "default"
KEY_PREFIX = "navigation:"
DEFAULT_TTL_SECONDS = 86400


def _empty_state() -> Dict[str, Any]:
    return {
        "navigation_stack": [],
        "page_contexts": {},
        "current_page": DEFAULT_REDIRECT,
        "last_activity": None,
    }


class NavigationTracker:
    """Navigation history on top of a KeyValueStore."""

    def __init__(self, store: KeyValueStore, ttl_seconds: int = DEFAULT_TTL_SECONDS):
        self.store = store
        self.ttl_seconds = ttl_seconds

    def _key(self, session_id: Optional[str]) -> str:
        return f"{KEY_PREFIX}{session_id or DEFAULT_SESSION}"

    def _load(self, session_id: Optional[str]) -> Dict[str, Any]:
        state = self.store.get(self._key(session_id))
        return state if state is not None else _empty_state()

    def _save(self, session_id: Optional[str], state: Dict[str, Any]) -> None:
        self.store.set(self._key(session_id), state, self.ttl_seconds)

    def track(
        self,
        session_id: Optional[str],
        current_page: str,
        previous_page: Optional[str] = None,
        page_context: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Record a page change.

        previous_page moves to the top of the stack; its context, if
        any, is merged into the saved context for that page.
        """
        state = self._load(session_id)
        now = utcnow().isoformat()

        if previous_page:
            stack = [page for page in state["navigation_stack"] if page != previous_page]
            stack.append(previous_page)
            state["navigation_stack"] = stack[-MAX_STACK_DEPTH:]

            if page_context:
                saved = state["page_contexts"].get(previous_page, {})
                state["page_contexts"][previous_page] = {**saved, **page_context, "last_updated": now}

        state["current_page"] = current_page
        state["last_activity"] = now
        self._save(session_id, state)

        logger.debug(f"Navigation tracked for {session_id or DEFAULT_SESSION}: {previous_page} -> {current_page}")
        return {"session_id": session_id or DEFAULT_SESSION, "stack_depth": len(state["navigation_stack"])}

    def back(self, session_id: Optional[str]) -> Dict[str, Any]:
        """Pop the most recent page. With an empty history redirect to '/'."""
        state = self._load(session_id)
        redirect_to = DEFAULT_REDIRECT
        restore_context: Dict[str, Any] = {}

        if state["navigation_stack"]:
            redirect_to = state["navigation_stack"].pop()
            restore_context = state["page_contexts"].get(redirect_to, {})
            self._save(session_id, state)

        return {
            "redirect_to": redirect_to,
            "restore_context": restore_context,
            "navigation_available": bool(state["navigation_stack"]),
        }

    def state(self, session_id: Optional[str]) -> Dict[str, Any]:
        state = self._load(session_id)
        return {
            "current_page": state["current_page"],
            "navigation_stack": list(state["navigation_stack"]),
            "can_go_back": bool(state["navigation_stack"]),
            "available_contexts": list(state["page_contexts"]),
            "last_activity": state["last_activity"],
        }

    def clear(self, session_id: Optional[str]) -> None:
        self.store.delete(self._key(session_id))
        logger.info(f"Navigation session cleared: {session_id or DEFAULT_SESSION}")


__all__ = ["NavigationTracker", "MAX_STACK_DEPTH", "DEFAULT_REDIRECT"]
