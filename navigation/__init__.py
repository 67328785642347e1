"""
Navigation Package.

Back-button navigation state kept in an external TTL store.
"""

from .stores import InMemoryTTLStore, KeyValueStore, SqlKeyValueStore
from .tracker import DEFAULT_REDIRECT, MAX_STACK_DEPTH, NavigationTracker

__all__ = [
    "DEFAULT_REDIRECT",
    "InMemoryTTLStore",
    "KeyValueStore",
    "MAX_STACK_DEPTH",
    "NavigationTracker",
    "SqlKeyValueStore",
]
