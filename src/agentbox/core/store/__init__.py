"""Durable store: the persistence contract shared by all session components."""

from agentbox.core.store.backend import DurableStore, InMemoryStore, Query, Record
from agentbox.core.store.http import HttpStore
from agentbox.core.store.schema import TABLE_INDEXES

__all__ = [
    "TABLE_INDEXES",
    "DurableStore",
    "HttpStore",
    "InMemoryStore",
    "Query",
    "Record",
]
