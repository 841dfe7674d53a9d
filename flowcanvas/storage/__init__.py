"""Durable storage for flows and drafts."""

from flowcanvas.storage.autosave import Autosaver
from flowcanvas.storage.backends.memory import MemoryStore
from flowcanvas.storage.backends.sqlite import SQLiteStore
from flowcanvas.storage.interface import KeyValueStore
from flowcanvas.storage.repository import FLOW_DRAFT_KEY, FLOWS_COLLECTION_KEY, FlowRepository

__all__ = [
    "Autosaver",
    "KeyValueStore",
    "MemoryStore",
    "SQLiteStore",
    "FlowRepository",
    "FLOWS_COLLECTION_KEY",
    "FLOW_DRAFT_KEY",
]
