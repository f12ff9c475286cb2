"""Observable, persisted state shared by every engine operation."""

from timelog.state.kv import KeyValueStore, MemoryStore, SqliteStore
from timelog.state.observable import Observable
from timelog.state.queue import RequestQueue
from timelog.state.surface import SettingsStore, StateSurface

__all__ = [
    "KeyValueStore",
    "MemoryStore",
    "Observable",
    "RequestQueue",
    "SettingsStore",
    "SqliteStore",
    "StateSurface",
]
