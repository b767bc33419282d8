"""
Store Package.

Exports the resignation record store and employee profile store collaborators.
"""

from .profile_store import HttpProfileStore, InMemoryProfileStore, ProfileStore
from .record_store import LocalRecordStore, RecordStore

__all__ = [
    "RecordStore",
    "LocalRecordStore",
    "ProfileStore",
    "InMemoryProfileStore",
    "HttpProfileStore",
]
