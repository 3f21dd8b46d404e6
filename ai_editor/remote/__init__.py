"""Remote (Supabase) project persistence scoped by the signed-in user."""

from .auth import CurrentUser, StaticUserResolver, SupabaseUserResolver, UserResolver
from .store import RemoteProjectStore, SaveStatus, StatusCallback
from .tables import MemoryProjectTable, ProjectRow, ProjectTable, SupabaseProjectTable

__all__ = [
    # Identity
    "CurrentUser",
    "UserResolver",
    "StaticUserResolver",
    "SupabaseUserResolver",
    # Tables
    "ProjectRow",
    "ProjectTable",
    "SupabaseProjectTable",
    "MemoryProjectTable",
    # Store
    "RemoteProjectStore",
    "SaveStatus",
    "StatusCallback",
]
