from .in_memory_backend import InMemoryBackend, InMemoryLocationChannel
from .supabase_assignment_repository import SupabaseAssignmentRepository
from .supabase_bus_repository import SupabaseBusRepository

__all__ = [
    "InMemoryBackend",
    "InMemoryLocationChannel",
    "SupabaseAssignmentRepository",
    "SupabaseBusRepository",
]
