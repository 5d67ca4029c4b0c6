"""Document store adapters."""
from .abstract import DocumentStore, new_document_id
from .memory import MemoryStore

__all__ = ('DocumentStore', 'MemoryStore', 'new_document_id', )
