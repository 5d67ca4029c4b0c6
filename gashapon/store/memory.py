"""In-process document store, used for development and tests."""
import copy
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any, Tuple

from .abstract import DocumentStore


class MemoryStore(DocumentStore):
    """DocumentStore keeping every collection in a dictionary."""

    def __init__(self, data: Optional[Dict[str, Dict[str, Dict[str, Any]]]] = None):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for collection, documents in (data or {}).items():
            self._collections[collection] = copy.deepcopy(documents)

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def keys(self, collection: str) -> List[str]:
        return sorted(self._collection(collection))

    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        document = self._collection(collection).get(key)
        return copy.deepcopy(document) if document is not None else None

    async def set(self, collection: str, key: str, document: Dict[str, Any]) -> None:
        self._collection(collection)[key] = copy.deepcopy(document)

    async def create(self, collection: str, key: str, document: Dict[str, Any]) -> bool:
        documents = self._collection(collection)
        if key in documents:
            return False
        documents[key] = copy.deepcopy(document)
        return True

    async def exists(self, collection: str, key: str) -> bool:
        return key in self._collection(collection)

    async def delete(self, collection: str, key: str) -> bool:
        return self._collection(collection).pop(key, None) is not None

    async def range_scan(
        self,
        collection: str,
        start: str,
        stop: str
    ) -> List[Tuple[str, Dict[str, Any]]]:
        documents = self._collection(collection)
        return [
            (key, copy.deepcopy(documents[key]))
            for key in sorted(documents)
            if start <= key < stop
        ]

    async def now(self) -> datetime:
        return datetime.now(timezone.utc)
