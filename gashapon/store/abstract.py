"""Document Store contract consumed by the shop engine."""
import secrets
import string
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, List, Dict, Any, Tuple

from ..exceptions import StoreFailure


DOCUMENT_ID_LENGTH = 20
_ID_ALPHABET = string.ascii_letters + string.digits
_ADD_ATTEMPTS = 5


def new_document_id() -> str:
    """Store-style auto id: 20 random alphanumeric characters."""
    return ''.join(secrets.choice(_ID_ALPHABET) for _ in range(DOCUMENT_ID_LENGTH))


class DocumentStore(ABC):
    """
    Abstract document store.

    Keys are plain strings compared by code point; the store offers key
    equality and ordered ``[start, stop)`` range scans, nothing else.
    Every operation may raise :class:`StoreFailure`.
    """

    async def connect(self):
        """Open the underlying connection, if any."""

    async def close(self):
        """Release the underlying connection, if any."""

    @abstractmethod
    async def get(self, collection: str, key: str) -> Optional[Dict[str, Any]]:
        """Return the document stored under ``key`` or None."""

    @abstractmethod
    async def set(self, collection: str, key: str, document: Dict[str, Any]) -> None:
        """Upsert ``document`` under ``key``, replacing the whole body."""

    @abstractmethod
    async def create(self, collection: str, key: str, document: Dict[str, Any]) -> bool:
        """Write ``document`` only if ``key`` is absent; False on conflict."""

    @abstractmethod
    async def exists(self, collection: str, key: str) -> bool:
        ...

    @abstractmethod
    async def delete(self, collection: str, key: str) -> bool:
        """Delete ``key``; returns whether a document was removed."""

    @abstractmethod
    async def range_scan(
        self,
        collection: str,
        start: str,
        stop: str
    ) -> List[Tuple[str, Dict[str, Any]]]:
        """Documents with ``start <= key < stop``, ordered by key ascending."""

    @abstractmethod
    async def now(self) -> datetime:
        """Current store time."""

    async def add(
        self,
        collection: str,
        document: Dict[str, Any],
        prefix: str = ''
    ) -> str:
        """Store ``document`` under a store-assigned key beginning with ``prefix``."""
        for _ in range(_ADD_ATTEMPTS):
            key = f"{prefix}{new_document_id()}"
            if await self.create(collection, key, document):
                return key
        raise StoreFailure(
            f"Unable to allocate a document key in {collection}"
        )
