"""
Code Generator.

A code is claimed in two steps: ``exists`` skips suffixes already taken,
then ``create`` (create-if-absent) writes the ticket and reports a
conflict if another issuer claimed the same code in between. Both kinds
of collision count against the attempt cap.
"""
import secrets
from typing import Dict, Any

from navconfig.logging import logging

from ..conf import MAX_CODE_ATTEMPTS
from ..exceptions import CodeSpaceExhausted
from ..keys import SUFFIX_BYTES, build_code
from ..models import TICKETS_COLLECTION
from ..store import DocumentStore


def random_suffix() -> str:
    """3 random bytes as 6 uppercase hex characters."""
    return secrets.token_hex(SUFFIX_BYTES).upper()


class CodeGenerator:
    """Allocates unique ``<shopTag>-<suffix>`` codes in a collection."""

    def __init__(
        self,
        store: DocumentStore,
        collection: str = TICKETS_COLLECTION,
        max_attempts: int = MAX_CODE_ATTEMPTS,
        suffix_factory=random_suffix,
        logger=None
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.store = store
        self.collection = collection
        self.max_attempts = max_attempts
        self._suffix = suffix_factory
        self.logger = logger or logging.getLogger('Gashapon.Generator')

    async def generate_code(self, shop_tag: str, document: Dict[str, Any]) -> str:
        """
        Claim a fresh code for ``shop_tag`` by writing ``document`` under it.

        Returns:
            The claimed code.

        Raises:
            CodeSpaceExhausted: no free code within ``max_attempts`` samples.
            StoreFailure: the store failed; nothing is retried.
        """
        for attempt in range(1, self.max_attempts + 1):
            code = build_code(shop_tag, self._suffix())
            if await self.store.exists(self.collection, code):
                self.logger.debug(f"Code {code} already taken (attempt {attempt})")
                continue
            if await self.store.create(self.collection, code, document):
                return code
            self.logger.debug(f"Code {code} claimed concurrently (attempt {attempt})")
        self.logger.warning(
            f"No free code for shop {shop_tag!r} after {self.max_attempts} attempts"
        )
        raise CodeSpaceExhausted(
            f"Could not allocate a unique code for shop '{shop_tag}' "
            f"after {self.max_attempts} attempts"
        )
