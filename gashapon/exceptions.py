"""
Gashapon Exceptions.

Every error crossing the callable boundary carries a wire ``code``
(the category reported to the UI layer) and the HTTP ``status``
the handlers answer with.
"""
from typing import Optional, Dict, Any


class GashaponError(Exception):
    """Base class for all Gashapon errors."""
    code: str = "unknown"
    status: int = 500

    def __init__(self, message: str = "", **kwargs):
        super().__init__(message)
        self.message = message
        self.payload = kwargs

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            **self.payload
        }


class Unauthenticated(GashaponError):
    """No identity attached to the request."""
    code = "unauthenticated"
    status = 401


class OutOfRange(GashaponError):
    """An amount or quantity falls outside its allowed bounds."""
    code = "out-of-range"
    status = 400


class NotFound(GashaponError):
    """Referenced shop tag, ticket or prize does not exist."""
    code = "not-found"
    status = 404


class NoShopTag(NotFound):
    """The user has no account document, hence no shop tag."""


class InvalidTransition(GashaponError):
    """A ticket lifecycle step was requested out of order."""
    code = "failed-precondition"
    status = 409


class StoreFailure(GashaponError):
    """Wraps an error raised by the document store."""
    code = "unknown"
    status = 500


class PartialBatchError(StoreFailure):
    """
    A ticket batch failed part-way.

    ``issued`` holds the tickets already written; they are not rolled back.
    """

    def __init__(self, message: str = "", issued: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.issued = issued or {}

    def to_dict(self) -> Dict[str, Any]:
        result = super().to_dict()
        result['issued'] = list(self.issued.keys())
        return result


class CodeSpaceExhausted(GashaponError):
    """No free code was found within the retry cap."""
    code = "resource-exhausted"
    status = 503
