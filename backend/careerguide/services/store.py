"""
Provider interfaces

The API never talks to Firebase directly. Handlers depend on these three
interfaces; `careerguide.services.firebase` implements them on top of
firebase-admin, and the test suite swaps in in-memory fakes.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, NamedTuple, Optional, Sequence


class Filter(NamedTuple):
    """Field predicate for document queries.

    Supported operators: ==, !=, <, <=, >, >=, in, array_contains
    """
    field: str
    op: str
    value: Any


def eq(field: str, value: Any) -> Filter:
    return Filter(field, "==", value)


class IdentityProvider(ABC):
    """User accounts and ID token verification"""

    @abstractmethod
    async def create_user(self, email: str, password: str) -> str:
        """Create an account and return its uid"""

    @abstractmethod
    async def set_custom_claims(self, uid: str, claims: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def verify_id_token(self, token: str) -> Dict[str, Any]:
        """Return decoded claims; raise on any verification failure"""

    @abstractmethod
    async def generate_email_verification_link(self, email: str) -> str:
        ...


class DocumentStore(ABC):
    """Per-collection document database

    Documents are plain dicts. Reads always include the document id
    under the key ``id``.
    """

    @abstractmethod
    async def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def set(self, collection: str, doc_id: str, data: Dict[str, Any], merge: bool = False) -> None:
        ...

    @abstractmethod
    async def add(self, collection: str, data: Dict[str, Any]) -> str:
        """Create a document with a generated id and return the id"""

    @abstractmethod
    async def update(self, collection: str, doc_id: str, changes: Dict[str, Any]) -> None:
        ...

    @abstractmethod
    async def delete(self, collection: str, doc_id: str) -> None:
        ...

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        ...

    @abstractmethod
    async def compare_and_update(
        self,
        collection: str,
        doc_id: str,
        expected: Dict[str, Any],
        changes: Dict[str, Any],
    ) -> bool:
        """Atomically apply `changes` iff every field in `expected` still
        holds its expected value. Returns False on mismatch or when the
        document does not exist."""

    @abstractmethod
    def server_timestamp(self) -> Any:
        """Value that the store replaces with its own commit time"""


class FileStorage(ABC):
    """Blob storage for uploaded files"""

    @abstractmethod
    async def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store the bytes and return a URL clients can load"""
