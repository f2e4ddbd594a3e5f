"""
Core interfaces and abstract base classes for the Alamein platform.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Generic, List, TypeVar


T = TypeVar('T')

Record = Dict[str, Any]


class CollectionStore(ABC):
    """
    Backing store for named entity collections.

    A collection is saved and loaded as a whole: ``save_collection`` replaces
    everything previously stored under that name.
    """

    @abstractmethod
    def load_collection(self, name: str) -> List[Record]:
        """Load every record of a collection (empty list if none stored)."""
        pass

    @abstractmethod
    def save_collection(self, name: str, records: List[Record]) -> None:
        """Replace the stored collection with ``records``."""
        pass

    @abstractmethod
    def is_empty(self, name: str) -> bool:
        """Check whether a collection has no stored records."""
        pass

    @abstractmethod
    def describe(self) -> str:
        """Short human-readable description of the backing location."""
        pass


class Repository(ABC, Generic[T]):
    """Maps a keyed collection of entities onto a CollectionStore."""

    @abstractmethod
    def load_all(self) -> Dict[str, T]:
        """Load the whole collection keyed by natural identifier."""
        pass

    @abstractmethod
    def save_all(self, entities: Dict[str, T]) -> None:
        """Persist the whole collection."""
        pass
