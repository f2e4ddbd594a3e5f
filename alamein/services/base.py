"""
Shared plumbing for the in-memory entity services.
"""

import threading
from typing import Callable, Dict, Generic, List, Optional, TypeVar

import structlog

from ..core.entities import AbstractEntity
from ..core.exceptions import PersistenceError
from ..persistence.repositories import BaseRepository

logger = structlog.get_logger(__name__)

T = TypeVar('T', bound=AbstractEntity)


class EntityService(Generic[T]):
    """
    Owns one keyed map of entities backed by a repository.

    The map is loaded once on construction. Every mutation re-persists the
    whole collection; a failed save is logged and the in-memory change kept.
    """

    def __init__(self, repository: BaseRepository[T]):
        self._repository = repository
        self._lock = threading.RLock()
        self._entities: Dict[str, T] = self._load()

    def _load(self) -> Dict[str, T]:
        try:
            return self._repository.load_all()
        except PersistenceError as e:
            logger.warning("Could not load collection, starting empty",
                           collection=self._repository.collection, error=str(e))
            return {}

    def _save(self) -> None:
        try:
            self._repository.save_all(self._entities)
        except PersistenceError as e:
            logger.error("Could not save collection",
                         collection=self._repository.collection, error=str(e))

    def _add(self, entity: Optional[T]) -> bool:
        with self._lock:
            if entity is None or entity.id in self._entities:
                return False
            self._entities[entity.id] = entity
            self._save()
            return True

    def _replace(self, entity_id: Optional[str], entity: Optional[T]) -> bool:
        with self._lock:
            if entity_id is None or entity is None or entity_id not in self._entities:
                return False
            if entity.id != entity_id:
                return False
            self._entities[entity_id] = entity
            self._save()
            return True

    def _remove(self, entity_id: Optional[str]) -> bool:
        with self._lock:
            if entity_id is None or self._entities.pop(entity_id, None) is None:
                return False
            self._save()
            return True

    def _mutate(self, entity_id: str, action: Callable[[T], bool]) -> bool:
        """Run ``action`` on an entity and persist if it reports a change."""
        with self._lock:
            entity = self._entities.get(entity_id)
            if entity is None:
                return False
            changed = action(entity)
            if changed:
                self._save()
            return changed

    def _filter(self, predicate: Callable[[T], bool]) -> List[T]:
        with self._lock:
            return [entity for entity in self._entities.values() if predicate(entity)]

    @staticmethod
    def _name_matcher(name: Optional[str]) -> Optional[Callable[[str], bool]]:
        if name is None or not name.strip():
            return None
        term = name.strip().lower()
        return lambda full_name: term in (full_name or "").lower()

    def reload(self) -> None:
        """Discard the in-memory map and read the collection again."""
        with self._lock:
            self._entities = self._load()
