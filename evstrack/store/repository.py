import dataclasses
import logging
from typing import Any, Dict, Iterable, List, Optional, Protocol

from evstrack.store.collections import ENTITY_TYPES, Collection

logger = logging.getLogger("evstrack.store")


class Mirror(Protocol):
    def push_create(self, collection: Collection, entity: Any) -> None: ...

    def push_update(self, collection: Collection, entity: Any) -> None: ...


class EntityStore:
    """
    Single ownership point for every mutable collection.

    Entities are frozen dataclasses; update() swaps in a replaced copy, so
    snapshots handed out by list() never change underneath a caller.
    Writes are forwarded to the optional mirror without waiting on it.
    Concurrent writers are last-write-wins: there is no versioning.
    """

    def __init__(self, mirror: Optional[Mirror] = None):
        self._collections: Dict[Collection, Dict[str, Any]] = {
            collection: {} for collection in Collection
        }
        self.mirror = mirror

    def get(self, collection: Collection, entity_id: str) -> Optional[Any]:
        return self._collections[collection].get(entity_id)

    def require(self, collection: Collection, entity_id: str) -> Any:
        entity = self.get(collection, entity_id)
        if entity is None:
            raise KeyError(f"{collection.value} entry '{entity_id}' not found")
        return entity

    def list(self, collection: Collection) -> List[Any]:
        return list(self._collections[collection].values())

    def create(self, collection: Collection, entity: Any) -> Any:
        self._check_type(collection, entity)
        entries = self._collections[collection]
        if entity.id in entries:
            raise ValueError(f"{collection.value} entry '{entity.id}' already exists")

        entries[entity.id] = entity
        logger.debug(f"created {collection.value}/{entity.id}")

        if self.mirror is not None:
            self.mirror.push_create(collection, entity)
        return entity

    def update(self, collection: Collection, entity_id: str, **changes) -> Any:
        current = self.require(collection, entity_id)
        if "id" in changes and changes["id"] != entity_id:
            raise ValueError("Entity id cannot be changed")

        updated = dataclasses.replace(current, **changes)
        self._collections[collection][entity_id] = updated
        logger.debug(f"updated {collection.value}/{entity_id}: {sorted(changes)}")

        if self.mirror is not None:
            self.mirror.push_update(collection, updated)
        return updated

    def extend(self, collection: Collection, entities: Iterable[Any]) -> None:
        """Bulk load without mirroring (seed data)."""
        entries = self._collections[collection]
        for entity in entities:
            self._check_type(collection, entity)
            entries[entity.id] = entity

    def replace_snapshot(self, collection: Collection, entities: Iterable[Any]) -> None:
        """
        Swap the whole local collection for a remote snapshot.
        Local writes not yet reflected remotely are lost.
        """
        fresh = {}
        for entity in entities:
            self._check_type(collection, entity)
            fresh[entity.id] = entity
        self._collections[collection] = fresh
        logger.info(f"replaced {collection.value} snapshot ({len(fresh)} entries)")

    @staticmethod
    def _check_type(collection: Collection, entity: Any) -> None:
        expected = ENTITY_TYPES[collection]
        if not isinstance(entity, expected):
            raise TypeError(
                f"{collection.value} holds {expected.__name__}, got {type(entity).__name__}"
            )
