from functools import lru_cache
from typing import Any, Dict

from pydantic import TypeAdapter

from evstrack.store.collections import ENTITY_TYPES, Collection


@lru_cache(maxsize=None)
def _adapter(collection: Collection) -> TypeAdapter:
    return TypeAdapter(ENTITY_TYPES[collection])


def to_document(collection: Collection, entity: Any) -> Dict[str, Any]:
    """
    Converts an entity into a JSON-serializable dict
    (ISO timestamps, enum values).
    """
    return _adapter(collection).dump_python(entity, mode="json")


def from_document(collection: Collection, document: Dict[str, Any]) -> Any:
    return _adapter(collection).validate_python(document)
