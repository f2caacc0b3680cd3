import logging
from typing import Any, List, Optional

import requests

from evstrack.store.collections import Collection
from evstrack.store.serialization import from_document, to_document

logger = logging.getLogger("evstrack.integration")


class RemoteMirror:
    """
    Best-effort copy of the entity store on a remote document service.

    Every push is fire-and-forget: a failed request is logged and dropped,
    the local store stays authoritative for the running process.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 2.0,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, collection: Collection, entity_id: Optional[str] = None) -> str:
        if entity_id is None:
            return f"{self.base_url}/{collection.value}"
        return f"{self.base_url}/{collection.value}/{entity_id}"

    def _put(self, collection: Collection, entity: Any) -> None:
        try:
            response = self.session.put(
                self._url(collection, entity.id),
                json=to_document(collection, entity),
                timeout=self.timeout,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
            logger.debug(f"mirrored {collection.value}/{entity.id} ({response.status_code})")
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to mirror {collection.value}/{entity.id}: {e}")

    def push_create(self, collection: Collection, entity: Any) -> None:
        self._put(collection, entity)

    def push_update(self, collection: Collection, entity: Any) -> None:
        self._put(collection, entity)

    def pull(self, collection: Collection) -> List[Any]:
        """
        Fetch the remote snapshot of a collection.
        Returns an empty list when the service is unreachable.
        """
        try:
            response = self.session.get(self._url(collection), timeout=self.timeout)
            response.raise_for_status()
            documents = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Failed to pull {collection.value}: {e}")
            return []

        return [from_document(collection, doc) for doc in documents]
