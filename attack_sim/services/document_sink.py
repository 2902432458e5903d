"""
Document sink: Elasticsearch bulk indexing and Kibana space provisioning
"""
import asyncio
import logging
from typing import Any, Dict, Iterable, Iterator, Optional

import requests
from elasticsearch import ApiError, Elasticsearch, TransportError, helpers

from ..core.config import Settings
from ..core.exceptions import DocumentSinkError
from ..models.event import ALERT_ID_FIELD, Event

logger = logging.getLogger(__name__)

# Minimal mapping for indices the simulator creates itself
CAMPAIGN_EVENT_MAPPINGS: Dict[str, Any] = {
    "dynamic": True,
    "properties": {
        "@timestamp": {"type": "date"},
        "campaign": {
            "properties": {
                "id": {"type": "keyword"},
                "name": {"type": "keyword"},
                "type": {"type": "keyword"},
                "threat_actor": {"type": "keyword"},
                "progression": {"properties": {"phase": {"type": "keyword"}}},
            }
        },
        "correlation": {
            "properties": {
                "rule_id": {"type": "keyword"},
                "confidence": {"type": "float"},
            }
        },
    },
}


class ElasticsearchSink:
    """Bulk writer over the official Elasticsearch client"""

    def __init__(self, client: Elasticsearch, chunk_size: int = 1000):
        self.client = client
        self.chunk_size = chunk_size

    @classmethod
    def from_settings(cls, settings: Settings) -> "ElasticsearchSink":
        kwargs: Dict[str, Any] = {"request_timeout": 30, "retry_on_timeout": True}
        if settings.elastic_api_key:
            kwargs["api_key"] = settings.elastic_api_key
        elif settings.elastic_username and settings.elastic_password:
            kwargs["basic_auth"] = (settings.elastic_username, settings.elastic_password)
        client = Elasticsearch(settings.elastic_node, **kwargs)
        return cls(client, chunk_size=settings.bulk_chunk_size)

    def ensure_index(self, index: str, mappings: Optional[Dict[str, Any]] = None) -> bool:
        """Create ``index`` if it does not exist. Returns True when it was created."""
        try:
            if self.client.indices.exists(index=index):
                return False
            self.client.indices.create(index=index, mappings=mappings or CAMPAIGN_EVENT_MAPPINGS)
        except ApiError as e:
            if getattr(e, "error", None) == "resource_already_exists_exception":
                return False
            raise DocumentSinkError(f"Failed to create index {index}: {e}") from e
        except TransportError as e:
            raise DocumentSinkError(f"Failed to reach Elasticsearch for index {index}: {e}") from e
        logger.info(f"Created index {index}")
        return True

    def bulk_index(
        self,
        index: str,
        documents: Iterable[Event],
        chunk_size: Optional[int] = None,
        action: str = "create",
        refresh: bool = True,
    ) -> Dict[str, int]:
        """
        Write ``documents`` to ``index`` in chunks.

        Per-document rejections are counted, not raised; transport failures
        raise DocumentSinkError.

        Returns:
            Dict with 'indexed' and 'errors' counts
        """
        try:
            indexed, errors = helpers.bulk(
                self.client,
                self._actions(index, documents, action),
                chunk_size=chunk_size or self.chunk_size,
                refresh=refresh,
                raise_on_error=False,
                raise_on_exception=True,
            )
        except (ApiError, TransportError) as e:
            raise DocumentSinkError(f"Bulk indexing into {index} failed: {e}") from e

        for error in errors[:5]:
            logger.error(f"Bulk item error: {error}")
        logger.info(f"Indexed {indexed} documents into {index} ({len(errors)} errors)")
        return {"indexed": indexed, "errors": len(errors)}

    @staticmethod
    def _actions(index: str, documents: Iterable[Event], action: str) -> Iterator[Dict[str, Any]]:
        for doc in documents:
            item: Dict[str, Any] = {"_op_type": action, "_index": index, "_source": doc}
            doc_id = doc.get(ALERT_ID_FIELD)
            if isinstance(doc_id, str) and doc_id:
                item["_id"] = doc_id
            yield item

    async def ensure_index_async(self, index: str, mappings: Optional[Dict[str, Any]] = None) -> bool:
        return await asyncio.to_thread(self.ensure_index, index, mappings)

    async def bulk_index_async(self, index: str, documents: Iterable[Event], **kwargs) -> Dict[str, int]:
        return await asyncio.to_thread(self.bulk_index, index, list(documents), **kwargs)


class KibanaSpaces:
    """Kibana space provisioning through the spaces API"""

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        timeout: float = 30.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.auth = (username, password) if username and password else None
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "KibanaSpaces":
        return cls(
            settings.kibana_node,
            api_key=settings.kibana_api_key,
            username=settings.kibana_username,
            password=settings.kibana_password,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"kbn-xsrf": "true", "Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"ApiKey {self.api_key}"
        return headers

    def ensure_space(self, space_id: str) -> bool:
        """Create the Kibana space unless it exists. Returns True when it was created."""
        if space_id == "default":
            return False

        url = f"{self.base_url}/api/spaces/space"
        try:
            response = requests.get(f"{url}/{space_id}", headers=self._headers(), auth=self.auth, timeout=self.timeout)
            if response.status_code == 200:
                return False
            if response.status_code != 404:
                response.raise_for_status()

            response = requests.post(
                url,
                headers=self._headers(),
                auth=self.auth,
                json={"id": space_id, "name": space_id},
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as err:
            logger.error(f"Kibana space request failed for {space_id}: {err}")
            raise DocumentSinkError(f"Failed to ensure Kibana space {space_id}: {err}") from err

        logger.info(f"Created Kibana space {space_id}")
        return True

    async def ensure_space_async(self, space_id: str) -> bool:
        return await asyncio.to_thread(self.ensure_space, space_id)
