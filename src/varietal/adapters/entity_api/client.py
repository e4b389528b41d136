"""Entity store over the hosted entity REST API."""

from __future__ import annotations

import asyncio
import json
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

import httpx
from pydantic import ValidationError

from varietal.adapters.http_resilience import ResilientClient
from varietal.domain.model import Collection
from varietal.domain.ports import EntityNotFoundError, EntityStoreError

from .schema import DOCUMENT_LIST_ADAPTER, EntityDocumentPayload

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from varietal.config.entity_api import EntityApiConfig
    from varietal.config.http_resilience import ResilienceConfig
    from varietal.domain.model import Document

log = getLogger(__name__)

REFERENCE_COLLECTIONS: Final[frozenset[str]] = frozenset(
    {Collection.PLANT_TYPE, Collection.PLANT_SUBCATEGORY}
)


class EntityApiError(EntityStoreError):
    """Raised when the entity API fails or returns an unexpected response."""


class EntityApiClient:
    """Synchronous ``EntityStore`` over the entity API.

    Every call opens a short-lived resilient client, so retries, the rate
    limit and (for reference collections) the response cache all apply.
    """

    def __init__(
        self,
        *,
        config: EntityApiConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        reference_collections: frozenset[str] = REFERENCE_COLLECTIONS,
    ) -> None:
        self._config = config
        self._client_factory = client_factory or ResilientClient
        self._reference_collections = reference_collections

    def filter(
        self,
        collection: str,
        filters: Mapping[str, object] | None = None,
        *,
        sort: str | None = None,
        limit: int | None = None,
    ) -> list[Document]:
        params: dict[str, str] = {}
        if filters:
            params["q"] = json.dumps(dict(filters), sort_keys=True)
        if sort:
            params["sort"] = sort
        if limit is not None:
            params["limit"] = str(limit)
        resilience = (
            self._config.reference_resilience
            if collection in self._reference_collections
            else self._config.resilience
        )
        payload = asyncio.run(
            self._request_async("GET", f"entities/{collection}", resilience, params=params)
        )
        return self._documents(payload, collection)

    def create(self, collection: str, data: Mapping[str, object]) -> Document:
        payload = asyncio.run(
            self._request_async(
                "POST", f"entities/{collection}", self._config.resilience, body=dict(data)
            )
        )
        return self._document(payload, collection)

    def update(
        self,
        collection: str,
        entity_id: str,
        patch: Mapping[str, object],
    ) -> Document:
        payload = asyncio.run(
            self._request_async(
                "PUT",
                f"entities/{collection}/{entity_id}",
                self._config.resilience,
                body=dict(patch),
            )
        )
        return self._document(payload, collection)

    def bulk_create(
        self,
        collection: str,
        items: Sequence[Mapping[str, object]],
    ) -> list[Document]:
        payload = asyncio.run(
            self._request_async(
                "POST",
                f"entities/{collection}/bulk",
                self._config.resilience,
                body=[dict(item) for item in items],
            )
        )
        return self._documents(payload, collection)

    async def _request_async(
        self,
        method: str,
        path: str,
        resilience: ResilienceConfig,
        *,
        params: dict[str, str] | None = None,
        body: object = None,
    ) -> Any:
        async with self._client_factory(resilience) as client:
            try:
                response = await client.request(method, path, params=params, json=body)
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                status = exc.response.status_code
                if status == httpx.codes.NOT_FOUND and method == "PUT":
                    raise EntityNotFoundError(f"{path} does not exist") from exc
                raise EntityApiError(f"{method} {path} failed with status {status}") from exc
            except httpx.HTTPError as exc:
                raise EntityApiError(f"{method} {path} failed: {exc}") from exc

            try:
                return response.json()
            except ValueError as exc:
                raise EntityApiError(f"{method} {path} returned a non-JSON body") from exc

    @staticmethod
    def _document(payload: object, collection: str) -> Document:
        if not isinstance(payload, dict):
            raise EntityApiError(f"Unexpected {collection} response payload")
        try:
            return EntityDocumentPayload.model_validate(payload).as_document()
        except ValidationError as exc:
            raise EntityApiError(f"Invalid {collection} document: {exc}") from exc

    @staticmethod
    def _documents(payload: object, collection: str) -> list[Document]:
        if not isinstance(payload, list):
            raise EntityApiError(f"Unexpected {collection} response payload")
        try:
            documents = DOCUMENT_LIST_ADAPTER.validate_python(payload)
        except ValidationError as exc:
            raise EntityApiError(f"Invalid {collection} documents: {exc}") from exc
        log.debug("Fetched %s %s documents", len(documents), collection)
        return [document.as_document() for document in documents]
