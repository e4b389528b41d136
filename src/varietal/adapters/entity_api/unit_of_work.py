"""Unit of work over the entity API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Literal

from varietal.config.entity_api import get_entity_api_config
from varietal.domain.ports import CatalogRepositories

from .client import EntityApiClient

if TYPE_CHECKING:
    from collections.abc import Callable
    from types import TracebackType

    from varietal.adapters.http_resilience import ResilientClient
    from varietal.config.entity_api import EntityApiConfig
    from varietal.config.http_resilience import ResilienceConfig

log = logging.getLogger(__name__)


class EntityApiUnitOfWork:
    """Every API write is durable on its own, so commit and rollback have nothing to do."""

    def __init__(
        self,
        *,
        config: EntityApiConfig | None = None,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
    ) -> None:
        self._config = config
        self._client_factory = client_factory
        self._repositories: CatalogRepositories | None = None

    def __enter__(self) -> EntityApiUnitOfWork:
        config = self._config or get_entity_api_config()
        client = EntityApiClient(config=config, client_factory=self._client_factory)
        self._repositories = CatalogRepositories(store=client)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self._repositories = None
        return False

    @property
    def repositories(self) -> CatalogRepositories:
        if self._repositories is None:
            raise RuntimeError("Unit of work not entered")
        return self._repositories

    def commit(self) -> None:
        log.debug("Entity API writes are already durable; nothing to commit")

    def rollback(self) -> None:
        log.warning("Entity API writes cannot be rolled back; completed writes stay applied")


if TYPE_CHECKING:
    from varietal.domain.ports import CatalogUnitOfWork

    _uow_check: CatalogUnitOfWork = EntityApiUnitOfWork()
