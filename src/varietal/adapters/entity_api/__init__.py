"""Hosted entity API adapter."""

from __future__ import annotations

from .client import REFERENCE_COLLECTIONS, EntityApiClient, EntityApiError
from .schema import EntityDocumentPayload
from .unit_of_work import EntityApiUnitOfWork

__all__ = [
    "REFERENCE_COLLECTIONS",
    "EntityApiClient",
    "EntityApiError",
    "EntityApiUnitOfWork",
    "EntityDocumentPayload",
]
