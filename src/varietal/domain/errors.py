"""Invocation-level errors that abort a maintenance run before it starts."""

from __future__ import annotations


class CatalogMaintenanceError(RuntimeError):
    """Base class for errors surfaced to the caller of a maintenance run."""


class AuthorizationError(CatalogMaintenanceError):
    """Raised when the caller lacks the privileges a maintenance run requires."""


class InvalidRequestError(CatalogMaintenanceError):
    """Raised when a request is missing its scope or carries invalid options."""
