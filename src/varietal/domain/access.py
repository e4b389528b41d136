"""Caller identity and the privilege check guarding maintenance runs."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

from .errors import AuthorizationError


class CallerRole(StrEnum):
    ADMIN = "admin"
    USER = "user"


@dataclass(frozen=True, slots=True, kw_only=True)
class Caller:
    id: str
    role: str = CallerRole.USER

    @property
    def is_admin(self) -> bool:
        return self.role == CallerRole.ADMIN


SERVICE_CALLER: Final[Caller] = Caller(id="service", role=CallerRole.ADMIN)


def require_admin(caller: Caller | None) -> Caller:
    """Return ``caller`` if it may run catalog maintenance, else raise."""

    if caller is None or not caller.is_admin:
        raise AuthorizationError("Admin access required")
    return caller
