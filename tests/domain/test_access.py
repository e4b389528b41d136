from __future__ import annotations

import pytest

from varietal.domain.access import SERVICE_CALLER, Caller, CallerRole, require_admin
from varietal.domain.errors import AuthorizationError


def test_admin_callers_pass() -> None:
    caller = Caller(id="u-1", role=CallerRole.ADMIN)

    assert require_admin(caller) is caller
    assert require_admin(SERVICE_CALLER) is SERVICE_CALLER


def test_regular_and_missing_callers_are_rejected() -> None:
    with pytest.raises(AuthorizationError, match="Admin"):
        require_admin(Caller(id="u-2"))
    with pytest.raises(AuthorizationError):
        require_admin(None)
