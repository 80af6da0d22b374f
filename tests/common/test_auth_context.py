from __future__ import annotations

import pytest

from src.timecard.timecard.auth.context import AuthContext, resolve_auth_context
from src.timecard.timecard.core.exceptions import UnauthenticatedError


def test_session_identity_wins_over_header():
    ctx = resolve_auth_context({"user_id": 3}, {"X-Owner-Id": "9"}, header_name="X-Owner-Id", allow_header=True)

    assert ctx == AuthContext(owner_id=3)


def test_header_used_when_allowed():
    ctx = resolve_auth_context({}, {"X-Owner-Id": "9"}, header_name="X-Owner-Id", allow_header=True)

    assert ctx.owner_id == 9


def test_header_ignored_when_disabled():
    with pytest.raises(UnauthenticatedError):
        resolve_auth_context({}, {"X-Owner-Id": "9"}, header_name="X-Owner-Id", allow_header=False)


@pytest.mark.parametrize("value", ["", "abc", "0", "-4"])
def test_garbage_identity_is_unauthenticated(value):
    with pytest.raises(UnauthenticatedError):
        resolve_auth_context({}, {"X-Owner-Id": value}, header_name="X-Owner-Id", allow_header=True)
