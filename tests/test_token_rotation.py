from __future__ import annotations

from datetime import timedelta
from unittest.mock import patch

import pytest

from conftest import make_user
from models.refresh_token import RefreshToken, TokenState
from models.token_store import TokenStore
from services.exceptions import SecurityAlert, TokenExpired, TokenNotFound
from services.token_rotation import TokenRotationGuard
from utils.timeutils import utcnow


@pytest.fixture
def user(session):
    return make_user(session)


@pytest.fixture
def store(session):
    return TokenStore(session)


@pytest.fixture
def guard(store):
    return TokenRotationGuard(store)


def _live_count(session, user_id):
    return (
        session.query(RefreshToken)
        .filter(RefreshToken.user_id == user_id, RefreshToken.used_at.is_(None))
        .count()
    )


# ── Issue / rotate ───────────────────────────────────────────────────────


def test_issue_creates_live_token(guard, user):
    token = guard.issue(user.id)
    assert token.state == TokenState.ISSUED_LIVE
    assert len(token.token) == 64
    assert token.expires_at > utcnow() + timedelta(days=29)


def test_rotate_consumes_and_links(guard, user):
    original = guard.issue(user.id)
    successor = guard.rotate(original.token)

    assert successor.token != original.token
    assert successor.user_id == user.id
    assert successor.state == TokenState.ISSUED_LIVE
    assert original.used_at is not None
    assert original.replaced_by == successor.id
    assert original.state == TokenState.CONSUMED


def test_rotate_twice_is_reuse(session, guard, user):
    other = make_user(session)
    others_token = guard.issue(other.id)
    original = guard.issue(user.id)
    guard.issue(user.id)  # second device
    guard.rotate(original.token)

    with pytest.raises(SecurityAlert) as exc:
        guard.rotate(original.token)

    assert exc.value.user_id == user.id
    assert exc.value.revoked == 2
    assert _live_count(session, user.id) == 0
    # other users keep their sessions
    assert session.get(RefreshToken, others_token.id).used_at is None


def test_revoked_token_reuse_is_an_alert(guard, user):
    token = guard.issue(user.id)
    guard.invalidate(token.token)
    with pytest.raises(SecurityAlert):
        guard.rotate(token.token)


def test_lost_compare_and_swap_takes_reuse_path(session, guard, store, user):
    token = guard.issue(user.id)
    with patch.object(store, "consume", return_value=False):
        with pytest.raises(SecurityAlert):
            guard.rotate(token.token)
    assert _live_count(session, user.id) == 0


def test_expired_token_is_left_untouched(session, store, user):
    past = utcnow() - timedelta(days=31)
    old = TokenRotationGuard(store, clock=lambda: past).issue(user.id)

    with pytest.raises(TokenExpired):
        TokenRotationGuard(store).rotate(old.token)

    assert session.get(RefreshToken, old.id).used_at is None


def test_unknown_token(guard):
    with pytest.raises(TokenNotFound):
        guard.rotate("not-a-real-token")


# ── Invalidate / revoke_all ──────────────────────────────────────────────


def test_invalidate_single_token(session, guard, user):
    keep = guard.issue(user.id)
    drop = guard.issue(user.id)

    assert guard.invalidate(drop.token, user_id=user.id) is True
    assert drop.state == TokenState.REVOKED
    assert guard.invalidate(drop.token) is False
    assert session.get(RefreshToken, keep.id).used_at is None


def test_invalidate_rejects_foreign_token(session, guard, user):
    token = guard.issue(user.id)
    stranger = make_user(session)
    with pytest.raises(TokenNotFound):
        guard.invalidate(token.token, user_id=stranger.id)
    assert token.used_at is None


def test_revoke_all_is_idempotent(session, guard, user):
    for _ in range(3):
        guard.issue(user.id)

    assert guard.revoke_all(user.id) == 3
    assert guard.revoke_all(user.id) == 0
    assert _live_count(session, user.id) == 0
    assert all(t.state == TokenState.REVOKED for t in TokenStore(session).for_user(user.id))


def test_chain_follows_replacements(guard, user):
    first = guard.issue(user.id)
    second = guard.rotate(first.token)
    third = guard.rotate(second.token)

    chain = guard.chain(first.token)
    assert [t.id for t in chain] == [first.id, second.id, third.id]
    assert chain[-1].state == TokenState.ISSUED_LIVE
