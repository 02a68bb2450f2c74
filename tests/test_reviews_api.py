from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from conftest import bearer, login, make_establishment, make_user
from models.establishment import Establishment
from models.review import Review

API = "/api/v1"


@pytest.fixture
def est_id(session, partner):
    return make_establishment(session, partner).id


@pytest.fixture
def reviewer(client, session):
    return login(client, make_user(session).email)


def _new_reviewer(client, session):
    return login(client, make_user(session).email)


def _post_review(client, tokens, est_id, rating, content="ok"):
    return client.post(f"{API}/establishments/{est_id}/reviews", json={"rating": rating, "content": content},
                       headers=bearer(tokens))


def _establishment(session, est_id):
    return session.get(Establishment, est_id)


def test_review_updates_rating_but_not_rank(client, session, admin, est_id, reviewer):
    admin_tokens = login(client, admin.email)
    client.post(f"{API}/rankings/refresh", headers=bearer(admin_tokens))
    rank_before = _establishment(session, est_id).computed_rank

    assert _post_review(client, reviewer, est_id, 5).status_code == 201
    assert _post_review(client, _new_reviewer(client, session), est_id, 4).status_code == 201

    est = _establishment(session, est_id)
    assert est.review_count == 2
    assert est.average_rating == pytest.approx(4.5)
    assert est.computed_rank == rank_before
    session.close()

    client.post(f"{API}/rankings/refresh", headers=bearer(admin_tokens))
    assert _establishment(session, est_id).computed_rank > rank_before


def test_review_validation(client, est_id, reviewer):
    assert _post_review(client, reviewer, est_id, 6).status_code == 422
    assert _post_review(client, reviewer, est_id, 0).status_code == 422


def test_review_requires_login(client, est_id):
    resp = client.post(f"{API}/establishments/{est_id}/reviews", json={"rating": 5})
    assert resp.status_code == 401


def test_review_unknown_establishment(client, reviewer):
    assert _post_review(client, reviewer, "nope", 5).status_code == 404


# ── One live review per user ─────────────────────────────────────────────


def test_second_review_by_same_user_rejected(client, session, est_id, reviewer):
    assert _post_review(client, reviewer, est_id, 5).status_code == 201

    resp = _post_review(client, reviewer, est_id, 5)
    assert resp.status_code == 409
    assert resp.get_json()["error"] == "CONFLICT"
    assert "already reviewed" in resp.get_json()["message"]

    est = _establishment(session, est_id)
    assert est.review_count == 1


def test_review_again_after_deleting(client, session, est_id, reviewer):
    review_id = _post_review(client, reviewer, est_id, 1).get_json()["data"]["id"]
    assert client.delete(f"{API}/reviews/{review_id}", headers=bearer(reviewer)).status_code == 204

    assert _post_review(client, reviewer, est_id, 4).status_code == 201
    est = _establishment(session, est_id)
    assert est.review_count == 1
    assert est.average_rating == pytest.approx(4.0)


def test_live_review_index_rejects_direct_duplicates(session, partner):
    user = make_user(session)
    est = make_establishment(session, partner)
    session.add(Review(user_id=user.id, establishment_id=est.id, rating=3))
    session.commit()

    session.add(Review(user_id=user.id, establishment_id=est.id, rating=5))
    with pytest.raises(IntegrityError):
        session.commit()
    session.rollback()


# ── Listing and deletion ─────────────────────────────────────────────────


def test_list_reviews(client, session, est_id):
    for rating in (3, 4, 5):
        _post_review(client, _new_reviewer(client, session), est_id, rating)

    resp = client.get(f"{API}/establishments/{est_id}/reviews", query_string={"limit": 2})
    assert resp.status_code == 200
    body = resp.get_json()
    assert len(body["data"]) == 2
    assert body["meta"]["total"] == 3


def test_author_soft_deletes_review(client, session, est_id, reviewer):
    review_id = _post_review(client, reviewer, est_id, 1).get_json()["data"]["id"]
    _post_review(client, _new_reviewer(client, session), est_id, 5)

    assert client.delete(f"{API}/reviews/{review_id}", headers=bearer(reviewer)).status_code == 204
    assert client.delete(f"{API}/reviews/{review_id}", headers=bearer(reviewer)).status_code == 404

    est = _establishment(session, est_id)
    assert est.review_count == 1
    assert est.average_rating == pytest.approx(5.0)
    listed = client.get(f"{API}/establishments/{est_id}/reviews").get_json()
    assert listed["meta"]["total"] == 1


def test_only_author_or_admin_deletes(client, session, admin, est_id, reviewer):
    review_id = _post_review(client, reviewer, est_id, 2).get_json()["data"]["id"]
    stranger = _new_reviewer(client, session)

    assert client.delete(f"{API}/reviews/{review_id}", headers=bearer(stranger)).status_code == 403
    admin_tokens = login(client, admin.email)
    assert client.delete(f"{API}/reviews/{review_id}", headers=bearer(admin_tokens)).status_code == 204
