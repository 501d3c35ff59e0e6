from sqlmodel import select

from app.models.claim import Claim
from conftest import auth_headers

LOST_PHONE = {
    "item_type": "lost",
    "title": "Lost iPhone",
    "description": "Black iphone with a blue case",
    "category": "Mobile",
    "city": "Pune",
    "area": "Baner",
}

FOUND_PHONE = {
    "item_type": "found",
    "title": "iPhone near bus stop",
    "description": "Found an iphone at the bus stop",
    "category": "Mobile",
    "city": "Pune",
    "area": "Aundh",
    "questions": [{"question": "color of case?", "answer": "blue"}],
    "contact_phone": "+91 90000 00099",
}


def create_item(client, user, payload):
    response = client.post("/items/create", json=payload, headers=auth_headers(user))
    assert response.status_code == 200, response.text
    return response.json()


def test_health(client):
    assert client.get("/").json() == {"status": "ok"}


def test_creating_a_matching_item_notifies_both_posters(client, make_user):
    owner = make_user("Owner")
    finder = make_user("Finder")

    create_item(client, owner, LOST_PHONE)
    created = create_item(client, finder, FOUND_PHONE)

    assert created["matches"] == 1

    for user in (owner, finder):
        count = client.get("/notifications/count", headers=auth_headers(user)).json()
        assert count == {"count": 1, "by_type": {"match_found": 1}}

    matches = client.get("/notifications/matches", headers=auth_headers(owner)).json()["matches"]
    assert matches[0]["related_item"]["id"] == created["id"]
    assert matches[0]["title"].endswith("% Match Found!")


def test_item_validation(client, make_user):
    owner = make_user("Owner")

    response = client.post(
        "/items/create",
        json={**LOST_PHONE, "questions": [{"question": "color?", "answer": "blue"}]},
        headers=auth_headers(owner),
    )
    assert response.status_code == 400

    response = client.post("/items/create", json={**LOST_PHONE, "category": "Spaceship"}, headers=auth_headers(owner))
    assert response.status_code == 400


def test_public_item_hides_private_fields(client, make_user):
    finder = make_user("Finder")
    created = create_item(client, finder, FOUND_PHONE)

    item = client.get(f"/items/{created['id']}").json()["item"]

    assert "contact_phone" not in item
    assert "contact_email" not in item
    assert item["questions"] == ["color of case?"]


def test_disposition_cannot_be_edited(client, make_user):
    finder = make_user("Finder")
    created = create_item(client, finder, FOUND_PHONE)

    response = client.patch(f"/items/{created['id']}", json={"type": "lost"}, headers=auth_headers(finder))
    assert response.status_code == 400

    response = client.patch(f"/items/{created['id']}", json={"area": "Aundh Road"}, headers=auth_headers(finder))
    assert response.status_code == 200


def test_claim_flow_over_http(client, make_user):
    finder = make_user("Finder")
    owner = make_user("Owner", phone="+91 90000 00002")
    created = create_item(client, finder, FOUND_PHONE)

    payload = {
        "item_id": created["id"],
        "answers": [{"question": "color of case?", "answer": "it was dark blue"}],
    }
    response = client.post("/claims/create", json=payload, headers=auth_headers(owner))
    assert response.status_code == 200
    claim_id = response.json()["claim_id"]

    # duplicate active claim
    assert client.post("/claims/create", json=payload, headers=auth_headers(owner)).status_code == 409
    # self claim
    assert client.post("/claims/create", json=payload, headers=auth_headers(finder)).status_code == 409

    review = client.get(f"/claims/item/{created['id']}", headers=auth_headers(finder)).json()
    assert review["claims"][0]["confidence_score"] == 60

    assert client.get(f"/claims/{claim_id}/contact", headers=auth_headers(owner)).status_code == 403
    assert client.post(f"/claims/{claim_id}/approve", headers=auth_headers(owner)).status_code == 403

    response = client.post(f"/claims/{claim_id}/approve", headers=auth_headers(finder))
    assert response.json() == {"ok": True, "status": "approved"}

    contact = client.get(f"/claims/{claim_id}/contact", headers=auth_headers(owner)).json()
    assert contact["phone"] == "+91 90000 00099"

    status = client.get("/claims/status", params={"item_id": created["id"]}, headers=auth_headers(owner)).json()
    assert status["approved"] is True

    assert client.post(f"/claims/{claim_id}/solve", headers=auth_headers(finder)).status_code == 200

    listed = client.get("/items/all").json()["items"]
    assert created["id"] not in [item["id"] for item in listed]


def test_reject_then_reclaim(client, make_user):
    finder = make_user("Finder")
    owner = make_user("Owner")
    created = create_item(client, finder, FOUND_PHONE)

    payload = {"item_id": created["id"], "answers": []}
    claim_id = client.post("/claims/create", json=payload, headers=auth_headers(owner)).json()["claim_id"]

    response = client.post(
        f"/claims/{claim_id}/reject",
        json={"rejection_reason": "Case color doesn't match"},
        headers=auth_headers(finder),
    )
    assert response.json()["status"] == "rejected"

    assert client.post("/claims/create", json=payload, headers=auth_headers(owner)).status_code == 200

    notifications = client.get("/notifications/", headers=auth_headers(owner)).json()["notifications"]
    assert any("rejected" in n["title"] for n in notifications)


def test_unknown_claim_is_not_found(client, make_user):
    user = make_user("Owner")

    response = client.get("/claims/00000000-0000-0000-0000-000000000000", headers=auth_headers(user))
    assert response.status_code == 404


def test_mark_notifications_read(client, make_user):
    owner = make_user("Owner")
    finder = make_user("Finder")
    create_item(client, owner, LOST_PHONE)
    create_item(client, finder, FOUND_PHONE)

    headers = auth_headers(owner)
    notification = client.get("/notifications/", headers=headers).json()["notifications"][0]

    assert client.post(f"/notifications/{notification['id']}/mark-read", headers=headers).json() == {"ok": True}
    assert client.get("/notifications/count", headers=headers).json()["count"] == 0
    assert client.get("/notifications/", params={"unread_only": True}, headers=headers).json()["notifications"] == []


def test_deleting_an_item_removes_its_claims(client, session, make_user):
    finder = make_user("Finder")
    owner = make_user("Owner")
    created = create_item(client, finder, FOUND_PHONE)

    client.post("/claims/create", json={"item_id": created["id"], "answers": []}, headers=auth_headers(owner))

    assert client.delete(f"/items/{created['id']}", headers=auth_headers(owner)).status_code == 403
    assert client.delete(f"/items/{created['id']}", headers=auth_headers(finder)).json() is True

    assert session.exec(select(Claim)).all() == []


def test_mark_all_read_only_touches_own_notifications(client, make_user):
    owner = make_user("Owner")
    finder = make_user("Finder")
    create_item(client, owner, LOST_PHONE)
    create_item(client, finder, FOUND_PHONE)

    response = client.post("/notifications/mark-all-read", headers=auth_headers(owner))
    assert response.json() == {"ok": True, "updated": 1}

    assert client.get("/notifications/count", headers=auth_headers(owner)).json() == {"count": 0, "by_type": {}}
    assert client.get("/notifications/count", headers=auth_headers(finder)).json()["count"] == 1

    # another user's notification can't be marked
    notification = client.get("/notifications/", headers=auth_headers(finder)).json()["notifications"][0]
    response = client.post(f"/notifications/{notification['id']}/mark-read", headers=auth_headers(owner))
    assert response.status_code == 404

    matches = client.get("/notifications/", params={"type": "match_found"}, headers=auth_headers(finder)).json()
    assert len(matches["notifications"]) == 1
