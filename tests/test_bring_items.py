"""
Tests for claiming bring items and marking them provided
"""

from concurrent.futures import ThreadPoolExecutor

import pytest
from fastapi import HTTPException

from app.modules.bring_items.schemas import ClaimRequest
from app.modules.bring_items.service import BringItemService
from tests.conftest import GUEST, HOST, STRANGER, make_event, make_guest, make_profile


@pytest.fixture
def party(db):
    event = make_event(db)
    item = db.seed("bring_items", event_id=event["id"], name="Salsa", quantity="2 jars", category="side")
    first = make_guest(db, event["id"], "first@example.com", guest_name="First")
    second = make_guest(db, event["id"], "second@example.com", guest_name="Second")
    return event, item, first, second


def test_claim_sets_status_and_guest(client, db, auth, party):
    auth.user = None
    event, item, first, _ = party

    response = client.post(f"/api/v1/bring-items/{item['id']}/claim", json={"guest_id": first["id"]})

    body = response.json()
    assert response.status_code == 200
    assert body["claimed"] is True
    assert body["item"]["status"] == "claimed"
    assert body["item"]["claimed_by_guest_id"] == first["id"]
    assert body["item"]["claimed_quantity"] == "2 jars"


def test_second_claim_is_a_normal_outcome(client, db, auth, party):
    auth.user = None
    _, item, first, second = party
    client.post(f"/api/v1/bring-items/{item['id']}/claim", json={"guest_id": first["id"]})

    response = client.post(f"/api/v1/bring-items/{item['id']}/claim", json={"guest_id": second["id"]})

    assert response.status_code == 200
    assert response.json()["claimed"] is False
    assert response.json()["reason"] == "already_claimed"
    assert db.rows("bring_items", id=item["id"])[0]["claimed_by_guest_id"] == first["id"]


def test_concurrent_claims_have_one_winner(db, party):
    _, item, first, second = party
    service = BringItemService(db)

    def claim(guest_id):
        return service.claim(item["id"], ClaimRequest(guest_id=guest_id))

    # Race the conditional update itself: both pass the advisory checks
    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(claim, [first["id"], second["id"]] * 4))

    winners = [r for r in results if r.claimed]
    assert len(winners) == 1
    assert all(r.reason == "already_claimed" for r in results if not r.claimed)
    row = db.rows("bring_items", id=item["id"])[0]
    assert row["status"] == "claimed"
    assert row["claimed_by_guest_id"] == winners[0].item.claimed_by_guest_id


def test_lost_race_after_checks(db, party):
    _, item, first, second = party
    service = BringItemService(db)
    original_get_item = service.get_item

    def stale_read(item_id):
        snapshot = original_get_item(item_id)
        # someone else claims between the read and the update
        db.table("bring_items").update({"status": "claimed", "claimed_by_guest_id": second["id"]}).eq("id", item_id).execute()
        return snapshot

    service.get_item = stale_read
    result = service.claim(item["id"], ClaimRequest(guest_id=first["id"]))

    assert result.claimed is False
    assert result.reason == "already_claimed"
    assert db.rows("bring_items", id=item["id"])[0]["claimed_by_guest_id"] == second["id"]


def test_unclaimable_item(client, db, auth, party):
    auth.user = None
    event, _, first, _ = party
    item = db.seed("bring_items", event_id=event["id"], name="Ice", is_claimable=False)

    response = client.post(f"/api/v1/bring-items/{item['id']}/claim", json={"guest_id": first["id"]})

    assert response.json()["claimed"] is False
    assert response.json()["reason"] == "not_claimable"


def test_guest_from_another_event_cannot_claim(client, db, auth, party):
    auth.user = None
    _, item, _, _ = party
    other = make_event(db)
    outsider = make_guest(db, other["id"], "out@example.com")

    response = client.post(f"/api/v1/bring-items/{item['id']}/claim", json={"guest_id": outsider["id"]})

    assert response.status_code == 403
    assert db.rows("bring_items", id=item["id"])[0]["status"] == "unclaimed"


def test_linked_guest_row_belongs_to_its_user(client, db, auth):
    event = make_event(db)
    item = db.seed("bring_items", event_id=event["id"], name="Chips")
    linked = make_guest(db, event["id"], "guest@example.com", user_id=GUEST["id"])
    auth.user = STRANGER

    response = client.post(f"/api/v1/bring-items/{item['id']}/claim", json={"guest_id": linked["id"]})

    assert response.status_code == 403


def test_claim_unknown_item(client, auth):
    auth.user = None
    response = client.post("/api/v1/bring-items/missing/claim", json={"guest_id": "g"})
    assert response.status_code == 404


def test_claim_notifies_host_with_message(client, db, auth, push, party):
    auth.user = None
    _, item, first, _ = party
    make_profile(db, HOST, push_token="host-token")

    client.post(f"/api/v1/bring-items/{item['id']}/claim", json={"guest_id": first["id"], "message": "Bringing extra!"})

    assert push.messages[0]["to"] == "host-token"
    assert push.messages[0]["body"] == "Bringing extra!"
    assert push.messages[0]["data"]["type"] == "bring_claimed"


def test_claim_broadcasts_changed_row(client, db, auth, party):
    auth.user = None
    event, item, first, _ = party

    with client.websocket_connect(f"/ws/events/{event['id']}/bring-items?guest_id={first['id']}") as ws:
        client.post(f"/api/v1/bring-items/{item['id']}/claim", json={"guest_id": first["id"]})
        message = ws.receive_json()

    assert message["type"] == "bring_item_updated"
    assert message["item"]["id"] == item["id"]
    assert message["item"]["status"] == "claimed"


def test_feed_rejects_unknown_guest(client, db, party):
    from starlette.websockets import WebSocketDisconnect
    event, _, _, _ = party
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/ws/events/{event['id']}/bring-items?guest_id=nope") as ws:
            ws.receive_json()


def test_host_marks_provided(client, db, party):
    _, item, first, _ = party
    BringItemService(db).claim(item["id"], ClaimRequest(guest_id=first["id"]))

    response = client.post(f"/api/v1/bring-items/{item['id']}/provided")

    assert response.status_code == 200
    assert response.json()["status"] == "provided"
    assert response.json()["claimed_by_guest_id"] == first["id"]


def test_provided_requires_claim(client, db, party):
    _, item, _, _ = party
    response = client.post(f"/api/v1/bring-items/{item['id']}/provided")
    assert response.status_code == 409
    assert db.rows("bring_items", id=item["id"])[0]["status"] == "unclaimed"


def test_only_host_marks_provided(db, party):
    _, item, first, _ = party
    service = BringItemService(db)
    service.claim(item["id"], ClaimRequest(guest_id=first["id"]))
    with pytest.raises(HTTPException) as exc:
        service.mark_provided(item["id"], GUEST)
    assert exc.value.status_code == 403
