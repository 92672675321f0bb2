"""
Tests for delivering due reminders and bells
"""

from datetime import timedelta

import requests

from app.core.clock import utcnow
from app.modules.events.links import build_bell_url, build_event_url
from app.modules.notifications.push import PartialPushError
from app.modules.notifications.sweep import NotificationSweeper, is_reminder_recipient
from tests.conftest import FakePushClient, GUEST, HOST, make_event, make_guest, make_profile
from tests.fake_supabase import FakeSupabase


def _schedule(db, event_id, type_, at):
    return db.seed("notification_schedules", event_id=event_id, type=type_, scheduled_at=at.isoformat())


def _setup():
    db = FakeSupabase()
    push = FakePushClient()
    return db, push, NotificationSweeper(db, push, stale_after=timedelta(minutes=15))


def test_recipient_rule():
    assert is_reminder_recipient({"user_id": "u", "rsvp_status": "going", "wants_reminders": False})
    assert is_reminder_recipient({"user_id": "u", "rsvp_status": "maybe", "wants_reminders": True})
    assert not is_reminder_recipient({"user_id": "u", "rsvp_status": "maybe", "wants_reminders": False})
    assert not is_reminder_recipient({"user_id": "u", "rsvp_status": "cant", "wants_reminders": True})
    assert not is_reminder_recipient({"user_id": None, "rsvp_status": "going"})


def test_due_reminder_goes_to_eligible_guests_and_is_marked_sent():
    db, push, sweeper = _setup()
    now = utcnow()
    event = make_event(db, bell_in=timedelta(minutes=30))
    make_guest(db, event["id"], "guest@example.com", user_id=GUEST["id"])
    make_guest(db, event["id"], "maybe@example.com", user_id="maybe-user", rsvp_status="maybe", wants_reminders=False)
    make_guest(db, event["id"], "anon@example.com")
    make_profile(db, GUEST, push_token="ExponentPushToken[guest]")
    make_profile(db, {"id": "maybe-user", "email": "maybe@example.com"}, push_token="ExponentPushToken[maybe]")
    row = _schedule(db, event["id"], "reminder_30m", now - timedelta(minutes=1))

    summary = sweeper.run_once(now)

    assert summary["processed"] == 1
    assert [m["to"] for m in push.messages] == ["ExponentPushToken[guest]"]
    assert push.messages[0]["body"] == "Your dinner is coming up."
    assert push.messages[0]["data"] == {
        "type": "reminder",
        "eventId": event["id"],
        "url": build_event_url(event["id"]),
    }
    assert db.rows("notification_schedules", id=row["id"])[0]["sent_at"] is not None


def test_bell_row_payload():
    db, push, sweeper = _setup()
    now = utcnow()
    event = make_event(db, bell_in=timedelta(seconds=0))
    make_guest(db, event["id"], "guest@example.com", user_id=GUEST["id"])
    make_profile(db, GUEST, push_token="tok")
    _schedule(db, event["id"], "bell", now)

    sweeper.run_once(now)

    message = push.messages[0]
    assert message["title"] == "Dinner Bell!"
    assert message["body"] == "Time to eat."
    assert message["data"] == {
        "type": "bell_ring",
        "eventId": event["id"],
        "bellSound": "triangle",
        "url": build_bell_url(event["id"]),
    }


def test_row_without_recipients_is_still_marked_sent():
    db, push, sweeper = _setup()
    now = utcnow()
    event = make_event(db)
    row = _schedule(db, event["id"], "reminder_2h", now)

    sweeper.run_once(now)

    assert push.messages == []
    assert db.rows("notification_schedules", id=row["id"])[0]["sent_at"] is not None


def test_future_rows_are_left_alone():
    db, push, sweeper = _setup()
    now = utcnow()
    event = make_event(db)
    row = _schedule(db, event["id"], "bell", now + timedelta(hours=1))

    assert sweeper.run_once(now)["processed"] == 0
    assert db.rows("notification_schedules", id=row["id"])[0]["sent_at"] is None


def test_stale_rows_are_skipped_without_delivery():
    db, push, sweeper = _setup()
    now = utcnow()
    event = make_event(db, bell_in=timedelta(minutes=90))
    make_guest(db, event["id"], "guest@example.com", user_id=GUEST["id"])
    make_profile(db, GUEST, push_token="tok")
    # the 2h reminder of an event created 90 minutes before its bell
    row = _schedule(db, event["id"], "reminder_2h", now - timedelta(minutes=30))

    summary = sweeper.run_once(now)

    assert summary["skipped"] == 1
    assert push.messages == []
    assert db.rows("notification_schedules", id=row["id"])[0]["sent_at"] is not None


def test_cancelled_event_rows_are_skipped():
    db, push, sweeper = _setup()
    now = utcnow()
    event = make_event(db, is_cancelled=True)
    make_guest(db, event["id"], "guest@example.com", user_id=GUEST["id"])
    make_profile(db, GUEST, push_token="tok")
    _schedule(db, event["id"], "reminder_30m", now)

    assert sweeper.run_once(now)["skipped"] == 1
    assert push.messages == []


def test_push_failure_keeps_row_pending():
    db, push, sweeper = _setup()
    now = utcnow()
    event = make_event(db)
    make_guest(db, event["id"], "guest@example.com", user_id=GUEST["id"])
    make_profile(db, GUEST, push_token="tok")
    row = _schedule(db, event["id"], "reminder_30m", now)
    push.fail = True

    assert sweeper.run_once(now)["failed"] == 1
    assert db.rows("notification_schedules", id=row["id"])[0]["sent_at"] is None


def test_partly_delivered_row_is_not_sent_again():
    db, _, _ = _setup()
    now = utcnow()
    event = make_event(db)
    make_guest(db, event["id"], "guest@example.com", user_id=GUEST["id"])
    make_profile(db, GUEST, push_token="tok")
    row = _schedule(db, event["id"], "reminder_30m", now)

    class CutOffPushClient:
        def send(self, messages):
            list(messages)
            raise PartialPushError(100, requests.ConnectionError("reset by peer"))

    summary = NotificationSweeper(db, CutOffPushClient(), stale_after=timedelta(minutes=15)).run_once(now)

    assert summary["processed"] == 1
    assert summary["delivered"] == 100
    assert summary["failed"] == 0
    assert db.rows("notification_schedules", id=row["id"])[0]["sent_at"] is not None


def test_sweep_endpoint_requires_cron_secret(client, db, monkeypatch):
    from app.config import settings
    monkeypatch.setattr(settings, "cron_secret", "s3cret")

    assert client.post("/api/v1/notifications/sweep").status_code == 401
    assert client.post("/api/v1/notifications/sweep", headers={"X-Cron-Secret": "nope"}).status_code == 401
    response = client.post("/api/v1/notifications/sweep", headers={"X-Cron-Secret": "s3cret"})
    assert response.status_code == 200
    assert response.json() == {"processed": 0, "delivered": 0, "skipped": 0, "failed": 0}


def test_sweep_endpoint_disabled_without_secret(client, monkeypatch):
    from app.config import settings
    monkeypatch.setattr(settings, "cron_secret", None)
    assert client.post("/api/v1/notifications/sweep", headers={"X-Cron-Secret": "x"}).status_code == 503


def test_host_is_not_a_reminder_recipient_unless_guest():
    db, push, sweeper = _setup()
    now = utcnow()
    event = make_event(db)
    make_profile(db, HOST, push_token="host-token")
    _schedule(db, event["id"], "reminder_30m", now)

    sweeper.run_once(now)
    assert push.messages == []
