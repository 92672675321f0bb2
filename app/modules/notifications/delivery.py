"""
Invite delivery over e-mail (Resend), SMS (Twilio) and push.
"""

import html
import logging
import re
from typing import Optional

import requests
from fastapi import HTTPException
from supabase import Client

from app.config import settings
from app.core.dependencies import check_event_host
from app.modules.events.links import build_invite_url
from app.modules.notifications.push import PushClient, build_message
from app.modules.notifications.schemas import DeliveryResponse

logger = logging.getLogger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"
TWILIO_MESSAGES_URL = "https://api.twilio.com/2010-04-01/Accounts/{sid}/Messages.json"


def normalize_to_e164(phone: str) -> str:
    """North American numbers get +1; anything already starting with + is kept."""
    phone = phone.strip()
    if phone.startswith("+"):
        return phone
    digits = re.sub(r"\D", "", phone)
    if len(digits) == 11 and digits.startswith("1"):
        return f"+{digits}"
    if len(digits) == 10:
        return f"+1{digits}"
    return f"+{digits}"


class InviteDeliveryService:
    def __init__(self, supabase: Client, push_client: PushClient, session: Optional[requests.Session] = None):
        self.supabase = supabase
        self.push_client = push_client
        self.session = session or requests.Session()

    def _host_name(self, user_data: dict) -> str:
        result = self.supabase.table("profiles")\
            .select("name")\
            .eq("id", user_data["id"])\
            .maybe_single()\
            .execute()
        name = result.data.get("name") if result and result.data else None
        return name or user_data.get("email") or "Your host"

    def send_email(self, event_id: str, user_data: dict, email: str, guest_name: Optional[str] = None) -> DeliveryResponse:
        event = check_event_host(event_id, user_data, self.supabase)
        if not settings.resend_api_key:
            raise HTTPException(status_code=503, detail="Email delivery is not configured")

        invite_url = build_invite_url(event_id, event["invite_token"])
        title = html.escape(event["title"])
        body_html = (
            '<div style="font-family: Arial, sans-serif; line-height: 1.5;">'
            f"<h2>You're invited to {title}</h2>"
            f"<p>{html.escape(self._host_name(user_data))} invited "
            f"{html.escape((guest_name or '').strip() or 'you')} to dinner.</p>"
            f'<p><a href="{invite_url}">Open invite</a></p>'
            "<p>Or paste this link into your browser:</p>"
            f"<p>{invite_url}</p>"
            "</div>"
        )
        response = self.session.post(
            RESEND_API_URL,
            headers={"Authorization": f"Bearer {settings.resend_api_key}"},
            json={
                "from": settings.invite_from_email,
                "to": [email.strip().lower()],
                "subject": f"You're invited to {event['title']}",
                "html": body_html,
            },
            timeout=settings.http_timeout_sec,
        )
        if not response.ok:
            logger.error(f"Invite email for event {event_id} failed: {response.status_code} {response.text}")
            raise HTTPException(status_code=502, detail="Email send failed")
        logger.info(f"Invite email sent for event {event_id}")
        return DeliveryResponse(sent=True)

    def send_sms(self, event_id: str, user_data: dict, phone: str, guest_name: Optional[str] = None) -> DeliveryResponse:
        event = check_event_host(event_id, user_data, self.supabase)
        sid = settings.twilio_account_sid
        if not sid or not settings.twilio_auth_token:
            raise HTTPException(status_code=503, detail="SMS delivery is not configured")
        if not settings.twilio_messaging_service_sid and not settings.twilio_phone_number:
            raise HTTPException(status_code=503, detail="SMS delivery is not configured")

        invite_url = build_invite_url(event_id, event["invite_token"])
        form = {
            "To": normalize_to_e164(phone),
            "Body": f"{self._host_name(user_data)} invited you to {event['title']}. RSVP: {invite_url}",
        }
        if settings.twilio_messaging_service_sid:
            form["MessagingServiceSid"] = settings.twilio_messaging_service_sid
        else:
            form["From"] = settings.twilio_phone_number

        response = self.session.post(
            TWILIO_MESSAGES_URL.format(sid=sid),
            data=form,
            auth=(sid, settings.twilio_auth_token),
            timeout=settings.http_timeout_sec,
        )
        if not response.ok:
            logger.error(f"Invite SMS for event {event_id} failed: {response.status_code} {response.text}")
            raise HTTPException(status_code=502, detail="SMS send failed")
        logger.info(f"Invite SMS sent for event {event_id}")
        return DeliveryResponse(sent=True)

    def _push_token_for_contact(self, email: Optional[str], phone_digits: Optional[str]) -> Optional[str]:
        if email:
            result = self.supabase.table("profiles")\
                .select("push_token")\
                .eq("email", email)\
                .maybe_single()\
                .execute()
            if result and result.data and result.data.get("push_token"):
                return result.data["push_token"]
        if phone_digits:
            result = self.supabase.rpc("get_push_token_by_phone", {"p_normalized_phone": phone_digits}).execute()
            if result.data:
                return result.data
        return None

    def send_push(self, event_id: str, user_data: dict, email: Optional[str] = None, phone: Optional[str] = None) -> DeliveryResponse:
        """Push an invite to a guest who already has an account. ``sent`` is False when none is found."""
        event = check_event_host(event_id, user_data, self.supabase)
        email = (email or "").strip().lower() or None
        phone_digits = re.sub(r"\D", "", phone or "") or None
        token = self._push_token_for_contact(email, phone_digits)
        if not token:
            return DeliveryResponse(sent=False)

        data = {"type": "invite_received", "eventId": event_id, "token": event["invite_token"]}
        if email:
            data["email"] = email
        if phone_digits:
            data["phone"] = phone_digits
        try:
            self.push_client.send([build_message(
                token,
                "You're invited",
                f"You're invited to {event['title']}. Tap to RSVP.",
                data,
            )])
        except requests.RequestException as e:
            logger.error(f"Invite push for event {event_id} failed: {e}")
            raise HTTPException(status_code=502, detail="Push delivery failed")
        return DeliveryResponse(sent=True)
