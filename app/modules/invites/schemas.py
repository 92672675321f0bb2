from pydantic import BaseModel, EmailStr, field_validator, model_validator
from typing import Optional, List, Literal

from app.modules.events.schemas import BringItemResponse, EventResponse, GuestResponse, MenuSectionResponse

RsvpStatus = Literal["going", "maybe", "cant"]

MIN_PHONE_DIGITS = 10


def normalize_phone_for_lookup(phone: str) -> str:
    """Digits only, the form phones are stored and matched in."""
    return "".join(ch for ch in phone if ch.isdigit())


def normalize_contact(value: str) -> str:
    """Lower-case e-mails, reduce phone numbers to digits."""
    value = value.strip()
    if "@" in value:
        return value.lower()
    digits = normalize_phone_for_lookup(value)
    return digits or value


class RsvpRequest(BaseModel):
    token: str
    guest_name: str
    guest_phone_or_email: str
    rsvp_status: RsvpStatus = "going"
    wants_reminders: bool = True

    @field_validator("guest_name")
    @classmethod
    def name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please enter your name.")
        return value

    @field_validator("guest_phone_or_email")
    @classmethod
    def contact_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please enter a phone number or email.")
        return value


class RsvpResponse(BaseModel):
    guest_id: str


class InvitePreviewResponse(BaseModel):
    event: EventResponse
    host_name: Optional[str] = None
    guest_count: int = 0
    menu_sections: List[MenuSectionResponse] = []
    bring_items: List[BringItemResponse] = []
    guests: Optional[List[GuestResponse]] = None


class HostGuestAdd(BaseModel):
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    guest_name: Optional[str] = None

    @field_validator("phone")
    @classmethod
    def valid_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        digits = normalize_phone_for_lookup(value)
        if len(digits) < MIN_PHONE_DIGITS:
            raise ValueError("Please enter a valid phone number.")
        return digits

    @model_validator(mode="after")
    def one_contact(self):
        if bool(self.email) == bool(self.phone):
            raise ValueError("Provide either an email or a phone number.")
        return self

    @property
    def contact(self) -> str:
        return str(self.email).lower() if self.email else self.phone


class HostGuestResponse(BaseModel):
    guest_id: str
