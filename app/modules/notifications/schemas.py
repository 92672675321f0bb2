from pydantic import BaseModel, EmailStr, Field, model_validator
from typing import Optional, Literal

HostNotificationType = Literal["rsvp_change", "bring_claimed"]


class BellRequest(BaseModel):
    message: Optional[str] = Field(default=None, max_length=500)


class BellResponse(BaseModel):
    sent: int


class NotifyHostRequest(BaseModel):
    event_id: str = Field(min_length=1)
    type: HostNotificationType
    message: Optional[str] = Field(default=None, max_length=500)
    guest_name: Optional[str] = None
    item_name: Optional[str] = None


class DeliveryResponse(BaseModel):
    sent: bool


class InviteEmailRequest(BaseModel):
    email: EmailStr
    guest_name: Optional[str] = None


class InviteSmsRequest(BaseModel):
    phone: str = Field(min_length=1)
    guest_name: Optional[str] = None


class InvitePushRequest(BaseModel):
    email: Optional[str] = None
    phone: Optional[str] = None

    @model_validator(mode="after")
    def require_contact(self):
        if not (self.email or "").strip() and not (self.phone or "").strip():
            raise ValueError("email or phone required")
        return self


class SweepResponse(BaseModel):
    processed: int
    delivered: int
    skipped: int
    failed: int
