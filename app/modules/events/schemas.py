from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator
from typing import Optional, List, Literal
from datetime import datetime

from app.core.clock import as_utc, utcnow

BringItemCategory = Literal["drink", "side", "dessert", "supplies", "other"]

# Columns an edit may change but never set to null
REQUIRED_EVENT_FIELDS = (
    "title", "start_time", "bell_time", "timezone", "bell_sound", "is_public",
    "address_line1", "city", "state", "postal_code", "country",
)


class MenuItemCreate(BaseModel):
    name: str = Field(min_length=1)
    notes: Optional[str] = None
    dietary_tags: List[str] = []


class MenuSectionCreate(BaseModel):
    title: str = Field(min_length=1)
    items: List[MenuItemCreate] = []


class BringItemCreate(BaseModel):
    name: str = Field(min_length=1)
    quantity: str = "1"
    category: BringItemCategory = "other"
    is_required: bool = False
    is_claimable: bool = True
    notes: Optional[str] = None


class ScheduleBlockCreate(BaseModel):
    title: str = Field(min_length=1)
    time: Optional[str] = None
    notes: Optional[str] = None


def _check_times(start_time: Optional[datetime], bell_time: Optional[datetime], end_time: Optional[datetime]):
    if start_time and bell_time and as_utc(bell_time) < as_utc(start_time):
        raise ValueError("Bell time cannot be before the start time.")
    if end_time and bell_time and as_utc(end_time) < as_utc(bell_time):
        raise ValueError("End time cannot be before the bell time.")


class EventCreate(BaseModel):
    title: str = Field(min_length=1)
    description: Optional[str] = None
    start_time: datetime
    bell_time: datetime
    end_time: Optional[datetime] = None
    timezone: str = "UTC"
    location_name: Optional[str] = None
    address_line1: str = "TBD"
    address_line2: Optional[str] = None
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    location_notes: Optional[str] = None
    invite_note: Optional[str] = None
    bell_sound: str = "chime"
    theme_slug: Optional[str] = None
    accent_color: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    is_public: bool = False
    menu_sections: List[MenuSectionCreate] = []
    bring_items: List[BringItemCreate] = []
    schedule_blocks: List[ScheduleBlockCreate] = []

    @field_validator("bell_time")
    @classmethod
    def bell_time_in_future(cls, value: datetime) -> datetime:
        if as_utc(value) <= utcnow():
            raise ValueError("Bell time must be in the future.")
        return value

    @model_validator(mode="after")
    def check_time_order(self):
        _check_times(self.start_time, self.bell_time, self.end_time)
        return self


class EventUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    bell_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    timezone: Optional[str] = None
    location_name: Optional[str] = None
    address_line1: Optional[str] = None
    address_line2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None
    location_notes: Optional[str] = None
    invite_note: Optional[str] = None
    bell_sound: Optional[str] = None
    theme_slug: Optional[str] = None
    accent_color: Optional[str] = None
    capacity: Optional[int] = Field(default=None, ge=1)
    is_public: Optional[bool] = None

    @model_validator(mode="after")
    def reject_cleared_required_fields(self):
        cleared = sorted(
            name for name in REQUIRED_EVENT_FIELDS
            if name in self.model_fields_set and getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"These fields cannot be cleared: {', '.join(cleared)}")
        return self

    @model_validator(mode="after")
    def check_time_order(self):
        _check_times(self.start_time, self.bell_time, self.end_time)
        return self


class EventResponse(BaseModel):
    id: str
    host_user_id: str
    title: str
    description: Optional[str] = None
    start_time: datetime
    bell_time: datetime
    end_time: Optional[datetime] = None
    timezone: str = "UTC"
    location_name: Optional[str] = None
    address_line1: str = ""
    address_line2: Optional[str] = None
    city: str = ""
    state: str = ""
    postal_code: str = ""
    country: str = ""
    location_notes: Optional[str] = None
    invite_note: Optional[str] = None
    is_cancelled: bool = False
    is_public: bool = False
    capacity: Optional[int] = None
    bell_sound: Optional[str] = None
    theme_slug: Optional[str] = None
    accent_color: Optional[str] = None
    cover_image_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class HostEventResponse(EventResponse):
    """Event as seen by its host or co-hosts, invite token included."""
    invite_token: str


class MenuItemResponse(BaseModel):
    id: str
    section_id: str
    name: str
    notes: Optional[str] = None
    dietary_tags: List[str] = []
    sort_order: int = 0

    @field_validator("dietary_tags", mode="before")
    @classmethod
    def null_tags(cls, value):
        return value or []


class MenuSectionResponse(BaseModel):
    id: str
    title: str
    sort_order: int = 0
    menu_items: List[MenuItemResponse] = []


class BringItemResponse(BaseModel):
    id: str
    event_id: str
    name: str
    quantity: str = "1"
    category: str = "other"
    is_required: bool = False
    is_claimable: bool = True
    status: str = "unclaimed"  # unclaimed, claimed, provided
    claimed_by_guest_id: Optional[str] = None
    claimed_quantity: Optional[str] = None
    notes: Optional[str] = None
    sort_order: int = 0


class ScheduleBlockResponse(BaseModel):
    id: str
    title: str
    time: Optional[str] = None
    notes: Optional[str] = None
    sort_order: int = 0


class GuestResponse(BaseModel):
    id: str
    event_id: str
    user_id: Optional[str] = None
    guest_name: str
    guest_phone_or_email: str
    rsvp_status: str  # going, maybe, cant
    wants_reminders: bool = True
    arrival_status: Optional[str] = None  # not_started, on_the_way, arrived
    arrived_at: Optional[datetime] = None
    eta_minutes: Optional[int] = None
    created_at: Optional[datetime] = None


class EventFullResponse(BaseModel):
    event: EventResponse
    host_name: Optional[str] = None
    menu_sections: List[MenuSectionResponse] = []
    bring_items: List[BringItemResponse] = []
    schedule_blocks: List[ScheduleBlockResponse] = []
    guests: List[GuestResponse] = []
    co_host_ids: List[str] = []
    current_guest_id: Optional[str] = None


class EventCreatedResponse(BaseModel):
    event: HostEventResponse
    invite_url: str


class EventsListResponse(BaseModel):
    upcoming: List[EventResponse] = []
    past: List[EventResponse] = []


class CoHostAdd(BaseModel):
    email: EmailStr


class CoHostResponse(BaseModel):
    event_id: str
    user_id: str


class InviteLinkResponse(BaseModel):
    invite_url: str
    invite_token: str
