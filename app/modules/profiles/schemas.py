from pydantic import BaseModel, Field
from typing import Optional


class ProfileStats(BaseModel):
    hosted: int = 0
    attended: int = 0
    claimed: int = 0


class ProfileResponse(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    phone_number: Optional[str] = None
    avatar_url: Optional[str] = None
    stats: ProfileStats = ProfileStats()


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=120)
    phone: Optional[str] = None
    avatar_url: Optional[str] = None


class PushTokenUpdate(BaseModel):
    push_token: Optional[str] = None
