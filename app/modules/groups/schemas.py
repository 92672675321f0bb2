from pydantic import BaseModel, Field, model_validator
from typing import Optional, List, Literal
from datetime import datetime

from app.modules.invites.schemas import MIN_PHONE_DIGITS, normalize_phone_for_lookup


class GroupCreate(BaseModel):
    name: str = Field(min_length=1, max_length=120)


class GroupUpdate(BaseModel):
    name: str = Field(min_length=1, max_length=120)


class GroupMemberAdd(BaseModel):
    contact_type: Literal["email", "phone"]
    contact_value: str = Field(min_length=1)
    display_name: Optional[str] = None

    @model_validator(mode="after")
    def normalize_contact_value(self):
        value = self.contact_value.strip()
        if self.contact_type == "email":
            if "@" not in value:
                raise ValueError("Please enter a valid email.")
            self.contact_value = value.lower()
        else:
            digits = normalize_phone_for_lookup(value)
            if len(digits) < MIN_PHONE_DIGITS:
                raise ValueError("Please enter a valid phone number.")
            self.contact_value = digits
        if self.display_name is not None:
            self.display_name = self.display_name.strip() or None
        return self


class GroupMemberResponse(BaseModel):
    id: str
    group_id: str
    contact_type: str
    contact_value: str
    display_name: Optional[str] = None
    sort_order: int = 0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupResponse(BaseModel):
    id: str
    user_id: str
    name: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupWithMembersResponse(GroupResponse):
    members: List[GroupMemberResponse] = []
