from pydantic import BaseModel, Field
from typing import Optional, Literal

from app.modules.events.schemas import BringItemResponse

ClaimFailureReason = Literal["already_claimed", "not_claimable"]


class ClaimRequest(BaseModel):
    guest_id: str = Field(min_length=1)
    claimed_quantity: Optional[str] = None
    message: Optional[str] = Field(default=None, max_length=500)


class ClaimResult(BaseModel):
    """Losing a race is a normal outcome: claimed=False with a reason."""
    claimed: bool
    reason: Optional[ClaimFailureReason] = None
    item: Optional[BringItemResponse] = None
