"""
Invitee-related Pydantic schemas
"""

from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, field_validator

from .settings import WeddingSettings

TITLE_OPTIONS = ["Ven", "Mr & Mrs", "Mr", "Mrs", "Family"]
DEFAULT_MESSAGE = "We invite you to celebrate our wedding."
FALLBACK_GUEST_NAME = "Family & Friends"

class RsvpStatus(str, Enum):
    PENDING = "pending"
    ATTENDING = "attending"
    DECLINED = "declined"

def _require_name(value: Optional[str]) -> str:
    if value is None:
        raise ValueError("Name must not be null")
    value = value.strip()
    if not value:
        raise ValueError("Name must not be empty")
    return value

class Invitee(BaseModel):
    """Guest record as persisted in either storage backend"""
    id: str
    slug: str
    name: str
    title: Optional[str] = None
    message: Optional[str] = None
    viewed: bool = False
    rsvp_status: Optional[RsvpStatus] = Field(default=None, alias="rsvpStatus")
    guest_count: Optional[int] = Field(default=None, alias="guestCount", ge=0)
    dietary_restrictions: Optional[str] = Field(default=None, alias="dietaryRestrictions")

    class Config:
        populate_by_name = True
        use_enum_values = True

    @property
    def effective_status(self) -> RsvpStatus:
        # absent status reads as pending
        return RsvpStatus(self.rsvp_status or RsvpStatus.PENDING)

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def merged(self, partial: Dict[str, Any]) -> "Invitee":
        return Invitee.model_validate({**self.to_document(), **partial})

class InviteeCreate(BaseModel):
    """Schema for adding a single guest"""
    name: str
    title: Optional[str] = "Mr & Mrs"

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        return _require_name(v)

class InviteeBatchCreate(BaseModel):
    """Schema for adding many guests at once"""
    guests: List[InviteeCreate] = Field(min_length=1)

class InviteeUpdate(BaseModel):
    """Admin edit of a guest; id and slug are not editable"""
    name: Optional[str] = None
    title: Optional[str] = None
    message: Optional[str] = None
    viewed: Optional[bool] = None
    rsvp_status: Optional[RsvpStatus] = Field(default=None, alias="rsvpStatus")
    guest_count: Optional[int] = Field(default=None, alias="guestCount", ge=0)
    dietary_restrictions: Optional[str] = Field(default=None, alias="dietaryRestrictions")

    class Config:
        populate_by_name = True
        use_enum_values = True

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v):
        return _require_name(v)

    @field_validator("viewed")
    @classmethod
    def viewed_not_null(cls, v):
        if v is None:
            raise ValueError("viewed must be true or false")
        return v

    def to_partial(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)

class RsvpSubmission(BaseModel):
    """Guest RSVP form submission"""
    status: RsvpStatus
    guest_count: int = Field(default=0, alias="guestCount", ge=0)
    dietary_restrictions: str = Field(default="", alias="dietaryRestrictions")
    reopened: bool = False  # set when submitted after "change response"

    class Config:
        populate_by_name = True

class RsvpForm(BaseModel):
    """RSVP form state presented to the guest"""
    status: RsvpStatus
    guest_count: int = Field(alias="guestCount")
    dietary_restrictions: str = Field(alias="dietaryRestrictions")
    form_open: bool = Field(alias="formOpen")

    class Config:
        populate_by_name = True

class InvitationView(BaseModel):
    """Personalized (or generic) invitation page payload"""
    personalized: bool
    guest_name: str = Field(alias="guestName")
    title: Optional[str] = None
    title_options: List[str] = Field(default_factory=lambda: list(TITLE_OPTIONS), alias="titleOptions")
    message: str
    settings: WeddingSettings
    rsvp: Optional[RsvpForm] = None

    class Config:
        populate_by_name = True
