"""
Wedding settings Pydantic schemas
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, field_validator

DEFAULT_MAP_URL = (
    "https://www.google.com/maps/embed?pb=!1m18!1m12!1m3!1d3151.835434509374"
    "!2d144.9537353153169!3d-37.816279742021665!2m3!1f0!2f0!3f0!3m2!1i1024!2i768"
    "!4f13.1!3m3!1m2!1s0x6ad642af0f11fd81%3A0xf577d6a32f7f1f81!2sFederation%20Square"
    "!5e0!3m2!1sen!2sau!4v1600000000000!5m2!1sen!2sau"
)

class WeddingSettings(BaseModel):
    """Singleton settings document shared by every invitation page"""
    invite_image: Optional[str] = Field(default=None, alias="inviteImage")
    couple_name: str = Field(default="Anna & James", alias="coupleName")
    wedding_date: str = Field(default="2024-12-24", alias="weddingDate")
    venue_name: Optional[str] = Field(default="The Grand Ballroom", alias="venueName")
    venue_address: Optional[str] = Field(
        default="123 Celebration Avenue, Wedding City", alias="venueAddress"
    )
    map_url: Optional[str] = Field(default=DEFAULT_MAP_URL, alias="mapUrl")

    class Config:
        populate_by_name = True

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)

    def merged(self, partial: Dict[str, Any]) -> "WeddingSettings":
        """Return a copy with the given document fields applied on top"""
        return WeddingSettings.model_validate({**self.to_document(), **partial})

class WeddingSettingsUpdate(BaseModel):
    """Partial settings update; unset fields are left untouched"""
    invite_image: Optional[str] = Field(default=None, alias="inviteImage")
    couple_name: Optional[str] = Field(default=None, alias="coupleName")
    wedding_date: Optional[str] = Field(default=None, alias="weddingDate")
    venue_name: Optional[str] = Field(default=None, alias="venueName")
    venue_address: Optional[str] = Field(default=None, alias="venueAddress")
    map_url: Optional[str] = Field(default=None, alias="mapUrl")

    class Config:
        populate_by_name = True

    @field_validator("couple_name", "wedding_date")
    @classmethod
    def required_not_null(cls, v):
        if v is None:
            raise ValueError("This setting cannot be cleared")
        return v

    def to_partial(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_unset=True)

DEFAULT_SETTINGS = WeddingSettings()
