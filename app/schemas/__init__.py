"""
Pydantic schemas package
"""

from .common import *
from .settings import *
from .invitee import *

__all__ = [
    "StandardResponse",
    "ErrorResponse",
    "LoginRequest",
    "WeddingSettings",
    "WeddingSettingsUpdate",
    "DEFAULT_SETTINGS",
    "RsvpStatus",
    "Invitee",
    "InviteeCreate",
    "InviteeBatchCreate",
    "InviteeUpdate",
    "RsvpSubmission",
    "RsvpForm",
    "InvitationView",
    "TITLE_OPTIONS",
    "DEFAULT_MESSAGE",
    "FALLBACK_GUEST_NAME",
]
