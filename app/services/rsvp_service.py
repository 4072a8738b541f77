"""
RSVP state machine and guest response handling
"""

from typing import Any, Dict

from app.schemas.invitee import Invitee, RsvpForm, RsvpStatus, RsvpSubmission
from app.services.wedding_store import MutationResult, WeddingStore

# attending/declined only go back to pending through "change response"
ALLOWED_TRANSITIONS = {
    RsvpStatus.PENDING: {RsvpStatus.ATTENDING, RsvpStatus.DECLINED},
    RsvpStatus.ATTENDING: {RsvpStatus.PENDING},
    RsvpStatus.DECLINED: {RsvpStatus.PENDING},
}


class InviteeNotFoundError(LookupError):
    """No guest matches the given id or slug"""


class RsvpTransitionError(Exception):
    """The requested RSVP status change is not allowed from the current state"""


class InvalidRsvpError(ValueError):
    """The submission breaks a rule of the target state"""


def check_transition(current: RsvpStatus, target: RsvpStatus) -> None:
    if target not in ALLOWED_TRANSITIONS[current]:
        raise RsvpTransitionError(
            f"Cannot change response from '{current.value}' to '{target.value}'"
        )


def rsvp_fields(submission: RsvpSubmission) -> Dict[str, Any]:
    """Translate a submission into the full set of RSVP document fields.

    Every submission overwrites all three fields; declining always zeroes
    the guest count and clears dietary text.
    """
    if submission.status == RsvpStatus.ATTENDING:
        if submission.guest_count < 1:
            raise InvalidRsvpError("At least one guest must attend")
        return {
            "rsvpStatus": RsvpStatus.ATTENDING.value,
            "guestCount": submission.guest_count,
            "dietaryRestrictions": submission.dietary_restrictions.strip(),
        }
    if submission.status == RsvpStatus.DECLINED:
        return {
            "rsvpStatus": RsvpStatus.DECLINED.value,
            "guestCount": 0,
            "dietaryRestrictions": "",
        }
    raise InvalidRsvpError("A response must be either attending or declined")


def admin_rsvp_partial(partial: Dict[str, Any]) -> Dict[str, Any]:
    """Keep an admin edit consistent with the RSVP rules.

    Setting a guest to declined clears the count and dietary text the same
    way a guest's own decline does.
    """
    if partial.get("rsvpStatus") == RsvpStatus.DECLINED.value:
        return {**partial, **rsvp_fields(RsvpSubmission(status=RsvpStatus.DECLINED))}
    return partial


def form_for(invitee: Invitee, reopened: bool = False) -> RsvpForm:
    """Form state for a guest, prefilled from their last known answers."""
    status = invitee.effective_status
    return RsvpForm(
        status=RsvpStatus.PENDING if reopened else status,
        guest_count=invitee.guest_count or 0,
        dietary_restrictions=invitee.dietary_restrictions or "",
        form_open=reopened or status == RsvpStatus.PENDING,
    )


class RsvpService:
    """Guest-side RSVP operations on top of the wedding store"""

    def __init__(self, store: WeddingStore):
        self.store = store

    def _lookup(self, identifier: str) -> Invitee:
        invitee = self.store.get_invitee(identifier)
        if invitee is None:
            raise InviteeNotFoundError(identifier)
        return invitee

    def change_response(self, identifier: str) -> RsvpForm:
        """Reopen the form without touching what is persisted."""
        invitee = self._lookup(identifier)
        current = invitee.effective_status
        if current != RsvpStatus.PENDING:
            check_transition(current, RsvpStatus.PENDING)
        return form_for(invitee, reopened=True)

    async def submit(self, identifier: str, submission: RsvpSubmission) -> MutationResult:
        invitee = self._lookup(identifier)
        fields = rsvp_fields(submission)
        current = invitee.effective_status
        if submission.reopened and current != RsvpStatus.PENDING:
            check_transition(current, RsvpStatus.PENDING)
            current = RsvpStatus.PENDING

        check_transition(current, submission.status)
        return await self.store.update_invitee(invitee.id, fields)
