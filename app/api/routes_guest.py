"""
Guest-facing API routes: personal invitation pages and RSVP
"""

from fastapi import APIRouter, Depends, Request, status

from app.schemas.invitee import (
    DEFAULT_MESSAGE,
    FALLBACK_GUEST_NAME,
    InvitationView,
    RsvpSubmission,
)
from app.services.rsvp_service import (
    InvalidRsvpError,
    InviteeNotFoundError,
    RsvpService,
    RsvpTransitionError,
    form_for,
)
from app.services.wedding_store import WeddingStore
from app.utils.security import get_store, rate_limit_check, get_client_ip
from app.utils.responses import (
    success_response,
    error_response,
    backend_warning,
    store_loading_response,
    rate_limit_error,
)

router = APIRouter()

def build_invitation(store: WeddingStore, slug: str) -> InvitationView:
    """Personalized page for a known slug, generic page otherwise"""
    invitee = store.get_invitee(slug)
    if invitee is None:
        return InvitationView(
            personalized=False,
            guest_name=FALLBACK_GUEST_NAME,
            message=DEFAULT_MESSAGE,
            settings=store.settings,
        )

    return InvitationView(
        personalized=True,
        guest_name=invitee.name,
        title=invitee.title,
        message=invitee.message or DEFAULT_MESSAGE,
        settings=store.settings,
        rsvp=form_for(invitee),
    )

@router.get("/{slug}")
async def get_invitation(slug: str, store: WeddingStore = Depends(get_store)):
    """Invitation payload for a guest link"""
    if not store.is_ready:
        return store_loading_response()

    view = build_invitation(store, slug)
    return success_response(
        message="Invitation found" if view.personalized else "Welcome",
        data=view.model_dump(by_alias=True)
    )

@router.get("/{slug}/rsvp/form")
async def change_response(slug: str, store: WeddingStore = Depends(get_store)):
    """Reopen the RSVP form prefilled with the last answers"""
    if not store.is_ready:
        return store_loading_response()

    try:
        form = RsvpService(store).change_response(slug)
    except InviteeNotFoundError:
        return error_response(message="Invitation not found", status_code=status.HTTP_404_NOT_FOUND)

    return success_response(
        message="RSVP form reopened",
        data=form.model_dump(by_alias=True)
    )

@router.post("/{slug}/rsvp")
async def submit_rsvp(
    slug: str,
    request: Request,
    submission: RsvpSubmission,
    store: WeddingStore = Depends(get_store)
):
    """Record a guest's response"""
    client_ip = get_client_ip(request)
    if not rate_limit_check(client_ip):
        rate_limit_error()

    if not store.is_ready:
        return store_loading_response()

    try:
        result = await RsvpService(store).submit(slug, submission)
    except InviteeNotFoundError:
        return error_response(message="Invitation not found", status_code=status.HTTP_404_NOT_FOUND)
    except InvalidRsvpError as e:
        return error_response(message=str(e), error_code="INVALID_RSVP", status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)
    except RsvpTransitionError as e:
        return error_response(message=str(e), error_code="RSVP_ALREADY_SUBMITTED", status_code=status.HTTP_409_CONFLICT)

    if not result.ok:
        return backend_warning(result.warning)

    return success_response(
        message="Thank you for your response!",
        data=result.invitee.to_document()
    )
