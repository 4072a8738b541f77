"""
Admin API routes - requires the shared passcode
"""

from typing import Optional
from fastapi import APIRouter, Depends, UploadFile, File, Query, status
from fastapi.responses import Response

from app.core.config import settings
from app.schemas.common import LoginRequest
from app.schemas.invitee import InviteeBatchCreate, InviteeCreate, InviteeUpdate
from app.schemas.settings import WeddingSettingsUpdate
from app.services.excel_service import ExcelService
from app.services.qr_service import QRService
from app.services.rsvp_service import admin_rsvp_partial
from app.services.wedding_store import WeddingStore
from app.utils.security import get_store, verify_admin_passcode
from app.utils.responses import success_response, error_response, backend_warning, not_found_error

router = APIRouter()

def invitee_data(invitee) -> dict:
    data = invitee.to_document()
    data["inviteUrl"] = QRService.get_invite_url(invitee.slug)
    return data

@router.post("/login")
async def login(credentials: LoginRequest, store: WeddingStore = Depends(get_store)):
    """Check the shared admin passcode"""
    if not store.login(credentials.passcode):
        return error_response(
            message="Incorrect passcode",
            details={"authenticated": False},
            status_code=status.HTTP_401_UNAUTHORIZED
        )
    return success_response(message="Welcome back", data={"authenticated": True})

@router.get("/invitees")
async def list_invitees(
    search: Optional[str] = Query(None),
    store: WeddingStore = Depends(get_store),
    token: str = Depends(verify_admin_passcode)
):
    """List guests, optionally filtered by name"""
    invitees = store.search(search)
    return success_response(
        message="Guests retrieved successfully",
        data={
            "invitees": [invitee_data(inv) for inv in invitees],
            "total": len(store.invitees),
            "loading": not store.is_ready,
        }
    )

@router.post("/invitees")
async def add_invitee(
    guest: InviteeCreate,
    store: WeddingStore = Depends(get_store),
    token: str = Depends(verify_admin_passcode)
):
    """Add a single guest"""
    result = await store.add_invitee(guest.name, guest.title)
    if not result.ok:
        return backend_warning(result.warning)

    return success_response(
        message="Guest added successfully",
        data=invitee_data(result.invitee),
        status_code=status.HTTP_201_CREATED
    )

@router.post("/invitees/batch")
async def add_batch_invitees(
    batch: InviteeBatchCreate,
    store: WeddingStore = Depends(get_store),
    token: str = Depends(verify_admin_passcode)
):
    """Add many guests in one all-or-nothing write"""
    result = await store.add_batch_invitees(batch.guests)
    if not result.ok:
        return backend_warning(result.warning)

    return success_response(
        message=f"{len(result.invitees)} guests added successfully",
        data={"invitees": [invitee_data(inv) for inv in result.invitees]},
        status_code=status.HTTP_201_CREATED
    )

@router.post("/invitees/upload")
async def upload_guest_sheet(
    file: UploadFile = File(...),
    store: WeddingStore = Depends(get_store),
    token: str = Depends(verify_admin_passcode)
):
    """Import guests from an Excel sheet with Name and Title columns"""
    if not file.filename.endswith(('.xlsx', '.xls')):
        return error_response(
            message="Invalid file format. Please upload an Excel file (.xlsx or .xls)",
            status_code=400
        )

    file_content = await file.read()
    if len(file_content) > settings.MAX_UPLOAD_SIZE:
        return error_response(
            message="File is too large",
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
        )

    success, errors, entries = ExcelService.parse_guest_sheet(file_content)
    if not success:
        return error_response(
            message="Excel file validation failed",
            details=errors,
            status_code=422
        )

    result = await store.add_batch_invitees(entries)
    if not result.ok:
        return backend_warning(result.warning)

    return success_response(
        message=f"Excel file processed successfully. {len(result.invitees)} guests imported.",
        data={
            "processed_count": len(result.invitees),
            "filename": file.filename
        },
        status_code=status.HTTP_201_CREATED
    )

@router.get("/invitees/export.xlsx")
async def export_invitees(
    store: WeddingStore = Depends(get_store),
    token: str = Depends(verify_admin_passcode)
):
    """Export the guest list with RSVP answers"""
    excel_content = ExcelService.export_guest_list(store.invitees)

    return Response(
        content=excel_content,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=guest_list.xlsx"}
    )

@router.patch("/invitees/{invitee_id}")
async def update_invitee(
    invitee_id: str,
    guest_update: InviteeUpdate,
    store: WeddingStore = Depends(get_store),
    token: str = Depends(verify_admin_passcode)
):
    """Edit guest fields; omitted fields stay as they are"""
    result = await store.update_invitee(invitee_id, admin_rsvp_partial(guest_update.to_partial()))
    if not result.found:
        not_found_error("Guest")
    if not result.ok:
        return backend_warning(result.warning)

    return success_response(
        message="Guest updated successfully",
        data=invitee_data(result.invitee)
    )

@router.delete("/invitees/{invitee_id}")
async def delete_invitee(
    invitee_id: str,
    store: WeddingStore = Depends(get_store),
    token: str = Depends(verify_admin_passcode)
):
    """Permanently delete a guest"""
    result = await store.delete_invitee(invitee_id)
    if not result.found:
        not_found_error("Guest")
    if not result.ok:
        return backend_warning(result.warning)

    return success_response(
        message="Guest deleted successfully",
        data={"deleted_invitee_id": invitee_id}
    )

@router.get("/settings")
async def get_settings(
    store: WeddingStore = Depends(get_store),
    token: str = Depends(verify_admin_passcode)
):
    return success_response(message="Settings retrieved", data=store.settings.to_document())

@router.patch("/settings")
async def update_settings(
    settings_update: WeddingSettingsUpdate,
    store: WeddingStore = Depends(get_store),
    token: str = Depends(verify_admin_passcode)
):
    """Update couple/venue settings; the change is visible immediately"""
    result = await store.update_settings(settings_update.to_partial())
    if not result.ok:
        return backend_warning(result.warning)

    return success_response(
        message="Settings saved",
        data=store.settings.to_document()
    )

@router.get("/summary")
async def rsvp_summary(
    store: WeddingStore = Depends(get_store),
    token: str = Depends(verify_admin_passcode)
):
    """RSVP counts and expected headcount"""
    return success_response(message="RSVP summary", data=store.rsvp_summary())
