"""
Public API routes - no authentication required
"""

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from app.services.excel_service import ExcelService
from app.services.qr_service import QRService
from app.services.wedding_store import WeddingStore
from app.utils.security import get_store
from app.utils.responses import success_response, not_found_error

router = APIRouter()

@router.get("/health")
async def health_check(store: WeddingStore = Depends(get_store)):
    """Health check endpoint"""
    return {
        "status": "ok",
        "mode": store.backend.kind.value,
        "state": store.state.value,
    }

@router.get("/settings")
async def get_settings(store: WeddingStore = Depends(get_store)):
    """Couple and venue details shared by every invitation page"""
    return success_response(
        message="Settings retrieved",
        data=store.settings.to_document()
    )

@router.get("/template/guest_list_template.xlsx")
async def download_guest_template():
    """Download Excel template for batch guest import"""
    template_bytes = ExcelService.create_template()

    return Response(
        content=template_bytes,
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=guest_list_template.xlsx"}
    )

@router.get("/invitees/{slug}/qr.png")
async def get_invite_qr(slug: str, store: WeddingStore = Depends(get_store)):
    """QR code pointing at a guest's personal invitation"""
    invitee = store.get_invitee(slug)
    if invitee is None:
        not_found_error("Guest")

    qr_bytes = QRService.generate_invite_qr(invitee.slug)

    return Response(
        content=qr_bytes,
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=qr_{invitee.slug}.png"}
    )
