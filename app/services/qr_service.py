"""
QR code generation service for personal invitation links
"""

import io
import qrcode

from app.core.config import settings

class QRService:
    """Service for generating QR codes"""

    @staticmethod
    def get_invite_url(slug: str) -> str:
        """Public link a guest opens to see their invitation"""
        return f"{settings.BASE_URL.rstrip('/')}/{slug}"

    @staticmethod
    def generate_invite_qr(slug: str, format: str = 'PNG') -> bytes:
        """Generate QR code for a guest's invitation link"""
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=4,
        )
        qr.add_data(QRService.get_invite_url(slug))
        qr.make(fit=True)

        # PIL-backed image
        img = qr.make_image(fill_color="black", back_color="white")

        buffer = io.BytesIO()
        img.save(buffer, format=format)

        return buffer.getvalue()
