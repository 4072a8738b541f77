"""
Excel processing service for guest list import/export
"""

import io
from typing import List, Optional, Tuple
import pandas as pd

from app.schemas.invitee import Invitee, InviteeCreate
from app.services.qr_service import QRService

class ExcelService:
    """Service for handling Excel operations"""

    REQUIRED_COLUMNS = ['name']
    DEFAULT_TITLE = 'Mr & Mrs'

    @staticmethod
    def create_template() -> bytes:
        """Create Excel template with the guest list columns"""
        df = pd.DataFrame(columns=['Name', 'Title'])

        # Add sample data for guidance
        sample_data = [
            ['Kasun Perera', 'Mr & Mrs'],
            ['Mary Silva', 'Mrs'],
            ['The Fernandos', 'Family'],
        ]

        for row in sample_data:
            df.loc[len(df)] = row

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Guest List')

        return buffer.getvalue()

    @staticmethod
    def validate_excel_structure(df: pd.DataFrame) -> Tuple[bool, List[str]]:
        """Validate Excel file structure"""
        errors = []

        normalized_columns = [str(col).lower().strip() for col in df.columns]
        missing_columns = [col for col in ExcelService.REQUIRED_COLUMNS if col not in normalized_columns]

        if missing_columns:
            errors.append(f"Missing required columns: {', '.join(missing_columns)}")

        return len(errors) == 0, errors

    @staticmethod
    def _cell_text(value) -> Optional[str]:
        if pd.isna(value):
            return None
        text = str(value).strip()
        return text or None

    @staticmethod
    def rows_to_entries(df: pd.DataFrame) -> Tuple[List[InviteeCreate], List[str]]:
        """Turn sheet rows into guest entries; rows without a name are reported"""
        column_mapping = {}
        for col in df.columns:
            col_lower = str(col).lower().strip()
            if col_lower == 'name':
                column_mapping['name'] = col
            elif col_lower == 'title':
                column_mapping['title'] = col

        entries: List[InviteeCreate] = []
        errors: List[str] = []

        for idx, row in df.iterrows():
            name = ExcelService._cell_text(row[column_mapping['name']])
            if name is None:
                # header is row 1 in the sheet
                errors.append(f"Row {idx + 2}: Name is required")
                continue

            if 'title' in column_mapping:
                title = ExcelService._cell_text(row[column_mapping['title']])
            else:
                title = ExcelService.DEFAULT_TITLE

            entries.append(InviteeCreate(name=name, title=title))

        return entries, errors

    @staticmethod
    def parse_guest_sheet(file_content: bytes) -> Tuple[bool, List[str], List[InviteeCreate]]:
        """Read an uploaded guest sheet into entries ready for a batch add"""
        try:
            df = pd.read_excel(io.BytesIO(file_content))
        except Exception as e:
            return False, [f"Error reading Excel file: {str(e)}"], []

        valid_structure, structure_errors = ExcelService.validate_excel_structure(df)
        if not valid_structure:
            return False, structure_errors, []

        entries, row_errors = ExcelService.rows_to_entries(df)
        if row_errors:
            return False, row_errors, []
        if not entries:
            return False, ["The guest sheet has no guests"], []

        return True, [], entries

    @staticmethod
    def export_guest_list(invitees: List[Invitee]) -> bytes:
        """Export the current guest list with invite links and RSVP answers"""
        data = []
        for inv in invitees:
            data.append({
                'Name': inv.name,
                'Title': inv.title or '',
                'Invite Link': QRService.get_invite_url(inv.slug),
                'RSVP Status': inv.effective_status.value,
                'Guest Count': inv.guest_count or 0,
                'Dietary Restrictions': inv.dietary_restrictions or '',
                'Viewed': 'Yes' if inv.viewed else 'No',
            })

        df = pd.DataFrame(data, columns=[
            'Name', 'Title', 'Invite Link', 'RSVP Status',
            'Guest Count', 'Dietary Restrictions', 'Viewed',
        ])

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
            df.to_excel(writer, index=False, sheet_name='Guest List')

        return buffer.getvalue()
