"""Flattened spreadsheet projection of client profiles."""
from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from io import BytesIO
from typing import Any

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from registry.schemas.profile import Address, ClientProfileRead, ReviewStatus

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

EXPORT_COLUMNS: tuple[str, ...] = (
    "Profile ID",
    "Client ID",
    "Shareholder Name",
    "PAN Number",
    "Aadhaar Number",
    "Address",
    "Mobile Number",
    "Email",
    "Bank Name",
    "Bank Account",
    "IFSC Code",
    "Demat Account",
    "DP ID",
    "Status",
    "Total Companies",
    "Company Names",
    "ISIN Numbers",
    "Total Quantity",
    "Pending Reviews",
    "Remarks",
)

_MAX_COLUMN_WIDTH = 60


def format_address(address: Address | None) -> str:
    if address is None:
        return ""
    parts = [address.line1, address.line2, address.city, address.state, address.pincode, address.country]
    return ", ".join(part for part in parts if part)


def profile_row(profile: ClientProfileRead) -> dict[str, Any]:
    """Project one profile onto ``EXPORT_COLUMNS``; holdings are summarised, not exploded."""

    bank = profile.bank_details
    holdings = profile.companies
    return {
        "Profile ID": profile.id,
        "Client ID": profile.client_id,
        "Shareholder Name": profile.shareholder_name.name1,
        "PAN Number": profile.pan_number,
        "Aadhaar Number": profile.aadhaar_number or "",
        "Address": format_address(profile.address),
        "Mobile Number": profile.mobile_number or "",
        "Email": profile.email_id or "",
        "Bank Name": (bank.bank_name if bank else None) or "",
        "Bank Account": (bank.account_number if bank else None) or "",
        "IFSC Code": (bank.ifsc_code if bank else None) or "",
        "Demat Account": profile.demat_account_number or "",
        "DP ID": profile.dp_id or "",
        "Status": profile.status.value,
        "Total Companies": len(holdings),
        "Company Names": "; ".join(holding.company_name for holding in holdings),
        "ISIN Numbers": "; ".join(holding.isin_number for holding in holdings),
        "Total Quantity": sum(holding.quantity for holding in holdings),
        "Pending Reviews": sum(1 for holding in holdings if holding.review.status == ReviewStatus.PENDING),
        "Remarks": profile.remarks or "",
    }


def build_workbook(profiles: Iterable[ClientProfileRead], *, sheet_title: str) -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = sheet_title[:31]
    sheet.append(list(EXPORT_COLUMNS))
    for cell in sheet[1]:
        cell.font = Font(bold=True)

    widths = [len(column) for column in EXPORT_COLUMNS]
    for profile in profiles:
        row = profile_row(profile)
        values = [row[column] for column in EXPORT_COLUMNS]
        sheet.append(values)
        for cell in sheet[sheet.max_row]:
            # Stored text that looks like a formula stays text.
            if cell.data_type == "f":
                cell.data_type = "s"
        widths = [max(width, len(str(value))) for width, value in zip(widths, values)]

    for index, width in enumerate(widths, start=1):
        sheet.column_dimensions[get_column_letter(index)].width = min(width + 2, _MAX_COLUMN_WIDTH)
    sheet.freeze_panes = "A2"

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def profile_filename(profile: ClientProfileRead) -> str:
    return f"client_profile_{profile.pan_number or profile.id}.xlsx"


def all_profiles_filename(today: date | None = None) -> str:
    return f"all_client_profiles_{(today or date.today()).isoformat()}.xlsx"


__all__ = [
    "EXPORT_COLUMNS",
    "XLSX_MEDIA_TYPE",
    "all_profiles_filename",
    "build_workbook",
    "format_address",
    "profile_filename",
    "profile_row",
]
