from __future__ import annotations

from datetime import UTC, date, datetime
from io import BytesIO

from openpyxl import load_workbook

from registry.schemas.profile import ClientProfileRead
from registry.services.export import (
    EXPORT_COLUMNS,
    all_profiles_filename,
    build_workbook,
    format_address,
    profile_filename,
    profile_row,
)

CREATED = datetime(2026, 10, 19, 9, 0, tzinfo=UTC)


def _read_profile(**overrides: object) -> ClientProfileRead:
    payload: dict[str, object] = {
        "id": "profile-1",
        "createdAt": CREATED,
        "updatedAt": CREATED,
        "clientId": "C100",
        "shareholderName": {"name1": "Asha Rao"},
        "panNumber": "ABCDE1234F",
        "address": {"line1": "12 MG Road", "city": "Pune", "pincode": "411001"},
        "bankDetails": {"bankName": "HDFC", "accountNumber": "123456789", "ifscCode": "HDFC0001"},
        "companies": [
            {"companyName": "Acme Ltd", "isinNumber": "IN000000001", "quantity": 100},
            {
                "companyName": "Globex",
                "isinNumber": "IN000000002",
                "quantity": 50,
                "review": {"status": "approved"},
            },
        ],
    }
    payload.update(overrides)
    return ClientProfileRead.model_validate(payload)


def test_profile_row_summarises_holdings() -> None:
    row = profile_row(_read_profile())

    assert list(row) == list(EXPORT_COLUMNS)
    assert row["Shareholder Name"] == "Asha Rao"
    assert row["Address"] == "12 MG Road, Pune, 411001, India"
    assert row["Bank Account"] == "123456789"
    assert row["Total Companies"] == 2
    assert row["Company Names"] == "Acme Ltd; Globex"
    assert row["ISIN Numbers"] == "IN000000001; IN000000002"
    assert row["Total Quantity"] == 150
    assert row["Pending Reviews"] == 1
    assert row["Status"] == "Active"


def test_profile_row_without_optional_sections() -> None:
    row = profile_row(_read_profile(address=None, bankDetails=None, companies=[]))

    assert row["Address"] == ""
    assert row["Bank Name"] == ""
    assert row["Total Companies"] == 0
    assert row["Company Names"] == ""
    assert row["Total Quantity"] == 0


def test_build_workbook_writes_header_and_one_row_per_profile() -> None:
    profiles = [_read_profile(), _read_profile(id="profile-2", clientId="C200", panNumber="ZZZZZ9999Z")]

    content = build_workbook(profiles, sheet_title="All Client Profiles")

    sheet = load_workbook(BytesIO(content)).active
    assert sheet.title == "All Client Profiles"
    rows = list(sheet.iter_rows(values_only=True))
    assert rows[0] == EXPORT_COLUMNS
    assert len(rows) == 3
    assert rows[2][EXPORT_COLUMNS.index("Client ID")] == "C200"
    assert sheet["A1"].font.bold
    assert sheet.freeze_panes == "A2"


def test_build_workbook_with_no_profiles_has_header_only() -> None:
    sheet = load_workbook(BytesIO(build_workbook([], sheet_title="Empty"))).active

    assert [row for row in sheet.iter_rows(values_only=True)] == [EXPORT_COLUMNS]


def test_filenames() -> None:
    assert profile_filename(_read_profile()) == "client_profile_ABCDE1234F.xlsx"
    assert all_profiles_filename(date(2026, 10, 19)) == "all_client_profiles_2026-10-19.xlsx"


def test_format_address_skips_blank_parts() -> None:
    assert format_address(None) == ""
    assert format_address(_read_profile().address) == "12 MG Road, Pune, 411001, India"


def test_build_workbook_keeps_formula_like_text_as_text() -> None:
    profile = _read_profile(
        shareholderName={"name1": "=1+1"},
        remarks='=HYPERLINK("http://example.invalid","x")',
        companies=[{"companyName": "=SUM(A1:A2)", "isinNumber": "IN000000001", "quantity": 10}],
    )

    sheet = load_workbook(BytesIO(build_workbook([profile], sheet_title="Profile"))).active

    name = sheet.cell(row=2, column=EXPORT_COLUMNS.index("Shareholder Name") + 1)
    remarks = sheet.cell(row=2, column=EXPORT_COLUMNS.index("Remarks") + 1)
    companies = sheet.cell(row=2, column=EXPORT_COLUMNS.index("Company Names") + 1)
    assert (name.data_type, name.value) == ("s", "=1+1")
    assert (remarks.data_type, remarks.value) == ("s", '=HYPERLINK("http://example.invalid","x")')
    assert (companies.data_type, companies.value) == ("s", "=SUM(A1:A2)")
    assert sheet.cell(row=2, column=EXPORT_COLUMNS.index("Total Quantity") + 1).value == 10
