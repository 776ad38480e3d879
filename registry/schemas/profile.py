"""Pydantic schemas for client profile documents and their holdings."""
from __future__ import annotations

import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Any
from uuid import uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class ClientType(str, enum.Enum):
    RESIDENT = "Resident"
    NON_RESIDENT = "Non-Resident"


class AccountCategory(str, enum.Enum):
    BENEFICIARY = "Beneficiary"
    OTHER = "Other"


class SubType(str, enum.Enum):
    ORDINARY = "Ordinary"
    OTHER = "Other"


class ProfileStatus(str, enum.Enum):
    ACTIVE = "Active"
    CLOSED = "Closed"
    PENDING = "Pending"
    SUSPENDED = "Suspended"


class BankAccountType(str, enum.Enum):
    SAVINGS = "Savings"
    CURRENT = "Current"
    OTHER = "Other"


class YesNo(str, enum.Enum):
    YES = "Y"
    NO = "N"


class SmsFacility(str, enum.Enum):
    AVAILABLE = "Available"
    NOT_AVAILABLE = "Not Available"


class ReviewStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_ATTENTION = "needs_attention"


def _new_holding_id() -> str:
    return uuid4().hex


class CamelModel(BaseModel):
    """Base model exposing camelCase field names and trimming strings."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ShareholderName(CamelModel):
    name1: str = Field(..., min_length=1, max_length=255)
    name2: str | None = Field(default=None, max_length=255)
    name3: str | None = Field(default=None, max_length=255)
    father_or_spouse_name: str | None = Field(default=None, max_length=255)


class Address(CamelModel):
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | None = None
    country: str | None = "India"


class BankDetails(CamelModel):
    account_number: str | None = Field(
        default=None, validation_alias=AliasChoices("accountNumber", "bankAccountNumber", "account_number")
    )
    account_type: BankAccountType = Field(
        default=BankAccountType.SAVINGS,
        validation_alias=AliasChoices("accountType", "bankAccountType", "account_type"),
    )
    bank_name: str | None = None
    branch_code: str | None = None
    ifsc_code: str | None = None
    micr_code: str | None = None
    bank_address: str | None = None
    lei_number: str | None = None

    @field_validator("ifsc_code")
    @classmethod
    def _uppercase_ifsc(cls, value: str | None) -> str | None:
        return value.upper() if value else value


class Nominee(CamelModel):
    name: str | None = None
    pan: str | None = None
    address: str | None = None
    pincode: str | None = None
    aadhaar: str | None = None
    email_id: str | None = None
    relationship: str | None = None

    @field_validator("pan")
    @classmethod
    def _uppercase_pan(cls, value: str | None) -> str | None:
        return value.upper() if value else value


class DistinctiveNumber(CamelModel):
    """Textual serial range printed on a share certificate."""

    from_: str | None = Field(default=None, alias="from")
    to: str | None = None


class Dividend(CamelModel):
    amount: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    paid_on: date | None = Field(default=None, alias="date")


class Review(CamelModel):
    status: ReviewStatus = ReviewStatus.PENDING
    notes: str = ""
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None

    @field_validator("notes", mode="before")
    @classmethod
    def _blank_notes(cls, value: Any) -> Any:
        return "" if value is None else value


class ShareHolding(CamelModel):
    holding_id: str = Field(default_factory=_new_holding_id, max_length=64)
    company_name: str = Field(..., min_length=1, max_length=255)
    isin_number: str = Field(..., min_length=1, max_length=32)
    folio_number: str | None = None
    certificate_number: str | None = None
    distinctive_number: DistinctiveNumber | None = None
    quantity: int = Field(default=0, ge=0)
    face_value: Decimal = Field(default=Decimal("0"), ge=Decimal("0"))
    purchase_date: date | None = None
    review: Review = Field(default_factory=Review)

    @field_validator("holding_id", mode="before")
    @classmethod
    def _assign_holding_id(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return _new_holding_id()
        return value

    @field_validator("isin_number")
    @classmethod
    def _uppercase_isin(cls, value: str) -> str:
        return value.upper()

    @field_validator("review", mode="before")
    @classmethod
    def _default_review(cls, value: Any) -> Any:
        return Review() if value is None else value


class ClientProfileBase(CamelModel):
    client_id: str = Field(..., min_length=1, max_length=64)
    short_name: str | None = None
    client_type: ClientType = ClientType.RESIDENT
    account_category: AccountCategory = AccountCategory.BENEFICIARY
    sub_type: SubType = SubType.ORDINARY
    status: ProfileStatus = ProfileStatus.ACTIVE
    account_activation_date: date | None = None
    status_change_reason: str | None = None
    status_change_date: date | None = None
    standing_instruction: YesNo = YesNo.NO

    shareholder_name: ShareholderName
    pan_number: str = Field(..., min_length=1, max_length=16)
    aadhaar_number: str | None = Field(default=None, pattern=r"^\d{1,12}$")
    occupation: str | None = None
    address: Address | None = None
    mobile_number: str | None = Field(default=None, max_length=32)
    email_id: str | None = Field(default=None, max_length=320)
    e_dis_flag: YesNo = YesNo.NO
    sms_facility: SmsFacility = SmsFacility.AVAILABLE
    pan_flag: str = "Not Verified"

    bank_details: BankDetails | None = None
    gross_annual_income_range: str | None = None
    net_worth: str | None = None
    net_worth_as_on_date: date | None = None

    demat_account_number: str | None = None
    dp_id: str | None = None
    dp_name: str | None = None

    nominee: Nominee | None = None
    companies: list[ShareHolding] = Field(
        default_factory=list,
        validation_alias=AliasChoices("companies", "shareHoldings", "share_holdings"),
    )
    remarks: str | None = None
    dividend: Dividend | None = None

    @field_validator("pan_number")
    @classmethod
    def _uppercase_pan(cls, value: str) -> str:
        return value.upper()

    @field_validator("aadhaar_number", mode="before")
    @classmethod
    def _blank_aadhaar(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("companies", mode="before")
    @classmethod
    def _null_companies(cls, value: Any) -> Any:
        return [] if value is None else value


class ClientProfileInput(ClientProfileBase):
    """Create or full-replace payload."""

    def to_document(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class ClientProfileRead(ClientProfileBase):
    id: str
    created_at: datetime
    updated_at: datetime


class ClientProfilePage(BaseModel):
    data: list[ClientProfileRead]
    page: int
    limit: int
    total: int


class HoldingKey(CamelModel):
    """Identifies one holding within a profile's ``companies`` array."""

    holding_id: str | None = None
    company_name: str | None = None
    isin_number: str | None = None

    @model_validator(mode="after")
    def _require_identifier(self) -> "HoldingKey":
        if not self.holding_id and not (self.company_name and self.isin_number):
            raise ValueError("holdingId or both companyName and isinNumber are required")
        return self


class ReviewRequest(HoldingKey):
    status: ReviewStatus
    notes: str = ""

    @field_validator("notes", mode="before")
    @classmethod
    def _blank_notes(cls, value: Any) -> Any:
        return "" if value is None else value


class ReviewStats(BaseModel):
    total: int = 0
    pending: int = 0
    approved: int = 0
    rejected: int = 0
    needs_attention: int = 0


__all__ = [
    "AccountCategory",
    "Address",
    "BankAccountType",
    "BankDetails",
    "CamelModel",
    "ClientProfileBase",
    "ClientProfileInput",
    "ClientProfilePage",
    "ClientProfileRead",
    "ClientType",
    "DistinctiveNumber",
    "Dividend",
    "HoldingKey",
    "Nominee",
    "ProfileStatus",
    "ReviewRequest",
    "ReviewStats",
    "ReviewStatus",
    "ShareHolding",
    "ShareholderName",
    "SmsFacility",
    "SubType",
    "YesNo",
]
