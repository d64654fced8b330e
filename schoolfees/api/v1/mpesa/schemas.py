"""M-PESA schemas. Webhook payloads keep Safaricom's field names as aliases."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from schoolfees.api.v1.fees.schemas import PaymentAllocationResponse, PaymentResponse


class C2BNotification(BaseModel):
    """C2B validation / confirmation body as posted by Safaricom."""

    transaction_type: Optional[str] = Field(None, alias="TransactionType")
    trans_id: str = Field(..., alias="TransID", min_length=1, max_length=50)
    trans_time: Optional[str] = Field(None, alias="TransTime")
    trans_amount: Decimal = Field(..., alias="TransAmount", decimal_places=2)
    business_short_code: Optional[str] = Field(None, alias="BusinessShortCode")
    bill_ref_number: str = Field("", alias="BillRefNumber")
    invoice_number: Optional[str] = Field(None, alias="InvoiceNumber")
    org_account_balance: Optional[Decimal] = Field(None, alias="OrgAccountBalance")
    third_party_trans_id: Optional[str] = Field(None, alias="ThirdPartyTransID")
    msisdn: Optional[str] = Field(None, alias="MSISDN")
    first_name: Optional[str] = Field(None, alias="FirstName")
    middle_name: Optional[str] = Field(None, alias="MiddleName")
    last_name: Optional[str] = Field(None, alias="LastName")

    class Config:
        populate_by_name = True

    @field_validator(
        "transaction_type",
        "trans_time",
        "business_short_code",
        "invoice_number",
        "third_party_trans_id",
        "msisdn",
        "first_name",
        "middle_name",
        "last_name",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, v: Any) -> Optional[str]:
        # Daraja sends some of these as numbers (e.g. BusinessShortCode: 600638)
        if v is None:
            return None
        return str(v)

    @field_validator("bill_ref_number", mode="before")
    @classmethod
    def _strip_reference(cls, v: Any) -> str:
        return "" if v is None else str(v).strip()

    @field_validator("org_account_balance", mode="before")
    @classmethod
    def _blank_balance(cls, v: Any) -> Any:
        return None if v in ("", None) else v


class C2BAck(BaseModel):
    """Acknowledgment body Safaricom expects. ResultCode 0 accepts, anything else rejects."""

    result_code: int = Field(..., alias="ResultCode")
    result_desc: str = Field(..., alias="ResultDesc")

    class Config:
        populate_by_name = True


class MpesaTransactionResponse(BaseModel):
    id: UUID
    tenant_id: Optional[UUID] = None
    transaction_type: Optional[str] = None
    trans_id: str
    trans_time: Optional[str] = None
    trans_amount: Decimal
    business_short_code: Optional[str] = None
    bill_ref_number: Optional[str] = None
    msisdn: Optional[str] = None
    first_name: Optional[str] = None
    middle_name: Optional[str] = None
    last_name: Optional[str] = None
    status: str
    payment_id: Optional[UUID] = None
    matched_student_id: Optional[UUID] = None
    error_message: Optional[str] = None
    created_at: datetime

    class Config:
        from_attributes = True


class ManualMatchRequest(BaseModel):
    student_id: UUID


class ManualMatchResponse(BaseModel):
    message: str
    payment: PaymentResponse
    allocations: List[PaymentAllocationResponse]


class C2BRegisterResponse(BaseModel):
    short_code: str
    daraja_response: Dict[str, Any]
