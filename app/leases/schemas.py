# app/leases/schemas.py

"""
Pydantic schemas for the Leases module.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Annotated, Dict, List, Literal, NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


# === Enums ===

class LeaseStatus(str, Enum):
    """All the lease statuses in the system"""
    DRAFT = "DRAFT"
    PENDING_SIGNATURE = "PENDING_SIGNATURE"
    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    TERMINATED = "TERMINATED"


class ExpirationBucket(str, Enum):
    """Display bucket for the days left on a lease."""
    EXPIRED = "expired"
    URGENT = "urgent"
    WARNING = "warning"
    NORMAL = "normal"


class RentIncreaseType(str, Enum):
    """How a renewal rent increase is expressed."""
    PERCENTAGE = "percentage"
    AMOUNT = "amount"


class RenewalTemplate(str, Enum):
    """Preset renewal offers."""
    SAME_TERMS = "same_terms"
    MARKET_ADJUSTMENT = "market_adjustment"
    LONG_TERM = "long_term"
    SHORT_TERM = "short_term"
    CUSTOM = "custom"


class RenewalPreset(NamedTuple):
    label: str
    duration_months: int
    rent_increase_pct: Decimal


RENEWAL_PRESETS: Dict[RenewalTemplate, RenewalPreset] = {
    RenewalTemplate.SAME_TERMS: RenewalPreset("Same Terms (12 months)", 12, Decimal("0")),
    RenewalTemplate.MARKET_ADJUSTMENT: RenewalPreset("Market Adjustment (12 months)", 12, Decimal("3")),
    RenewalTemplate.LONG_TERM: RenewalPreset("Long-term (24 months)", 24, Decimal("2")),
    RenewalTemplate.SHORT_TERM: RenewalPreset("Short-term (6 months)", 6, Decimal("5")),
    RenewalTemplate.CUSTOM: RenewalPreset("Custom Terms", 0, Decimal("0")),
}


class ComplianceStatus(str, Enum):
    """Outcome of a single compliance check."""
    COMPLIANT = "COMPLIANT"
    VIOLATION = "VIOLATION"
    INCOMPLETE = "INCOMPLETE"
    APPLICABLE = "APPLICABLE"
    NOT_APPLICABLE = "NOT_APPLICABLE"


# === Terms ===

class CreationTerms(BaseModel):
    """Terms recorded when a lease is drafted from an application."""
    kind: Literal["creation"] = "creation"
    template_id: Optional[str] = None
    custom_clauses: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class RenewalTerms(BaseModel):
    """Terms recorded on a lease produced by renewing another lease."""
    kind: Literal["renewal"] = "renewal"
    original_lease_id: int
    template_id: Optional[str] = None
    custom_clauses: List[str] = Field(default_factory=list)
    notes: Optional[str] = None
    renewal_template: Optional[RenewalTemplate] = None
    rent_increase: Optional[Decimal] = None
    rent_increase_type: Optional[RentIncreaseType] = None
    renewed_at: datetime


LeaseTerms = Annotated[Union[CreationTerms, RenewalTerms], Field(discriminator="kind")]


class RenewalTermsInput(BaseModel):
    """Caller supplied overrides for the renewal terms."""
    template_id: Optional[str] = None
    custom_clauses: Optional[List[str]] = None
    notes: Optional[str] = None


class TermsUpdate(BaseModel):
    """
    Editable parts of stored terms. The kind and the renewal lineage are
    fixed when the lease is written and cannot be sent here.
    """
    model_config = ConfigDict(extra="forbid")

    template_id: Optional[str] = None
    custom_clauses: Optional[List[str]] = None
    notes: Optional[str] = None


# === Requests ===

class LeaseCreate(BaseModel):
    """Schema for creating a lease from an approved application."""
    start_date: date
    end_date: date
    monthly_rent: int = Field(..., description="Monthly rent in cents")
    security_deposit: int = Field(..., description="Security deposit in cents")
    terms: Optional[CreationTerms] = None


class LeaseUpdate(BaseModel):
    """Schema for editing a lease that has not been signed yet."""
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    monthly_rent: Optional[int] = None
    security_deposit: Optional[int] = None
    terms: Optional[TermsUpdate] = None
    document_url: Optional[str] = Field(None, max_length=512)


class SendForSignatureRequest(BaseModel):
    """Schema for sending a lease out for signature."""
    signer_email: str = Field(..., min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    document_url: Optional[str] = Field(None, max_length=512)


class SignLeaseRequest(BaseModel):
    """Schema for recording that the tenant signed."""
    signed_at: Optional[datetime] = None
    document_url: Optional[str] = Field(None, max_length=512)


class LeaseRenewalRequest(BaseModel):
    """Schema for renewing an active lease."""
    new_end_date: Optional[date] = None
    template: Optional[RenewalTemplate] = None
    new_monthly_rent: Optional[int] = Field(None, description="Explicit new rent in cents")
    rent_increase: Optional[Decimal] = Field(
        None, description="Percent when rent_increase_type is percentage, cents when amount"
    )
    rent_increase_type: RentIncreaseType = RentIncreaseType.PERCENTAGE
    renewal_terms: Optional[RenewalTermsInput] = None


class LeaseTerminationRequest(BaseModel):
    """Schema for terminating a lease."""
    termination_date: date
    reason: str
    refund_deposit: bool = False


class EscalationRequest(BaseModel):
    """Schema for previewing a rent escalation."""
    escalation_rate: Decimal = Field(..., description="Escalation rate in percent")


class LeaseFilters(BaseModel):
    """Filters for listing leases."""
    status: Optional[LeaseStatus] = None
    property_id: Optional[int] = None
    landlord_id: Optional[int] = None
    tenant_id: Optional[int] = None
    expiring_in: Optional[int] = Field(None, ge=0)
    page: int = Field(1, ge=1)
    per_page: int = Field(10, ge=1, le=100)


# === Responses ===

class LeaseResponse(BaseModel):
    """Schema for lease response, including the state derived at read time."""
    id: int
    application_id: int
    property_id: int
    tenant_id: int
    landlord_id: int
    status: LeaseStatus
    effective_status: LeaseStatus
    start_date: date
    end_date: date
    monthly_rent: int
    security_deposit: int
    terms: LeaseTerms
    document_url: Optional[str] = None
    signer_email: Optional[str] = None
    sent_for_signature_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    termination_date: Optional[date] = None
    termination_reason: Optional[str] = None
    refund_deposit: Optional[bool] = None
    terminated_at: Optional[datetime] = None
    days_until_expiration: int
    expiration_bucket: ExpirationBucket
    created_on: Optional[datetime] = None
    updated_on: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class PaginatedLeaseResponse(BaseModel):
    """Paginated list of leases."""
    items: List[LeaseResponse]
    total_items: int
    page: int
    per_page: int
    total_pages: int


class LeaseRenewalResult(BaseModel):
    """Result of a renewal."""
    lease: LeaseResponse
    original_lease_id: int
    previous_monthly_rent: int
    rent_increase_amount: int
    rent_increase_pct: Decimal
    warnings: List[str] = Field(default_factory=list)


class LeaseTerminationResult(BaseModel):
    """Result of a termination, including the deposit refund intent."""
    lease: LeaseResponse
    refund_deposit: bool
    refund_amount: int


class RenewalCandidate(BaseModel):
    """Active lease approaching its end date."""
    lease_id: int
    property_id: int
    property_title: Optional[str] = None
    property_address: Optional[str] = None
    tenant_id: int
    end_date: date
    monthly_rent: int
    days_until_expiration: int
    expiration_bucket: ExpirationBucket


class LeaseStats(BaseModel):
    """Dashboard summary of a lease portfolio."""
    total_leases: int = 0
    by_status: Dict[LeaseStatus, int] = Field(
        default_factory=lambda: {status: 0 for status in LeaseStatus}
    )
    active_leases: int = 0
    draft_leases: int = 0
    pending_signature_leases: int = 0
    expired_leases: int = 0
    terminated_leases: int = 0
    expiring_in_30_days: int = 0
    expiring_in_90_days: int = 0
    terminated_this_month: int = 0


class EscalationResult(BaseModel):
    """Rent escalation preview."""
    lease_id: int
    current_rent: int
    escalation_rate: Decimal
    escalation_amount: int
    new_rent: int
    effective_date: date
    is_rent_stabilized: bool
    notes: str


class ComplianceCheck(BaseModel):
    """A single compliance check."""
    status: ComplianceStatus
    details: str


class ComplianceReport(BaseModel):
    """Compliance checks for one lease."""
    lease_id: int
    compliance_status: ComplianceStatus
    checked_at: datetime
    checks: Dict[str, ComplianceCheck]
