# app/properties/schemas.py

"""
Pydantic schemas for properties and rental applications.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ApplicationStatus(str, Enum):
    """Application status enum."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


# === Property Schemas ===

class PropertyCreate(BaseModel):
    """Schema for creating a property listing."""
    owner_id: int
    title: str = Field(..., min_length=1, max_length=255)
    address: str = Field(..., min_length=1, max_length=255)
    borough: Optional[str] = Field(None, max_length=64)
    monthly_rent: int = Field(..., gt=0, description="Asking rent in cents")
    security_deposit: int = Field(..., gt=0, description="Asking deposit in cents")
    is_rent_stabilized: bool = False


class PropertyResponse(PropertyCreate):
    """Schema for property response."""
    id: int
    created_on: Optional[datetime] = None
    updated_on: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# === Application Schemas ===

class ApplicationCreate(BaseModel):
    """Schema for submitting an application."""
    property_id: int
    applicant_id: int
    move_in_date: Optional[date] = None
    notes: Optional[str] = None


class ApplicationDecision(BaseModel):
    """Landlord decision on a pending application."""
    status: ApplicationStatus
    landlord_notes: Optional[str] = None

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: ApplicationStatus) -> ApplicationStatus:
        """Only approval and rejection are decisions."""
        if v not in (ApplicationStatus.APPROVED, ApplicationStatus.REJECTED):
            raise ValueError("Invalid status. Must be APPROVED or REJECTED")
        return v


class ApplicationResponse(BaseModel):
    """Schema for application response."""
    id: int
    property_id: int
    applicant_id: int
    status: ApplicationStatus
    move_in_date: Optional[date] = None
    notes: Optional[str] = None
    landlord_notes: Optional[str] = None
    created_on: Optional[datetime] = None
    updated_on: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
