# app/leases/models.py

"""
SQLAlchemy 2.x model for residential leases.
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Date, DateTime, ForeignKey, Index,
    Integer, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base
from app.core.mixins import AuditMixin
from app.properties.models import Application, Property


class Lease(Base, AuditMixin):
    """
    Lease model representing one rental agreement between a property and a tenant.

    Expiration is never stored: an ACTIVE lease whose end date has passed is
    reported as EXPIRED when it is read.
    """

    __tablename__ = "leases"

    __table_args__ = (
        Index("idx_lease_status", "status"),
        Index("idx_lease_landlord", "landlord_id", "status"),
        Index("idx_lease_end_date", "end_date"),
        CheckConstraint("end_date > start_date", name="check_lease_dates_ordered"),
        CheckConstraint("monthly_rent > 0", name="check_lease_rent_positive"),
        CheckConstraint("security_deposit > 0", name="check_lease_deposit_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)

    application_id: Mapped[int] = mapped_column(
        ForeignKey("applications.id", ondelete="RESTRICT"), unique=True, nullable=False
    )
    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id", ondelete="RESTRICT"), nullable=False
    )
    tenant_id: Mapped[int] = mapped_column(Integer, nullable=False)
    landlord_id: Mapped[int] = mapped_column(Integer, nullable=False)

    status: Mapped[str] = mapped_column(
        String(32), default="DRAFT", nullable=False,
        comment="DRAFT, PENDING_SIGNATURE, ACTIVE, EXPIRED, TERMINATED",
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    monthly_rent: Mapped[int] = mapped_column(Integer, nullable=False, comment="Monthly rent in cents")
    security_deposit: Mapped[int] = mapped_column(Integer, nullable=False, comment="Security deposit in cents")
    terms: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)

    document_url: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    signer_email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    sent_for_signature_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    signed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    termination_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    termination_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    refund_deposit: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    terminated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    application: Mapped[Application] = relationship(Application, foreign_keys=[application_id])
    property: Mapped[Property] = relationship(Property, foreign_keys=[property_id], lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<Lease(id={self.id}, "
            f"property_id={self.property_id}, "
            f"tenant_id={self.tenant_id}, "
            f"status={self.status}, "
            f"end_date={self.end_date})>"
        )
