# app/properties/models.py

"""
SQLAlchemy 2.x models for properties and rental applications.
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import (
    Boolean, CheckConstraint, Date, ForeignKey, Index, Integer, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.core.db import Base
from app.core.mixins import AuditMixin


class Property(Base, AuditMixin):
    """
    Rental unit listed by a landlord.

    Rent and deposit are the asking amounts in cents; a lease may be
    written with different figures.
    """

    __tablename__ = "properties"

    __table_args__ = (
        Index("idx_property_owner", "owner_id"),
        CheckConstraint("monthly_rent > 0", name="check_property_rent_positive"),
        CheckConstraint("security_deposit > 0", name="check_property_deposit_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False, comment="Landlord who owns the listing")
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    borough: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    monthly_rent: Mapped[int] = mapped_column(Integer, nullable=False, comment="Asking rent in cents")
    security_deposit: Mapped[int] = mapped_column(Integer, nullable=False, comment="Asking deposit in cents")
    is_rent_stabilized: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    applications: Mapped[List["Application"]] = relationship(
        back_populates="property", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, owner_id={self.owner_id}, title={self.title})>"


class Application(Base, AuditMixin):
    """
    Rental application submitted by a renter for one property.
    """

    __tablename__ = "applications"

    __table_args__ = (
        Index("idx_application_status", "status"),
        Index("idx_application_property", "property_id", "status"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id", ondelete="CASCADE"), nullable=False
    )
    applicant_id: Mapped[int] = mapped_column(Integer, nullable=False, comment="Renter who applied")
    status: Mapped[str] = mapped_column(
        String(16), default="PENDING", nullable=False,
        comment="PENDING, APPROVED, REJECTED, WITHDRAWN",
    )
    move_in_date: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    landlord_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    property: Mapped["Property"] = relationship(back_populates="applications", lazy="joined")

    def __repr__(self) -> str:
        return (
            f"<Application(id={self.id}, property_id={self.property_id}, "
            f"applicant_id={self.applicant_id}, status={self.status})>"
        )
