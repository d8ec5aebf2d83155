# app/leases/repository.py

"""
Data Access Layer for the Leases module using SQLAlchemy 2.x
"""

from datetime import date, timedelta
from typing import Any, List, Optional, Sequence, Tuple

from sqlalchemy import and_, desc, func, or_, select
from sqlalchemy.orm import Session

from app.leases.models import Lease
from app.leases.schemas import LeaseFilters, LeaseStatus
from app.utils.logger import get_logger

logger = get_logger(__name__)


class LeaseRepository:
    """
    Data Access Layer for lease operations.
    Flushes but never commits; the request session owns the transaction.
    """

    def __init__(self, db: Session):
        self.db = db
        logger.debug("LeaseRepository initialized", session_id=id(db))

    def create_lease(self, **fields: Any) -> Lease:
        """Insert a new lease row."""
        lease = Lease(**fields)
        self.db.add(lease)
        self.db.flush()
        self.db.refresh(lease)

        logger.info("Lease row created", lease_id=lease.id, status=lease.status)
        return lease

    def get_lease_by_id(self, lease_id: int) -> Optional[Lease]:
        """Fetch a lease by ID."""
        stmt = select(Lease).where(Lease.id == lease_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_lease_by_application_id(self, application_id: int) -> Optional[Lease]:
        """Fetch the lease written for an application, if any."""
        stmt = select(Lease).where(Lease.application_id == application_id)
        return self.db.execute(stmt).scalar_one_or_none()

    def get_leases(self, filters: LeaseFilters, today: date) -> Tuple[List[Lease], int]:
        """Fetch leases with filters and pagination, newest first."""
        logger.debug("Fetching leases with filters", filters=filters.model_dump())

        conditions = []
        if filters.landlord_id is not None:
            conditions.append(Lease.landlord_id == filters.landlord_id)
        if filters.property_id is not None:
            conditions.append(Lease.property_id == filters.property_id)
        if filters.tenant_id is not None:
            conditions.append(Lease.tenant_id == filters.tenant_id)

        # Status filters match the derived status, not only the stored one
        if filters.status == LeaseStatus.EXPIRED:
            conditions.append(
                or_(
                    Lease.status == LeaseStatus.EXPIRED.value,
                    and_(Lease.status == LeaseStatus.ACTIVE.value, Lease.end_date < today),
                )
            )
        elif filters.status == LeaseStatus.ACTIVE:
            conditions.append(Lease.status == LeaseStatus.ACTIVE.value)
            conditions.append(Lease.end_date >= today)
        elif filters.status is not None:
            conditions.append(Lease.status == filters.status.value)

        if filters.expiring_in is not None:
            conditions.append(Lease.status == LeaseStatus.ACTIVE.value)
            conditions.append(Lease.end_date >= today)
            conditions.append(Lease.end_date <= today + timedelta(days=filters.expiring_in))

        query = select(Lease)
        if conditions:
            query = query.where(and_(*conditions))

        count_query = select(func.count()).select_from(query.subquery())
        total_items = self.db.execute(count_query).scalar() or 0

        offset = (filters.page - 1) * filters.per_page
        query = query.order_by(desc(Lease.created_on), desc(Lease.id)).limit(filters.per_page).offset(offset)
        leases = list(self.db.execute(query).scalars().all())

        logger.info("Leases retrieved", total_items=total_items, page=filters.page, per_page=filters.per_page)
        return leases, total_items

    def get_portfolio_leases(
        self,
        landlord_id: Optional[int] = None,
        statuses: Optional[Sequence[LeaseStatus]] = None,
    ) -> List[Lease]:
        """Fetch every lease of a landlord (or of all landlords), optionally by stored status."""
        query = select(Lease)
        if landlord_id is not None:
            query = query.where(Lease.landlord_id == landlord_id)
        if statuses:
            query = query.where(Lease.status.in_([s.value for s in statuses]))
        return list(self.db.execute(query.order_by(Lease.id)).scalars().all())

    def update_lease(self, lease: Lease, **fields: Any) -> Lease:
        """Apply field changes to a lease."""
        for field, value in fields.items():
            setattr(lease, field, value)

        self.db.flush()
        self.db.refresh(lease)

        logger.info("Lease updated", lease_id=lease.id, fields=sorted(fields))
        return lease
