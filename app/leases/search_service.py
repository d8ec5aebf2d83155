# app/leases/search_service.py

"""
Read-side lease queries: response formatting, renewal candidates and
dashboard statistics. Everything here is a pure function of the lease rows
and the moment of the read.
"""

from typing import Iterable, List, Optional

from app.core.config import settings
from app.leases.exceptions import LeaseValidationException
from app.leases.models import Lease
from app.leases.schemas import (
    LeaseResponse,
    LeaseStats,
    LeaseStatus,
    RenewalCandidate,
)
from app.leases.utils import (
    DateLike,
    days_until_expiration,
    effective_status,
    expiration_bucket,
    in_same_month,
)
from app.utils.logger import get_logger

logger = get_logger(__name__)


def format_lease_response(lease: Lease, now: DateLike) -> LeaseResponse:
    """Build the lease response with the state derived at `now`."""
    days = days_until_expiration(lease.end_date, now)
    return LeaseResponse(
        id=lease.id,
        application_id=lease.application_id,
        property_id=lease.property_id,
        tenant_id=lease.tenant_id,
        landlord_id=lease.landlord_id,
        status=lease.status,
        effective_status=effective_status(lease.status, lease.end_date, now),
        start_date=lease.start_date,
        end_date=lease.end_date,
        monthly_rent=lease.monthly_rent,
        security_deposit=lease.security_deposit,
        terms=lease.terms,
        document_url=lease.document_url,
        signer_email=lease.signer_email,
        sent_for_signature_at=lease.sent_for_signature_at,
        signed_at=lease.signed_at,
        termination_date=lease.termination_date,
        termination_reason=lease.termination_reason,
        refund_deposit=lease.refund_deposit,
        terminated_at=lease.terminated_at,
        days_until_expiration=days,
        expiration_bucket=expiration_bucket(days),
        created_on=lease.created_on,
        updated_on=lease.updated_on,
    )


class RenewalCandidateFinder:
    """
    Finds ACTIVE leases that end within a lookahead window.
    """

    def __init__(self, horizon_days: Optional[int] = None):
        horizon_days = settings.renewal_horizon_days if horizon_days is None else horizon_days
        if horizon_days < 0:
            raise LeaseValidationException(
                "Renewal horizon must not be negative", {"horizon_days": horizon_days}
            )
        self.horizon_days = horizon_days

    def is_candidate(self, lease: Lease, now: DateLike) -> bool:
        """Whether a lease is ACTIVE and ends between now and the horizon."""
        if lease.status != LeaseStatus.ACTIVE.value:
            return False
        days = days_until_expiration(lease.end_date, now)
        return 0 <= days <= self.horizon_days

    def find(self, leases: Iterable[Lease], now: DateLike) -> List[RenewalCandidate]:
        """Return candidates ordered by days remaining, most urgent first."""
        matches = [lease for lease in leases if self.is_candidate(lease, now)]
        matches.sort(key=lambda lease: (days_until_expiration(lease.end_date, now), lease.id))

        candidates = []
        for lease in matches:
            days = days_until_expiration(lease.end_date, now)
            prop = lease.property
            candidates.append(
                RenewalCandidate(
                    lease_id=lease.id,
                    property_id=lease.property_id,
                    property_title=prop.title if prop else None,
                    property_address=prop.address if prop else None,
                    tenant_id=lease.tenant_id,
                    end_date=lease.end_date,
                    monthly_rent=lease.monthly_rent,
                    days_until_expiration=days,
                    expiration_bucket=expiration_bucket(days),
                )
            )

        logger.debug("Renewal candidates found", horizon_days=self.horizon_days, count=len(candidates))
        return candidates


class LeaseStatsAggregator:
    """
    Single pass summary of a lease portfolio for the dashboard.

    Statuses are counted as derived at `now`, so an ACTIVE lease past its
    end date counts as EXPIRED and never as expiring.
    """

    def __init__(self, urgent_days: Optional[int] = None, warning_days: Optional[int] = None):
        self.urgent_days = settings.urgent_expiration_days if urgent_days is None else urgent_days
        self.warning_days = settings.warning_expiration_days if warning_days is None else warning_days

    def summarize(self, leases: Iterable[Lease], now: DateLike) -> LeaseStats:
        """Count leases by status, expiration window and termination month."""
        stats = LeaseStats()

        for lease in leases:
            status = effective_status(lease.status, lease.end_date, now)
            stats.total_leases += 1
            stats.by_status[status] += 1

            if status == LeaseStatus.ACTIVE:
                days = days_until_expiration(lease.end_date, now)
                if days <= self.urgent_days:
                    stats.expiring_in_30_days += 1
                if days <= self.warning_days:
                    stats.expiring_in_90_days += 1
            elif status == LeaseStatus.TERMINATED and in_same_month(lease.terminated_at, now):
                stats.terminated_this_month += 1

        stats.active_leases = stats.by_status[LeaseStatus.ACTIVE]
        stats.draft_leases = stats.by_status[LeaseStatus.DRAFT]
        stats.pending_signature_leases = stats.by_status[LeaseStatus.PENDING_SIGNATURE]
        stats.expired_leases = stats.by_status[LeaseStatus.EXPIRED]
        stats.terminated_leases = stats.by_status[LeaseStatus.TERMINATED]
        return stats
