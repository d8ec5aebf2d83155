# app/leases/services.py

"""
Business logic layer for lease operations.
Implements the lease lifecycle (draft, signature, activation, renewal,
termination), rent escalation and the dashboard read models.
"""

from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Tuple

from fastapi import Depends
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.db import get_db
from app.leases.exceptions import (
    LeaseConflictException,
    LeaseNotFoundException,
    LeaseStateException,
    LeaseValidationException,
)
from app.leases.models import Lease
from app.leases.repository import LeaseRepository
from app.leases.schemas import (
    RENEWAL_PRESETS,
    ComplianceCheck,
    ComplianceReport,
    ComplianceStatus,
    CreationTerms,
    EscalationResult,
    LeaseCreate,
    LeaseFilters,
    LeaseRenewalRequest,
    LeaseRenewalResult,
    LeaseStats,
    LeaseStatus,
    LeaseTerminationRequest,
    LeaseTerminationResult,
    LeaseUpdate,
    RenewalCandidate,
    RenewalTerms,
    RentIncreaseType,
    SendForSignatureRequest,
    SignLeaseRequest,
    TermsUpdate,
)
from app.leases.search_service import (
    LeaseStatsAggregator,
    RenewalCandidateFinder,
    format_lease_response,
)
from app.leases.utils import add_months, to_date, utcnow
from app.properties.exceptions import ApplicationNotFoundException
from app.properties.models import Property
from app.properties.repository import PropertyRepository
from app.properties.schemas import ApplicationCreate, ApplicationStatus
from app.properties.services import get_property_repository
from app.utils.logger import get_logger

logger = get_logger(__name__)

RENT_STABILIZATION_NOTICE = (
    "This property is rent stabilized. Rent increases may be subject to NYC Rent "
    "Guidelines Board limits. Please verify the maximum allowable increase before finalizing."
)

EDITABLE_STATUSES = (LeaseStatus.DRAFT.value, LeaseStatus.PENDING_SIGNATURE.value)
TERMINABLE_STATUSES = (LeaseStatus.ACTIVE.value, LeaseStatus.PENDING_SIGNATURE.value)


def get_lease_repository(db: Session = Depends(get_db)) -> LeaseRepository:
    """Dependency to get LeaseRepository instance."""
    return LeaseRepository(db)


class RentEscalationCalculator:
    """
    Rent arithmetic on integer cents. Results are rounded half-up to a whole cent.
    """

    @staticmethod
    def round_cents(amount: Decimal) -> int:
        """Round a Decimal amount of cents half-up to an int"""
        return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    @staticmethod
    def apply_increase(current_rent: int, increase: Decimal, increase_type: RentIncreaseType) -> int:
        """
        New rent after an increase.

        Percentage: current × (1 + pct / 100)
        Amount:     current + amount (in cents)
        """
        increase = Decimal(str(increase))
        if increase_type == RentIncreaseType.PERCENTAGE:
            new_rent = Decimal(current_rent) * (Decimal("100") + increase) / Decimal("100")
        else:
            new_rent = Decimal(current_rent) + increase
        return RentEscalationCalculator.round_cents(new_rent)

    @staticmethod
    def escalation_amount(current_rent: int, rate: Decimal) -> int:
        """Escalation in cents for a percentage rate"""
        return RentEscalationCalculator.round_cents(
            Decimal(current_rent) * Decimal(str(rate)) / Decimal("100")
        )

    @staticmethod
    def increase_percentage(current_rent: int, new_rent: int) -> Decimal:
        """Effective increase from current to new rent, in percent to two places"""
        pct = (Decimal(new_rent) - Decimal(current_rent)) * Decimal("100") / Decimal(current_rent)
        return pct.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


class LeaseService:
    """
    Business logic layer for lease operations.
    Every write is a single request transaction; nothing here retries.
    """

    def __init__(
        self,
        repo: LeaseRepository = Depends(get_lease_repository),
        property_repo: PropertyRepository = Depends(get_property_repository),
    ):
        self.repo = repo
        self.property_repo = property_repo

    # === Validation helpers ===

    @staticmethod
    def _validate_lease_values(start_date: date, end_date: date, monthly_rent: int, security_deposit: int) -> None:
        if monthly_rent is None or monthly_rent <= 0:
            raise LeaseValidationException(
                "Monthly rent must be a positive amount in cents", {"monthly_rent": monthly_rent}
            )
        if security_deposit is None or security_deposit <= 0:
            raise LeaseValidationException(
                "Security deposit must be a positive amount in cents", {"security_deposit": security_deposit}
            )
        if end_date <= start_date:
            raise LeaseValidationException(
                "End date must be after start date",
                {"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )

    # === Reads ===

    def get_lease_model(self, lease_id: int) -> Lease:
        """Get a lease row by ID."""
        lease = self.repo.get_lease_by_id(lease_id)
        if not lease:
            logger.warning("Lease not found", lease_id=lease_id)
            raise LeaseNotFoundException(lease_id)
        return lease

    def get_lease(self, lease_id: int, as_of: Optional[datetime] = None):
        """Get a lease with its derived state."""
        return format_lease_response(self.get_lease_model(lease_id), as_of or utcnow())

    def list_leases(self, filters: LeaseFilters, as_of: Optional[datetime] = None) -> Tuple[list, int]:
        """List leases with filters and pagination."""
        now = as_of or utcnow()
        leases, total_items = self.repo.get_leases(filters, to_date(now))
        return [format_lease_response(lease, now) for lease in leases], total_items

    # === Creation and editing ===

    def create_from_application(
        self, application_id: int, lease_data: LeaseCreate, as_of: Optional[datetime] = None,
    ):
        """
        Draft a lease from an approved application.
        """
        logger.info("Creating lease from application", application_id=application_id)

        self._validate_lease_values(
            lease_data.start_date, lease_data.end_date,
            lease_data.monthly_rent, lease_data.security_deposit,
        )

        application = self.property_repo.get_application_by_id(application_id)
        if not application:
            logger.warning("Application not found", application_id=application_id)
            raise ApplicationNotFoundException(application_id)

        if application.status != ApplicationStatus.APPROVED.value:
            raise LeaseStateException(
                "Can only create leases from approved applications",
                current_status=application.status,
            )

        if self.repo.get_lease_by_application_id(application_id):
            raise LeaseConflictException(application_id)

        terms = lease_data.terms or CreationTerms()
        lease = self.repo.create_lease(
            application_id=application.id,
            property_id=application.property_id,
            tenant_id=application.applicant_id,
            landlord_id=application.property.owner_id,
            status=LeaseStatus.DRAFT.value,
            start_date=lease_data.start_date,
            end_date=lease_data.end_date,
            monthly_rent=lease_data.monthly_rent,
            security_deposit=lease_data.security_deposit,
            terms=terms.model_dump(mode="json"),
        )

        logger.info(
            "Lease created",
            lease_id=lease.id,
            application_id=application_id,
            monthly_rent=lease.monthly_rent,
        )
        return format_lease_response(lease, as_of or utcnow())

    def update_lease(self, lease_id: int, lease_update: LeaseUpdate, as_of: Optional[datetime] = None):
        """Edit a lease that has not been signed yet."""
        lease = self.get_lease_model(lease_id)
        if lease.status not in EDITABLE_STATUSES:
            raise LeaseStateException(
                "Can only edit draft or pending-signature leases", lease.id, lease.status
            )

        changes = lease_update.model_dump(exclude={"terms"}, exclude_unset=True, exclude_none=True)
        self._validate_lease_values(
            changes.get("start_date", lease.start_date),
            changes.get("end_date", lease.end_date),
            changes.get("monthly_rent", lease.monthly_rent),
            changes.get("security_deposit", lease.security_deposit),
        )
        if lease_update.terms is not None:
            changes["terms"] = self._merge_terms(lease, lease_update.terms)

        lease = self.repo.update_lease(lease, **changes)
        logger.info("Lease edited", lease_id=lease.id)
        return format_lease_response(lease, as_of or utcnow())

    @staticmethod
    def _merge_terms(lease: Lease, edits: TermsUpdate) -> dict:
        """
        Apply edited fields over the stored terms. kind and original_lease_id
        always come from the stored record.
        """
        stored = dict(lease.terms or {"kind": "creation"})
        stored.update(edits.model_dump(exclude_unset=True, exclude_none=True))
        terms_model = RenewalTerms if stored.get("kind") == "renewal" else CreationTerms
        return terms_model.model_validate(stored).model_dump(mode="json")

    # === Signature ===

    def send_for_signature(
        self, lease_id: int, request: SendForSignatureRequest, as_of: Optional[datetime] = None,
    ):
        """Move a draft lease to PENDING_SIGNATURE. Re-sending a pending lease updates the signer."""
        now = as_of or utcnow()
        lease = self.get_lease_model(lease_id)
        if lease.status not in EDITABLE_STATUSES:
            raise LeaseStateException(
                "Can only send draft or pending-signature leases for signature", lease.id, lease.status
            )

        changes = {
            "status": LeaseStatus.PENDING_SIGNATURE.value,
            "signer_email": request.signer_email,
            "sent_for_signature_at": now,
        }
        if request.document_url:
            changes["document_url"] = request.document_url

        lease = self.repo.update_lease(lease, **changes)
        logger.info("Lease sent for signature", lease_id=lease.id, signer_email=request.signer_email)
        return format_lease_response(lease, now)

    def mark_signed(self, lease_id: int, request: SignLeaseRequest, as_of: Optional[datetime] = None):
        """Record the tenant signature: PENDING_SIGNATURE becomes ACTIVE."""
        now = as_of or utcnow()
        lease = self.get_lease_model(lease_id)
        if lease.status != LeaseStatus.PENDING_SIGNATURE.value:
            raise LeaseStateException(
                "Can only sign leases that are pending signature", lease.id, lease.status
            )

        changes = {
            "status": LeaseStatus.ACTIVE.value,
            "signed_at": request.signed_at or now,
        }
        if request.document_url:
            changes["document_url"] = request.document_url

        lease = self.repo.update_lease(lease, **changes)
        logger.info("Lease signed", lease_id=lease.id)
        return format_lease_response(lease, now)

    # === Renewal ===

    def _renewal_end_date(self, source: Lease, request: LeaseRenewalRequest) -> date:
        new_end_date = request.new_end_date
        if new_end_date is None and request.template is not None:
            months = RENEWAL_PRESETS[request.template].duration_months
            if months:
                new_end_date = add_months(source.end_date, months)
        if new_end_date is None:
            raise LeaseValidationException("New end date is required")

        if new_end_date <= source.end_date:
            raise LeaseValidationException(
                "New end date must be after the current end date",
                {"current_end_date": source.end_date.isoformat(), "new_end_date": new_end_date.isoformat()},
            )
        return new_end_date

    def _renewal_rent(self, source: Lease, request: LeaseRenewalRequest) -> Tuple[int, Optional[Decimal], Optional[RentIncreaseType]]:
        if request.new_monthly_rent is not None:
            return request.new_monthly_rent, None, None

        if request.rent_increase is not None:
            new_rent = RentEscalationCalculator.apply_increase(
                source.monthly_rent, request.rent_increase, request.rent_increase_type
            )
            return new_rent, request.rent_increase, request.rent_increase_type

        if request.template is not None:
            pct = RENEWAL_PRESETS[request.template].rent_increase_pct
            new_rent = RentEscalationCalculator.apply_increase(
                source.monthly_rent, pct, RentIncreaseType.PERCENTAGE
            )
            return new_rent, pct, RentIncreaseType.PERCENTAGE

        return source.monthly_rent, None, None

    @staticmethod
    def renewal_warnings(prop: Optional[Property], increase_pct: Decimal) -> List[str]:
        """Non-binding notices for a renewal; caps are not enforced."""
        warnings = []
        threshold = Decimal(str(settings.rent_stabilization_warning_pct))
        if prop is not None and prop.is_rent_stabilized and increase_pct > threshold:
            warnings.append(RENT_STABILIZATION_NOTICE)
        return warnings

    def renew(
        self, lease_id: int, request: LeaseRenewalRequest, as_of: Optional[datetime] = None,
    ) -> LeaseRenewalResult:
        """
        Create a successor lease for an ACTIVE lease.

        The source lease is left untouched. The renewal starts on the source
        end date, keeps the deposit, waits for signature, and records the
        source id in its terms. Duplicate renewals are not detected.
        """
        now = as_of or utcnow()
        logger.info("Renewing lease", lease_id=lease_id)

        source = self.get_lease_model(lease_id)
        if source.status != LeaseStatus.ACTIVE.value:
            raise LeaseStateException("Can only renew active leases", source.id, source.status)

        new_end_date = self._renewal_end_date(source, request)
        new_rent, rent_increase, rent_increase_type = self._renewal_rent(source, request)
        if new_rent <= 0:
            raise LeaseValidationException(
                "Renewed monthly rent must be a positive amount in cents", {"new_monthly_rent": new_rent}
            )

        source_terms = source.terms or {}
        overrides = request.renewal_terms
        custom_clauses = source_terms.get("custom_clauses", [])
        if overrides and overrides.custom_clauses is not None:
            custom_clauses = overrides.custom_clauses
        terms = RenewalTerms(
            original_lease_id=source.id,
            template_id=(overrides.template_id if overrides and overrides.template_id else source_terms.get("template_id")),
            custom_clauses=custom_clauses,
            notes=overrides.notes if overrides else None,
            renewal_template=request.template,
            rent_increase=rent_increase,
            rent_increase_type=rent_increase_type,
            renewed_at=now,
        )

        renewal_application = self.property_repo.create_application(
            ApplicationCreate(
                property_id=source.property_id,
                applicant_id=source.tenant_id,
                move_in_date=source.end_date,
                notes=f"Lease renewal for lease {source.id}",
            ),
            status=ApplicationStatus.APPROVED,
            landlord_notes="Automatic renewal application",
        )

        renewal = self.repo.create_lease(
            application_id=renewal_application.id,
            property_id=source.property_id,
            tenant_id=source.tenant_id,
            landlord_id=source.landlord_id,
            status=LeaseStatus.PENDING_SIGNATURE.value,
            start_date=source.end_date,
            end_date=new_end_date,
            monthly_rent=new_rent,
            security_deposit=source.security_deposit,
            terms=terms.model_dump(mode="json"),
        )

        increase_pct = RentEscalationCalculator.increase_percentage(source.monthly_rent, new_rent)
        warnings = self.renewal_warnings(source.property, increase_pct)

        logger.info(
            "Lease renewed",
            lease_id=source.id,
            renewal_id=renewal.id,
            previous_rent=source.monthly_rent,
            new_rent=new_rent,
            warnings=len(warnings),
        )
        return LeaseRenewalResult(
            lease=format_lease_response(renewal, now),
            original_lease_id=source.id,
            previous_monthly_rent=source.monthly_rent,
            rent_increase_amount=new_rent - source.monthly_rent,
            rent_increase_pct=increase_pct,
            warnings=warnings,
        )

    # === Termination ===

    def terminate(
        self, lease_id: int, request: LeaseTerminationRequest, as_of: Optional[datetime] = None,
    ) -> LeaseTerminationResult:
        """
        Terminate an ACTIVE or PENDING_SIGNATURE lease.

        The deposit refund is only an intent for the payment collaborator.
        """
        now = as_of or utcnow()
        lease = self.get_lease_model(lease_id)

        if lease.status == LeaseStatus.TERMINATED.value:
            raise LeaseStateException("Lease is already terminated", lease.id, lease.status)
        if lease.status not in TERMINABLE_STATUSES:
            raise LeaseStateException(
                "Can only terminate active or pending-signature leases", lease.id, lease.status
            )

        reason = (request.reason or "").strip()
        if not reason:
            raise LeaseValidationException("Termination reason is required")
        if request.termination_date < lease.start_date:
            raise LeaseValidationException(
                "Termination date cannot precede the lease start date",
                {
                    "start_date": lease.start_date.isoformat(),
                    "termination_date": request.termination_date.isoformat(),
                },
            )

        lease = self.repo.update_lease(
            lease,
            status=LeaseStatus.TERMINATED.value,
            termination_date=request.termination_date,
            termination_reason=reason,
            refund_deposit=request.refund_deposit,
            terminated_at=now,
        )

        logger.info(
            "Lease terminated",
            lease_id=lease.id,
            termination_date=request.termination_date.isoformat(),
            refund_deposit=request.refund_deposit,
        )
        return LeaseTerminationResult(
            lease=format_lease_response(lease, now),
            refund_deposit=request.refund_deposit,
            refund_amount=lease.security_deposit if request.refund_deposit else 0,
        )

    # === Escalation and compliance ===

    def calculate_escalation(self, lease_id: int, escalation_rate: Decimal) -> EscalationResult:
        """Preview a rent escalation taking effect at the end of the current term."""
        max_rate = Decimal(str(settings.max_escalation_rate_pct))
        if escalation_rate is None or escalation_rate <= 0 or escalation_rate > max_rate:
            raise LeaseValidationException(
                f"Invalid escalation rate (0-{max_rate.normalize()}% allowed)",
                {"escalation_rate": str(escalation_rate)},
            )

        lease = self.get_lease_model(lease_id)
        amount = RentEscalationCalculator.escalation_amount(lease.monthly_rent, escalation_rate)
        stabilized = bool(lease.property and lease.property.is_rent_stabilized)

        return EscalationResult(
            lease_id=lease.id,
            current_rent=lease.monthly_rent,
            escalation_rate=escalation_rate,
            escalation_amount=amount,
            new_rent=lease.monthly_rent + amount,
            effective_date=lease.end_date,
            is_rent_stabilized=stabilized,
            notes=(
                "Subject to rent stabilization limits - verify against RGB guidelines"
                if stabilized
                else "Market rate property - escalation allowed"
            ),
        )

    def check_compliance(self, lease_id: int, as_of: Optional[datetime] = None) -> ComplianceReport:
        """Run the lease compliance checks."""
        now = as_of or utcnow()
        lease = self.get_lease_model(lease_id)
        stabilized = bool(lease.property and lease.property.is_rent_stabilized)

        checks = {
            "security_deposit": ComplianceCheck(
                status=(
                    ComplianceStatus.COMPLIANT
                    if lease.security_deposit <= lease.monthly_rent
                    else ComplianceStatus.VIOLATION
                ),
                details=(
                    f"Security deposit: {lease.security_deposit} cents, "
                    f"monthly rent: {lease.monthly_rent} cents (limit is one month's rent)"
                ),
            ),
            "rent_stabilization": ComplianceCheck(
                status=ComplianceStatus.APPLICABLE if stabilized else ComplianceStatus.NOT_APPLICABLE,
                details=(
                    "Property is rent stabilized - renewal rules apply"
                    if stabilized
                    else "Property is not rent stabilized"
                ),
            ),
            "documentation": ComplianceCheck(
                status=ComplianceStatus.COMPLIANT if lease.document_url else ComplianceStatus.INCOMPLETE,
                details=(
                    "Signed lease document on file"
                    if lease.document_url
                    else "Missing signed lease document"
                ),
            ),
        }

        statuses = {check.status for check in checks.values()}
        if ComplianceStatus.VIOLATION in statuses:
            overall = ComplianceStatus.VIOLATION
        elif ComplianceStatus.INCOMPLETE in statuses:
            overall = ComplianceStatus.INCOMPLETE
        else:
            overall = ComplianceStatus.COMPLIANT

        return ComplianceReport(lease_id=lease.id, compliance_status=overall, checked_at=now, checks=checks)

    # === Dashboard ===

    def get_renewal_candidates(
        self,
        horizon_days: Optional[int] = None,
        landlord_id: Optional[int] = None,
        as_of: Optional[datetime] = None,
    ) -> List[RenewalCandidate]:
        """ACTIVE leases ending within the horizon, most urgent first."""
        finder = RenewalCandidateFinder(horizon_days)
        leases = self.repo.get_portfolio_leases(landlord_id, statuses=[LeaseStatus.ACTIVE])
        return finder.find(leases, as_of or utcnow())

    def get_dashboard_stats(
        self, landlord_id: Optional[int] = None, as_of: Optional[datetime] = None,
    ) -> LeaseStats:
        """Portfolio summary for the lease dashboard."""
        leases = self.repo.get_portfolio_leases(landlord_id)
        return LeaseStatsAggregator().summarize(leases, as_of or utcnow())
