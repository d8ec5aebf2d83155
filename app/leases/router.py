### app/leases/router.py

"""
FastAPI router for the Leases module.
Provides REST endpoints for the lease lifecycle, renewals and the dashboard.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.core.config import settings
from app.leases.exceptions import (
    LeaseConflictException,
    LeaseNotFoundException,
    LeaseStateException,
    LeaseValidationException,
)
from app.leases.schemas import (
    ComplianceReport,
    EscalationRequest,
    EscalationResult,
    LeaseCreate,
    LeaseFilters,
    LeaseRenewalRequest,
    LeaseRenewalResult,
    LeaseResponse,
    LeaseStats,
    LeaseStatus,
    LeaseTerminationRequest,
    LeaseTerminationResult,
    LeaseUpdate,
    PaginatedLeaseResponse,
    RenewalCandidate,
    SendForSignatureRequest,
    SignLeaseRequest,
)
from app.leases.services import LeaseService
from app.properties.exceptions import ApplicationNotFoundException
from app.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(
    prefix="/leases",
    tags=["Leases"],
    responses={404: {"description": "Not found"}},
)


def to_http_exception(e: Exception) -> HTTPException:
    """Map a domain exception to the HTTP error returned to the caller"""
    if isinstance(e, (LeaseNotFoundException, ApplicationNotFoundException)):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    if isinstance(e, LeaseValidationException):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    if isinstance(e, (LeaseStateException, LeaseConflictException)):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Unexpected lease error")


DOMAIN_ERRORS = (
    LeaseNotFoundException,
    LeaseValidationException,
    LeaseStateException,
    LeaseConflictException,
    ApplicationNotFoundException,
)


# === Dashboard Endpoints ===

@router.get("/renewals/candidates", response_model=List[RenewalCandidate])
def get_renewal_candidates(
    days_ahead: int = Query(settings.renewal_horizon_days, ge=0, description="Lookahead window in days"),
    landlord_id: Optional[int] = Query(None, description="Restrict to one landlord's portfolio"),
    service: LeaseService = Depends(),
) -> List[RenewalCandidate]:
    """
    ACTIVE leases ending within the lookahead window, most urgent first.
    """
    logger.info("Getting renewal candidates", days_ahead=days_ahead, landlord_id=landlord_id)
    try:
        return service.get_renewal_candidates(days_ahead, landlord_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e


@router.get("/dashboard/stats", response_model=LeaseStats)
def get_dashboard_stats(
    landlord_id: Optional[int] = Query(None, description="Restrict to one landlord's portfolio"),
    service: LeaseService = Depends(),
) -> LeaseStats:
    """
    Lease counts by status, expiration window and termination month.
    """
    logger.info("Getting lease dashboard stats", landlord_id=landlord_id)
    return service.get_dashboard_stats(landlord_id)


# === Lease Management Endpoints ===

@router.get("", response_model=PaginatedLeaseResponse)
def list_leases(
    status_filter: Optional[LeaseStatus] = Query(None, alias="status", description="Filter by status"),
    property_id: Optional[int] = Query(None, description="Filter by property ID"),
    landlord_id: Optional[int] = Query(None, description="Filter by landlord ID"),
    tenant_id: Optional[int] = Query(None, description="Filter by tenant ID"),
    expiring_in: Optional[int] = Query(None, ge=0, description="Active leases ending within N days"),
    page: int = Query(1, ge=1, description="Page number"),
    per_page: int = Query(settings.default_page_size, ge=1, le=100, description="Items per page"),
    service: LeaseService = Depends(),
) -> PaginatedLeaseResponse:
    """
    Get paginated list of leases with filters
    """
    filters = LeaseFilters(
        status=status_filter,
        property_id=property_id,
        landlord_id=landlord_id,
        tenant_id=tenant_id,
        expiring_in=expiring_in,
        page=page,
        per_page=per_page,
    )
    items, total_items = service.list_leases(filters)

    return PaginatedLeaseResponse(
        items=items,
        total_items=total_items,
        page=page,
        per_page=per_page,
        total_pages=(total_items + per_page - 1) // per_page,
    )


@router.get("/{lease_id}", response_model=LeaseResponse)
def get_lease(lease_id: int, service: LeaseService = Depends()) -> LeaseResponse:
    """
    Get a lease with its derived expiration state.
    """
    try:
        return service.get_lease(lease_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e


@router.post(
    "/from-application/{application_id}",
    response_model=LeaseResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_lease_from_application(
    application_id: int,
    lease_data: LeaseCreate,
    service: LeaseService = Depends(),
) -> LeaseResponse:
    """
    Draft a lease from an approved application.
    """
    try:
        return service.create_from_application(application_id, lease_data)
    except DOMAIN_ERRORS as e:
        logger.warning("Lease creation rejected", application_id=application_id, error=str(e))
        raise to_http_exception(e) from e


@router.put("/{lease_id}", response_model=LeaseResponse)
def update_lease(
    lease_id: int,
    lease_update: LeaseUpdate,
    service: LeaseService = Depends(),
) -> LeaseResponse:
    """
    Edit dates, amounts, terms or document of an unsigned lease.
    """
    try:
        return service.update_lease(lease_id, lease_update)
    except DOMAIN_ERRORS as e:
        logger.warning("Lease update rejected", lease_id=lease_id, error=str(e))
        raise to_http_exception(e) from e


@router.post("/{lease_id}/send-for-signature", response_model=LeaseResponse)
def send_for_signature(
    lease_id: int,
    request: SendForSignatureRequest,
    service: LeaseService = Depends(),
) -> LeaseResponse:
    """
    Move a draft lease to PENDING_SIGNATURE.
    """
    try:
        return service.send_for_signature(lease_id, request)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e


@router.post("/{lease_id}/sign", response_model=LeaseResponse)
def sign_lease(
    lease_id: int,
    request: SignLeaseRequest,
    service: LeaseService = Depends(),
) -> LeaseResponse:
    """
    Record the signature and activate the lease.
    """
    try:
        return service.mark_signed(lease_id, request)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e


@router.post(
    "/{lease_id}/renew",
    response_model=LeaseRenewalResult,
    status_code=status.HTTP_201_CREATED,
)
def renew_lease(
    lease_id: int,
    request: LeaseRenewalRequest,
    service: LeaseService = Depends(),
) -> LeaseRenewalResult:
    """
    Create a successor lease for an ACTIVE lease.

    Rent stabilization limits are not enforced; the response carries warnings instead.
    """
    try:
        return service.renew(lease_id, request)
    except DOMAIN_ERRORS as e:
        logger.warning("Lease renewal rejected", lease_id=lease_id, error=str(e))
        raise to_http_exception(e) from e


@router.post("/{lease_id}/terminate", response_model=LeaseTerminationResult)
def terminate_lease(
    lease_id: int,
    request: LeaseTerminationRequest,
    service: LeaseService = Depends(),
) -> LeaseTerminationResult:
    """
    Terminate an ACTIVE or PENDING_SIGNATURE lease.
    """
    try:
        return service.terminate(lease_id, request)
    except DOMAIN_ERRORS as e:
        logger.warning("Lease termination rejected", lease_id=lease_id, error=str(e))
        raise to_http_exception(e) from e


@router.post("/{lease_id}/escalation", response_model=EscalationResult)
def calculate_escalation(
    lease_id: int,
    request: EscalationRequest,
    service: LeaseService = Depends(),
) -> EscalationResult:
    """
    Preview a rent escalation at the end of the current term.
    """
    try:
        return service.calculate_escalation(lease_id, request.escalation_rate)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e


@router.get("/{lease_id}/compliance", response_model=ComplianceReport)
def check_compliance(lease_id: int, service: LeaseService = Depends()) -> ComplianceReport:
    """
    Security deposit, documentation and rent stabilization checks.
    """
    try:
        return service.check_compliance(lease_id)
    except DOMAIN_ERRORS as e:
        raise to_http_exception(e) from e
