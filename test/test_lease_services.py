from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError

from app.leases.exceptions import (
    LeaseConflictException,
    LeaseNotFoundException,
    LeaseStateException,
    LeaseValidationException,
)
from app.leases.schemas import (
    ComplianceStatus,
    LeaseCreate,
    LeaseFilters,
    LeaseRenewalRequest,
    LeaseStatus,
    LeaseTerminationRequest,
    LeaseUpdate,
    RenewalTemplate,
    RentIncreaseType,
    SendForSignatureRequest,
    SignLeaseRequest,
    TermsUpdate,
)
from app.leases.services import RENT_STABILIZATION_NOTICE, RentEscalationCalculator
from app.properties.exceptions import ApplicationNotFoundException
from app.properties.models import Application
from app.properties.schemas import ApplicationStatus
from builders import NOW, create_application, create_lease, create_property


def lease_create(**overrides) -> LeaseCreate:
    data = {
        "start_date": date(2025, 4, 1),
        "end_date": date(2026, 3, 31),
        "monthly_rent": 200000,
        "security_deposit": 200000,
    }
    data.update(overrides)
    return LeaseCreate(**data)


# === Rent arithmetic ===

def test_percentage_increase_rounds_to_cents():
    assert RentEscalationCalculator.apply_increase(200000, Decimal("3"), RentIncreaseType.PERCENTAGE) == 206000
    # 100 cents at 0.5% is 100.5 cents, rounded half-up
    assert RentEscalationCalculator.apply_increase(100, Decimal("0.5"), RentIncreaseType.PERCENTAGE) == 101


def test_amount_increase_adds_cents():
    assert RentEscalationCalculator.apply_increase(200000, Decimal("5000"), RentIncreaseType.AMOUNT) == 205000


def test_increase_percentage():
    assert RentEscalationCalculator.increase_percentage(200000, 206000) == Decimal("3.00")
    assert RentEscalationCalculator.increase_percentage(300000, 310000) == Decimal("3.33")


# === Creation ===

def test_create_from_approved_application(db_session, lease_service):
    prop = create_property(db_session, owner_id=7)
    application = create_application(db_session, prop, applicant_id=42)

    lease = lease_service.create_from_application(application.id, lease_create(), as_of=NOW)

    assert lease.status == LeaseStatus.DRAFT
    assert lease.application_id == application.id
    assert lease.property_id == prop.id
    assert lease.tenant_id == 42
    assert lease.landlord_id == 7
    assert lease.terms.kind == "creation"
    assert lease.days_until_expiration == (date(2026, 3, 31) - NOW.date()).days


@pytest.mark.parametrize("end_date", [date(2025, 4, 1), date(2025, 3, 1)])
def test_create_rejects_end_not_after_start(db_session, lease_service, end_date):
    application = create_application(db_session, create_property(db_session))

    with pytest.raises(LeaseValidationException):
        lease_service.create_from_application(application.id, lease_create(end_date=end_date), as_of=NOW)


@pytest.mark.parametrize("field", ["monthly_rent", "security_deposit"])
def test_create_rejects_non_positive_amounts(db_session, lease_service, field):
    application = create_application(db_session, create_property(db_session))

    with pytest.raises(LeaseValidationException):
        lease_service.create_from_application(application.id, lease_create(**{field: 0}), as_of=NOW)


def test_create_from_missing_application(lease_service):
    with pytest.raises(ApplicationNotFoundException):
        lease_service.create_from_application(999, lease_create(), as_of=NOW)


def test_create_from_pending_application(db_session, lease_service):
    application = create_application(
        db_session, create_property(db_session), status=ApplicationStatus.PENDING
    )

    with pytest.raises(LeaseStateException) as exc:
        lease_service.create_from_application(application.id, lease_create(), as_of=NOW)
    assert exc.value.message == "Can only create leases from approved applications"


def test_create_twice_for_same_application(db_session, lease_service):
    application = create_application(db_session, create_property(db_session))
    lease_service.create_from_application(application.id, lease_create(), as_of=NOW)

    with pytest.raises(LeaseConflictException):
        lease_service.create_from_application(application.id, lease_create(), as_of=NOW)


# === Editing and signature ===

def test_update_draft_lease(db_session, lease_service):
    lease = create_lease(db_session, status=LeaseStatus.DRAFT)

    updated = lease_service.update_lease(lease.id, LeaseUpdate(monthly_rent=210000), as_of=NOW)

    assert updated.monthly_rent == 210000
    assert updated.end_date == lease.end_date


def test_update_rejects_reordered_dates(db_session, lease_service):
    lease = create_lease(db_session, status=LeaseStatus.DRAFT)

    with pytest.raises(LeaseValidationException):
        lease_service.update_lease(lease.id, LeaseUpdate(end_date=date(2024, 6, 1)), as_of=NOW)


def test_update_active_lease_is_rejected(db_session, lease_service):
    lease = create_lease(db_session, status=LeaseStatus.ACTIVE)

    with pytest.raises(LeaseStateException):
        lease_service.update_lease(lease.id, LeaseUpdate(monthly_rent=210000), as_of=NOW)


def test_editing_renewal_terms_keeps_link_to_original(db_session, lease_service):
    source = create_lease(db_session)
    renewal = lease_service.renew(
        source.id, LeaseRenewalRequest(new_end_date=date(2026, 6, 30)), as_of=NOW
    ).lease

    updated = lease_service.update_lease(
        renewal.id,
        LeaseUpdate(terms=TermsUpdate(notes="Tenant asked for a parking clause")),
        as_of=NOW,
    )

    assert updated.terms.kind == "renewal"
    assert updated.terms.original_lease_id == source.id
    assert updated.terms.notes == "Tenant asked for a parking clause"
    assert updated.terms.renewed_at == renewal.terms.renewed_at


def test_editing_draft_terms_keeps_creation_kind(db_session, lease_service):
    lease = create_lease(db_session, status=LeaseStatus.DRAFT)

    updated = lease_service.update_lease(
        lease.id,
        LeaseUpdate(terms=TermsUpdate(template_id="standard-2025", custom_clauses=["No smoking"])),
        as_of=NOW,
    )

    assert updated.terms.kind == "creation"
    assert updated.terms.template_id == "standard-2025"
    assert updated.terms.custom_clauses == ["No smoking"]
    assert not hasattr(updated.terms, "original_lease_id")


@pytest.mark.parametrize(
    "terms",
    [
        {"kind": "creation", "notes": "x"},
        {"kind": "renewal", "original_lease_id": 9999},
        {"original_lease_id": 9999},
    ],
)
def test_terms_edit_cannot_set_kind_or_original_lease(terms):
    with pytest.raises(ValidationError):
        LeaseUpdate(terms=terms)


def test_signature_flow_activates_lease(db_session, lease_service):
    lease = create_lease(db_session, status=LeaseStatus.DRAFT)

    sent = lease_service.send_for_signature(
        lease.id,
        SendForSignatureRequest(
            signer_email="tenant@example.com",
            document_url="https://docs.example.com/lease.pdf",
        ),
        as_of=NOW,
    )
    assert sent.status == LeaseStatus.PENDING_SIGNATURE
    assert sent.signer_email == "tenant@example.com"
    assert sent.sent_for_signature_at is not None

    signed = lease_service.mark_signed(lease.id, SignLeaseRequest(), as_of=NOW)
    assert signed.status == LeaseStatus.ACTIVE
    assert signed.signed_at is not None
    assert signed.document_url == "https://docs.example.com/lease.pdf"


def test_signing_a_draft_is_rejected(db_session, lease_service):
    lease = create_lease(db_session, status=LeaseStatus.DRAFT)

    with pytest.raises(LeaseStateException):
        lease_service.mark_signed(lease.id, SignLeaseRequest(), as_of=NOW)


def test_get_missing_lease(lease_service):
    with pytest.raises(LeaseNotFoundException):
        lease_service.get_lease(999, as_of=NOW)


# === Renewal ===

def test_percentage_renewal_creates_new_lease(db_session, lease_service):
    source = create_lease(db_session)

    result = lease_service.renew(
        source.id,
        LeaseRenewalRequest(new_end_date=date(2026, 6, 30), rent_increase=Decimal("3")),
        as_of=NOW,
    )

    renewal = result.lease
    assert renewal.id != source.id
    assert renewal.terms.kind == "renewal"
    assert renewal.terms.original_lease_id == source.id
    assert renewal.monthly_rent == 206000
    assert renewal.status == LeaseStatus.PENDING_SIGNATURE
    assert renewal.start_date == source.end_date
    assert renewal.end_date == date(2026, 6, 30)
    assert renewal.security_deposit == source.security_deposit
    assert result.original_lease_id == source.id
    assert result.previous_monthly_rent == 200000
    assert result.rent_increase_amount == 6000
    assert result.rent_increase_pct == Decimal("3.00")
    assert result.warnings == []


def test_renewal_does_not_touch_source(db_session, lease_service):
    source = create_lease(db_session)

    lease_service.renew(
        source.id,
        LeaseRenewalRequest(new_end_date=date(2026, 6, 30), rent_increase=Decimal("3")),
        as_of=NOW,
    )
    db_session.refresh(source)

    assert source.status == LeaseStatus.ACTIVE.value
    assert source.monthly_rent == 200000
    assert source.end_date == date(2025, 6, 30)


def test_amount_renewal(db_session, lease_service):
    source = create_lease(db_session)

    result = lease_service.renew(
        source.id,
        LeaseRenewalRequest(
            new_end_date=date(2026, 6, 30),
            rent_increase=Decimal("5000"),
            rent_increase_type=RentIncreaseType.AMOUNT,
        ),
        as_of=NOW,
    )

    assert result.lease.monthly_rent == 205000


def test_renewal_from_template(db_session, lease_service):
    source = create_lease(db_session)

    result = lease_service.renew(
        source.id, LeaseRenewalRequest(template=RenewalTemplate.MARKET_ADJUSTMENT), as_of=NOW
    )

    assert result.lease.end_date == date(2026, 6, 30)
    assert result.lease.monthly_rent == 206000
    assert result.lease.terms.renewal_template == RenewalTemplate.MARKET_ADJUSTMENT


def test_custom_template_requires_end_date(db_session, lease_service):
    source = create_lease(db_session)

    with pytest.raises(LeaseValidationException):
        lease_service.renew(source.id, LeaseRenewalRequest(template=RenewalTemplate.CUSTOM), as_of=NOW)


@pytest.mark.parametrize("new_end_date", [date(2025, 6, 30), date(2025, 5, 1)])
def test_renewal_rejects_end_not_after_current_end(db_session, lease_service, new_end_date):
    source = create_lease(db_session)

    with pytest.raises(LeaseValidationException):
        lease_service.renew(source.id, LeaseRenewalRequest(new_end_date=new_end_date), as_of=NOW)


def test_renewal_rejects_non_positive_rent(db_session, lease_service):
    source = create_lease(db_session)

    with pytest.raises(LeaseValidationException):
        lease_service.renew(
            source.id, LeaseRenewalRequest(new_end_date=date(2026, 6, 30), new_monthly_rent=0), as_of=NOW
        )


@pytest.mark.parametrize("status", [LeaseStatus.DRAFT, LeaseStatus.TERMINATED, LeaseStatus.PENDING_SIGNATURE])
def test_only_active_leases_renew(db_session, lease_service, status):
    source = create_lease(db_session, status=status)

    with pytest.raises(LeaseStateException):
        lease_service.renew(source.id, LeaseRenewalRequest(new_end_date=date(2026, 6, 30)), as_of=NOW)


def test_renew_missing_lease(lease_service):
    with pytest.raises(LeaseNotFoundException):
        lease_service.renew(999, LeaseRenewalRequest(new_end_date=date(2026, 6, 30)), as_of=NOW)


def test_renewal_records_approved_application(db_session, lease_service):
    source = create_lease(db_session)

    result = lease_service.renew(source.id, LeaseRenewalRequest(new_end_date=date(2026, 6, 30)), as_of=NOW)

    application = db_session.get(Application, result.lease.application_id)
    assert application.id != source.application_id
    assert application.status == ApplicationStatus.APPROVED.value
    assert application.applicant_id == source.tenant_id


def test_rent_stabilized_renewal_warns_above_threshold(db_session, lease_service):
    prop = create_property(db_session, is_rent_stabilized=True)
    over = create_lease(db_session, prop=prop)
    at_threshold = create_lease(db_session, prop=prop)

    warned = lease_service.renew(
        over.id, LeaseRenewalRequest(new_end_date=date(2026, 6, 30), rent_increase=Decimal("5")), as_of=NOW
    )
    quiet = lease_service.renew(
        at_threshold.id, LeaseRenewalRequest(new_end_date=date(2026, 6, 30), rent_increase=Decimal("3")), as_of=NOW
    )

    assert warned.lease.monthly_rent == 210000
    assert warned.warnings == [RENT_STABILIZATION_NOTICE]
    assert quiet.warnings == []


# === Termination ===

def test_terminate_active_lease(db_session, lease_service):
    lease = create_lease(db_session)

    result = lease_service.terminate(
        lease.id,
        LeaseTerminationRequest(termination_date=date(2025, 3, 31), reason="Tenant relocating", refund_deposit=True),
        as_of=NOW,
    )

    assert result.lease.status == LeaseStatus.TERMINATED
    assert result.lease.effective_status == LeaseStatus.TERMINATED
    assert result.lease.end_date == date(2025, 6, 30)
    assert result.lease.termination_date == date(2025, 3, 31)
    assert result.lease.termination_reason == "Tenant relocating"
    assert result.lease.terminated_at is not None
    assert result.refund_deposit is True
    assert result.refund_amount == 200000


def test_terminate_pending_lease_without_refund(db_session, lease_service):
    lease = create_lease(db_session, status=LeaseStatus.PENDING_SIGNATURE)

    result = lease_service.terminate(
        lease.id,
        LeaseTerminationRequest(termination_date=date(2025, 3, 31), reason="Tenant withdrew"),
        as_of=NOW,
    )

    assert result.lease.status == LeaseStatus.TERMINATED
    assert result.refund_amount == 0


def test_terminate_twice(db_session, lease_service):
    lease = create_lease(db_session, status=LeaseStatus.TERMINATED)

    with pytest.raises(LeaseStateException) as exc:
        lease_service.terminate(
            lease.id, LeaseTerminationRequest(termination_date=date(2025, 3, 31), reason="Again"), as_of=NOW
        )
    assert exc.value.message == "Lease is already terminated"


def test_terminate_draft_is_rejected(db_session, lease_service):
    lease = create_lease(db_session, status=LeaseStatus.DRAFT)

    with pytest.raises(LeaseStateException):
        lease_service.terminate(
            lease.id, LeaseTerminationRequest(termination_date=date(2025, 3, 31), reason="Changed mind"), as_of=NOW
        )


def test_terminate_requires_reason(db_session, lease_service):
    lease = create_lease(db_session)

    with pytest.raises(LeaseValidationException):
        lease_service.terminate(
            lease.id, LeaseTerminationRequest(termination_date=date(2025, 3, 31), reason="   "), as_of=NOW
        )


def test_terminate_before_start_is_rejected(db_session, lease_service):
    lease = create_lease(db_session)

    with pytest.raises(LeaseValidationException):
        lease_service.terminate(
            lease.id, LeaseTerminationRequest(termination_date=date(2024, 6, 1), reason="Early"), as_of=NOW
        )


# === Escalation and compliance ===

def test_escalation_preview(db_session, lease_service):
    lease = create_lease(db_session)

    result = lease_service.calculate_escalation(lease.id, Decimal("3"))

    assert result.current_rent == 200000
    assert result.escalation_amount == 6000
    assert result.new_rent == 206000
    assert result.effective_date == lease.end_date
    assert result.is_rent_stabilized is False


@pytest.mark.parametrize("rate", [Decimal("0"), Decimal("-1"), Decimal("50.5")])
def test_escalation_rate_bounds_checked_first(lease_service, rate):
    with pytest.raises(LeaseValidationException):
        lease_service.calculate_escalation(999, rate)


def test_escalation_on_missing_lease(lease_service):
    with pytest.raises(LeaseNotFoundException):
        lease_service.calculate_escalation(999, Decimal("3"))


def test_compliance_flags_excess_deposit(db_session, lease_service):
    lease = create_lease(db_session, security_deposit=300000, document_url="https://docs.example.com/l.pdf")

    report = lease_service.check_compliance(lease.id, as_of=NOW)

    assert report.compliance_status == ComplianceStatus.VIOLATION
    assert report.checks["security_deposit"].status == ComplianceStatus.VIOLATION
    assert report.checks["documentation"].status == ComplianceStatus.COMPLIANT


def test_compliance_missing_document(db_session, lease_service):
    prop = create_property(db_session, is_rent_stabilized=True)
    lease = create_lease(db_session, prop=prop)

    report = lease_service.check_compliance(lease.id, as_of=NOW)

    assert report.compliance_status == ComplianceStatus.INCOMPLETE
    assert report.checks["rent_stabilization"].status == ComplianceStatus.APPLICABLE


def test_compliance_all_clear(db_session, lease_service):
    lease = create_lease(db_session, document_url="https://docs.example.com/l.pdf")

    report = lease_service.check_compliance(lease.id, as_of=NOW)

    assert report.compliance_status == ComplianceStatus.COMPLIANT
    assert report.checks["rent_stabilization"].status == ComplianceStatus.NOT_APPLICABLE


# === Listing ===

@pytest.fixture()
def portfolio(db_session):
    return {
        "active_soon": create_lease(db_session, end_date=date(2025, 6, 30)),
        "active_later": create_lease(db_session, end_date=date(2025, 12, 31)),
        "active_past_end": create_lease(db_session, end_date=date(2025, 1, 31)),
        "expired": create_lease(
            db_session, status=LeaseStatus.EXPIRED, start_date=date(2024, 1, 1), end_date=date(2024, 12, 31)
        ),
        "draft": create_lease(
            db_session, status=LeaseStatus.DRAFT, start_date=date(2025, 4, 1), end_date=date(2026, 3, 31)
        ),
    }


def test_list_expired_includes_lapsed_active_leases(lease_service, portfolio):
    items, total = lease_service.list_leases(LeaseFilters(status=LeaseStatus.EXPIRED), as_of=NOW)

    assert total == 2
    assert {item.id for item in items} == {portfolio["active_past_end"].id, portfolio["expired"].id}
    assert all(item.effective_status == LeaseStatus.EXPIRED for item in items)


def test_list_active_excludes_lapsed_leases(lease_service, portfolio):
    items, total = lease_service.list_leases(LeaseFilters(status=LeaseStatus.ACTIVE), as_of=NOW)

    assert total == 2
    assert {item.id for item in items} == {portfolio["active_soon"].id, portfolio["active_later"].id}


def test_list_expiring_within_window(lease_service, portfolio):
    items, total = lease_service.list_leases(LeaseFilters(expiring_in=120), as_of=NOW)

    assert total == 1
    assert items[0].id == portfolio["active_soon"].id


def test_list_paginates_newest_first(lease_service, portfolio):
    items, total = lease_service.list_leases(LeaseFilters(page=1, per_page=2), as_of=NOW)

    assert total == 5
    assert [item.id for item in items] == [portfolio["draft"].id, portfolio["expired"].id]
