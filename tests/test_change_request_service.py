from __future__ import annotations

import pytest

from car_booking.domain.models import ChangeRequestStatus, UserRole
from car_booking.repositories.audit_repo import AuditRepository
from car_booking.repositories.profile_repo import ProfileRepo
from car_booking.services.change_request_service import ChangeRequestService
from car_booking.services.errors import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from car_booking.services.fleet_service import FleetService


@pytest.fixture
def requests(connection, clock):
    return ChangeRequestService(connection, clock=clock)


@pytest.fixture
def super_admin(connection, clock):
    boss = ProfileRepo(connection).create(
        "HQ Boss", "boss@example.com", None, role=UserRole.SUPER_ADMIN
    )
    FleetService(connection, clock=clock).create_group("HQ", boss.id, is_super_group=True)
    return boss


@pytest.fixture
def penang(connection, clock, admin, super_admin):
    fleets = FleetService(connection, clock=clock)
    group = fleets.create_group("Penang Fleet", admin.id)
    return fleets.verify(group.id, super_admin.id)


def test_submit_stores_only_changed_fields(requests, customer, admin, penang):
    request = requests.submit(
        customer.id,
        {"display_name": "Aina Rahman", "phone": "019-496 1568", "ic_number": "900101-14-5678"},
        admin.id,
        fleet_group_id=penang.id,
    )
    assert request.status == ChangeRequestStatus.PENDING
    assert request.changes == {
        "phone": {"old": "+60123456789", "new": "+60194961568"},
        "ic_number": {"old": None, "new": "900101-14-5678"},
    }
    assert request.requested_by == admin.id


def test_submit_validation(requests, customer, admin, penang):
    with pytest.raises(ValidationError):
        requests.submit(customer.id, {"role": "super_admin"}, admin.id, fleet_group_id=penang.id)
    with pytest.raises(ValidationError):
        requests.submit(customer.id, {"email": "not-an-email"}, admin.id, fleet_group_id=penang.id)
    with pytest.raises(ValidationError):
        requests.submit(customer.id, {"display_name": "Aina Rahman"}, admin.id, fleet_group_id=penang.id)
    with pytest.raises(NotFoundError):
        requests.submit("nobody", {"ic_number": "1"}, admin.id, fleet_group_id=penang.id)
    with pytest.raises(ForbiddenError):
        requests.submit(customer.id, {"ic_number": "1"}, customer.id)


def test_submit_requires_membership_and_writable_group(
    requests, connection, clock, customer, admin, super_admin
):
    fleets = FleetService(connection, clock=clock)
    pending = fleets.create_group("Johor Fleet", admin.id)
    with pytest.raises(ForbiddenError):
        requests.submit(customer.id, {"ic_number": "1"}, admin.id, fleet_group_id=pending.id)

    outsider = ProfileRepo(connection).create("Other", "other@example.com", None, role=UserRole.ADMIN)
    fleets.verify(pending.id, super_admin.id)
    with pytest.raises(ForbiddenError):
        requests.submit(customer.id, {"ic_number": "1"}, outsider.id, fleet_group_id=pending.id)


def test_approve_applies_the_diff_and_audits(requests, connection, customer, admin, super_admin, penang):
    request = requests.submit(
        customer.id,
        {"email": "aina.new@example.com", "licence_expiry": "2027-01-31"},
        admin.id,
        fleet_group_id=penang.id,
    )
    approved = requests.approve(request.id, super_admin.id)
    assert approved.status == ChangeRequestStatus.APPROVED
    assert approved.reviewed_by == super_admin.id
    assert approved.reviewed_at == "2024-06-01T09:00:00+00:00"

    profile = ProfileRepo(connection).get_by_id(customer.id)
    assert profile.email == "aina.new@example.com"
    assert profile.licence_expiry == "2027-01-31"

    actions = [
        log.action
        for log in AuditRepository(connection).list_for_resource(request.id)
        if log.resource_type == "change_request"
    ]
    assert sorted(actions) == ["APPROVE_CHANGE_REQUEST", "SUBMIT_CHANGE_REQUEST"]

    with pytest.raises(InvalidTransitionError):
        requests.approve(request.id, super_admin.id)


def test_reject_records_reason_and_leaves_profile(requests, connection, customer, admin, super_admin, penang):
    request = requests.submit(customer.id, {"ic_number": "900101-14-5678"}, admin.id, fleet_group_id=penang.id)
    with pytest.raises(ValidationError):
        requests.reject(request.id, super_admin.id, " ")

    rejected = requests.reject(request.id, super_admin.id, "IC does not match licence")
    assert rejected.status == ChangeRequestStatus.REJECTED
    assert rejected.rejection_reason == "IC does not match licence"
    assert ProfileRepo(connection).get_by_id(customer.id).ic_number is None
    with pytest.raises(InvalidTransitionError):
        requests.approve(request.id, super_admin.id)


def test_only_the_super_group_reviews(requests, connection, customer, admin, penang):
    request = requests.submit(customer.id, {"ic_number": "1"}, admin.id, fleet_group_id=penang.id)
    with pytest.raises(ForbiddenError):
        requests.approve(request.id, admin.id)

    lone_boss = ProfileRepo(connection).create(
        "Lone Boss", "lone@example.com", None, role=UserRole.SUPER_ADMIN
    )
    assert not requests.is_reviewer(lone_boss.id)
    with pytest.raises(ForbiddenError):
        requests.reject(request.id, lone_boss.id, "No")
    assert requests.list_requests(admin.id, fleet_group_id=penang.id)[0].status == ChangeRequestStatus.PENDING


def test_listing_is_scoped_to_the_fleet(
    requests, connection, clock, customer, other_customer, admin, super_admin, penang
):
    fleets = FleetService(connection, clock=clock)
    johor_admin = ProfileRepo(connection).create("Johor Ops", "johor@example.com", None, role=UserRole.ADMIN)
    johor = fleets.verify(fleets.create_group("Johor Fleet", johor_admin.id).id, super_admin.id)
    ours = requests.submit(customer.id, {"ic_number": "1"}, admin.id, fleet_group_id=penang.id)
    theirs = requests.submit(other_customer.id, {"ic_number": "2"}, johor_admin.id, fleet_group_id=johor.id)

    assert [r.id for r in requests.list_requests(admin.id, fleet_group_id=penang.id)] == [ours.id]
    assert {r.id for r in requests.list_requests(super_admin.id)} == {ours.id, theirs.id}
    assert [r.id for r in requests.list_requests(super_admin.id, fleet_group_id=johor.id)] == [theirs.id]
    assert requests.list_requests(super_admin.id, status="APPROVED") == []

    with pytest.raises(ValidationError):
        requests.list_requests(admin.id)
    with pytest.raises(ForbiddenError):
        requests.list_requests(admin.id, fleet_group_id=johor.id)
    with pytest.raises(ValidationError):
        requests.list_requests(super_admin.id, status="LOST")
