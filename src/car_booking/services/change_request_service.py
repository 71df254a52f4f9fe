"""Customer profile change requests reviewed by the super group."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any, Callable, Optional

from car_booking.db.connection import write_transaction
from car_booking.domain.models import ChangeRequest, ChangeRequestStatus, UserRole
from car_booking.logging_config import get_logger
from car_booking.repositories.audit_repo import AuditRepository
from car_booking.repositories.change_request_repo import ChangeRequestRepository
from car_booking.repositories.fleet_repo import FleetRepository
from car_booking.repositories.membership_repo import MembershipRepository
from car_booking.repositories.profile_repo import EDITABLE_FIELDS, ProfileRepo
from car_booking.services.errors import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from car_booking.services.fleet_service import can_write
from car_booking.utils.contact import is_valid_email, is_valid_my_phone, normalize_phone
from car_booking.utils.dates import parse_date, to_iso_timestamp, utc_now


class ChangeRequestService:
    """Fleet admins propose edits to a customer's record; super admins apply them.

    A request stores only the fields that differ from the current profile, each
    as ``{"old": ..., "new": ...}``. Approval writes every ``new`` value to the
    profile in the same transaction that closes the request and audits it.
    """

    def __init__(
        self,
        connection: sqlite3.Connection,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = ChangeRequestRepository(connection)
        self._profiles = ProfileRepo(connection)
        self._fleets = FleetRepository(connection)
        self._members = MembershipRepository(connection)
        self._audit = AuditRepository(connection)
        self._clock = clock
        self._logger = get_logger(self.__class__.__name__)

    def is_reviewer(self, user_id: str) -> bool:
        """Super admins sitting in a super group review requests from every fleet."""
        profile = self._profiles.get_by_id(user_id)
        if not profile or profile.role != UserRole.SUPER_ADMIN:
            return False
        for membership in self._members.list_for_user(user_id):
            group = self._fleets.get_by_id(membership.fleet_group_id)
            if group and group.is_super_group:
                return True
        return False

    def _ensure_reviewer(self, admin_id: str) -> None:
        if not self.is_reviewer(admin_id):
            raise ForbiddenError("Only the super group can review change requests.")

    def _clean(self, field: str, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip() or None
        if field == "display_name" and not value:
            raise ValidationError("Name is required.")
        if field == "email" and value is not None and not is_valid_email(value):
            raise ValidationError("Invalid email address.")
        if field == "phone" and value is not None:
            value = normalize_phone(value)
            if not is_valid_my_phone(value):
                raise ValidationError("Invalid phone number.")
        if field == "licence_expiry" and value is not None:
            try:
                value = parse_date(value).isoformat()
            except (ValueError, OverflowError) as exc:
                raise ValidationError("Invalid licence expiry date.") from exc
        return value

    def submit(
        self,
        customer_id: str,
        updates: dict[str, Any],
        requested_by: str,
        *,
        fleet_group_id: Optional[int] = None,
    ) -> ChangeRequest:
        unknown = sorted(set(updates) - set(EDITABLE_FIELDS))
        if unknown:
            raise ValidationError(f"These fields cannot be changed: {', '.join(unknown)}")
        requester = self._profiles.get_by_id(requested_by)
        if not requester or requester.role == UserRole.CUSTOMER:
            raise ForbiddenError("Only admins can request changes to customer records.")
        if fleet_group_id is not None:
            group = self._fleets.get_by_id(fleet_group_id)
            if not group:
                raise NotFoundError(f"Fleet group {fleet_group_id} not found.")
            if not can_write(group):
                raise ForbiddenError(f"Fleet group {group.name} is read-only.")
            if (
                requester.role != UserRole.SUPER_ADMIN
                and not self._members.find(requested_by, fleet_group_id)
            ):
                raise ForbiddenError("You are not a member of this fleet group.")
        customer = self._profiles.get_by_id(customer_id)
        if not customer:
            raise NotFoundError(f"Customer {customer_id} not found.")

        changes: dict[str, dict[str, Any]] = {}
        for field, raw in updates.items():
            new = self._clean(field, raw)
            old = getattr(customer, field)
            if new != old:
                changes[field] = {"old": old, "new": new}
        if not changes:
            raise ValidationError("No changes to submit.")

        now_iso = to_iso_timestamp(self._clock())
        with write_transaction(self._connection):
            request = self._repo.create(
                customer_id,
                changes,
                fleet_group_id=fleet_group_id,
                requested_by=requested_by,
                created_at=now_iso,
            )
            self._audit.add(
                requested_by,
                "SUBMIT_CHANGE_REQUEST",
                "change_request",
                request.id,
                {"customer_id": customer_id, "fields": sorted(changes)},
                created_at=now_iso,
            )
        self._logger.info(
            "Change request %s submitted for %s by %s", request.id, customer_id, requested_by
        )
        return request

    def _get_pending(self, request_id: int) -> ChangeRequest:
        request = self._repo.get_by_id(request_id)
        if not request:
            raise NotFoundError(f"Change request {request_id} not found.")
        if request.status != ChangeRequestStatus.PENDING:
            raise InvalidTransitionError(
                f"Change request {request_id} is already {request.status.value}."
            )
        return request

    def approve(self, request_id: int, admin_id: str) -> ChangeRequest:
        self._ensure_reviewer(admin_id)
        now_iso = to_iso_timestamp(self._clock())
        with write_transaction(self._connection):
            request = self._get_pending(request_id)
            updates = {field: change["new"] for field, change in request.changes.items()}
            if not self._profiles.update_fields(request.customer_id, updates):
                raise NotFoundError(f"Customer {request.customer_id} not found.")
            self._repo.mark_reviewed(
                request_id, ChangeRequestStatus.APPROVED, admin_id, now_iso
            )
            self._audit.add(
                admin_id,
                "APPROVE_CHANGE_REQUEST",
                "change_request",
                request_id,
                {"customer_id": request.customer_id, "changes": request.changes},
                created_at=now_iso,
            )
        self._logger.info("Change request %s approved by %s", request_id, admin_id)
        return self._repo.get_by_id(request_id)

    def reject(self, request_id: int, admin_id: str, reason: str) -> ChangeRequest:
        if not (reason or "").strip():
            raise ValidationError("A rejection reason is required.")
        self._ensure_reviewer(admin_id)
        now_iso = to_iso_timestamp(self._clock())
        with write_transaction(self._connection):
            self._get_pending(request_id)
            self._repo.mark_reviewed(
                request_id,
                ChangeRequestStatus.REJECTED,
                admin_id,
                now_iso,
                rejection_reason=reason.strip(),
            )
            self._audit.add(
                admin_id,
                "REJECT_CHANGE_REQUEST",
                "change_request",
                request_id,
                {"reason": reason.strip()},
                created_at=now_iso,
            )
        self._logger.info("Change request %s rejected by %s", request_id, admin_id)
        return self._repo.get_by_id(request_id)

    def list_requests(
        self,
        viewer_id: str,
        *,
        fleet_group_id: Optional[int] = None,
        status: Optional[ChangeRequestStatus | str] = None,
    ) -> list[ChangeRequest]:
        """Reviewers see every fleet; other admins only the group they belong to."""
        if status is not None:
            try:
                status = ChangeRequestStatus(status)
            except ValueError as exc:
                raise ValidationError(f"Unknown change request status: {status}") from exc
        if not self.is_reviewer(viewer_id):
            if fleet_group_id is None:
                raise ValidationError("Choose a fleet group to list its change requests.")
            if not self._members.find(viewer_id, fleet_group_id):
                raise ForbiddenError("You are not a member of this fleet group.")
        return self._repo.list_requests(status=status, fleet_group_id=fleet_group_id)
