"""Fleet group governance: verification, suspension and membership."""

from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Callable, Optional

from car_booking.db.connection import write_transaction
from car_booking.domain.models import (
    FleetGroup,
    FleetMembership,
    FleetStatus,
    MembershipRole,
    UserRole,
)
from car_booking.logging_config import get_logger
from car_booking.repositories.audit_repo import AuditRepository
from car_booking.repositories.fleet_repo import FleetRepository
from car_booking.repositories.membership_repo import MembershipRepository
from car_booking.repositories.profile_repo import ProfileRepo
from car_booking.services.errors import (
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from car_booking.utils.dates import to_iso_timestamp, utc_now

# Placeholder replaced with the operation timestamp.
_NOW = object()


def can_write(group: Optional[FleetGroup]) -> bool:
    """Ungrouped records are always writable."""
    if group is None:
        return True
    return group.can_write


class FleetService:
    """Fleet group lifecycle and membership. Every change is audited."""

    def __init__(
        self,
        connection: sqlite3.Connection,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._connection = connection
        self._connection.row_factory = sqlite3.Row
        self._repo = FleetRepository(connection)
        self._members = MembershipRepository(connection)
        self._profiles = ProfileRepo(connection)
        self._audit = AuditRepository(connection)
        self._clock = clock
        self._logger = get_logger(self.__class__.__name__)

    def get_group(self, group_id: int) -> FleetGroup:
        group = self._repo.get_by_id(group_id)
        if not group:
            raise NotFoundError(f"Fleet group {group_id} not found.")
        return group

    def list_groups(self) -> list[FleetGroup]:
        return self._repo.list_all()

    def can_write(self, group_id: Optional[int]) -> bool:
        if group_id is None:
            return True
        return can_write(self._repo.get_by_id(group_id))

    def create_group(
        self,
        name: str,
        admin_id: Optional[str] = None,
        *,
        is_super_group: bool = False,
    ) -> FleetGroup:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Fleet group name is required.")
        if admin_id is not None and not self._profiles.get_by_id(admin_id):
            raise NotFoundError(f"Admin {admin_id} not found.")
        now_iso = to_iso_timestamp(self._clock())
        with write_transaction(self._connection):
            group = self._repo.create(
                name,
                is_super_group=is_super_group,
                status=FleetStatus.VERIFIED if is_super_group else FleetStatus.PENDING_VERIFICATION,
                created_at=now_iso,
            )
            if admin_id is not None:
                # The creator administers the new group.
                self._members.add(
                    admin_id, group.id, MembershipRole.FLEET_ADMIN, created_at=now_iso
                )
            self._audit.add(
                admin_id,
                "CREATE_FLEET_GROUP",
                "fleet_group",
                group.id,
                {"name": name, "is_super_group": is_super_group},
                created_at=now_iso,
            )
        self._logger.info("Fleet group %s created id=%s", name, group.id)
        return group

    def _change(
        self,
        group_id: int,
        admin_id: str,
        action: str,
        allowed_from: tuple[FleetStatus, ...],
        changes: dict[str, object],
    ) -> FleetGroup:
        now_iso = to_iso_timestamp(self._clock())
        with write_transaction(self._connection):
            group = self.get_group(group_id)
            if group.status not in allowed_from:
                raise InvalidTransitionError(
                    f"Fleet group {group.name} is {group.status.value}; cannot {action.lower().replace('_', ' ')}."
                )
            resolved = {
                key: (now_iso if value is _NOW else value) for key, value in changes.items()
            }
            self._repo.update(group_id, resolved)
            details = {
                key: (value.value if isinstance(value, FleetStatus) else value)
                for key, value in resolved.items()
            }
            details["previous_status"] = group.status.value
            self._audit.add(
                admin_id,
                action,
                "fleet_group",
                group_id,
                details,
                created_at=now_iso,
            )
        self._logger.info("Fleet group %s: %s by %s", group_id, action, admin_id)
        return self.get_group(group_id)

    def verify(self, group_id: int, admin_id: str) -> FleetGroup:
        return self._change(
            group_id,
            admin_id,
            "VERIFY_FLEET_GROUP",
            (FleetStatus.PENDING_VERIFICATION, FleetStatus.REJECTED),
            {
                "status": FleetStatus.VERIFIED,
                "verified_at": _NOW,
                "verified_by": admin_id,
                "rejection_reason": None,
            },
        )

    def reject(self, group_id: int, admin_id: str, reason: str) -> FleetGroup:
        if not (reason or "").strip():
            raise ValidationError("A rejection reason is required.")
        return self._change(
            group_id,
            admin_id,
            "REJECT_FLEET_GROUP",
            (FleetStatus.PENDING_VERIFICATION,),
            {"status": FleetStatus.REJECTED, "rejection_reason": reason.strip()},
        )

    def suspend(
        self,
        group_id: int,
        admin_id: str,
        reason: str,
        notes: Optional[str] = None,
    ) -> FleetGroup:
        if not (reason or "").strip():
            raise ValidationError("A suspension reason is required.")
        return self._change(
            group_id,
            admin_id,
            "SUSPEND_FLEET_GROUP",
            (FleetStatus.VERIFIED,),
            {
                "status": FleetStatus.SUSPENDED,
                "suspension_reason": reason.strip(),
                "suspension_notes": notes,
                "suspended_at": _NOW,
                "suspended_by": admin_id,
            },
        )

    def unsuspend(self, group_id: int, admin_id: str) -> FleetGroup:
        return self._change(
            group_id,
            admin_id,
            "UNSUSPEND_FLEET_GROUP",
            (FleetStatus.SUSPENDED,),
            {
                "status": FleetStatus.VERIFIED,
                "suspension_reason": None,
                "suspension_notes": None,
                "suspended_at": None,
                "suspended_by": None,
            },
        )

    def list_members(self, group_id: int) -> list[FleetMembership]:
        self.get_group(group_id)
        return self._members.list_for_group(group_id)

    def memberships_for(self, user_id: str) -> list[FleetMembership]:
        return self._members.list_for_user(user_id)

    def is_member(self, user_id: str, group_id: int) -> bool:
        return self._members.find(user_id, group_id) is not None

    def _ensure_can_manage(self, group_id: int, admin_id: str) -> None:
        """Super admins manage every group; otherwise a fleet_admin membership is needed."""
        profile = self._profiles.get_by_id(admin_id)
        if profile and profile.role == UserRole.SUPER_ADMIN:
            return
        membership = self._members.find(admin_id, group_id)
        if not membership or membership.role != MembershipRole.FLEET_ADMIN:
            raise ForbiddenError("Only fleet admins can manage group members.")

    def _get_membership(self, membership_id: int) -> FleetMembership:
        membership = self._members.get_by_id(membership_id)
        if not membership:
            raise NotFoundError(f"Membership {membership_id} not found.")
        return membership

    def add_member(
        self,
        group_id: int,
        user_id: str,
        admin_id: str,
        role: MembershipRole | str = MembershipRole.FLEET_STAFF,
    ) -> FleetMembership:
        try:
            role = MembershipRole(role)
        except ValueError as exc:
            raise ValidationError(f"Unknown member role: {role}") from exc
        now_iso = to_iso_timestamp(self._clock())
        with write_transaction(self._connection):
            group = self.get_group(group_id)
            self._ensure_can_manage(group_id, admin_id)
            profile = self._profiles.get_by_id(user_id)
            if not profile:
                raise NotFoundError(f"User {user_id} not found.")
            if profile.role == UserRole.CUSTOMER:
                raise ValidationError("Only admin accounts can join a fleet group.")
            if self._members.find(user_id, group_id):
                raise ValidationError("This user is already a member.")
            membership = self._members.add(user_id, group_id, role, created_at=now_iso)
            self._audit.add(
                admin_id,
                "ADD_GROUP_MEMBER",
                "fleet_membership",
                membership.id,
                {"added_user": user_id, "role": role.value, "group": group.name},
                created_at=now_iso,
            )
        self._logger.info("User %s added to fleet group %s as %s", user_id, group_id, role.value)
        return membership

    def change_member_role(
        self, membership_id: int, role: MembershipRole | str, admin_id: str
    ) -> FleetMembership:
        try:
            role = MembershipRole(role)
        except ValueError as exc:
            raise ValidationError(f"Unknown member role: {role}") from exc
        now_iso = to_iso_timestamp(self._clock())
        with write_transaction(self._connection):
            membership = self._get_membership(membership_id)
            self._ensure_can_manage(membership.fleet_group_id, admin_id)
            self._members.update_role(membership_id, role)
            self._audit.add(
                admin_id,
                "CHANGE_MEMBER_ROLE",
                "fleet_membership",
                membership_id,
                {
                    "target_user": membership.user_id,
                    "old_role": membership.role.value,
                    "new_role": role.value,
                },
                created_at=now_iso,
            )
        return self._get_membership(membership_id)

    def remove_member(self, membership_id: int, admin_id: str) -> None:
        now_iso = to_iso_timestamp(self._clock())
        with write_transaction(self._connection):
            membership = self._get_membership(membership_id)
            self._ensure_can_manage(membership.fleet_group_id, admin_id)
            self._members.remove(membership_id)
            self._audit.add(
                admin_id,
                "REMOVE_GROUP_MEMBER",
                "fleet_membership",
                membership_id,
                {"removed_user": membership.user_id, "group_id": membership.fleet_group_id},
                created_at=now_iso,
            )
        self._logger.info(
            "User %s removed from fleet group %s", membership.user_id, membership.fleet_group_id
        )
